"""
Core modules for the federated LSTM aggregation coordinator.
"""

from .aggregator import average_bundles, check_shapes
from .barrier import BarrierResult, wait_for_participants
from .contract import AggregationContract, WORKING_MESSAGE
from .errors import (
    ChaincodeError,
    EventEmissionError,
    InvalidArgumentError,
    MissingPreviousRoundError,
    OperationalError,
    PersistenceError,
    SerializationError,
    ShapeInvariantError,
    UnknownParticipantError,
)
from .events import GLOBAL_MODEL_UPDATE, Event, EventDeliveryError, EventHub
from .fallback import use_previous_round_parameters
from .finalizer import Finalizer
from .leader import select_leader
from .parameter_store import ParameterStore, ReadWriteLock, StagingKey
from .state_store import StateStore
from .tensors import AggregatedResult, TensorBundle, result_key

__all__ = [
    "AggregationContract",
    "WORKING_MESSAGE",
    "ParameterStore",
    "ReadWriteLock",
    "StagingKey",
    "BarrierResult",
    "wait_for_participants",
    "use_previous_round_parameters",
    "average_bundles",
    "check_shapes",
    "select_leader",
    "Finalizer",
    "StateStore",
    "EventHub",
    "Event",
    "EventDeliveryError",
    "GLOBAL_MODEL_UPDATE",
    "TensorBundle",
    "AggregatedResult",
    "result_key",
    "ChaincodeError",
    "UnknownParticipantError",
    "InvalidArgumentError",
    "ShapeInvariantError",
    "MissingPreviousRoundError",
    "SerializationError",
    "PersistenceError",
    "EventEmissionError",
    "OperationalError",
]
