"""
Aggregation Contract Module

Entry points of the aggregation coordinator: UploadParameter,
StartAggregation and CheckWorking.

StartAggregation drives barrier, fallback, averaging, leader selection and
finalization for one round. Calls for the same round are serialized; calls
for different rounds may run side by side and only share the parameter
store's lock.
"""

import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .aggregator import average_bundles
from .barrier import wait_for_participants
from .errors import (
    ChaincodeError,
    InvalidArgumentError,
    OperationalError,
    UnknownParticipantError,
)
from .events import EventHub
from .fallback import use_previous_round_parameters
from .finalizer import Finalizer
from .leader import select_leader
from .parameter_store import ParameterStore, StagingKey
from .state_store import StateStore
from .tensors import AggregatedResult, ArrayLike, TensorBundle
from ..config import CoordinatorConfig
from ..utils.logger import get_logger, log_event


logger = get_logger("contract")

WORKING_MESSAGE = "chaincode is working"


def _parse_round(value) -> int:
    """
    Parse a round number from an int or decimal text.

    Raises:
        InvalidArgumentError: If the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"invalid round: {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidArgumentError(f"invalid round: {value!r}")
    if not isinstance(value, int):
        raise InvalidArgumentError(f"invalid round: {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"invalid round: {value} is negative")
    return value


class AggregationContract:
    """
    Round-scoped aggregation coordinator.

    Owns the parameter store for its lifetime; the state store and event sink
    are collaborators that can be shared with the transport layer.
    """

    def __init__(
        self,
        config: Optional[CoordinatorConfig] = None,
        parameter_store: Optional[ParameterStore] = None,
        state_store: Optional[StateStore] = None,
        event_sink: Optional[EventHub] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        wall_clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the contract.

        Args:
            config: Coordinator configuration (defaults from the environment)
            parameter_store: Staging store (a new empty one by default)
            state_store: Durable state (file-backed under config.state_dir by default)
            event_sink: Event sink (an EventHub over the participant set by default)
            clock: Monotonic clock used by the barrier
            sleep: Wait function used by the barrier
            wall_clock: Seconds since the epoch, used for leader selection
        """
        self.config = config or CoordinatorConfig.from_env()
        self.participants: List[str] = list(self.config.participants)
        self.parameter_store = parameter_store or ParameterStore()
        self.state_store = state_store or StateStore(self.config.state_dir)
        self.event_sink = event_sink or EventHub(self.participants, self.config.max_event_history)
        self.finalizer = Finalizer(self.state_store, self.event_sink, self.parameter_store)

        self._clock = clock
        self._sleep = sleep
        self._wall_clock = wall_clock

        # round -> [lock, number of callers holding or waiting]
        self._round_locks: Dict[int, list] = {}
        self._round_locks_guard = threading.Lock()

    @contextmanager
    def _exclusive_round(self, round_id: int) -> Iterator[None]:
        """Hold the lock of one round; the entry is dropped when nobody needs it."""
        with self._round_locks_guard:
            entry = self._round_locks.setdefault(round_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._round_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._round_locks[round_id]

    def upload_parameter(
        self,
        node_id: str,
        Wi: ArrayLike,
        Wf: ArrayLike,
        Wo: ArrayLike,
        Wc: ArrayLike,
        bi: ArrayLike,
        bf: ArrayLike,
        bo: ArrayLike,
        bc: ArrayLike,
        round_id,
    ) -> None:
        """
        Stage a node's parameters for a round.

        A second upload for the same node and round replaces the first.

        Raises:
            UnknownParticipantError: If node_id is not a participant
            InvalidArgumentError: If a value cannot be parsed
            ShapeInvariantError: If the bundle's shapes are inconsistent
        """
        if node_id not in self.participants:
            log_event(logger, "upload_rejected", level="WARNING", node_id=node_id, reason="unknown participant")
            raise UnknownParticipantError(node_id)

        try:
            round_id = _parse_round(round_id)
            bundle = TensorBundle.from_wire(node_id, round_id, Wi, Wf, Wo, Wc, bi, bf, bo, bc)
        except ChaincodeError as e:
            log_event(logger, "upload_rejected", level="WARNING", node_id=node_id, reason=str(e))
            raise

        self.parameter_store.put(StagingKey(node_id, round_id), bundle)
        log_event(
            logger, "parameter_uploaded", round_id=round_id, node_id=node_id,
            weight_shape=list(bundle.weight_shape), bias_length=bundle.bias_length
        )

    def start_aggregation(self, round_id) -> str:
        """
        Aggregate a round and return the serialized result.

        Waits for every participant (up to the aggregation deadline), carries
        stragglers forward from the previous round, averages, selects the
        leader, then persists, broadcasts and purges the round.

        Args:
            round_id: Round to aggregate

        Returns:
            The serialized AggregatedResult

        Raises:
            ChaincodeError: Any failure, with a message naming the failing stage
        """
        round_id = _parse_round(round_id)

        with self._exclusive_round(round_id):
            try:
                payload = self._aggregate_round(round_id)
            except ChaincodeError as e:
                log_event(logger, "aggregation_failed", level="ERROR", round_id=round_id, error=str(e))
                raise
            except Exception as e:
                log_event(logger, "aggregation_failed", level="ERROR", round_id=round_id, error=str(e))
                raise OperationalError(str(e)) from e

        log_event(logger, "aggregation_completed", round_id=round_id)
        return payload

    def _aggregate_round(self, round_id: int) -> str:
        barrier = wait_for_participants(
            self.parameter_store,
            self.participants,
            round_id,
            timeout=self.config.aggregation_timeout_seconds,
            interval=self.config.check_interval_seconds,
            clock=self._clock,
            sleep=self._sleep,
        )

        if not barrier.complete:
            use_previous_round_parameters(self.parameter_store, barrier.missing, round_id)

        bundles = self.parameter_store.get_round(self.participants, round_id)
        absent = [node_id for node_id, bundle in zip(self.participants, bundles) if bundle is None]
        if absent:
            raise OperationalError(f"parameters for round {round_id} disappeared for node(s) {absent}")

        averaged = average_bundles(bundles)

        leader = select_leader(self.participants, self._wall_clock())
        log_event(logger, "leader_selected", round_id=round_id, node_id=leader)

        result = AggregatedResult(node_id=leader, round=round_id, **averaged)
        return self.finalizer.finalize(result)

    def check_working(self) -> str:
        """Liveness probe."""
        return WORKING_MESSAGE

    def query_state(self, key: str) -> Optional[str]:
        """
        Read a persisted value, e.g. "RESULT_Aggregated_1".

        Raises:
            InvalidArgumentError: If the key is malformed
        """
        try:
            return self.state_store.get_state(key)
        except ValueError as e:
            raise InvalidArgumentError(str(e))

    def invoke(self, function: str, args: Sequence[str]) -> str:
        """
        Dispatch a transaction by name with string arguments.

        UploadParameter takes the node id, the eight tensors as JSON text and
        the round as decimal text; StartAggregation takes the round;
        CheckWorking takes nothing.

        Args:
            function: Transaction name
            args: Transaction arguments

        Returns:
            Transaction result ("" for UploadParameter)

        Raises:
            InvalidArgumentError: For an unknown function or wrong argument count
        """
        handlers = {
            "UploadParameter": (10, lambda a: self.upload_parameter(*a) or ""),
            "StartAggregation": (1, lambda a: self.start_aggregation(a[0])),
            "CheckWorking": (0, lambda a: self.check_working()),
        }

        if function not in handlers:
            raise InvalidArgumentError(f"unknown function {function}")

        arity, handler = handlers[function]
        if len(args) != arity:
            raise InvalidArgumentError(
                f"incorrect number of arguments for {function}: expected {arity}, got {len(args)}"
            )

        return handler(list(args))
