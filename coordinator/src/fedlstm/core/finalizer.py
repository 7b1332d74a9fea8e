"""
Finalizer Module

Persists a round's aggregated result, broadcasts it, and releases the round's
staged parameters.
"""

from .errors import EventEmissionError, PersistenceError
from .events import GLOBAL_MODEL_UPDATE, EventDeliveryError, EventHub
from .parameter_store import ParameterStore
from .state_store import StateStore
from .tensors import AggregatedResult, result_key
from ..utils.logger import get_logger, log_event


logger = get_logger("finalizer")


class Finalizer:
    """
    Runs the persist, broadcast and purge steps of a round, in that order.

    A failed persist stops before the broadcast and keeps staged state.
    A failed broadcast leaves the persisted result in place and keeps staged
    state so StartAggregation can be retried.
    """

    def __init__(self, state_store: StateStore, event_sink: EventHub, parameter_store: ParameterStore):
        self.state_store = state_store
        self.event_sink = event_sink
        self.parameter_store = parameter_store

    def finalize(self, result: AggregatedResult) -> str:
        """
        Finalize a round.

        Args:
            result: Aggregated result of the round

        Returns:
            The serialized result, as persisted and broadcast

        Raises:
            SerializationError: If the result cannot be serialized
            PersistenceError: If the state write fails
            EventEmissionError: If a participant could not be sent the result
        """
        payload = result.to_json()
        key = result_key(result.round)

        try:
            self.state_store.put_state(key, payload)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"failed to put state: {e}")
        log_event(logger, "result_persisted", round_id=result.round, key=key)

        try:
            event = self.event_sink.set_event(GLOBAL_MODEL_UPDATE, payload)
        except EventDeliveryError as e:
            raise EventEmissionError(e.node_id, e.reason)
        for node_id in event.recipients:
            log_event(logger, "global_model_sent", round_id=result.round, node_id=node_id, seq=event.seq)

        purged = self.parameter_store.purge_round(result.round)
        log_event(logger, "round_purged", round_id=result.round, purged=len(purged))

        return payload
