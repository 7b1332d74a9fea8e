"""
Barrier Module

Waits until every participant has staged parameters for a round, or until
the aggregation deadline passes.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from .parameter_store import ParameterStore
from ..utils.logger import get_logger, log_event


logger = get_logger("barrier")


@dataclass
class BarrierResult:
    """Outcome of waiting on a round."""
    complete: bool
    missing: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0


def wait_for_participants(
    store: ParameterStore,
    participants: Sequence[str],
    round_id: int,
    timeout: float = 60.0,
    interval: float = 10.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> BarrierResult:
    """
    Poll the store until the round is complete or the deadline passes.

    The store is only read; uploads keep flowing while this waits. The last
    wait is cut short at the deadline, and the result is returned straight
    after the final check.

    Args:
        store: Parameter store to observe
        participants: Expected nodes, in participant order
        round_id: Round to wait for
        timeout: Aggregation deadline in seconds
        interval: Seconds between checks
        clock: Monotonic time source
        sleep: Function used to wait between checks

    Returns:
        BarrierResult with the nodes still missing when the deadline passed
    """
    start = clock()

    while True:
        missing = store.missing(participants, round_id)
        elapsed = clock() - start

        if not missing:
            log_event(logger, "barrier_complete", round_id=round_id, elapsed_seconds=elapsed)
            return BarrierResult(complete=True, elapsed_seconds=elapsed)

        if elapsed >= timeout:
            log_event(
                logger, "barrier_timeout", level="WARNING", round_id=round_id,
                missing=missing, elapsed_seconds=elapsed
            )
            return BarrierResult(complete=False, missing=missing, elapsed_seconds=elapsed)

        log_event(logger, "barrier_waiting", level="DEBUG", round_id=round_id, missing=missing)
        sleep(min(interval, timeout - elapsed))
