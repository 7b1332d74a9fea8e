"""
Fallback Module

Carries stragglers' previous-round parameters into the current round so the
mean keeps its full denominator.
"""

from typing import List, Sequence

from .parameter_store import ParameterStore
from ..utils.logger import get_logger, log_event


logger = get_logger("fallback")


def use_previous_round_parameters(
    store: ParameterStore,
    missing: Sequence[str],
    round_id: int
) -> List[str]:
    """
    Stage each missing node's round_id - 1 bundle under round_id.

    Nodes whose own upload arrived after the barrier gave up are left alone.
    Round 0 has no previous round, so a round 0 that is still incomplete
    always fails.

    Args:
        store: Parameter store
        missing: Nodes the barrier reported missing, in participant order
        round_id: Current round

    Returns:
        The nodes that were carried forward

    Raises:
        MissingPreviousRoundError: If a still-missing node has no previous bundle
    """
    if not missing:
        return []

    carried = store.copy_forward(missing, round_id)

    for node_id in carried:
        log_event(
            logger, "fallback_applied", level="WARNING",
            round_id=round_id, node_id=node_id, source_round=round_id - 1
        )
    return carried
