"""
Leader Selection Module

Picks the node tagged as leader in a round's aggregated result.

The choice is the wall-clock second modulo the number of participants. It can
be audited by anyone who knows the second the aggregation ran, but it is not
adversary resistant and rounds finishing in the same second collide.
"""

import time
from typing import Optional, Sequence


def select_leader(participants: Sequence[str], now: Optional[float] = None) -> str:
    """
    Select the leader for a round.

    Args:
        participants: Participant set, in configured order
        now: Seconds since the epoch (defaults to time.time())

    Returns:
        Identifier of the selected node
    """
    if not participants:
        raise ValueError("participant set is empty")

    if now is None:
        now = time.time()

    return participants[int(now) % len(participants)]
