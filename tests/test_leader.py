from __future__ import annotations

import pytest

from fedlstm.core.leader import select_leader


PARTICIPANTS = ["soft", "web", "hard"]


@pytest.mark.parametrize(
    "now, expected",
    [(999.0, "soft"), (1000.0, "web"), (1001.0, "hard"), (1001.999, "hard")],
)
def test_leader_is_seconds_modulo_participants(now, expected):
    assert select_leader(PARTICIPANTS, now) == expected


def test_leader_defaults_to_wall_clock(monkeypatch):
    monkeypatch.setattr("fedlstm.core.leader.time.time", lambda: 1_700_000_002.75)
    assert select_leader(PARTICIPANTS) == PARTICIPANTS[1_700_000_002 % 3]


def test_empty_participant_set():
    with pytest.raises(ValueError):
        select_leader([], 5.0)
