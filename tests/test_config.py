from __future__ import annotations

import pytest

from fedlstm.config import CoordinatorConfig


def test_defaults_match_reference_deployment(monkeypatch):
    for name in ("FEDLSTM_PARTICIPANTS", "FEDLSTM_AGGREGATION_TIMEOUT", "FEDLSTM_CHECK_INTERVAL"):
        monkeypatch.delenv(name, raising=False)

    config = CoordinatorConfig.from_env()

    assert config.participants == ("soft", "web", "hard")
    assert config.aggregation_timeout_seconds == 60.0
    assert config.check_interval_seconds == 10.0


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("FEDLSTM_PARTICIPANTS", " a, b ,c,d ")
    monkeypatch.setenv("FEDLSTM_AGGREGATION_TIMEOUT", "5")
    monkeypatch.setenv("FEDLSTM_CHECK_INTERVAL", "0.5")
    monkeypatch.setenv("FEDLSTM_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("FEDLSTM_PORT", "9100")

    config = CoordinatorConfig.from_env()

    assert config.participants == ("a", "b", "c", "d")
    assert config.aggregation_timeout_seconds == 5.0
    assert config.check_interval_seconds == 0.5
    assert config.state_dir == str(tmp_path)
    assert config.port == 9100


@pytest.mark.parametrize(
    "kwargs",
    [
        {"participants": ()},
        {"participants": ("soft", "soft")},
        {"participants": ("soft", "")},
        {"aggregation_timeout_seconds": -1.0},
        {"check_interval_seconds": 0.0},
    ],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        CoordinatorConfig(**kwargs)
