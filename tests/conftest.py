from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest

from fedlstm.config import CoordinatorConfig
from fedlstm.core.contract import AggregationContract
from fedlstm.core.tensors import TensorBundle


class FakeClock:
    """Monotonic clock whose sleep only advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []
        self.on_sleep = None

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        if self.on_sleep is not None:
            self.on_sleep(len(self.sleeps))


def mock_parameters() -> Dict[str, Any]:
    return {
        "Wi": [[0.1, 0.2], [0.3, 0.4]],
        "Wf": [[0.5, 0.6], [0.7, 0.8]],
        "Wo": [[0.9, 1.0], [1.1, 1.2]],
        "Wc": [[1.3, 1.4], [1.5, 1.6]],
        "bi": [0.1, 0.2],
        "bf": [0.3, 0.4],
        "bo": [0.5, 0.6],
        "bc": [0.7, 0.8],
    }


def scaled_parameters(factor: float) -> Dict[str, Any]:
    params = mock_parameters()
    for name, value in params.items():
        if isinstance(value[0], list):
            params[name] = [[x * factor for x in row] for row in value]
        else:
            params[name] = [x * factor for x in value]
    return params


def make_bundle(node_id: str, round_id: int, params: Dict[str, Any] | None = None) -> TensorBundle:
    params = params or mock_parameters()
    return TensorBundle.from_wire(node_id, round_id, *(params[k] for k in ("Wi", "Wf", "Wo", "Wc", "bi", "bf", "bo", "bc")))


def upload(contract: AggregationContract, node_id: str, round_id: int, params: Dict[str, Any] | None = None) -> None:
    params = params or mock_parameters()
    contract.upload_parameter(
        node_id,
        params["Wi"], params["Wf"], params["Wo"], params["Wc"],
        params["bi"], params["bf"], params["bo"], params["bc"],
        round_id,
    )


# 1000 % 3 == 1 -> "web"
FIXED_WALL_CLOCK = 1000.0


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path: Path) -> CoordinatorConfig:
    return CoordinatorConfig(state_dir=str(tmp_path / "ledger"))


@pytest.fixture
def contract(config: CoordinatorConfig, fake_clock: FakeClock) -> AggregationContract:
    return AggregationContract(
        config,
        clock=fake_clock.time,
        sleep=fake_clock.sleep,
        wall_clock=lambda: FIXED_WALL_CLOCK,
    )
