from __future__ import annotations

import pytest
import requests
from fastapi.testclient import TestClient

from fedlstm.main import create_app
from fedlstm_client import api
from fedlstm_client.api import CoordinatorAPIError, CoordinatorConnectionError
from fedlstm_client.client import get_mock_parameters, run_round


BASE_URL = "http://coordinator.test"


@pytest.fixture
def routed(contract, monkeypatch):
    """Route the client's requests into an in-process coordinator."""
    test_client = TestClient(create_app(contract=contract))
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url))
        kwargs.pop("timeout", None)
        return test_client.request(method, url[len(BASE_URL):], **kwargs)

    monkeypatch.setattr(api.config, "COORDINATOR_URL", BASE_URL)
    monkeypatch.setattr(api.requests, "request", fake_request)
    return calls


def test_mock_parameters_match_reference_values():
    params = get_mock_parameters()
    assert params["Wi"] == [[0.1, 0.2], [0.3, 0.4]]
    assert params["bc"] == [0.7, 0.8]


def test_full_round_through_the_gateway(routed, contract):
    for node_id in ("soft", "web"):
        api.upload_parameter(node_id, get_mock_parameters(), 1)

    result = run_round("hard", 1, wait_seconds=0)

    assert result["round"] == 1
    assert result["nodeId"] in ("soft", "web", "hard")
    assert api.fetch_global_model(1) == result
    assert api.fetch_global_model(2) is None
    events = api.poll_events("soft")
    assert len(events) == 1
    assert api.check_working() == "chaincode is working"
    assert ("POST", f"{BASE_URL}/transactions/StartAggregation") in routed


def test_rejected_transaction_raises_api_error(routed):
    with pytest.raises(CoordinatorAPIError, match="400 - unknown participant eve") as info:
        api.upload_parameter("eve", get_mock_parameters(), 1)
    assert info.value.status_code == 400


def test_connection_errors_are_retried(monkeypatch):
    attempts = []

    def failing_request(method, url, **kwargs):
        attempts.append(url)
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(api.requests, "request", failing_request)
    monkeypatch.setattr(api.time, "sleep", lambda seconds: None)

    with pytest.raises(CoordinatorConnectionError, match="after 3 attempts"):
        api._make_request("GET", "http://nowhere.test/health", max_retries=2, retry_delay=0)

    assert len(attempts) == 3
