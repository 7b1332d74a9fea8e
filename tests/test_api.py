from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from fedlstm.main import create_app

from conftest import mock_parameters


PARTICIPANTS = ["soft", "web", "hard"]


@pytest.fixture
def client(contract):
    return TestClient(create_app(contract=contract))


def _typed_upload(node_id, round_id, params=None):
    body = dict(params or mock_parameters())
    body["nodeId"] = node_id
    body["round"] = round_id
    return body


def test_health_and_check_working(client):
    assert client.get("/health").json() == {"status": "chaincode is working"}

    response = client.post("/transactions/CheckWorking", json={"args": []})
    assert response.status_code == 200
    assert response.json()["result"] == "chaincode is working"


def test_typed_upload_aggregate_and_query(client):
    for node_id in PARTICIPANTS:
        response = client.post("/parameters", json=_typed_upload(node_id, 1))
        assert response.status_code == 200
        assert response.json()["success"] is True

    response = client.post("/aggregate/1")
    assert response.status_code == 200
    body = response.json()
    assert body["round"] == 1
    assert body["leader"] == "web"
    assert body["result"]["Wi"] == pytest.approx([[0.1, 0.2], [0.3, 0.4]])

    state = client.get("/state/RESULT_Aggregated_1")
    assert state.status_code == 200
    assert json.loads(state.json()["value"]) == body["result"]

    events = client.get("/events", params={"after": 0, "node_id": "hard"}).json()
    assert [e["name"] for e in events] == ["GlobalModelUpdate"]
    assert json.loads(events[0]["payload"])["round"] == 1


def test_string_argument_transactions(client):
    for node_id in PARTICIPANTS:
        args = [node_id] + [json.dumps(v) for v in mock_parameters().values()] + ["2"]
        response = client.post("/transactions/UploadParameter", json={"args": args})
        assert response.status_code == 200
        assert response.json()["result"] == ""

    response = client.post("/transactions/StartAggregation", json={"args": ["2"]})
    assert response.status_code == 200
    assert json.loads(response.json()["result"])["round"] == 2


def test_error_statuses(client):
    response = client.post("/parameters", json=_typed_upload("mallory", 1))
    assert response.status_code == 400
    assert response.json()["detail"] == "unknown participant mallory"

    response = client.post("/transactions/Nope", json={"args": []})
    assert response.status_code == 400

    client.post("/parameters", json=_typed_upload("soft", 1))
    response = client.post("/aggregate/1")
    assert response.status_code == 409
    assert response.json()["detail"] == "parameter for node web not found in previous round"

    assert client.get("/state/RESULT_Aggregated_99").status_code == 404
    assert client.get("/state/bad key!").status_code == 400


def test_shape_violation_is_bad_request(client):
    params = mock_parameters()
    params["Wo"] = [[0.9], [1.1]]
    response = client.post("/parameters", json=_typed_upload("soft", 1, params))
    assert response.status_code == 400
    assert "shape mismatch" in response.json()["detail"]


def test_event_failure_is_server_error(client, contract):
    def refuse(event):
        raise RuntimeError("gone")

    contract.event_sink.subscribe("web", refuse)
    for node_id in PARTICIPANTS:
        client.post("/parameters", json=_typed_upload(node_id, 4))

    response = client.post("/aggregate/4")
    assert response.status_code == 500
    assert response.json()["detail"].startswith("failed to send global model to node web")
    assert client.get("/state/RESULT_Aggregated_4").status_code == 200
