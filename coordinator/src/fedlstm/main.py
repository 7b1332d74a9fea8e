"""
FastAPI Server for the Federated LSTM Aggregation Coordinator

Exposes the coordinator's transactions over HTTP.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import CoordinatorConfig
from .core.contract import AggregationContract
from .core.errors import (
    ChaincodeError,
    InvalidArgumentError,
    MissingPreviousRoundError,
    ShapeInvariantError,
    UnknownParticipantError,
)
from .utils.logger import setup_coordinator_logger


# Pydantic models for request/response
class TransactionRequest(BaseModel):
    """Request model for a transaction submitted with string arguments."""
    args: List[str] = Field(default_factory=list)


class TransactionResponse(BaseModel):
    """Response model for a submitted transaction."""
    function: str
    result: str


class ParameterUploadRequest(BaseModel):
    """Request model for a typed parameter upload."""
    nodeId: str
    Wi: List[List[float]]
    Wf: List[List[float]]
    Wo: List[List[float]]
    Wc: List[List[float]]
    bi: List[float]
    bf: List[float]
    bo: List[float]
    bc: List[float]
    round: int


class ParameterUploadResponse(BaseModel):
    """Response model for a parameter upload."""
    success: bool
    message: str


class AggregateResponse(BaseModel):
    """Response model for aggregation."""
    round: int
    leader: str
    result: Dict[str, Any]


class HealthResponse(BaseModel):
    """Response model for the liveness probe."""
    status: str


class StateResponse(BaseModel):
    """Response model for a state query."""
    key: str
    value: str


class EventResponse(BaseModel):
    """Response model for one emitted event."""
    seq: int
    name: str
    payload: str
    recipients: List[str]
    timestamp: float


def _status_code(error: ChaincodeError) -> int:
    """HTTP status for a coordinator error."""
    if isinstance(error, (UnknownParticipantError, InvalidArgumentError, ShapeInvariantError)):
        return 400
    if isinstance(error, MissingPreviousRoundError):
        return 409
    return 500


def _raise_http(error: ChaincodeError) -> None:
    raise HTTPException(status_code=_status_code(error), detail=str(error))


def create_app(
    config: Optional[CoordinatorConfig] = None,
    contract: Optional[AggregationContract] = None
) -> FastAPI:
    """
    Build the coordinator API.

    Args:
        config: Coordinator configuration (defaults from the environment)
        contract: Contract to serve (built from config when None)

    Returns:
        FastAPI application
    """
    if contract is None:
        config = config or CoordinatorConfig.from_env()
        contract = AggregationContract(config)
    config = contract.config

    setup_coordinator_logger(config.log_dir, config.log_level)

    app = FastAPI(
        title="Federated LSTM Aggregation Coordinator",
        description="Round-scoped aggregation of LSTM parameters",
        version="1.0.0"
    )
    app.state.contract = contract

    @app.post("/transactions/{function}", response_model=TransactionResponse)
    def submit_transaction(function: str, request: TransactionRequest) -> TransactionResponse:
        """
        Submit a transaction by name with string arguments.

        Args:
            function: UploadParameter, StartAggregation or CheckWorking
            request: Transaction arguments

        Returns:
            Transaction result
        """
        try:
            result = contract.invoke(function, request.args)
        except ChaincodeError as e:
            _raise_http(e)

        return TransactionResponse(function=function, result=result)

    @app.post("/parameters", response_model=ParameterUploadResponse)
    def upload_parameter(request: ParameterUploadRequest) -> ParameterUploadResponse:
        """
        Upload a node's LSTM parameters for a round.

        Args:
            request: Node id, tensors and round

        Returns:
            Upload response with success status
        """
        try:
            contract.upload_parameter(
                request.nodeId,
                request.Wi, request.Wf, request.Wo, request.Wc,
                request.bi, request.bf, request.bo, request.bc,
                request.round,
            )
        except ChaincodeError as e:
            _raise_http(e)

        return ParameterUploadResponse(
            success=True,
            message=f"Parameters from node {request.nodeId} staged for round {request.round}"
        )

    @app.post("/aggregate/{round_id}", response_model=AggregateResponse)
    def aggregate_round(round_id: int) -> AggregateResponse:
        """
        Aggregate a round.

        Blocks until every participant has uploaded or the aggregation
        deadline passes.

        Args:
            round_id: Round to aggregate

        Returns:
            The aggregated result and its leader
        """
        try:
            payload = contract.start_aggregation(round_id)
        except ChaincodeError as e:
            _raise_http(e)

        result = json.loads(payload)
        return AggregateResponse(round=result["round"], leader=result["nodeId"], result=result)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Liveness probe."""
        return HealthResponse(status=contract.check_working())

    @app.get("/state/{key}", response_model=StateResponse)
    async def get_state(key: str) -> StateResponse:
        """
        Read a persisted value.

        Raises:
            HTTPException: 404 if nothing is stored under the key
        """
        try:
            value = contract.query_state(key)
        except ChaincodeError as e:
            _raise_http(e)

        if value is None:
            raise HTTPException(status_code=404, detail=f"State {key} not found")

        return StateResponse(key=key, value=value)

    @app.get("/events", response_model=List[EventResponse])
    async def get_events(after: int = 0, node_id: Optional[str] = None) -> List[EventResponse]:
        """
        Events emitted after a sequence number.

        Args:
            after: Last sequence number already seen
            node_id: Only events addressed to this node
        """
        events = contract.event_sink.events_since(after, node_id)
        return [EventResponse(**event.to_dict()) for event in events]

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": "Federated LSTM Aggregation Coordinator API",
            "version": "1.0.0",
            "participants": list(contract.participants),
            "endpoints": {
                "submit_transaction": "POST /transactions/{function}",
                "upload_parameter": "POST /parameters",
                "aggregate_round": "POST /aggregate/{round_id}",
                "health": "GET /health",
                "get_state": "GET /state/{key}",
                "get_events": "GET /events",
            }
        }

    return app


def run() -> None:
    """Serve the coordinator with uvicorn."""
    import uvicorn

    config = CoordinatorConfig.from_env()
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    run()
