"""
Participant gateway client for the federated LSTM aggregation coordinator.
"""

from .api import (
    CoordinatorAPIError,
    CoordinatorConnectionError,
    check_working,
    fetch_global_model,
    poll_events,
    start_aggregation,
    submit_transaction,
    upload_parameter,
)
from .client import get_mock_parameters, run_round

__all__ = [
    "CoordinatorAPIError",
    "CoordinatorConnectionError",
    "check_working",
    "fetch_global_model",
    "poll_events",
    "start_aggregation",
    "submit_transaction",
    "upload_parameter",
    "get_mock_parameters",
    "run_round",
]
