"""
API module for communicating with the aggregation coordinator.

Handles all HTTP communication with the coordinator server.
"""

import json
import time
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from .config import config


class CoordinatorAPIError(Exception):
    """Exception raised for coordinator API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class CoordinatorConnectionError(Exception):
    """Exception raised for coordinator connection errors."""
    pass


def _make_request(
    method: str,
    url: str,
    max_retries: int = None,
    retry_delay: float = None,
    **kwargs
) -> requests.Response:
    """
    Make an HTTP request with retry logic.

    Only connection problems are retried; an error status from the
    coordinator is raised straight away.

    Args:
        method: HTTP method (GET, POST, etc.)
        url: Request URL
        max_retries: Maximum number of retries (defaults to config.MAX_RETRIES)
        retry_delay: Delay between retries in seconds (defaults to config.RETRY_DELAY)
        **kwargs: Additional arguments to pass to requests

    Returns:
        Response object

    Raises:
        CoordinatorConnectionError: If connection fails after all retries
        CoordinatorAPIError: If API returns an error status code
    """
    if max_retries is None:
        max_retries = config.MAX_RETRIES
    if retry_delay is None:
        retry_delay = config.RETRY_DELAY

    if "timeout" not in kwargs:
        kwargs["timeout"] = config.REQUEST_TIMEOUT

    last_exception = None

    for attempt in range(max_retries + 1):
        try:
            response = requests.request(method, url, **kwargs)
        except (ConnectionError, Timeout) as e:
            last_exception = e
            if attempt < max_retries:
                print(f"Connection error (attempt {attempt + 1}/{max_retries + 1}): {e}")
                time.sleep(retry_delay)
                continue
            raise CoordinatorConnectionError(
                f"Failed to connect to coordinator after {max_retries + 1} attempts: {e}"
            )
        except RequestException as e:
            last_exception = e
            if attempt < max_retries:
                print(f"Request error (attempt {attempt + 1}/{max_retries + 1}): {e}")
                time.sleep(retry_delay)
                continue
            raise CoordinatorConnectionError(
                f"Request failed after {max_retries + 1} attempts: {e}"
            )

        if response.status_code >= 400:
            error_msg = f"API error: {response.status_code}"
            try:
                error_detail = response.json().get("detail", "")
                if error_detail:
                    error_msg += f" - {error_detail}"
            except ValueError:
                error_msg += f" - {response.text}"

            raise CoordinatorAPIError(error_msg, status_code=response.status_code)

        return response

    raise CoordinatorConnectionError(f"Request failed: {last_exception}")


def submit_transaction(function: str, args: Sequence[str]) -> str:
    """
    Submit a transaction with string arguments.

    Args:
        function: Transaction name (UploadParameter, StartAggregation, CheckWorking)
        args: Transaction arguments

    Returns:
        Transaction result text

    Raises:
        CoordinatorAPIError: If the coordinator rejects the transaction
        CoordinatorConnectionError: If connection fails
    """
    url = f"{config.COORDINATOR_URL}/transactions/{function}"
    payload = {"args": list(args)}

    response = _make_request("POST", url, json=payload)
    return response.json()["result"]


def upload_parameter(node_id: str, params: Dict[str, Any], round_id: int) -> None:
    """
    Upload LSTM parameters, serializing each tensor to JSON text.

    Args:
        node_id: Participant the parameters belong to
        params: Mapping with Wi, Wf, Wo, Wc, bi, bf, bo, bc
        round_id: Round the parameters are for
    """
    args = [node_id]
    for name in ("Wi", "Wf", "Wo", "Wc", "bi", "bf", "bo", "bc"):
        args.append(json.dumps(params[name]))
    args.append(str(round_id))

    submit_transaction("UploadParameter", args)


def start_aggregation(round_id: int) -> Dict[str, Any]:
    """
    Start aggregation of a round.

    Blocks until the coordinator has aggregated the round, which can take up
    to its aggregation deadline.

    Returns:
        The aggregated result
    """
    result = submit_transaction("StartAggregation", [str(round_id)])
    return json.loads(result)


def check_working() -> str:
    """Liveness check of the coordinator."""
    return submit_transaction("CheckWorking", [])


def fetch_global_model(round_id: int) -> Optional[Dict[str, Any]]:
    """
    Fetch the persisted aggregated result of a round.

    Returns:
        The aggregated result, or None if the round has no result yet
    """
    url = f"{config.COORDINATOR_URL}/state/RESULT_Aggregated_{round_id}"

    try:
        response = _make_request("GET", url)
    except CoordinatorAPIError as e:
        if e.status_code == 404:
            return None
        raise

    return json.loads(response.json()["value"])


def poll_events(node_id: str, after: int = 0) -> List[Dict[str, Any]]:
    """
    Events addressed to a node since a sequence number.

    Args:
        node_id: Participant polling for events
        after: Last sequence number already seen
    """
    url = f"{config.COORDINATOR_URL}/events"

    response = _make_request("GET", url, params={"after": after, "node_id": node_id})
    return response.json()
