"""
Participant gateway client.

Drives one aggregation round from a participant's side:
1. Check that the coordinator is up
2. Upload the node's LSTM parameters
3. Wait for the other participants
4. Start aggregation and print the global model
"""

import sys
import time
from typing import Any, Dict, Optional

from .api import (
    CoordinatorAPIError,
    CoordinatorConnectionError,
    check_working,
    start_aggregation,
    upload_parameter,
)
from .config import config


def get_mock_parameters() -> Dict[str, Any]:
    """
    Sample LSTM parameters standing in for a locally trained model.

    Returns:
        Mapping with the four weight matrices and four bias vectors
    """
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


def run_round(
    node_id: str,
    round_id: int,
    params: Optional[Dict[str, Any]] = None,
    wait_seconds: Optional[float] = None
) -> Dict[str, Any]:
    """
    Upload this node's parameters, wait, then aggregate the round.

    Args:
        node_id: Participant identifier
        round_id: Round to take part in
        params: Parameters to upload (mock parameters when None)
        wait_seconds: Pause before aggregation (defaults to config.AGGREGATION_WAIT)

    Returns:
        The aggregated result
    """
    if params is None:
        params = get_mock_parameters()
    if wait_seconds is None:
        wait_seconds = config.AGGREGATION_WAIT

    print(f"[Node {node_id}] Submitting UploadParameter for round {round_id}...")
    upload_parameter(node_id, params, round_id)
    print(f"[Node {node_id}] Parameters uploaded")

    if wait_seconds > 0:
        print(f"[Node {node_id}] Waiting {wait_seconds} seconds for other participants...")
        time.sleep(wait_seconds)

    print(f"[Node {node_id}] Submitting StartAggregation for round {round_id}...")
    result = start_aggregation(round_id)
    print(f"[Node {node_id}] Aggregation result: leader {result['nodeId']}, round {result['round']}")
    return result


def main() -> None:
    """
    Main entry point for the participant gateway client.
    """
    print("=" * 60)
    print("Federated LSTM Participant")
    print("=" * 60)
    print(f"Coordinator URL: {config.COORDINATOR_URL}")
    print(f"Node ID: {config.NODE_ID}")
    print(f"Round: {config.ROUND}")
    print("=" * 60)

    try:
        print(f"CheckWorking result: {check_working()}")
        run_round(config.NODE_ID, config.ROUND)
    except CoordinatorConnectionError as e:
        print(f"ERROR: Cannot connect to coordinator: {e}")
        sys.exit(1)
    except CoordinatorAPIError as e:
        print(f"ERROR: Transaction failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n[Client] Shutdown requested by user")


if __name__ == "__main__":
    main()
