from __future__ import annotations

import json
import logging

from fedlstm.utils.logger import get_logger, log_event, setup_coordinator_logger


def test_events_are_written_as_json(tmp_path):
    root = setup_coordinator_logger(str(tmp_path), "DEBUG")
    try:
        logger = get_logger("test")
        log_event(logger, "parameter_uploaded", round_id=3, node_id="soft", bias_length=2)

        lines = (tmp_path / "coordinator.json.log").read_text().strip().splitlines()
        record = json.loads(lines[-1])
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    assert record["event"] == "parameter_uploaded"
    assert record["round_id"] == 3
    assert record["node_id"] == "soft"
    assert record["bias_length"] == 2
    assert record["level"] == "INFO"
    assert record["component"] == "coordinator"
    assert record["timestamp"].endswith("Z")


def test_child_loggers_share_the_coordinator_root():
    assert get_logger("barrier").name == "coordinator.barrier"
    assert get_logger("barrier").parent is logging.getLogger("coordinator")
