"""
Structured JSON Logging Utility

Provides JSON-formatted logging for the aggregation coordinator.
Every record carries the round and node it concerns when known.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


ROOT_LOGGER_NAME = "coordinator"


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each record as one JSON object.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "component": getattr(record, "component", "coordinator"),
            "module": record.module,
            "message": record.getMessage(),
        }

        if hasattr(record, "event"):
            log_data["event"] = record.event

        if hasattr(record, "round_id"):
            log_data["round_id"] = record.round_id

        if hasattr(record, "node_id"):
            log_data["node_id"] = record.node_id

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, sort_keys=True, default=str)


def setup_coordinator_logger(
    log_dir: Optional[str] = None,
    log_level: str = "INFO"
) -> logging.Logger:
    """
    Set up JSON logging for the coordinator.

    Args:
        log_dir: Directory for the JSON log file; console only when None
        log_level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter())
    logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / "coordinator.json.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """
    Get a child of the coordinator logger.

    Handlers are attached by setup_coordinator_logger; until then records
    propagate to whatever the host application configured.

    Args:
        module_name: Name of the module requesting the logger
    """
    return logging.getLogger(ROOT_LOGGER_NAME).getChild(module_name)


def log_event(
    logger: logging.Logger,
    event: str,
    level: str = "INFO",
    round_id: Optional[int] = None,
    node_id: Optional[str] = None,
    **kwargs
) -> None:
    """
    Log a structured event.

    Args:
        logger: Logger instance
        event: Event type (e.g., "parameter_uploaded", "barrier_timeout")
        level: Log level (default: INFO)
        round_id: Optional round identifier
        node_id: Optional node identifier
        **kwargs: Additional fields to include in log
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    extra = {
        "component": "coordinator",
        "event": event,
    }

    if round_id is not None:
        extra["round_id"] = round_id

    if node_id is not None:
        extra["node_id"] = node_id

    if kwargs:
        extra["extra_fields"] = kwargs

    logger.log(log_level, f"Event: {event}", extra=extra)
