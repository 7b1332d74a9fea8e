"""
Coordinator utilities module.
"""

from .logger import setup_coordinator_logger, get_logger, log_event

__all__ = ["setup_coordinator_logger", "get_logger", "log_event"]
