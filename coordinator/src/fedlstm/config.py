"""
Configuration module for the aggregation coordinator.

Startup settings, read from environment variables with the reference defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple


DEFAULT_PARTICIPANTS: Tuple[str, ...] = ("soft", "web", "hard")


def _parse_participants(raw: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class CoordinatorConfig:
    """Configuration for the aggregation coordinator."""
    participants: Tuple[str, ...] = DEFAULT_PARTICIPANTS
    aggregation_timeout_seconds: float = 60.0
    check_interval_seconds: float = 10.0
    state_dir: str = "ledger"
    log_dir: Optional[str] = None
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    max_event_history: int = field(default=1000)

    def __post_init__(self):
        self.participants = tuple(self.participants)
        self.validate()

    def validate(self) -> None:
        """
        Check the settings.

        Raises:
            ValueError: If a setting is out of range
        """
        if not self.participants:
            raise ValueError("participant set must not be empty")
        if any(not node_id for node_id in self.participants):
            raise ValueError("participant identifiers must be non-empty")
        if len(set(self.participants)) != len(self.participants):
            raise ValueError(f"participant identifiers must be unique: {list(self.participants)}")
        if self.aggregation_timeout_seconds < 0:
            raise ValueError("aggregation timeout must not be negative")
        if self.check_interval_seconds <= 0:
            raise ValueError("check interval must be positive")

    @classmethod
    def from_env(cls) -> "CoordinatorConfig":
        """Build a configuration from FEDLSTM_* environment variables."""
        return cls(
            participants=_parse_participants(
                os.getenv("FEDLSTM_PARTICIPANTS", ",".join(DEFAULT_PARTICIPANTS))
            ),
            aggregation_timeout_seconds=float(os.getenv("FEDLSTM_AGGREGATION_TIMEOUT", "60.0")),
            check_interval_seconds=float(os.getenv("FEDLSTM_CHECK_INTERVAL", "10.0")),
            state_dir=os.getenv("FEDLSTM_STATE_DIR", "ledger"),
            log_dir=os.getenv("FEDLSTM_LOG_DIR") or None,
            log_level=os.getenv("FEDLSTM_LOG_LEVEL", "INFO"),
            host=os.getenv("FEDLSTM_HOST", "0.0.0.0"),
            port=int(os.getenv("FEDLSTM_PORT", "8000")),
            max_event_history=int(os.getenv("FEDLSTM_MAX_EVENT_HISTORY", "1000")),
        )
