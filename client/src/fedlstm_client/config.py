"""
Configuration module for the participant gateway client.

Stores all configuration values used by the client.
"""

import os


class Config:
    """Configuration class for client settings."""

    # Coordinator URL
    COORDINATOR_URL: str = os.getenv(
        "COORDINATOR_URL",
        "http://127.0.0.1:8000"
    )

    # Participant this client uploads for
    NODE_ID: str = os.getenv("NODE_ID", "soft")

    # Round to take part in
    ROUND: int = int(os.getenv("ROUND", "1"))

    # Retry configuration
    MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))

    # Retry delay (in seconds)
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "2.0"))

    # Request timeout (in seconds); StartAggregation can block for the full
    # aggregation deadline, so this must exceed it
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "120.0"))

    # Wait between upload and aggregation (in seconds)
    AGGREGATION_WAIT: float = float(os.getenv("AGGREGATION_WAIT", "60.0"))


# Global config instance
config = Config()
