"""
Errors Module

Error kinds raised by the aggregation coordinator.
Each message starts with the failing stage so callers can show it verbatim.
"""


class ChaincodeError(Exception):
    """Base class for every error surfaced by the coordinator."""
    pass


class UnknownParticipantError(ChaincodeError):
    """Raised when an upload comes from a node outside the participant set."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"unknown participant {node_id}")


class InvalidArgumentError(ChaincodeError):
    """Raised when an invocation argument cannot be parsed or is out of range."""
    pass


class ShapeInvariantError(ChaincodeError):
    """Raised when a bundle breaks the shape rules, alone or against its peers."""
    pass


class MissingPreviousRoundError(ChaincodeError):
    """Raised when fallback needs a previous-round bundle that is not staged."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"parameter for node {node_id} not found in previous round")


class SerializationError(ChaincodeError):
    """Raised when the aggregated result cannot be marshalled."""
    pass


class PersistenceError(ChaincodeError):
    """Raised when the durable state write fails."""
    pass


class EventEmissionError(ChaincodeError):
    """Raised when the global model could not be delivered to a node."""

    def __init__(self, node_id: str, reason: str):
        self.node_id = node_id
        super().__init__(f"failed to send global model to node {node_id}: {reason}")


class OperationalError(ChaincodeError):
    """Wraps any lower-level failure, keeping its message verbatim."""
    pass
