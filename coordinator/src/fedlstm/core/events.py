"""
Events Module

In-process event sink used to broadcast new global models to participants.

Each event is handed to the subscribers of every participant, in participant
order, and kept in a bounded history that participants can poll by sequence
number. A refused delivery stops the fan-out: participants earlier in the
order have already received the event, later ones have not, and the event
stays out of the history. Retrying the round emits a new event, so earlier
participants can see the same round's global model twice.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Sequence


GLOBAL_MODEL_UPDATE = "GlobalModelUpdate"

Subscriber = Callable[["Event"], None]


class EventDeliveryError(Exception):
    """Raised when a node's subscriber refuses an event."""

    def __init__(self, node_id: str, reason: str):
        self.node_id = node_id
        self.reason = reason
        super().__init__(f"delivery to node {node_id} failed: {reason}")


@dataclass
class Event:
    """An emitted event."""
    seq: int
    name: str
    payload: str
    recipients: List[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict:
        return {
            "seq": self.seq,
            "name": self.name,
            "payload": self.payload,
            "recipients": list(self.recipients),
            "timestamp": self.timestamp,
        }


class EventHub:
    """
    Fans events out to the participant set.
    """

    def __init__(self, participants: Sequence[str], max_history: int = 1000):
        """
        Initialize the hub.

        Args:
            participants: Nodes every event is addressed to
            max_history: Number of delivered events kept for polling
        """
        self.participants = list(participants)
        self._subscribers: Dict[str, List[Subscriber]] = {node_id: [] for node_id in self.participants}
        self._history: Deque[Event] = deque(maxlen=max_history)
        self._next_seq = 1
        self._lock = threading.RLock()

    def subscribe(self, node_id: str, callback: Subscriber) -> None:
        """
        Register a callback invoked with every event sent to a node.

        Raises:
            KeyError: If node_id is not a participant
        """
        with self._lock:
            if node_id not in self._subscribers:
                raise KeyError(f"Unknown participant: {node_id}")
            self._subscribers[node_id].append(callback)

    def set_event(self, name: str, payload: str) -> Event:
        """
        Emit one event to every participant, in participant order.

        The event enters the polling history only once every participant
        accepted it.

        Args:
            name: Event name
            payload: Serialized payload

        Returns:
            The emitted event

        Raises:
            EventDeliveryError: On the first subscriber that raises
        """
        with self._lock:
            event = Event(seq=self._next_seq, name=name, payload=payload, recipients=list(self.participants))
            self._next_seq += 1

            for node_id in self.participants:
                for callback in self._subscribers[node_id]:
                    try:
                        callback(event)
                    except Exception as e:
                        raise EventDeliveryError(node_id, str(e)) from e

            self._history.append(event)
            return event

    def events_since(self, after: int = 0, node_id: Optional[str] = None) -> List[Event]:
        """
        Events with a sequence number greater than after.

        Args:
            after: Last sequence number the caller has seen
            node_id: If given, only events addressed to this node
        """
        with self._lock:
            return [
                event for event in self._history
                if event.seq > after and (node_id is None or node_id in event.recipients)
            ]
