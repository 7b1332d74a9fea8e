"""
Parameter Store Module

Thread-safe staging area for uploaded parameter bundles, keyed by (node, round).
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, NamedTuple, Optional, Sequence

from .errors import MissingPreviousRoundError
from .tensors import TensorBundle


class StagingKey(NamedTuple):
    """Composite staging key."""
    node_id: str
    round: int


class ReadWriteLock:
    """
    Reader/writer lock.

    Any number of readers may hold the lock together; a writer holds it alone.
    Waiting writers block new readers so uploads are not starved by polling.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ParameterStore:
    """
    Staging map from StagingKey to TensorBundle.

    Reads take the shared lock, mutations take the exclusive lock.
    Multi-key operations run inside a single critical section.
    """

    def __init__(self):
        """Initialize an empty store."""
        self._bundles: Dict[StagingKey, TensorBundle] = {}
        self._lock = ReadWriteLock()

    def put(self, key: StagingKey, bundle: TensorBundle) -> None:
        """
        Stage a bundle, replacing any bundle already held under the key.

        Args:
            key: Staging key
            bundle: Bundle to stage
        """
        with self._lock.write_locked():
            self._bundles[key] = bundle

    def exists(self, key: StagingKey) -> bool:
        with self._lock.read_locked():
            return key in self._bundles

    def get(self, key: StagingKey) -> Optional[TensorBundle]:
        """
        Get the bundle staged under a key.

        Returns:
            The bundle, or None if nothing is staged under the key
        """
        with self._lock.read_locked():
            return self._bundles.get(key)

    def delete(self, key: StagingKey) -> bool:
        """
        Remove a staged bundle.

        Returns:
            True if a bundle was removed, False if the key was absent
        """
        with self._lock.write_locked():
            return self._bundles.pop(key, None) is not None

    def keys(self) -> List[StagingKey]:
        """Snapshot of all staged keys."""
        with self._lock.read_locked():
            return list(self._bundles.keys())

    def missing(self, node_ids: Sequence[str], round_id: int) -> List[str]:
        """
        Nodes without a bundle for a round, in the order given.

        Args:
            node_ids: Expected nodes
            round_id: Round to inspect
        """
        with self._lock.read_locked():
            return [
                node_id for node_id in node_ids
                if StagingKey(node_id, round_id) not in self._bundles
            ]

    def get_round(self, node_ids: Sequence[str], round_id: int) -> List[Optional[TensorBundle]]:
        """Bundles of a round in the order of node_ids, read under one shared lock."""
        with self._lock.read_locked():
            return [self._bundles.get(StagingKey(node_id, round_id)) for node_id in node_ids]

    def copy_forward(self, node_ids: Sequence[str], round_id: int) -> List[str]:
        """
        Stage each node's previous-round bundle under the current round.

        Nodes that uploaded for round_id since they were reported missing
        keep their own bundle. Every previous bundle is checked before
        anything is written, so a failure leaves the store untouched.
        Round 0 has no previous round to carry from.

        Args:
            node_ids: Nodes to carry forward, in participant order
            round_id: Current round

        Returns:
            The nodes that were actually carried forward

        Raises:
            MissingPreviousRoundError: If a still-missing node has no bundle
                for round_id - 1
        """
        with self._lock.write_locked():
            still_missing = [
                node_id for node_id in node_ids
                if StagingKey(node_id, round_id) not in self._bundles
            ]

            previous = []
            for node_id in still_missing:
                bundle = None
                if round_id > 0:
                    bundle = self._bundles.get(StagingKey(node_id, round_id - 1))
                if bundle is None:
                    raise MissingPreviousRoundError(node_id)
                previous.append(bundle)

            for bundle in previous:
                self._bundles[StagingKey(bundle.node_id, round_id)] = bundle.for_round(round_id)

            return still_missing

    def purge_round(self, round_id: int) -> List[StagingKey]:
        """
        Delete every bundle staged for a round.

        Returns:
            The keys that were deleted
        """
        with self._lock.write_locked():
            doomed = [key for key in self._bundles if key.round == round_id]
            for key in doomed:
                del self._bundles[key]
            return doomed

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._bundles)
