"""
State Store Module

Durable key/value state for aggregated results, one JSON file per key.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional

from .tensors import RESULT_KEY_PREFIX


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StateStore:
    """
    Filesystem-backed ledger state.

    Single-key writes are atomic: the value is written to a temporary file
    and renamed into place.
    """

    def __init__(self, state_dir: str = "ledger"):
        """
        Initialize the state store.

        Args:
            state_dir: Directory holding one file per key.
                       Created on the first write.
        """
        self.state_dir = Path(state_dir)

    def _get_state_path(self, key: str) -> Path:
        """
        Get the file path for a key.

        Raises:
            ValueError: If the key contains characters unsafe for a filename
        """
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid state key: {key!r}")
        return self.state_dir / f"{key}.json"

    def put_state(self, key: str, value: str) -> None:
        """
        Write a value under a key, replacing any previous value.

        Args:
            key: State key (e.g., "RESULT_Aggregated_1")
            value: Serialized value

        Raises:
            ValueError: If the key is invalid
            IOError: If the write fails
        """
        state_path = self._get_state_path(key)

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.state_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, state_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise IOError(f"Failed to write state {key}: {e}")

    def get_state(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored value, or None if the key was never written
        """
        state_path = self._get_state_path(key)

        if not state_path.exists():
            return None

        try:
            return state_path.read_text(encoding="utf-8")
        except OSError as e:
            raise IOError(f"Failed to read state {key}: {e}")

    def has_state(self, key: str) -> bool:
        return self._get_state_path(key).exists()

    def list_keys(self) -> List[str]:
        """List stored keys in name order."""
        if not self.state_dir.exists():
            return []
        return sorted(path.stem for path in self.state_dir.glob("*.json"))

    def result_rounds(self) -> List[int]:
        """
        Rounds that have a persisted aggregated result.

        Returns:
            Round numbers in ascending order (e.g., [1, 2, 3])
        """
        rounds = []
        for key in self.list_keys():
            suffix = key[len(RESULT_KEY_PREFIX):]
            if key.startswith(RESULT_KEY_PREFIX) and suffix.isdigit():
                rounds.append(int(suffix))
        return sorted(rounds)
