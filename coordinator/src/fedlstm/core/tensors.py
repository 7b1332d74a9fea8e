"""
Tensors Module

LSTM parameter bundles and their wire form.

Matrices and vectors travel as JSON text (nested arrays of numbers) and are
held in memory as float64 numpy arrays. The aggregated result is written back
as compact JSON with the field names and order the participants expect.
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Tuple, Union

import numpy as np

from .errors import InvalidArgumentError, SerializationError, ShapeInvariantError


WEIGHT_FIELDS: Tuple[str, ...] = ("Wi", "Wf", "Wo", "Wc")
BIAS_FIELDS: Tuple[str, ...] = ("bi", "bf", "bo", "bc")
TENSOR_FIELDS: Tuple[str, ...] = WEIGHT_FIELDS + BIAS_FIELDS

RESULT_KEY_PREFIX = "RESULT_Aggregated_"

ArrayLike = Union[str, list, np.ndarray]


def result_key(round_id: int) -> str:
    """Ledger key under which the aggregated result of a round is stored."""
    return f"{RESULT_KEY_PREFIX}{round_id}"


def _to_array(name: str, value: ArrayLike, ndim: int) -> np.ndarray:
    """
    Convert wire data into a float64 array of the given rank.

    Args:
        name: Field name, used in error messages
        value: JSON text, nested list or array
        ndim: Expected number of dimensions (2 for weights, 1 for biases)

    Returns:
        Array of dtype float64

    Raises:
        InvalidArgumentError: If the value is not valid JSON or not numeric
        ShapeInvariantError: If the value is ragged or has the wrong rank
    """
    if isinstance(value, (bytes, str)):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"failed to parse {name}: {e}")

    try:
        array = np.asarray(value)
    except ValueError as e:
        raise ShapeInvariantError(f"shape mismatch: {name} is not rectangular: {e}")

    if array.ndim != ndim:
        raise ShapeInvariantError(
            f"shape mismatch: {name} must have {ndim} dimension(s), got {array.ndim}"
        )
    if array.size and array.dtype.kind not in "iuf":
        raise InvalidArgumentError(f"failed to parse {name}: values must be numbers")

    return array.astype(np.float64)


@dataclass
class TensorBundle:
    """One node's LSTM parameters for one round."""
    node_id: str
    round: int
    Wi: np.ndarray
    Wf: np.ndarray
    Wo: np.ndarray
    Wc: np.ndarray
    bi: np.ndarray
    bf: np.ndarray
    bo: np.ndarray
    bc: np.ndarray

    @classmethod
    def from_wire(
        cls,
        node_id: str,
        round_id: int,
        Wi: ArrayLike,
        Wf: ArrayLike,
        Wo: ArrayLike,
        Wc: ArrayLike,
        bi: ArrayLike,
        bf: ArrayLike,
        bo: ArrayLike,
        bc: ArrayLike,
    ) -> "TensorBundle":
        """
        Build a bundle from wire values and check its internal shape rules.

        All four weight matrices must share one shape and all four bias
        vectors must share one length.

        Raises:
            InvalidArgumentError: If a value cannot be parsed
            ShapeInvariantError: If the shapes disagree
        """
        weights = {
            name: _to_array(name, value, 2)
            for name, value in zip(WEIGHT_FIELDS, (Wi, Wf, Wo, Wc))
        }
        biases = {
            name: _to_array(name, value, 1)
            for name, value in zip(BIAS_FIELDS, (bi, bf, bo, bc))
        }

        bundle = cls(node_id=node_id, round=round_id, **weights, **biases)
        bundle.check_shapes()
        return bundle

    @property
    def weight_shape(self) -> Tuple[int, int]:
        return self.Wi.shape

    @property
    def bias_length(self) -> int:
        return self.bi.shape[0]

    def check_shapes(self) -> None:
        """Raise ShapeInvariantError unless weights and biases are self-consistent."""
        for name in WEIGHT_FIELDS:
            shape = getattr(self, name).shape
            if shape != self.weight_shape:
                raise ShapeInvariantError(
                    f"shape mismatch: node {self.node_id} {name} is {list(shape)}, "
                    f"Wi is {list(self.weight_shape)}"
                )
        for name in BIAS_FIELDS:
            length = getattr(self, name).shape[0]
            if length != self.bias_length:
                raise ShapeInvariantError(
                    f"shape mismatch: node {self.node_id} {name} has length {length}, "
                    f"bi has length {self.bias_length}"
                )

    def tensors(self) -> Dict[str, np.ndarray]:
        return {name: getattr(self, name) for name in TENSOR_FIELDS}

    def for_round(self, round_id: int) -> "TensorBundle":
        """Copy of this bundle re-keyed to another round."""
        copies = {name: array.copy() for name, array in self.tensors().items()}
        return replace(self, round=round_id, **copies)


@dataclass
class AggregatedResult:
    """Averaged parameters of a round, tagged with the round's leader."""
    node_id: str
    round: int
    Wi: np.ndarray
    Wf: np.ndarray
    Wo: np.ndarray
    Wc: np.ndarray
    bi: np.ndarray
    bf: np.ndarray
    bo: np.ndarray
    bc: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary in wire field order: nodeId, weights, biases, round."""
        data: Dict[str, Any] = {"nodeId": self.node_id}
        for name in TENSOR_FIELDS:
            data[name] = getattr(self, name).tolist()
        data["round"] = self.round
        return data

    def to_json(self) -> str:
        """
        Serialize to compact JSON.

        Raises:
            SerializationError: If a value is not representable in JSON (NaN, inf)
        """
        try:
            return json.dumps(self.to_dict(), separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to marshal result: {e}")

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> "AggregatedResult":
        data = json.loads(payload)
        tensors = {name: np.asarray(data[name], dtype=np.float64) for name in TENSOR_FIELDS}
        return cls(node_id=data["nodeId"], round=int(data["round"]), **tensors)
