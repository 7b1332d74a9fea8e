"""
Aggregator Module

Element-wise mean of the LSTM parameter bundles staged for a round.

Bundles are summed sequentially in participant order into float64
accumulators, then divided by the number of participants. Fixing the order
keeps results bit-for-bit reproducible for identical inputs.
"""

from typing import Dict, Sequence

import numpy as np

from .errors import ShapeInvariantError
from .tensors import BIAS_FIELDS, TENSOR_FIELDS, WEIGHT_FIELDS, TensorBundle


def check_shapes(bundles: Sequence[TensorBundle]) -> None:
    """
    Validate that every bundle matches the first one's shapes.

    The first bundle's Wi defines the weight shape and its bi the bias length.

    Args:
        bundles: Bundles in participant order

    Raises:
        ShapeInvariantError: On the first mismatching tensor
    """
    if not bundles:
        raise ValueError("no bundles to aggregate")

    ref = bundles[0]
    weight_shape = ref.Wi.shape
    bias_length = ref.bi.shape[0]

    for bundle in bundles:
        for name in WEIGHT_FIELDS:
            shape = getattr(bundle, name).shape
            if shape != weight_shape:
                raise ShapeInvariantError(
                    f"shape mismatch: node {bundle.node_id} {name} is {list(shape)}, "
                    f"expected {list(weight_shape)}"
                )
        for name in BIAS_FIELDS:
            length = getattr(bundle, name).shape[0]
            if length != bias_length:
                raise ShapeInvariantError(
                    f"shape mismatch: node {bundle.node_id} {name} has length {length}, "
                    f"expected {bias_length}"
                )


def average_bundles(bundles: Sequence[TensorBundle]) -> Dict[str, np.ndarray]:
    """
    Compute the element-wise mean of the bundles.

    No clipping is applied; a NaN in any contribution propagates to the mean.

    Args:
        bundles: Complete set of bundles for one round, in participant order

    Returns:
        Mapping of tensor field name to averaged array

    Raises:
        ShapeInvariantError: If the bundles do not share shapes
    """
    check_shapes(bundles)

    sums = {name: np.zeros_like(getattr(bundles[0], name), dtype=np.float64) for name in TENSOR_FIELDS}
    for bundle in bundles:
        for name in TENSOR_FIELDS:
            np.add(sums[name], getattr(bundle, name), out=sums[name])

    count = float(len(bundles))
    return {name: total / count for name, total in sums.items()}
