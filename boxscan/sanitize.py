"""
Removal of unreadable entries (NaN, +/-inf) from measurement arrays.
"""
from typing import Sequence, Tuple

import numpy as np


def filter_bad_entries(values: Sequence[float]) -> np.ndarray:
    if values is None:
        raise ValueError("values are required, got None")
    arr = np.array(values, dtype=float).ravel()
    return arr[np.isfinite(arr)]


def filter_bad_pairs(x: Sequence[float], y: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Drop every position where either x or y is NaN or infinite."""
    if x is None or y is None:
        raise ValueError("both parallel arrays are required, got None")
    xa = np.array(x, dtype=float).ravel()
    ya = np.array(y, dtype=float).ravel()
    if xa.size != ya.size:
        raise ValueError(f"parallel arrays differ in length: {xa.size} != {ya.size}")
    keep = np.isfinite(xa) & np.isfinite(ya)
    return xa[keep], ya[keep]
