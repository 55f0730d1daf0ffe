"""
Shape of an ordered curve (e.g. D(Q) vs Q or f(α) vs Q).

A curve is humped when, after dropping unreadable entries, it rises to a
single peak and falls after it, with real motion on both sides:

  peak index = index of the last strict rise (0 when the curve never rises)
  (a) no fall from index 1 up to the peak (false when the peak is at 0)
  (b) no rise after the peak (false when the peak is the last point)
  (c) at least one fall at or after the peak
  (d) at least one rise before the peak

Monotone, flat and single-point curves are not humped; an empty or
single-point curve is UNKNOWN (no evidence either way).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from .sanitize import filter_bad_entries

D_TOLERANCE = 0.001


class CurveShape(Enum):
    UNKNOWN = "unknown"
    NOT_CURVED = "not curved"
    CURVED = "humped"


@dataclass(frozen=True)
class CurveClassification:
    shape: CurveShape
    max_index: Optional[int]
    rises_to_max: bool
    falls_after_max: bool
    falls_from_max: bool
    rises_before_max: bool
    never_increasing: bool

    @property
    def is_humped(self) -> bool:
        return self.shape is CurveShape.CURVED


def max_index(values: Sequence[float]) -> Optional[int]:
    """Index of the last strict rise; 0 when there is none, None when empty."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return None
    rises = np.nonzero(arr[1:] > arr[:-1])[0]
    return int(rises[-1]) + 1 if rises.size else 0


def never_decreases_before(values: Sequence[float], index: int) -> bool:
    if index == 0:
        return False
    for i in range(1, index):
        if values[i] < values[i - 1]:
            return False
    return True


def never_increases_after(values: Sequence[float], index: int) -> bool:
    if index >= len(values) - 1:
        return False
    for i in range(index + 1, len(values)):
        if values[i] > values[i - 1]:
            return False
    return True


def decreases_from(values: Sequence[float], index: int) -> bool:
    for i in range(max(index, 1), len(values)):
        if values[i] < values[i - 1]:
            return True
    return False


def increases_before(values: Sequence[float], index: int) -> bool:
    for i in range(1, index):
        if values[i] > values[i - 1]:
            return True
    return False


def count_rises_after_peak(values: Sequence[float]) -> int:
    """Number of strict rises to the right of the (first) global maximum."""
    arr = filter_bad_entries(values)
    if arr.size == 0:
        return 0
    peak = int(np.argmax(arr))
    return int(np.count_nonzero(np.diff(arr[peak:]) > 0))


def never_increasing(values: Sequence[float], tolerance: float = D_TOLERANCE) -> bool:
    """False when any step to the right rises by more than `tolerance`."""
    arr = filter_bad_entries(values)
    if arr.size < 2:
        return True
    return not bool(np.any(np.diff(arr) > tolerance))


def classify_curve(values: Sequence[float], tolerance: float = D_TOLERANCE) -> CurveClassification:
    arr = filter_bad_entries(values)
    flat = never_increasing(arr, tolerance)
    if arr.size < 2:
        return CurveClassification(CurveShape.UNKNOWN, max_index(arr), False, False, False, False, flat)

    idx = max_index(arr)
    facts = (
        never_decreases_before(arr, idx),
        never_increases_after(arr, idx),
        decreases_from(arr, idx),
        increases_before(arr, idx),
    )
    shape = CurveShape.CURVED if all(facts) else CurveShape.NOT_CURVED
    return CurveClassification(shape, idx, *facts, never_increasing=flat)
