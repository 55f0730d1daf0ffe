"""
Summary statistics of one measurement array.

`describe` returns None ("not computed") when nothing readable is left after
filtering; callers render that as a placeholder instead of a number.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .sanitize import filter_bad_entries


@dataclass(frozen=True)
class Statistics:
    n: int
    mean: float
    std: float
    cv: Optional[float]
    cv_sq: Optional[float]
    min: float
    max: float


def describe(values: Sequence[float]) -> Optional[Statistics]:
    arr = filter_bad_entries(values)
    if arr.size == 0:
        return None
    mean = float(np.mean(arr))
    std = float(np.std(arr))
    # CV is undefined for a zero mean
    cv = std / mean if mean != 0.0 else None
    return Statistics(
        n=int(arr.size),
        mean=mean,
        std=std,
        cv=cv,
        cv_sq=cv * cv if cv is not None else None,
        min=float(np.min(arr)),
        max=float(np.max(arr)),
    )


def coefficient_of_variation(values: Sequence[float]) -> Optional[float]:
    stats = describe(values)
    return stats.cv if stats is not None else None
