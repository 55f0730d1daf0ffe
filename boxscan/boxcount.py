"""
Raw results of one box-counting scan: sampling sizes, the count of samples at
each size and, optionally, the measured mass of every sample.

Example (one grid placement):
  sizes  = [4, 5, 8]
  masses = [[12, 12, 9, 15, 5, 2], [20, 10, 20, 5], [40, 15]]
  counts -> [6, 4, 2]

Instances copy their inputs and expose read-only arrays, so neither the
caller nor the instance can change the other's data after construction.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .regression import FitResult, fractal_dimension_fit, log_log_fit, weighted_linear_fit
from .statistics import Statistics, describe


def _frozen(values: Sequence[float]) -> np.ndarray:
    arr = np.array(values, dtype=float).ravel()
    arr.flags.writeable = False
    return arr


def _check_sizes(sizes: np.ndarray) -> None:
    if sizes.size and not np.all(sizes > 0):
        raise ValueError("sampling sizes must be strictly positive")


def _hash_key(arr: np.ndarray) -> tuple:
    return tuple(None if np.isnan(v) else v for v in arr.tolist())


class BoxCount:

    def __init__(self, sizes: Sequence[float], counts: Sequence[float],
                 masses: Optional[Sequence[Sequence[float]]] = None):
        self._sizes = _frozen(sizes)
        self._counts = _frozen(counts)
        _check_sizes(self._sizes)
        if self._sizes.size != self._counts.size:
            raise ValueError(f"{self._sizes.size} sizes but {self._counts.size} counts")
        self._masses: Optional[Tuple[np.ndarray, ...]] = None
        if masses is not None:
            if len(masses) != self._sizes.size:
                raise ValueError(f"{self._sizes.size} sizes but {len(masses)} mass arrays")
            self._masses = tuple(_frozen(m) for m in masses)
            for i, m in enumerate(self._masses):
                if m.size != self._counts[i]:
                    raise ValueError(f"count at size index {i} does not match its mass array")

    @classmethod
    def from_masses(cls, sizes: Sequence[float], masses: Sequence[Sequence[float]]) -> "BoxCount":
        if masses is None:
            raise ValueError("masses are required")
        return cls(sizes, [len(m) for m in masses], masses)

    @classmethod
    def from_counts(cls, sizes: Sequence[float], counts: Sequence[float]) -> "BoxCount":
        if counts is None:
            raise ValueError("counts are required")
        return cls(sizes, counts)

    @property
    def sizes(self) -> np.ndarray:
        return self._sizes

    @property
    def counts(self) -> np.ndarray:
        return self._counts

    @property
    def masses(self) -> Optional[Tuple[np.ndarray, ...]]:
        return self._masses

    def __len__(self) -> int:
        return int(self._sizes.size)

    def __repr__(self) -> str:
        kind = "masses" if self._masses is not None else "counts"
        return f"BoxCount(sizes={self._sizes.tolist()}, counts={self._counts.tolist()}, from={kind})"

    def equals_ignoring_masses(self, other: object) -> bool:
        if not isinstance(other, BoxCount):
            return False
        return (np.array_equal(self._sizes, other._sizes, equal_nan=True)
                and np.array_equal(self._counts, other._counts, equal_nan=True))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoxCount):
            return NotImplemented
        if not self.equals_ignoring_masses(other):
            return False
        if self._masses is None or other._masses is None:
            return self._masses is None and other._masses is None
        return all(np.array_equal(a, b, equal_nan=True) for a, b in zip(self._masses, other._masses))

    def __hash__(self) -> int:
        # NaN hashes by identity, so it is keyed as None
        masses = None if self._masses is None else tuple(_hash_key(m) for m in self._masses)
        return hash((_hash_key(self._sizes), _hash_key(self._counts), masses))

    def fit(self, n: Optional[int] = None) -> Optional[FitResult]:
        """Box-counting dimension: slope of ln count vs ln(1/size)."""
        return fractal_dimension_fit(self._sizes, self._counts, n)

    def mass_statistics(self) -> List[Optional[Statistics]]:
        if self._masses is None:
            return [None] * len(self)
        return [describe(m) for m in self._masses]

    def mean_masses(self) -> np.ndarray:
        return np.array([s.mean if s is not None else np.nan for s in self.mass_statistics()], dtype=float)

    def mass_dimension_fit(self) -> Optional[FitResult]:
        """Slope of ln(mean mass per sample) vs ln(size)."""
        if self._masses is None:
            return None
        return log_log_fit(self._sizes, self.mean_masses())


@dataclass
class PlacementAverage:
    sizes: np.ndarray
    mean_counts: np.ndarray
    std_counts: np.ndarray
    n_placements: int

    def fit_weights(self) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            var_logN = (self.std_counts / np.maximum(self.mean_counts, 1e-12)) ** 2
        return 1.0 / np.maximum(var_logN, 1e-8)

    def fit(self, k0: int = 0, k1: Optional[int] = None) -> Optional[FitResult]:
        """Inverse-variance weighted D over sizes[k0:k1]; zero mean counts are dropped."""
        k1 = len(self.sizes) if k1 is None else k1
        s = self.sizes[k0:k1]
        N = self.mean_counts[k0:k1]
        w = self.fit_weights()[k0:k1]
        keep = N > 0
        return weighted_linear_fit(np.log(1.0 / s[keep]), np.log(N[keep]), w[keep])


def average_placements(boxcounts: Iterable[BoxCount]) -> PlacementAverage:
    """Mean and spread of counts per size over several grid placements."""
    items = list(boxcounts)
    if not items:
        raise ValueError("at least one grid placement is required")
    sizes = items[0].sizes
    for bc in items[1:]:
        if not np.array_equal(bc.sizes, sizes):
            raise ValueError("grid placements must share the same sampling sizes")
    counts = np.vstack([bc.counts for bc in items])
    std = np.std(counts, axis=0, ddof=1) if len(items) > 1 else np.zeros(len(sizes))
    return PlacementAverage(sizes=np.array(sizes), mean_counts=counts.mean(axis=0),
                            std_counts=std, n_placements=len(items))
