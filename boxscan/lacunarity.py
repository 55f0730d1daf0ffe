"""
Lacunarity as CV²+1 of the mass distribution at each sampling size.

A size whose distribution is empty after filtering, or has a zero mean,
gets None instead of a value; summaries only use the computed values.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .regression import FitResult, log_log_fit
from .statistics import Statistics, describe


@dataclass
class LacunarityResult:
    sizes: np.ndarray
    cv: List[Optional[float]]
    lacunarity: List[Optional[float]]
    summary: Optional[Statistics]

    @property
    def mean(self) -> Optional[float]:
        return self.summary.mean if self.summary is not None else None


@dataclass
class PlacementLacunarity:
    placements: List[LacunarityResult]
    summary: Optional[Statistics]
    warnings: List[str] = field(default_factory=list)


def lacunarity_of(values: Sequence[float]) -> Optional[float]:
    stats = describe(values)
    if stats is None or stats.cv_sq is None:
        return None
    return stats.cv_sq + 1.0


def _computed(values: Sequence[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None]


def lacunarity_at_sizes(sizes: Sequence[float], masses: Sequence[Sequence[float]]) -> LacunarityResult:
    sizes = np.array(sizes, dtype=float).ravel()
    if len(masses) != sizes.size:
        raise ValueError(f"{sizes.size} sizes but {len(masses)} mass arrays")
    cvs: List[Optional[float]] = []
    lams: List[Optional[float]] = []
    for m in masses:
        stats = describe(m)
        cv = stats.cv if stats is not None else None
        cvs.append(cv)
        lams.append(cv * cv + 1.0 if cv is not None else None)
    computed = _computed(lams)
    return LacunarityResult(sizes=sizes, cv=cvs, lacunarity=lams,
                            summary=describe(computed) if computed else None)


def lacunarity_over_placements(sizes: Sequence[float],
                               masses_per_placement: Sequence[Sequence[Sequence[float]]]) -> PlacementLacunarity:
    """Per-placement lacunarity plus mean/min/max/CV of the placement means."""
    results = [lacunarity_at_sizes(sizes, masses) for masses in masses_per_placement]
    warnings = [f"placement {i}: no size has a computable lacunarity"
                for i, r in enumerate(results) if r.summary is None]
    means = _computed([r.mean for r in results])
    return PlacementLacunarity(placements=results,
                               summary=describe(means) if means else None,
                               warnings=warnings)


def count_lacunarity(counts_per_placement: Sequence[Sequence[float]]) -> List[Optional[float]]:
    """CV²+1 of the sample count across placements, one value per size."""
    counts = np.array(counts_per_placement, dtype=float)
    if counts.ndim != 2:
        raise ValueError("counts must be given as one row per placement")
    return [lacunarity_of(counts[:, k]) for k in range(counts.shape[1])]


def lacunarity_slope(sizes: Sequence[float], lacunarity: Sequence[Optional[float]]) -> Optional[FitResult]:
    """Log-log slope of lacunarity vs size; uncomputed sizes are skipped."""
    lam = np.array([np.nan if v is None else v for v in lacunarity], dtype=float)
    return log_log_fit(sizes, lam)
