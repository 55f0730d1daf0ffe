"""
Shape description of a multifractal spectrum and the mono/multi verdict.

The α / f(α) curve is split at Q = 0 (or the first Q above it):
"green" points have Q >= 0, "red" points Q <= 0; both include the split.
For a well-formed spectrum f(α) peaks at Q = 0, the green branch sits to
the left of the peak and the red branch to its right, both below it.

  flippancy  = 1 - mean(green in lower-left quadrant, red in lower half,
                        green in lower half)
  divergence = 100 * area(green α x f box) / area(red α x f box),
               None when the red box has no area
  red rises  = fraction of red points whose α rose from the previous point
  cross-over = α at the red f maximum - α at the green f maximum
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .curves import (D_TOLERANCE, CurveClassification, classify_curve, count_rises_after_peak,
                     never_increasing)
from .policy import FLIP_THRESHOLD, SCALING_MF, SCALING_MONO_OR_NON, Policy, ScalingPolicy
from .sanitize import filter_bad_pairs
from .spectrum import MultifractalSpectrum, check_qs

ORDERING_WINDOW = (0.0, 2.0)
AMPLITUDE_WINDOW = (0.0, 2.0)
FULL_AMPLITUDE_WINDOW = (-1.0, 2.0)
Q_MATCH = 0.0001
AREA_EPS = 1e-12


class Ordering(Enum):
    ORDERED = "ordered"
    NOT_ORDERED = "not ordered"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FlipMeasures:
    flippancy: float
    divergence: Optional[float]
    red_rises: float
    cross_over: float


@dataclass(frozen=True)
class MultifractalDescription:
    grid: int
    amplitude_0_to_2: Optional[float]
    amplitude_neg1_to_2: Optional[float]
    f_sum_positive_q: Optional[float]
    max_f_minus_f0: Optional[float]
    dimension_curve: CurveClassification
    spectrum_curve: CurveClassification
    dq_never_increases: bool
    alpha_never_increases: bool
    spectrum_rises_after_peak: int
    ordering: Ordering
    flippancy: Optional[float]
    flipped: bool
    divergence: Optional[float]
    red_rises: Optional[float]
    cross_over: Optional[float]
    probably_mono: Optional[bool] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def scaling(self) -> str:
        return SCALING_MONO_OR_NON if self.probably_mono else SCALING_MF


def amplitude(values: Sequence[float], qs: Sequence[float], qmin: float, qmax: float) -> Optional[float]:
    """max - min of the values whose Q lies in [qmin, qmax]."""
    v, q = filter_bad_pairs(values, qs)
    inside = v[(q >= qmin) & (q <= qmax)]
    if inside.size < 2:
        return None
    return float(inside.max() - inside.min())


def sum_where_q_positive(values: Sequence[float], qs: Sequence[float]) -> Optional[float]:
    v, q = filter_bad_pairs(values, qs)
    picked = v[q > 0]
    return float(picked.sum()) if picked.size else None


def max_minus_value_at_q0(values: Sequence[float], qs: Sequence[float]) -> Optional[float]:
    v, q = filter_bad_pairs(values, qs)
    at0 = np.nonzero(q == 0)[0]
    if at0.size == 0:
        return None
    return float(abs(v.max() - v[at0[0]]))


def dimensional_ordering(dims: Sequence[float], qs: Sequence[float],
                         qmin: float = ORDERING_WINDOW[0], qmax: float = ORDERING_WINDOW[1],
                         tolerance: float = D_TOLERANCE) -> Ordering:
    """Whether D(Q) never rises by more than `tolerance` for Q in [qmin, qmax].

    The interval is entered at the first Q within 0.0001 of qmin; fewer than
    two entries inside it give UNKNOWN.
    """
    d, q = filter_bad_pairs(dims, qs)
    if q.size > 1 and not np.all(np.diff(q) > 0):
        raise ValueError("Q values must be strictly increasing")
    if d.size == 0:
        return Ordering.UNKNOWN
    entered = False
    compared = False
    for i in range(q.size):
        if not (qmin <= q[i] <= qmax):
            continue
        if not entered:
            entered = abs(q[i] - qmin) <= Q_MATCH
            continue
        compared = True
        if d[i] - d[i - 1] > tolerance:
            return Ordering.NOT_ORDERED
    return Ordering.ORDERED if compared else Ordering.UNKNOWN


def split_index(qs: Sequence[float]) -> Optional[int]:
    """Index of Q = 0, else of the first Q above 0."""
    q = np.asarray(qs, dtype=float)
    at0 = np.nonzero(q == 0)[0]
    if at0.size:
        return int(at0[0])
    above = np.nonzero(q >= 0)[0]
    return int(above[0]) if above.size else None


def red_rise_fraction(red_alpha: np.ndarray) -> float:
    rises = np.count_nonzero(np.diff(red_alpha) > 0)
    return float(rises) / red_alpha.size


def box_area(alpha: np.ndarray, f: np.ndarray) -> float:
    return float(np.ptp(alpha) * np.ptp(f))


def flip_measures(alpha: Sequence[float], f_alpha: Sequence[float], i0: int) -> FlipMeasures:
    alpha = np.asarray(alpha, dtype=float)
    f_alpha = np.asarray(f_alpha, dtype=float)
    g_alpha, g_f = alpha[i0:], f_alpha[i0:]
    r_alpha, r_f = alpha[:i0 + 1], f_alpha[:i0 + 1]
    f0 = f_alpha[i0]
    alpha0 = alpha[i0]

    green_lower = g_f <= f0
    green_lower_left = green_lower & (g_alpha >= g_alpha.min()) & (g_alpha <= alpha0)
    red_lower = r_f <= f0
    fits = (np.count_nonzero(green_lower_left) / g_f.size
            + np.count_nonzero(red_lower) / r_f.size
            + np.count_nonzero(green_lower) / g_f.size) / 3.0

    n = min(g_alpha.size, r_alpha.size)
    red_area = box_area(r_alpha, r_f)
    divergence = 100.0 * box_area(g_alpha[:n], g_f[:n]) / red_area if red_area > AREA_EPS else None
    cross_over = float(r_alpha[np.argmax(r_f)] - g_alpha[np.argmax(g_f)])
    return FlipMeasures(flippancy=float(1.0 - fits), divergence=divergence,
                        red_rises=red_rise_fraction(r_alpha), cross_over=cross_over)


def describe_multifractal(spectrum: MultifractalSpectrum, policy: Optional[Policy] = None,
                          grid: int = 0, tolerance: float = D_TOLERANCE,
                          flip_threshold: float = FLIP_THRESHOLD) -> MultifractalDescription:
    qs = check_qs(spectrum.qs)
    policy = ScalingPolicy() if policy is None else policy
    dq, alpha, f_alpha = spectrum.dq, spectrum.alpha, spectrum.f_alpha
    warnings: List[str] = []

    flips = None
    i0 = split_index(qs)
    if i0 is None:
        warnings.append("no Q >= 0; flip measures not calculated")
    elif not (np.all(np.isfinite(alpha)) and np.all(np.isfinite(f_alpha))):
        warnings.append("unreadable α or f(α) values; flip measures not calculated")
    else:
        flips = flip_measures(alpha, f_alpha, i0)

    description = MultifractalDescription(
        grid=grid,
        amplitude_0_to_2=amplitude(dq, qs, *AMPLITUDE_WINDOW),
        amplitude_neg1_to_2=amplitude(dq, qs, *FULL_AMPLITUDE_WINDOW),
        f_sum_positive_q=sum_where_q_positive(f_alpha, qs),
        max_f_minus_f0=max_minus_value_at_q0(f_alpha, qs),
        dimension_curve=classify_curve(dq, tolerance),
        spectrum_curve=classify_curve(f_alpha, tolerance),
        dq_never_increases=never_increasing(dq, tolerance),
        alpha_never_increases=never_increasing(alpha, tolerance),
        spectrum_rises_after_peak=count_rises_after_peak(f_alpha),
        ordering=dimensional_ordering(dq, qs, tolerance=tolerance),
        flippancy=flips.flippancy if flips else None,
        flipped=bool(flips and flips.flippancy > flip_threshold),
        divergence=flips.divergence if flips else None,
        red_rises=flips.red_rises if flips else None,
        cross_over=flips.cross_over if flips else None,
        warnings=tuple(warnings),
    )
    return replace(description, probably_mono=bool(policy(description)))


def _rank(description: MultifractalDescription):
    inf = float("inf")
    satisfied = sum([description.dimension_curve.is_humped,
                     description.dq_never_increases,
                     description.alpha_never_increases])
    return (
        inf if description.flippancy is None else description.flippancy,
        inf if description.max_f_minus_f0 is None else description.max_f_minus_f0,
        -satisfied,
        description.ordering is not Ordering.ORDERED,
        inf if description.f_sum_positive_q is None else description.f_sum_positive_q,
    )


def select_best(descriptions: Sequence[MultifractalDescription]) -> MultifractalDescription:
    """Best grid placement: least flippancy first, earliest placement on ties."""
    if not descriptions:
        raise ValueError("no descriptions to choose from")
    return min(descriptions, key=_rank)
