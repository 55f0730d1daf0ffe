"""
Least-squares regression lines for box-counting data.

- Plain and inverse-variance weighted linear fits with R² and standard errors.
- Log-log power regression (slope of ln Y vs ln X) skipping non-positive and
  unreadable pairs; the box-counting fractal dimension is the slope of
  ln N vs ln(1/size).
- Fit-window search: maximum R², tie-break by minimal curvature.

Every fit returns None when fewer than two usable points remain or all
usable X values coincide.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .sanitize import filter_bad_pairs


@dataclass
class FitResult:
    slope: float
    intercept: float
    r2: float
    n: int
    slope_stderr: float
    intercept_stderr: float

    @property
    def prefactor(self) -> float:
        # y = A x^D for log-log fits, A = e^intercept
        return float(np.exp(self.intercept))


def _usable(x: np.ndarray) -> bool:
    return x.size >= 2 and float(np.ptp(x)) > 0.0


def linear_fit(x: Sequence[float], y: Sequence[float]) -> Optional[FitResult]:
    x, y = filter_bad_pairs(x, y)
    if not _usable(x):
        return None
    m, b = np.polyfit(x, y, 1)
    yhat = m * x + b
    ss_res = float(np.sum((y - yhat) ** 2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    r2 = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
    n = len(x)
    sigma2 = ss_res / (n - 2) if n > 2 else 0.0
    Sxx = float(np.sum((x - x.mean()) ** 2))
    slope_stderr = float(np.sqrt(sigma2 / Sxx))
    intercept_stderr = float(np.sqrt(sigma2 * (1.0 / n + (x.mean() ** 2) / Sxx)))
    return FitResult(slope=float(m), intercept=float(b), r2=r2, n=n,
                     slope_stderr=slope_stderr, intercept_stderr=intercept_stderr)


def weighted_linear_fit(x: Sequence[float], y: Sequence[float],
                        w: Optional[Sequence[float]]) -> Optional[FitResult]:
    if w is None:
        return linear_fit(x, y)
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    w = np.asarray(w, dtype=float)
    if not (x.size == y.size == w.size):
        raise ValueError("x, y and weights must have the same length")
    keep = np.isfinite(x) & np.isfinite(y) & np.isfinite(w)
    x, y, w = x[keep], y[keep], w[keep]
    if not _usable(x):
        return None
    X = np.column_stack([x, np.ones_like(x)])
    sw = np.sqrt(np.maximum(w, 0.0))
    Xw = X * sw[:, None]
    yw = y * sw
    beta, *_ = np.linalg.lstsq(Xw, yw, rcond=None)
    m, b = float(beta[0]), float(beta[1])
    yhat = m * x + b
    r = y - yhat
    n = len(x)
    dof = max(1, n - 2)
    ss_res_w = float(np.sum(w * r * r))
    XtWX = X.T @ (w[:, None] * X)
    try:
        XtWX_inv = np.linalg.inv(XtWX)
    except np.linalg.LinAlgError:
        XtWX_inv = np.linalg.pinv(XtWX)
    sigma2 = ss_res_w / dof
    cov = sigma2 * XtWX_inv
    slope_stderr = float(np.sqrt(max(cov[0, 0], 0.0)))
    intercept_stderr = float(np.sqrt(max(cov[1, 1], 0.0)))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    r2 = 1.0 - float(np.sum(r ** 2)) / ss_tot if ss_tot > 0 else 0.0
    return FitResult(slope=m, intercept=b, r2=r2, n=n, slope_stderr=slope_stderr, intercept_stderr=intercept_stderr)


def _head(values: Sequence[float], n: Optional[int]) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    if n is None:
        return arr
    if n < 0 or n > arr.size:
        raise ValueError(f"cannot use {n} points from an array of {arr.size}")
    return arr[:n]


def log_log_fit(x: Sequence[float], y: Sequence[float], n: Optional[int] = None) -> Optional[FitResult]:
    """Power regression: least squares of ln y on ln x over the first n pairs.

    Pairs with a non-positive, NaN or infinite member are left out.
    """
    xa = _head(x, n)
    ya = _head(y, n)
    if xa.size != ya.size:
        raise ValueError(f"parallel arrays differ in length: {xa.size} != {ya.size}")
    keep = np.isfinite(xa) & np.isfinite(ya) & (xa > 0) & (ya > 0)
    return linear_fit(np.log(xa[keep]), np.log(ya[keep]))


def fractal_dimension_fit(sizes: Sequence[float], counts: Sequence[float],
                          n: Optional[int] = None) -> Optional[FitResult]:
    """Slope of ln count vs ln(1/size); the slope is the box-counting dimension D."""
    with np.errstate(divide="ignore"):
        inv = 1.0 / _head(sizes, n)
    return log_log_fit(inv, _head(counts, n))


def inverse_size_fit(sizes: Sequence[float], counts: Sequence[float]) -> Optional[FitResult]:
    """Plain (not logged) fit of count vs 1/size."""
    s = np.asarray(sizes, dtype=float)
    with np.errstate(divide="ignore"):
        inv = np.where(s > 0, 1.0 / s, np.nan)
    return linear_fit(inv, counts)


def auto_window(x: Sequence[float], y: Sequence[float], min_window: int = 5,
                weights: Optional[Sequence[float]] = None) -> Optional[Tuple[int, int]]:
    """Pick the [k0, k1) window of consecutive points with best R²."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    min_window = max(3, int(min_window))
    if len(x) < min_window:
        return None
    best = None
    for i in range(0, len(x) - min_window + 1):
        for j in range(i + min_window, len(x) + 1):
            xi = x[i:j]
            yi = y[i:j]
            wi = None if weights is None else np.asarray(weights, dtype=float)[i:j]
            fr = weighted_linear_fit(xi, yi, wi)
            if fr is None:
                continue
            ok = np.isfinite(xi) & np.isfinite(yi)
            if np.count_nonzero(ok) >= 3:
                curv = abs(float(np.polyfit(xi[ok], yi[ok], 2)[0]))
            else:
                curv = 1e9
            score = (fr.r2, -curv)
            if (best is None) or (score > best[0]):
                best = (score, i, j)
    if best is None:
        return None
    return best[1], best[2]
