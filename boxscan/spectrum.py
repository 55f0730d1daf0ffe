"""
Multifractal spectra from per-size mass distributions (method of moments,
Chhabra-Jensen direct α / f(α) estimates).

For each size ε, masses are normalised to probabilities P_i = m_i / Σm and,
for each exponent Q:

  Σ P^Q              (Q = 1: Σ P ln P)
  τ term = Σ P^(Q-1) / n
  μ_i = P_i^Q / Σ P^Q
  α sum  = Σ μ ln P
  f sum  = Σ μ ln μ

Across sizes (x = ln(1/ε)):

  α(Q)    = -slope(α sum vs x)
  f(α(Q)) = -slope(f sum vs x)
  τ(Q)    = slope of ln(τ term) vs ln ε
  D(Q)    = (Qα - f) / (Q - 1);  D(1) = -slope(Σ P ln P vs x)

Unreadable and non-positive masses are dropped; a size with no mass left
contributes NaN and is skipped by the fits.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .regression import linear_fit, log_log_fit
from .sanitize import filter_bad_entries

DEFAULT_QS = tuple(float(q) for q in range(-5, 6))


@dataclass
class MomentSums:
    qs: np.ndarray
    p_to_q: np.ndarray
    tau_term: np.ndarray
    alpha_sum: np.ndarray
    f_sum: np.ndarray


@dataclass
class MultifractalSpectrum:
    qs: np.ndarray
    dq: np.ndarray
    q_alpha_minus_f: np.ndarray
    tau: np.ndarray
    alpha: np.ndarray
    f_alpha: np.ndarray

    def index_of(self, q: float) -> Optional[int]:
        hits = np.nonzero(self.qs == q)[0]
        return int(hits[0]) if hits.size else None


def check_qs(qs: Sequence[float]) -> np.ndarray:
    arr = np.array(qs, dtype=float).ravel()
    if arr.size == 0:
        raise ValueError("at least one Q is required")
    if not np.all(np.isfinite(arr)):
        raise ValueError("Q values must be finite")
    if arr.size > 1 and not np.all(np.diff(arr) > 0):
        raise ValueError("Q values must be strictly increasing")
    return arr


def moment_sums(masses: Sequence[float], qs: Sequence[float] = DEFAULT_QS) -> MomentSums:
    """Moment sums of one size's mass distribution, one entry per Q."""
    qs = check_qs(qs)
    m = filter_bad_entries(masses)
    m = m[m > 0]
    nan = np.full(qs.size, np.nan)
    if m.size == 0:
        return MomentSums(qs, nan.copy(), nan.copy(), nan.copy(), nan.copy())

    P = m / m.sum()
    logP = np.log(P)
    p_to_q = np.empty(qs.size)
    tau_term = np.empty(qs.size)
    alpha_sum = np.empty(qs.size)
    f_sum = np.empty(qs.size)
    for k, q in enumerate(qs):
        Pq = P ** q
        total = Pq.sum()
        mu = Pq / total
        p_to_q[k] = float(np.sum(P * logP)) if q == 1 else float(total)
        tau_term[k] = float(np.sum(P ** (q - 1.0)) / m.size)
        alpha_sum[k] = float(np.sum(mu * logP))
        f_sum[k] = float(np.sum(mu * np.log(mu)))
    return MomentSums(qs, p_to_q, tau_term, alpha_sum, f_sum)


def _neg_slope(x: np.ndarray, y: np.ndarray) -> float:
    fit = linear_fit(x, y)
    return -fit.slope if fit is not None else np.nan


def compute_spectrum(sizes: Sequence[float], masses: Sequence[Sequence[float]],
                     qs: Sequence[float] = DEFAULT_QS) -> MultifractalSpectrum:
    sizes = np.array(sizes, dtype=float).ravel()
    if len(masses) != sizes.size:
        raise ValueError(f"{sizes.size} sizes but {len(masses)} mass arrays")
    if not np.all(sizes > 0):
        raise ValueError("sampling sizes must be strictly positive")
    qs = check_qs(qs)

    sums = [moment_sums(m, qs) for m in masses]
    # rows: Q, columns: size
    p_to_q = np.array([s.p_to_q for s in sums]).T
    tau_term = np.array([s.tau_term for s in sums]).T
    alpha_sum = np.array([s.alpha_sum for s in sums]).T
    f_sum = np.array([s.f_sum for s in sums]).T
    x = np.log(1.0 / sizes)

    n = qs.size
    dq = np.zeros(n)
    xd = np.zeros(n)
    tau = np.zeros(n)
    alpha = np.zeros(n)
    f_alpha = np.zeros(n)
    for k, q in enumerate(qs):
        alpha[k] = _neg_slope(x, alpha_sum[k])
        f_alpha[k] = _neg_slope(x, f_sum[k])
        if q == 1:
            dq[k] = _neg_slope(x, p_to_q[k])
            continue
        fit = log_log_fit(sizes, tau_term[k])
        tau[k] = fit.slope if fit is not None else np.nan
        xd[k] = q * alpha[k] - f_alpha[k]
        dq[k] = xd[k] / (q - 1.0)
    return MultifractalSpectrum(qs=qs, dq=dq, q_alpha_minus_f=xd, tau=tau, alpha=alpha, f_alpha=f_alpha)


def spectrum_of(boxcount, qs: Sequence[float] = DEFAULT_QS) -> MultifractalSpectrum:
    """Spectrum of a mass-carrying BoxCount."""
    if boxcount.masses is None:
        raise ValueError("a multifractal spectrum needs per-size masses")
    return compute_spectrum(boxcount.sizes, boxcount.masses, qs)
