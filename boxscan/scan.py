"""
One scan end to end: grid placements in, dimension / lacunarity /
multifractal summaries out.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .boxcount import BoxCount, PlacementAverage, average_placements
from .curves import D_TOLERANCE
from .lacunarity import PlacementLacunarity, count_lacunarity, lacunarity_over_placements
from .multifractal import MultifractalDescription, describe_multifractal, select_best
from .policy import FLIP_THRESHOLD, MONO_BELOW, ScalingPolicy
from .regression import FitResult, auto_window
from .spectrum import DEFAULT_QS, MultifractalSpectrum, spectrum_of


@dataclass
class ScanConfig:
    drop_head: int = 0
    drop_tail: int = 0
    auto_window: bool = False
    min_window: int = 5
    qs: Tuple[float, ...] = DEFAULT_QS
    multifractal: bool = False
    tolerance: float = D_TOLERANCE
    flip_threshold: float = FLIP_THRESHOLD
    mono_below: float = MONO_BELOW
    progress: bool = False


@dataclass
class ScanSummary:
    average: PlacementAverage
    window: Tuple[int, int]
    fit: Optional[FitResult]
    mass_fits: List[Optional[FitResult]]
    lacunarity: Optional[PlacementLacunarity]
    count_lacunarity: List[Optional[float]]
    spectra: List[MultifractalSpectrum] = field(default_factory=list)
    descriptions: List[MultifractalDescription] = field(default_factory=list)
    best: Optional[MultifractalDescription] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def sizes(self) -> np.ndarray:
        return self.average.sizes


def fit_window(average: PlacementAverage, config: ScanConfig) -> Tuple[int, int]:
    n = len(average.sizes)
    k0 = int(np.clip(config.drop_head, 0, n))
    k1 = int(np.clip(n - config.drop_tail, min(k0 + 2, n), n))
    if config.auto_window and n >= max(5, config.min_window):
        with np.errstate(divide="ignore"):
            x = np.log(1.0 / average.sizes)
            y = np.log(average.mean_counts)
        best = auto_window(x, y, config.min_window, average.fit_weights())
        if best is not None:
            k0, k1 = best
    return k0, k1


def analyze_scan(placements: Sequence[BoxCount], config: Optional[ScanConfig] = None) -> ScanSummary:
    config = ScanConfig() if config is None else config
    placements = list(placements)
    average = average_placements(placements)
    warnings: List[str] = []

    for s, n in zip(average.sizes, average.mean_counts):
        if n <= 0.0:
            warnings.append(f"size {s:g}: mean count is zero; dropped from fit")
    k0, k1 = fit_window(average, config)
    fit = average.fit(k0, k1)
    if fit is None:
        warnings.append("fewer than two usable sizes; dimension not calculated")

    with_masses = all(bc.masses is not None for bc in placements)
    lacunarity = None
    if with_masses:
        lacunarity = lacunarity_over_placements(average.sizes, [bc.masses for bc in placements])
        warnings.extend(lacunarity.warnings)
    summary = ScanSummary(
        average=average,
        window=(k0, k1),
        fit=fit,
        mass_fits=[bc.mass_dimension_fit() for bc in placements],
        lacunarity=lacunarity,
        count_lacunarity=count_lacunarity([bc.counts for bc in placements]),
        warnings=warnings,
    )

    if config.multifractal:
        if not with_masses:
            warnings.append("multifractal analysis needs masses; skipped")
            return summary
        policy = ScalingPolicy(mono_below=config.mono_below)
        for grid, bc in enumerate(tqdm(placements, desc="placements", disable=not config.progress)):
            spectrum = spectrum_of(bc, config.qs)
            description = describe_multifractal(spectrum, policy=policy, grid=grid,
                                                tolerance=config.tolerance,
                                                flip_threshold=config.flip_threshold)
            summary.spectra.append(spectrum)
            summary.descriptions.append(description)
            warnings.extend(f"grid {grid}: {w}" for w in description.warnings)
        summary.best = select_best(summary.descriptions)
    return summary
