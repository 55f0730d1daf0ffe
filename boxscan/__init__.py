"""Fractal dimension, lacunarity and multifractal shape analysis of box-counting scans."""
from .boxcount import BoxCount, PlacementAverage, average_placements
from .curves import CurveClassification, CurveShape, classify_curve, never_increasing
from .lacunarity import lacunarity_at_sizes, lacunarity_over_placements
from .multifractal import MultifractalDescription, Ordering, describe_multifractal, select_best
from .policy import ScalingPolicy
from .regression import FitResult, fractal_dimension_fit, log_log_fit
from .sanitize import filter_bad_entries, filter_bad_pairs
from .scan import ScanConfig, ScanSummary, analyze_scan
from .spectrum import DEFAULT_QS, MultifractalSpectrum, compute_spectrum
from .statistics import Statistics, describe

__version__ = "0.1.0"
