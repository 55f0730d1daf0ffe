"""
Two-row (headings, values) rendering of a MultifractalDescription, and the
lookup of grid-variant headings from a caller-supplied table.
"""
from enum import Enum
from typing import List, Mapping, Optional, Tuple

from .curves import CurveShape
from .multifractal import MultifractalDescription, Ordering

NOT_CALCULATED = "not calculated"
UNKNOWN = "unknown"

HEADINGS = [
    "Suggested Scaling",
    "D(Q) Amplitude Q=(0 to 2)",
    "D(Q) Amplitude Q=(-1 to 2)",
    "f(α): Summed for Q>0",
    "Max-f(Q=0)",
    "Humped",
    "D(Q) Not Increasing",
    "α Not Increasing",
    "Dimensionally Ordered",
    "Flip Error",
    "Divergence > 0",
    "Red Error < 0 ",
    "Cross Over < 0 ",
]


class GridVariant(Enum):
    ALL_GRIDS = "all grids"
    ONE_GRID = "one grid"
    GRAY_ALL_GRIDS = "gray all grids"
    GRAY_ONE_GRID = "gray one grid"


# lookup order when a variant has no heading of its own
_FALLBACK = {
    GridVariant.ALL_GRIDS: (GridVariant.ALL_GRIDS,),
    GridVariant.ONE_GRID: (GridVariant.ONE_GRID, GridVariant.ALL_GRIDS),
    GridVariant.GRAY_ALL_GRIDS: (GridVariant.GRAY_ALL_GRIDS, GridVariant.ALL_GRIDS),
    GridVariant.GRAY_ONE_GRID: (GridVariant.GRAY_ONE_GRID, GridVariant.GRAY_ALL_GRIDS,
                                GridVariant.ONE_GRID, GridVariant.ALL_GRIDS),
}


def heading_for(table: Mapping[GridVariant, str], variant: GridVariant) -> Optional[str]:
    for candidate in _FALLBACK[variant]:
        heading = table.get(candidate)
        if heading is not None:
            return heading
    return None


def fnum(value: Optional[float], digits: int = 4) -> str:
    if value is None:
        return NOT_CALCULATED
    return f"{value:.{digits}f}"


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _shape(shape: CurveShape) -> str:
    return UNKNOWN if shape is CurveShape.UNKNOWN else shape.value


def _ordering(ordering: Ordering) -> str:
    return UNKNOWN if ordering is Ordering.UNKNOWN else ordering.value


def description_rows(description: MultifractalDescription) -> Tuple[List[str], List[str]]:
    d = description
    values = [
        d.scaling,
        fnum(d.amplitude_0_to_2),
        fnum(d.amplitude_neg1_to_2),
        fnum(d.f_sum_positive_q),
        fnum(d.max_f_minus_f0),
        _shape(d.dimension_curve.shape),
        yes_no(d.dq_never_increases),
        yes_no(d.alpha_never_increases),
        _ordering(d.ordering),
        fnum(d.flippancy),
        fnum(d.divergence),
        fnum(d.red_rises),
        fnum(d.cross_over),
    ]
    return list(HEADINGS), values


def description_tsv(description: MultifractalDescription) -> str:
    headings, values = description_rows(description)
    return "\t".join(headings) + "\n" + "\t".join(values) + "\n"
