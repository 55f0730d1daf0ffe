"""
Scaling verdicts for multifractal descriptions.

A policy is any callable taking a MultifractalDescription and returning True
when the scanned object is probably mono- or non-fractal. `ScalingPolicy` is
the default: divergence below `mono_below` percent, an unmeasurable
divergence, or a flipped spectrum all read as mono/non.
"""
from dataclasses import dataclass
from typing import Callable

MONO_BELOW = 5.0
FLIP_THRESHOLD = 0.1

SCALING_MONO_OR_NON = "Mono/Non"
SCALING_MF = "Multifractal"


@dataclass(frozen=True)
class ScalingPolicy:
    mono_below: float = MONO_BELOW

    def __call__(self, description) -> bool:
        if description.divergence is None:
            return True
        if description.divergence < self.mono_below:
            return True
        return bool(description.flipped)


Policy = Callable[[object], bool]
