"""
Integral features: peak/tail split, windowed total integral and
integral risetime.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from psd_analysis.core.exceptions import ConfigurationError, DegenerateFrameError
from psd_analysis.core.features.width import find_first_crossing
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()


@export
def peak_tail_integrals(frame: np.ndarray, peak_x: int, tail_end: int) -> Tuple[float, float]:
    """Split the frame integral at ``peak_x``.

    peak = sum of samples with index < peak_x
    tail = sum of samples with peak_x < index < tail_end

    The sample at ``peak_x`` belongs to neither sum.
    """
    frame = np.asarray(frame, dtype=np.float64)
    if peak_x < 0 or tail_end < 0:
        raise ConfigurationError(f"peak_x ({peak_x}) and tail_end ({tail_end}) must be non-negative")
    peak = float(np.sum(frame[:peak_x]))
    tail = float(np.sum(frame[peak_x + 1:tail_end]))
    return peak, tail


@export
def window_integral(frame: np.ndarray, w_start: int, w_end: int) -> float:
    """Sum over the half-open window ``[w_start, w_end)``."""
    frame = np.asarray(frame, dtype=np.float64)
    if not 0 <= w_start < w_end <= len(frame):
        raise ConfigurationError(
            f"integral window [{w_start}, {w_end}) must lie within [0, {len(frame)})"
        )
    return float(np.sum(frame[w_start:w_end]))


@export
@dataclass(frozen=True)
class IntegralRisetime:
    low_time: int
    high_time: int

    @property
    def risetime(self) -> int:
        return self.high_time - self.low_time


@export
def integral_risetime(
    frame: np.ndarray,
    low_thresh: float = FeatureDefaults.RISETIME_LOW,
    high_thresh: float = FeatureDefaults.RISETIME_HIGH,
) -> IntegralRisetime:
    """Time for the running integral to go from ``low_thresh`` to ``high_thresh`` of the total.

    Both crossings are searched from index 0 with a running sum started at zero,
    so the second search does not continue from the first one's endpoint.

    Raises:
        DegenerateFrameError: the running sum never exceeds one of the levels
    """
    frame = np.asarray(frame, dtype=np.float64)
    total = float(np.sum(frame))
    running = np.cumsum(frame)

    # both passes restart at index 0 with a zero sum, so they share one cumulative sum
    low_time = find_first_crossing(running, low_thresh * total)
    high_time = find_first_crossing(running, high_thresh * total)
    if low_time is None or high_time is None:
        raise DegenerateFrameError(
            f"Running integral never crosses {low_thresh:g}/{high_thresh:g} of the total ({total:g})",
            reason="no_risetime",
        )
    return IntegralRisetime(low_time=low_time, high_time=high_time)
