"""
Baseline estimation and removal.

The baseline of a frame is the mean of its pre-trigger samples
(the first ``base_l_end`` samples).
"""

import numpy as np

from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()


def _check_window(frame: np.ndarray, base_l_end: int) -> None:
    if not 0 < base_l_end <= len(frame):
        raise ConfigurationError(
            f"base_l_end ({base_l_end}) must satisfy 0 < base_l_end <= frame length ({len(frame)})"
        )


@export
def estimate_baseline(frame: np.ndarray, base_l_end: int) -> float:
    """Mean of the first ``base_l_end`` samples."""
    frame = np.asarray(frame, dtype=np.float64)
    _check_window(frame, base_l_end)
    return float(np.mean(frame[:base_l_end]))


@export
def subtract_baseline(frame: np.ndarray, baseline: float) -> np.ndarray:
    """Return a new frame with ``baseline`` removed from every sample."""
    return np.asarray(frame, dtype=np.float64) - baseline


@export
def baseline_deviation(frame: np.ndarray, base_l_end: int) -> float:
    """RMS spread of the pre-trigger samples about their mean."""
    frame = np.asarray(frame, dtype=np.float64)
    _check_window(frame, base_l_end)
    pre = frame[:base_l_end]
    return float(np.sqrt(np.mean((pre - pre.mean()) ** 2)))
