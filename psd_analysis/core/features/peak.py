"""
Peak extraction: the sample furthest from zero.
"""

import numpy as np

from psd_analysis.core.exceptions import DegenerateFrameError
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()


@export
def signed_peak(frame: np.ndarray) -> float:
    """Sample with the largest absolute value, sign kept.

    Ties go to the first occurrence in index order.

    Raises:
        DegenerateFrameError: the frame is empty
    """
    frame = np.asarray(frame, dtype=np.float64)
    if frame.size == 0:
        raise DegenerateFrameError("Cannot take the peak of an empty frame", reason="empty")
    # argmax returns the first index among equal maxima
    return float(frame[int(np.argmax(np.abs(frame)))])


@export
def abs_peak(frame: np.ndarray) -> float:
    """``|signed_peak(frame)|``."""
    return abs(signed_peak(frame))
