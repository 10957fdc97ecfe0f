"""
Pulse gradient analysis (PGA): distance between the signed peak and a
fixed sample point of the baseline-subtracted frame.
"""

import numpy as np

from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.features.peak import signed_peak
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()


@export
def pga(frame: np.ndarray, sample_no: int) -> float:
    """``|frame[sample_no] - signed_peak(frame)|``.

    Raises:
        ConfigurationError: ``sample_no`` is outside the frame
    """
    frame = np.asarray(frame, dtype=np.float64)
    if not 0 <= sample_no < len(frame):
        raise ConfigurationError(f"PGA sample {sample_no} is outside a frame of {len(frame)} samples")
    return abs(float(frame[sample_no]) - signed_peak(frame))
