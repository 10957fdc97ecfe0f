# -*- coding: utf-8 -*-
"""
Neutron / non-neutron classification with a feature threshold window.

A pulse is neutron-like when ``low_cut <= feature <= high_cut``; both ends
are inclusive. The feature is normally the crossing width, but any scalar
discriminator works the same way.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()

LABEL_NON_NEUTRON = export(0, name="LABEL_NON_NEUTRON")
LABEL_NEUTRON = export(1, name="LABEL_NEUTRON")


@export
class PulseLabel(IntEnum):
    NON_NEUTRON = LABEL_NON_NEUTRON
    NEUTRON = LABEL_NEUTRON


def _check_cuts(low_cut: float, high_cut: float) -> None:
    if low_cut > high_cut:
        raise ConfigurationError(f"low_cut ({low_cut}) must not exceed high_cut ({high_cut})")


@export
def classify(feature: float, low_cut: float, high_cut: float) -> PulseLabel:
    """Label a single pulse. NaN features are never neutron-like."""
    _check_cuts(low_cut, high_cut)
    if low_cut <= feature <= high_cut:
        return PulseLabel.NEUTRON
    return PulseLabel.NON_NEUTRON


@export
def classify_array(features: np.ndarray, low_cut: float, high_cut: float) -> np.ndarray:
    """Vectorized :func:`classify`, returns an ``i1`` array of label values."""
    _check_cuts(low_cut, high_cut)
    features = np.asarray(features, dtype=np.float64)
    mask = (features >= low_cut) & (features <= high_cut)
    return np.where(mask, LABEL_NEUTRON, LABEL_NON_NEUTRON).astype("i1")
