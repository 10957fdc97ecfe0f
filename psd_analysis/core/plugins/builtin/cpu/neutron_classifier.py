# -*- coding: utf-8 -*-
"""
Neutron classifier plugin based on a pulse-shape feature window.

Each feature record (from PulseFeaturesPlugin) is labelled:
- 0: non-neutron
- 1: neutron

A pulse is a neutron when ``low_cut <= feature <= high_cut``. The feature
is the crossing width by default; any numeric field of the feature record
may be used instead (e.g. ``pga_value`` or ``tail_integral``).
"""

from __future__ import annotations

from typing import Any

import numpy as np

from psd_analysis.core.classification import classify_array
from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.features.record import FEATURE_RECORD_DTYPE
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Option, Plugin

export, __all__ = exporter()

NEUTRON_LABEL_DTYPE = export(
    np.dtype([
        ("frame_index", "i8"),
        ("label", "i1"),
        ("feature", "f8"),
    ]),
    name="NEUTRON_LABEL_DTYPE",
)

_NUMERIC_FEATURES = [
    name for name in FEATURE_RECORD_DTYPE.names
    if name != "frame_index" and FEATURE_RECORD_DTYPE[name].kind in "fi"
]


@export
class NeutronClassifierPlugin(Plugin):
    """Label pulses neutron / non-neutron using an inclusive feature window."""

    provides = "neutron_labels"
    depends_on = [("pulse_features", ">=1.0")]
    description = "Classify pulses as neutron or non-neutron with a feature threshold window."
    version = "1.0.0"
    output_dtype = NEUTRON_LABEL_DTYPE

    options = {
        "feature": Option(
            default="width",
            type=str,
            choices=_NUMERIC_FEATURES,
            help="Feature record field compared against the cuts.",
        ),
        "low_cut": Option(default=5.0, type=float, help="Lower bound of the neutron window (inclusive)."),
        "high_cut": Option(default=50.0, type=float, help="Upper bound of the neutron window (inclusive)."),
    }

    def compute(self, context: Any, run_id: str, **_kwargs) -> np.ndarray:
        features = context.get_data(run_id, "pulse_features")
        feature = context.get_config(self, "feature")
        low_cut = context.get_config(self, "low_cut")
        high_cut = context.get_config(self, "high_cut")

        if not isinstance(features, np.ndarray) or features.dtype.names is None:
            raise ConfigurationError("neutron_labels expects pulse_features as a structured array", run_id=run_id)

        labels = np.zeros(len(features), dtype=NEUTRON_LABEL_DTYPE)
        values = features[feature].astype(np.float64)
        labels["frame_index"] = features["frame_index"]
        labels["label"] = classify_array(values, low_cut, high_cut)
        labels["feature"] = values
        return labels
