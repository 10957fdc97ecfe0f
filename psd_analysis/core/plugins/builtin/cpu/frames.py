# -*- coding: utf-8 -*-
"""
Frames Plugin - 将采样流切分为定长帧
"""

from typing import Any

from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Option, Plugin
from psd_analysis.core.processing.framer import FramedRun, WaveformFramer

export, __all__ = exporter()


@export
class FramesPlugin(Plugin):
    """Group the raw amplitudes into contiguous ``w_size`` frames."""

    provides = "frames"
    depends_on = ["raw_samples"]
    description = "Split the amplitude stream into non-overlapping fixed-size frames."
    version = "1.0.0"
    options = {
        "w_size": Option(default=1000, type=int, validate=lambda v: v > 0, help="每帧采样点数"),
    }

    def compute(self, context: Any, run_id: str, **kwargs) -> FramedRun:
        parsed = context.get_data(run_id, "raw_samples")
        framer = WaveformFramer(context.get_config(self, "w_size"))
        return framer.frame_parsed(parsed)
