# -*- coding: utf-8 -*-
"""
Frame Stats Plugin - 每帧的基线诊断量

为运行中的每一帧（包括被排除的退化帧）记录：
- baseline: 前 base_l_end 个采样的均值
- peak_abs: 基线扣除后的绝对峰值
- baseline_deviation: 前 base_l_end 个采样的 RMS 偏差（电子学噪声诊断）
- degenerate: 该帧没有特征记录

用于 AvgBasel / AvgPeak / Baseline Deviation 等运行级输出。
"""

from typing import Any

import numpy as np

from psd_analysis.core.features.baseline import baseline_deviation, estimate_baseline, subtract_baseline
from psd_analysis.core.features.peak import abs_peak
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Plugin

export, __all__ = exporter()

FRAME_STATS_DTYPE = export(
    np.dtype(
        [
            ("frame_index", "i8"),
            ("baseline", "f8"),
            ("peak_abs", "f8"),
            ("baseline_deviation", "f8"),
            ("degenerate", "?"),
        ]
    ),
    name="FRAME_STATS_DTYPE",
)


@export
class FrameStatsPlugin(Plugin):
    """Baseline diagnostics for every frame of a run."""

    provides = "frame_stats"
    depends_on = ["frames", "pulse_features"]
    description = "Per-frame baseline, absolute peak, pre-trigger RMS and degenerate flag."
    version = "1.0.0"
    output_dtype = FRAME_STATS_DTYPE

    def compute(self, context: Any, run_id: str, **kwargs) -> np.ndarray:
        frames = context.get_data(run_id, "frames").frames
        features = context.get_data(run_id, "pulse_features")
        base_l_end = context.get_config("pulse_features", "base_l_end")

        stats = np.zeros(len(frames), dtype=FRAME_STATS_DTYPE)
        for index, frame in enumerate(frames):
            baseline = estimate_baseline(frame, base_l_end)
            stats[index] = (
                index,
                baseline,
                abs_peak(subtract_baseline(frame, baseline)),
                baseline_deviation(frame, base_l_end),
                False,
            )
        stats["degenerate"] = ~np.isin(stats["frame_index"], features["frame_index"])
        return stats
