# -*- coding: utf-8 -*-
"""
Pulse Features Plugin - 逐帧提取脉冲形状特征

**加速器**: CPU (NumPy)
**功能**: 对每个帧计算基线、峰值、阈值穿越宽度、峰/尾积分、窗口积分、
积分上升时间和 PGA，输出 FEATURE_RECORD_DTYPE 结构化数组。

无法定义宽度的帧（平坦帧、没有阈值穿越）被排除，不产生记录；
排除原因以 DEBUG 级别记录，数量由 frame_stats / run_summary 统计。
窗口或采样点越界属于配置错误，整个运行终止。
"""

import logging
from typing import Any

import numpy as np
from tqdm import tqdm

from psd_analysis.core.exceptions import DegenerateFrameError
from psd_analysis.core.features.record import FEATURE_RECORD_DTYPE, extract_features
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Option, Plugin

export, __all__ = exporter()

logger = logging.getLogger(__name__)


def _fraction(value: float) -> bool:
    return 0 < value < 1


@export
class PulseFeaturesPlugin(Plugin):
    """Extract one :class:`FeatureRecord` row per non-degenerate frame."""

    provides = "pulse_features"
    depends_on = ["frames"]
    description = "Per-frame baseline, peak, crossing width, integrals, risetime and PGA."
    version = "1.0.0"
    output_dtype = FEATURE_RECORD_DTYPE
    options = {
        "base_l_end": Option(default=100, type=int, help="基线窗口：前 base_l_end 个采样"),
        "peak_x": Option(default=200, type=int, help="峰积分与尾积分的分界采样点"),
        "tail_end": Option(default=600, type=int, help="尾积分结束采样点（不含）"),
        "w_start": Option(default=100, type=int, help="总积分窗口起点（含）"),
        "w_end": Option(default=800, type=int, help="总积分窗口终点（不含）"),
        "pga_sample": Option(default=600, type=int, help="PGA 使用的采样点"),
        "width_threshold": Option(
            default=FeatureDefaults.WIDTH_THRESHOLD, type=float, validate=_fraction, help="宽度阈值（峰值比例）"
        ),
        "low_thresh": Option(
            default=FeatureDefaults.RISETIME_LOW, type=float, validate=_fraction, help="上升时间低阈值（总积分比例）"
        ),
        "high_thresh": Option(
            default=FeatureDefaults.RISETIME_HIGH, type=float, validate=_fraction, help="上升时间高阈值（总积分比例）"
        ),
        "width_valid_fraction": Option(
            default=FeatureDefaults.WIDTH_VALID_FRACTION,
            type=float,
            validate=lambda v: v > 0,
            help="有效宽度上限（w_size 的比例）",
        ),
        "show_progress": Option(default=False, type=bool, help="是否显示逐帧进度条"),
    }

    def compute(self, context: Any, run_id: str, **kwargs) -> np.ndarray:
        framed = context.get_data(run_id, "frames")
        params = {
            name: context.get_config(self, name)
            for name in (
                "base_l_end",
                "peak_x",
                "tail_end",
                "w_start",
                "w_end",
                "pga_sample",
                "width_threshold",
                "low_thresh",
                "high_thresh",
                "width_valid_fraction",
            )
        }

        frames = framed.frames
        if len(frames) == 0:
            return np.zeros(0, dtype=FEATURE_RECORD_DTYPE)

        rows = []
        iterator = enumerate(frames)
        if context.get_config(self, "show_progress"):
            iterator = tqdm(iterator, total=len(frames), desc=f"[{run_id}] Extracting pulse features", leave=False)

        for index, frame in iterator:
            try:
                record = extract_features(frame, **params)
            except DegenerateFrameError as e:
                logger.debug("[%s] frame %d excluded: %s", run_id, index, e)
                continue
            rows.append(record.as_row(index))

        return np.array(rows, dtype=FEATURE_RECORD_DTYPE)
