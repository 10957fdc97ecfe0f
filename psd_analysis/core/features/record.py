# -*- coding: utf-8 -*-
"""
FeatureRecord - 单个波形的全部标量特征

extract_features 是纯函数：输入原始帧与参数，输出不可变的 FeatureRecord。
各提取器各自基于基线校正后的同一帧独立计算，帧不会在提取器之间被修改。
"""

from dataclasses import astuple, dataclass, fields

import numpy as np

from psd_analysis.core.exceptions import DegenerateFrameError
from psd_analysis.core.features.baseline import estimate_baseline, subtract_baseline
from psd_analysis.core.features.gradient import pga
from psd_analysis.core.features.integral import integral_risetime, peak_tail_integrals, window_integral
from psd_analysis.core.features.peak import signed_peak
from psd_analysis.core.features.width import crossing_width, is_valid_width
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()

FEATURE_RECORD_DTYPE = export(
    np.dtype(
        [
            ("frame_index", "i8"),  # 帧在运行中的序号
            ("baseline", "f8"),  # 前 base_l_end 个采样的均值
            ("peak_signed", "f8"),  # 绝对值最大的采样（保留符号）
            ("peak_abs", "f8"),
            ("low_cross_index", "i8"),  # 前向扫描的阈值穿越点
            ("high_cross_index", "i8"),  # 后向扫描的阈值穿越点
            ("width", "i8"),  # high - low（采样点）
            ("width_valid", "?"),  # 0 < width < 0.8 * w_size
            ("total_integral", "f8"),  # [w_start, w_end) 窗口积分
            ("peak_integral", "f8"),
            ("tail_integral", "f8"),
            ("risetime", "f8"),  # 积分上升时间（采样点），未定义时为 NaN
            ("pga_value", "f8"),
        ]
    ),
    name="FEATURE_RECORD_DTYPE",
)


@export
@dataclass(frozen=True)
class FeatureRecord:
    """Per-frame features, produced once for every non-degenerate frame."""

    baseline: float
    peak_signed: float
    peak_abs: float
    low_cross_index: int
    high_cross_index: int
    width: int
    width_valid: bool
    total_integral: float
    peak_integral: float
    tail_integral: float
    risetime: float
    pga_value: float

    def as_row(self, frame_index: int) -> tuple:
        """结构化数组中的一行（字段顺序与 FEATURE_RECORD_DTYPE 一致）。"""
        return (int(frame_index),) + astuple(self)

    @classmethod
    def from_row(cls, row: np.void) -> "FeatureRecord":
        return cls(**{f.name: row[f.name].item() for f in fields(cls)})


@export
def extract_features(
    frame: np.ndarray,
    *,
    base_l_end: int,
    peak_x: int,
    tail_end: int,
    w_start: int,
    w_end: int,
    pga_sample: int,
    width_threshold: float = FeatureDefaults.WIDTH_THRESHOLD,
    low_thresh: float = FeatureDefaults.RISETIME_LOW,
    high_thresh: float = FeatureDefaults.RISETIME_HIGH,
    width_valid_fraction: float = FeatureDefaults.WIDTH_VALID_FRACTION,
) -> FeatureRecord:
    """从单个原始帧提取全部特征。

    Raises:
        DegenerateFrameError: 空帧或没有阈值穿越（整帧被排除）
        ConfigurationError: 窗口或采样点越界（整个运行终止）

    积分上升时间无法定义时不排除该帧，risetime 记为 NaN。
    """
    frame = np.asarray(frame, dtype=np.float64)
    w_size = len(frame)

    baseline = estimate_baseline(frame, base_l_end)
    wave = subtract_baseline(frame, baseline)

    peak = signed_peak(wave)
    crossing = crossing_width(wave, width_threshold)
    peak_integral, tail_integral = peak_tail_integrals(wave, peak_x, tail_end)
    total_integral = window_integral(wave, w_start, w_end)
    pga_value = pga(wave, pga_sample)

    try:
        risetime = float(integral_risetime(wave, low_thresh, high_thresh).risetime)
    except DegenerateFrameError:
        risetime = float("nan")

    return FeatureRecord(
        baseline=baseline,
        peak_signed=peak,
        peak_abs=abs(peak),
        low_cross_index=crossing.low_cross_index,
        high_cross_index=crossing.high_cross_index,
        width=crossing.width,
        width_valid=is_valid_width(crossing.width, w_size, width_valid_fraction),
        total_integral=total_integral,
        peak_integral=peak_integral,
        tail_integral=tail_integral,
        risetime=risetime,
        pga_value=pga_value,
    )
