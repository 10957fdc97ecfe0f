# -*- coding: utf-8 -*-
"""
Width 模块 - 阈值穿越宽度（FWHM 类）

在基线校正后的波形上：
1. low: 从索引 0 向前扫描，第一个 |x| > threshold * peak_abs 的位置
2. high: 从最后一个索引向后扫描，第一个满足同一条件的位置
3. width = high - low

前后两次扫描相互独立，使多峰脉冲的宽度覆盖完整的超阈值区间。
有效宽度需满足 0 < width < 0.8 * w_size，超出范围的波形视为噪声或堆积，
只在宽度统计中排除，不视为错误。
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from psd_analysis.core.exceptions import ConfigurationError, DegenerateFrameError
from psd_analysis.core.features.peak import abs_peak
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()


@export
@dataclass(frozen=True)
class CrossingWidth:
    """阈值穿越结果（索引均为采样点）"""

    low_cross_index: int
    high_cross_index: int
    peak_abs: float

    @property
    def width(self) -> int:
        return self.high_cross_index - self.low_cross_index


@export
def find_first_crossing(magnitude: np.ndarray, level: float) -> Optional[int]:
    """前向扫描：第一个 magnitude > level 的索引，未找到返回 None。"""
    above = np.flatnonzero(magnitude > level)
    if above.size == 0:
        return None
    return int(above[0])


@export
def find_last_crossing(magnitude: np.ndarray, level: float) -> Optional[int]:
    """后向扫描：从末尾开始第一个 magnitude > level 的索引，未找到返回 None。"""
    above = np.flatnonzero(magnitude > level)
    if above.size == 0:
        return None
    return int(above[-1])


@export
def crossing_width(frame: np.ndarray, threshold: float = FeatureDefaults.WIDTH_THRESHOLD) -> CrossingWidth:
    """计算基线校正后波形的阈值穿越宽度。

    Args:
        frame: 基线校正后的波形
        threshold: 峰值比例，范围 (0, 1)

    Raises:
        ConfigurationError: threshold 不在 (0, 1)
        DegenerateFrameError: 空波形或没有任何采样超过阈值（例如平坦波形）
    """
    if not 0.0 < threshold < 1.0:
        raise ConfigurationError(f"width threshold must be in (0, 1), got {threshold}")

    frame = np.asarray(frame, dtype=np.float64)
    peak = abs_peak(frame)
    magnitude = np.abs(frame)
    level = threshold * peak

    low = find_first_crossing(magnitude, level)
    high = find_last_crossing(magnitude, level)
    if low is None or high is None:
        raise DegenerateFrameError(
            f"No sample exceeds {threshold:g} of the peak ({peak:g})", reason="no_crossing"
        )
    return CrossingWidth(low_cross_index=low, high_cross_index=high, peak_abs=peak)


@export
def is_valid_width(
    width: float, w_size: int, max_fraction: float = FeatureDefaults.WIDTH_VALID_FRACTION
) -> bool:
    """宽度有效性：0 < width < max_fraction * w_size。"""
    return 0 < width < max_fraction * w_size
