"""
Features 子模块 - 单帧特征提取（纯函数，不涉及 I/O）

- baseline: 基线估计与扣除
- peak: 带符号/绝对峰值
- width: 阈值穿越宽度
- integral: 峰/尾积分、窗口积分、积分上升时间
- gradient: PGA
- record: FeatureRecord 与组合提取函数
"""

from .baseline import baseline_deviation, estimate_baseline, subtract_baseline
from .gradient import pga
from .integral import IntegralRisetime, integral_risetime, peak_tail_integrals, window_integral
from .peak import abs_peak, signed_peak
from .record import FEATURE_RECORD_DTYPE, FeatureRecord, extract_features
from .width import CrossingWidth, crossing_width, find_first_crossing, find_last_crossing, is_valid_width

__all__ = [
    "baseline_deviation",
    "estimate_baseline",
    "subtract_baseline",
    "pga",
    "IntegralRisetime",
    "integral_risetime",
    "peak_tail_integrals",
    "window_integral",
    "abs_peak",
    "signed_peak",
    "FEATURE_RECORD_DTYPE",
    "FeatureRecord",
    "extract_features",
    "CrossingWidth",
    "crossing_width",
    "find_first_crossing",
    "find_last_crossing",
    "is_valid_width",
]
