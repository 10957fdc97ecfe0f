"""
psd_analysis 全局常量定义

探测器几何、系统误差和特征提取默认参数集中在此处，
避免魔术数字分散在各算法模块中。
"""

from dataclasses import dataclass
from typing import Tuple

from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()


@export
@dataclass(frozen=True)
class DetectorGeometry:
    """Detector dimensions used for flux and solid-angle calculations.

    All lengths are in centimetres.

    Attributes:
        active_length: long edge of the active scintillator face
        active_height: short edge of the active scintillator face
        housing_y: housing cross-section, faces the source when vertical
        housing_z: housing cross-section, faces the source when horizontal
    """

    active_length: float = 50.0
    active_height: float = 5.1
    housing_y: float = 5.4
    housing_z: float = 2.35

    @property
    def active_area(self) -> float:
        return self.active_length * self.active_height

    def facing_dimensions(self, orientation: str) -> Tuple[float, float]:
        """(width, depth) seen from the source, in centimetres.

        "horizontal": the largest faces point up and down, so the thin side faces the source.
        "vertical": the largest faces point left and right.
        """
        if orientation == "horizontal":
            return self.housing_z, self.housing_y
        if orientation == "vertical":
            return self.housing_y, self.housing_z
        raise ConfigurationError(
            f"orientation must be 'horizontal' or 'vertical', got {orientation!r}"
        )


# Scionix VS-1161-10 / EJ-426 detector used at all recorded sites
EJ426_GEOMETRY = export(DetectorGeometry(), name="EJ426_GEOMETRY")


@export
class ErrorDefaults:
    """系统误差常量"""

    # 有效面积的绝对误差 (cm^2)
    AREA_ERR = 0.5

    # 运行时长的绝对误差 (s)
    TIME_ERR = 0.5

    SECONDS_PER_HOUR = 3600.0


@export
class FeatureDefaults:
    """特征提取的默认参数"""

    # 宽度阈值（峰值的比例），0.5 即 FWHM
    WIDTH_THRESHOLD = 0.5

    # 宽度有效上限（相对 w_size 的比例），超过视为噪声/堆积
    WIDTH_VALID_FRACTION = 0.8

    # 积分上升时间的低/高阈值（总积分的比例）
    RISETIME_LOW = 0.1
    RISETIME_HIGH = 0.9

    # 宽度直方图的 bin 大小（采样点）
    HISTOGRAM_BIN_SIZE = 1.0

    # 预览输出的前 N 个波形
    FIRST_FRAMES = 10
