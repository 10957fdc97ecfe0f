# -*- coding: utf-8 -*-
"""
Statistics 模块 - 由分类计数得到物理量及其误差

- flux / rate / efficiency / figure of merit：均为纯函数，误差按一阶偏导平方和传播
- RunAccumulator：对一个运行的 FeatureRecord 序列做显式的从左到右折叠
- StatisticsAggregator：将折叠结果转换为只写一次的 RunSummary

面积误差与时间误差为固定常量（ErrorDefaults），探测器尺寸见 DetectorGeometry。
"""

from dataclasses import asdict, dataclass, field
import logging
import math
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from psd_analysis.core.classification import PulseLabel
from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.features.record import FeatureRecord
from psd_analysis.core.foundation.constants import EJ426_GEOMETRY, DetectorGeometry, ErrorDefaults
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()

logger = logging.getLogger(__name__)


@export
@dataclass(frozen=True)
class Measurement:
    """数值及其标准误差"""

    value: float
    error: float

    def __iter__(self):
        yield self.value
        yield self.error


# =============================================================================
# 纯函数：通量、计数率、效率、品质因数
# =============================================================================


def _check_run_time(run_time: float) -> None:
    if not run_time > 0:
        raise ConfigurationError(f"run time must be positive, got {run_time}")


@export
def neutron_flux(
    n_neutron: int,
    run_time: float,
    area: float = EJ426_GEOMETRY.active_area,
    area_err: float = ErrorDefaults.AREA_ERR,
    time_err: float = ErrorDefaults.TIME_ERR,
) -> Measurement:
    """中子通量 N / (A T)，单位 cm^-2 s^-1。

    误差为泊松计数误差、面积误差和时间误差的平方和：
        sqrt(N/(AT)^2 + N^2 dA^2/((AT)^2 A^2) + N^2 dT^2/((AT)^2 T^2))
    """
    _check_run_time(run_time)
    if not area > 0:
        raise ConfigurationError(f"detector area must be positive, got {area}")
    at = area * run_time
    flux = n_neutron / at
    error = math.sqrt(
        n_neutron / (at * at)
        + n_neutron * n_neutron * area_err * area_err / (at * at * area * area)
        + n_neutron * n_neutron * time_err * time_err / (at * at * run_time * run_time)
    )
    return Measurement(flux, error)


@export
def count_rate(
    count: int,
    run_time: float,
    time_err: float = ErrorDefaults.TIME_ERR,
    per_hour: bool = False,
) -> Measurement:
    """计数率 N / T 及误差 sqrt(N (1 + N dT^2 / T^2)) / T；per_hour=True 时乘以 3600。"""
    _check_run_time(run_time)
    scale = ErrorDefaults.SECONDS_PER_HOUR if per_hour else 1.0
    rate = count / run_time * scale
    error = math.sqrt(count * (1 + count * time_err * time_err / (run_time * run_time))) / run_time * scale
    return Measurement(rate, error)


@export
def rate_difference(minuend: Measurement, subtrahend: Measurement) -> Measurement:
    """两个计数率之差，误差按平方和合成。"""
    return Measurement(
        minuend.value - subtrahend.value,
        math.sqrt(minuend.error ** 2 + subtrahend.error ** 2),
    )


@export
def solid_angle(
    distance_m: float,
    orientation: str,
    geometry: DetectorGeometry = EJ426_GEOMETRY,
) -> float:
    """矩形探测面对点源所张的立体角 (sr)。

    有效距离 = 源距离 + 探测器厚度的一半；
    Omega = 4 atan(w l / (4 D sqrt(w^2/4 + l^2/4 + D^2)))，w/l 随朝向交换。
    所有长度换算为米后计算。
    """
    width_cm, depth_cm = geometry.facing_dimensions(orientation)
    width = width_cm / 100.0
    length = geometry.active_length / 100.0
    true_distance = distance_m + depth_cm / 100.0 / 2.0
    if not true_distance > 0:
        raise ConfigurationError(f"effective source distance must be positive, got {true_distance}")
    return 4.0 * math.atan(
        width * length
        / (4.0 * true_distance * math.sqrt(width * width / 4.0 + length * length / 4.0 + true_distance ** 2))
    )


@export
def efficiencies(
    n_neutron: int,
    run_time: float,
    source_activity: float,
    distance_m: float,
    orientation: str,
    geometry: DetectorGeometry = EJ426_GEOMETRY,
) -> Tuple[float, float]:
    """(绝对效率, 本征效率)。

    absolute = (N/T) / S
    intrinsic = absolute * 4 pi / Omega
    """
    _check_run_time(run_time)
    if not source_activity > 0:
        raise ConfigurationError(f"source activity must be positive, got {source_activity}")
    omega = solid_angle(distance_m, orientation, geometry)
    absolute = (n_neutron / run_time) / source_activity
    intrinsic = absolute * 4.0 * math.pi / omega
    return absolute, intrinsic


@export
def figure_of_merit(
    separation: float,
    separation_err: float,
    width_a: float,
    width_a_err: float,
    width_b: float,
    width_b_err: float,
) -> Measurement:
    """品质因数 FoM = X / (W_a + W_b)，误差由三个输入误差按偏导平方和传播。"""
    total_width = width_a + width_b
    if total_width == 0:
        raise ConfigurationError("peak widths must not sum to zero")
    s2 = total_width * total_width
    figure = separation / total_width
    error = math.sqrt(
        separation_err * separation_err / s2
        + (separation * width_a_err / s2) ** 2
        + (separation * width_b_err / s2) ** 2
    )
    return Measurement(figure, error)


@export
def width_histogram(
    widths: np.ndarray,
    run_time: float,
    bin_size: float,
    w_size: int,
) -> np.ndarray:
    """按运行时长归一化的宽度谱。

    Returns:
        (n_bins, 2) 数组：第一列为 bin 起点（i * bin_size），第二列为每秒计数
    """
    _check_run_time(run_time)
    if not bin_size > 0:
        raise ConfigurationError(f"bin_size must be positive, got {bin_size}")
    n_bins = int(w_size / bin_size)
    counts = np.zeros(n_bins, dtype=np.float64)
    # 半数向上取整
    index = np.floor(np.asarray(widths, dtype=np.float64) / bin_size + 0.5).astype(np.int64)
    in_range = (index >= 0) & (index < n_bins)
    if not np.all(in_range):
        logger.debug("width_histogram: %d widths outside [0, %d) bins", int(np.sum(~in_range)), n_bins)
    np.add.at(counts, index[in_range], 1.0)
    return np.column_stack([np.arange(n_bins) * bin_size, counts / run_time])


@export
def region_width_means(widths: np.ndarray, low: float, high: float) -> Tuple[float, float]:
    """(中子区平均宽度, 低宽度非中子区平均宽度)。

    中子区为开区间 (low, high)，非中子区为 width < low；空区域返回 NaN。
    """
    widths = np.asarray(widths, dtype=np.float64)
    neutron = widths[(widths > low) & (widths < high)]
    below = widths[widths < low]
    mean_neutron = float(neutron.mean()) if neutron.size else float("nan")
    mean_below = float(below.mean()) if below.size else float("nan")
    return mean_neutron, mean_below


# =============================================================================
# 运行级折叠
# =============================================================================


@export
@dataclass
class RunAccumulator:
    """一个运行内的累加状态，由该运行独占。"""

    n_frames: int = 0
    n_degenerate: int = 0
    n_width_rejected: int = 0
    n_risetime_undefined: int = 0
    neutron_count: int = 0
    non_neutron_count: int = 0
    exclusion_reasons: Dict[str, int] = field(default_factory=dict)
    baseline_sum: float = 0.0
    peak_sum: float = 0.0
    deviation_sum: float = 0.0

    def add_frame(self, baseline: float, peak_abs: float, deviation: float) -> None:
        """每一帧（包括之后被排除的帧）的基线诊断量。"""
        self.n_frames += 1
        self.baseline_sum += baseline
        self.peak_sum += peak_abs
        self.deviation_sum += deviation

    def add_degenerate(self, reason: str) -> None:
        self.n_degenerate += 1
        self.exclusion_reasons[reason] = self.exclusion_reasons.get(reason, 0) + 1

    def add_record(self, record: FeatureRecord, label: Optional[PulseLabel]) -> None:
        if math.isnan(record.risetime):
            self.n_risetime_undefined += 1
        if not record.width_valid:
            self.n_width_rejected += 1
            self.exclusion_reasons["width_out_of_range"] = self.exclusion_reasons.get("width_out_of_range", 0) + 1
            return
        if label == PulseLabel.NEUTRON:
            self.neutron_count += 1
        else:
            self.non_neutron_count += 1

    @property
    def total_count(self) -> int:
        return self.neutron_count + self.non_neutron_count

    def _mean(self, total: float) -> float:
        return total / self.n_frames if self.n_frames else float("nan")

    @property
    def mean_baseline(self) -> float:
        return self._mean(self.baseline_sum)

    @property
    def mean_peak(self) -> float:
        return self._mean(self.peak_sum)

    @property
    def mean_deviation(self) -> float:
        return self._mean(self.deviation_sum)

    @classmethod
    def fold(
        cls,
        records: Iterable[FeatureRecord],
        labels: Iterable[Optional[PulseLabel]],
    ) -> "RunAccumulator":
        records, labels = list(records), list(labels)
        if len(records) != len(labels):
            raise ValueError(f"{len(records)} feature records but {len(labels)} labels")
        acc = cls()
        for record, label in zip(records, labels):
            acc.add_record(record, label)
        return acc


@export
@dataclass(frozen=True)
class SourceSetup:
    """中子源布置：活度 (n/s)、距离 (m)、探测器朝向"""

    activity: float
    distance: float
    orientation: str


@export
@dataclass(frozen=True)
class RunSummary:
    """一个运行的汇总结果，在全部帧处理完后创建一次。"""

    run_id: str
    run_time: float
    total_count: int
    neutron_count: int
    non_neutron_count: int
    flux: Measurement
    neutron_rate: Measurement
    neutron_rate_hr: Measurement
    non_neutron_rate: Measurement
    non_neutron_rate_hr: Measurement
    rate_difference: Measurement
    absolute_efficiency: Optional[float] = None
    intrinsic_efficiency: Optional[float] = None
    n_frames: int = 0
    n_degenerate: int = 0
    n_width_rejected: int = 0
    n_risetime_undefined: int = 0
    n_dropped_samples: int = 0
    malformed: Optional[str] = None
    mean_baseline: float = float("nan")
    mean_peak: float = float("nan")
    baseline_deviation: float = float("nan")

    @property
    def n_excluded(self) -> int:
        return self.n_degenerate + self.n_width_rejected

    def to_dict(self) -> Dict[str, object]:
        """扁平化为字典（Measurement 拆为 value/error 两列），便于构建 DataFrame。"""
        flat: Dict[str, object] = {}
        for key, value in asdict(self).items():
            if isinstance(value, dict) and set(value) == {"value", "error"}:
                flat[key] = value["value"]
                flat[f"{key}_error"] = value["error"]
            else:
                flat[key] = value
        return flat


@export
class StatisticsAggregator:
    """Turn a run's accumulated counts into a :class:`RunSummary`.

    Examples:
        >>> aggregator = StatisticsAggregator()
        >>> acc = RunAccumulator.fold(records, labels)
        >>> summary = aggregator.summarize(acc, "run_001", run_time=3600.0)
        >>> summary.flux.value
    """

    def __init__(
        self,
        geometry: DetectorGeometry = EJ426_GEOMETRY,
        area_err: float = ErrorDefaults.AREA_ERR,
        time_err: float = ErrorDefaults.TIME_ERR,
    ):
        self.geometry = geometry
        self.area_err = area_err
        self.time_err = time_err

    def summarize(
        self,
        acc: RunAccumulator,
        run_id: str,
        run_time: float,
        source: Optional[SourceSetup] = None,
        n_dropped_samples: int = 0,
        malformed: Optional[str] = None,
    ) -> RunSummary:
        n_n = acc.neutron_count
        n_r = acc.non_neutron_count

        neutron_rate = count_rate(n_n, run_time, self.time_err)
        non_neutron_rate = count_rate(n_r, run_time, self.time_err)

        absolute = intrinsic = None
        if source is not None:
            absolute, intrinsic = efficiencies(
                n_n, run_time, source.activity, source.distance, source.orientation, self.geometry
            )

        summary = RunSummary(
            run_id=run_id,
            run_time=float(run_time),
            total_count=acc.total_count,
            neutron_count=n_n,
            non_neutron_count=n_r,
            flux=neutron_flux(n_n, run_time, self.geometry.active_area, self.area_err, self.time_err),
            neutron_rate=neutron_rate,
            neutron_rate_hr=count_rate(n_n, run_time, self.time_err, per_hour=True),
            non_neutron_rate=non_neutron_rate,
            non_neutron_rate_hr=count_rate(n_r, run_time, self.time_err, per_hour=True),
            rate_difference=rate_difference(non_neutron_rate, neutron_rate),
            absolute_efficiency=absolute,
            intrinsic_efficiency=intrinsic,
            n_frames=acc.n_frames,
            n_degenerate=acc.n_degenerate,
            n_width_rejected=acc.n_width_rejected,
            n_risetime_undefined=acc.n_risetime_undefined,
            n_dropped_samples=int(n_dropped_samples),
            malformed=malformed,
            mean_baseline=acc.mean_baseline,
            mean_peak=acc.mean_peak,
            baseline_deviation=acc.mean_deviation,
        )
        logger.info(
            "[%s] %d frames: %d neutrons, %d non-neutrons, %d excluded (%s)",
            run_id, acc.n_frames, n_n, n_r, summary.n_excluded, acc.exclusion_reasons or "none",
        )
        return summary
