# -*- coding: utf-8 -*-
"""
RunConfig - 单次运行的全部参数

RunConfig 在构造时完成校验，校验失败抛出 ConfigurationError 并标明运行名。
load_run_list 读取纯文本运行表（"File Details"），每行六个字段：

    filename runTime site destination sourceDistance orientation

以 # 开头的行视为注释。
"""

from dataclasses import asdict, dataclass, fields, replace
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

from psd_analysis.core.exceptions import ConfigurationError, ResourceNotFoundError
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import exporter

from .presets import get_site_preset

export, __all__ = exporter()

logger = logging.getLogger(__name__)

ORIENTATIONS = export(("horizontal", "vertical"), name="ORIENTATIONS")

RUN_LIST_COLUMNS = export(
    ["file_name", "run_time", "site", "destination", "source_distance", "orientation"],
    name="RUN_LIST_COLUMNS",
)


@export
@dataclass(frozen=True)
class RunConfig:
    """Parameters of one analysis run.

    Window indices are in samples, ``run_time`` in seconds and
    ``source_distance`` in metres (0 means no source).
    """

    file_name: str
    run_time: float
    w_size: int
    base_l_end: int
    peak_x: int
    tail_end: int
    w_start: int
    w_end: int
    pga_sample: int
    width_low_cut: float
    width_high_cut: float
    site: str = ""
    destination: str = "."
    source_distance: float = 0.0
    orientation: str = "horizontal"
    source_activity: Optional[float] = None
    width_threshold: float = FeatureDefaults.WIDTH_THRESHOLD
    low_thresh: float = FeatureDefaults.RISETIME_LOW
    high_thresh: float = FeatureDefaults.RISETIME_HIGH
    file_suffix: str = ""
    n_columns: int = 2

    def __post_init__(self):
        self._check(self.run_time > 0, f"run_time must be positive, got {self.run_time}")
        self._check(self.source_distance >= 0, f"source_distance must not be negative, got {self.source_distance}")
        self._check(self.w_size > 0, f"w_size must be positive, got {self.w_size}")
        self._check(
            0 < self.base_l_end < self.w_size,
            f"base_l_end must be in (0, w_size={self.w_size}), got {self.base_l_end}",
        )
        self._check(
            0 <= self.w_start < self.w_end <= self.w_size,
            f"integration window must satisfy 0 <= w_start < w_end <= {self.w_size}, "
            f"got [{self.w_start}, {self.w_end})",
        )
        self._check(0 < self.peak_x < self.w_size, f"peak_x must be in (0, {self.w_size}), got {self.peak_x}")
        self._check(
            0 < self.tail_end <= self.w_size, f"tail_end must be in (0, {self.w_size}], got {self.tail_end}"
        )
        self._check(
            0 <= self.pga_sample < self.w_size, f"pga_sample must be in [0, {self.w_size}), got {self.pga_sample}"
        )
        for name in ("width_threshold", "low_thresh", "high_thresh"):
            value = getattr(self, name)
            self._check(0 < value < 1, f"{name} must be in (0, 1), got {value}")
        self._check(
            self.width_low_cut <= self.width_high_cut,
            f"width_low_cut ({self.width_low_cut}) must not exceed width_high_cut ({self.width_high_cut})",
        )
        self._check(self.n_columns in (1, 2), f"n_columns must be 1 or 2, got {self.n_columns}")
        if self.source_activity is not None:
            self._check(self.source_activity > 0, f"source_activity must be positive, got {self.source_activity}")
        if self.has_source:
            self._check(
                self.orientation in ORIENTATIONS,
                f"orientation must be one of {ORIENTATIONS}, got {self.orientation!r}",
            )

    def _check(self, condition: bool, message: str) -> None:
        if not condition:
            raise ConfigurationError(message, run_id=self.file_name)

    @classmethod
    def from_site(
        cls,
        file_name: str,
        run_time: float,
        site: str,
        destination: str = ".",
        source_distance: float = 0.0,
        orientation: str = "horizontal",
        **overrides: Any,
    ) -> "RunConfig":
        """根据测量点预设构建 RunConfig，overrides 可覆盖任意字段。

        Raises:
            ConfigurationError: 未知测量点或参数校验失败
        """
        try:
            preset = get_site_preset(site)
        except ConfigurationError as e:
            e.run_id = file_name
            raise
        params: Dict[str, Any] = asdict(preset)
        params.update(
            file_name=file_name,
            run_time=float(run_time),
            site=site,
            destination=destination,
            source_distance=float(source_distance),
            orientation=orientation,
        )
        unknown = set(overrides) - {f.name for f in fields(cls)}
        if unknown:
            raise ConfigurationError(f"Unknown RunConfig fields: {sorted(unknown)}", run_id=file_name)
        params.update(overrides)
        return cls(**params)

    def with_overrides(self, **overrides: Any) -> "RunConfig":
        return replace(self, **overrides)

    @property
    def run_id(self) -> str:
        return self.file_name

    @property
    def input_path(self) -> Path:
        return Path(self.destination) / f"{self.file_name}{self.file_suffix}"

    @property
    def has_source(self) -> bool:
        """中子源存在：测量点有源活度且源距离大于 0。"""
        return self.source_activity is not None and self.source_distance > 0

    def to_context_config(self) -> Dict[str, Dict[str, Any]]:
        """转换为 Context.set_config 接受的按插件划分的配置字典。"""
        return {
            "raw_samples": {
                "input_path": str(self.input_path),
                "n_columns": self.n_columns,
            },
            "frames": {"w_size": self.w_size},
            "pulse_features": {
                "base_l_end": self.base_l_end,
                "peak_x": self.peak_x,
                "tail_end": self.tail_end,
                "w_start": self.w_start,
                "w_end": self.w_end,
                "pga_sample": self.pga_sample,
                "width_threshold": self.width_threshold,
                "low_thresh": self.low_thresh,
                "high_thresh": self.high_thresh,
            },
            "neutron_labels": {
                "low_cut": float(self.width_low_cut),
                "high_cut": float(self.width_high_cut),
            },
            "run_summary": {
                "run_time": float(self.run_time),
                "source_activity": float(self.source_activity) if self.has_source else None,
                "source_distance": float(self.source_distance),
                "orientation": self.orientation,
            },
        }


@export
def read_run_list(
    path: Union[str, Path], **overrides: Any
) -> Tuple[List[RunConfig], List[ConfigurationError]]:
    """读取运行表，逐行构建 RunConfig。

    单行参数无效时记录该行的 ConfigurationError 并继续读取后续行。

    Args:
        path: 运行表路径
        overrides: 应用于每个运行的字段覆盖（如 n_columns=1）

    Returns:
        (有效的 RunConfig 列表, 无效行的错误列表)，均保持表中顺序

    Raises:
        ResourceNotFoundError: 运行表不存在
        ConfigurationError: 表格本身无法解析或列数不为六
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceNotFoundError(f"Run list not found: {path}")

    try:
        table = pd.read_csv(
            path,
            sep=r"\s+",
            header=None,
            comment="#",
            dtype=str,
            engine="python",
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        table = pd.DataFrame()
    except pd.errors.ParserError as e:
        raise ConfigurationError(f"Run list {path} could not be parsed: {e}") from e
    if table.empty:
        logger.warning("Run list %s is empty", path)
        return [], []
    if table.shape[1] != len(RUN_LIST_COLUMNS) or table.isna().to_numpy().any():
        raise ConfigurationError(
            f"Run list {path} must have {len(RUN_LIST_COLUMNS)} fields per line: {' '.join(RUN_LIST_COLUMNS)}"
        )
    table.columns = RUN_LIST_COLUMNS

    configs: List[RunConfig] = []
    errors: List[ConfigurationError] = []
    for line_no, row in enumerate(table.itertuples(index=False), start=1):
        try:
            configs.append(_config_from_row(row, line_no, path, overrides))
        except ConfigurationError as e:
            logger.error("Skipping run list record %d: %s", line_no, e)
            errors.append(e)
    logger.info("Loaded %d runs from %s (%d invalid)", len(configs), path, len(errors))
    return configs, errors


def _config_from_row(row: Any, line_no: int, path: Path, overrides: Dict[str, Any]) -> RunConfig:
    numbers = pd.to_numeric(pd.Series([row.run_time, row.source_distance]), errors="coerce")
    if numbers.isna().any():
        raise ConfigurationError(
            f"Run list {path} record {line_no}: run time and source distance must be numeric",
            run_id=row.file_name,
        )
    return RunConfig.from_site(
        file_name=row.file_name,
        run_time=float(numbers[0]),
        site=row.site,
        destination=row.destination,
        source_distance=float(numbers[1]),
        orientation=row.orientation,
        **overrides,
    )


@export
def load_run_list(path: Union[str, Path], **overrides: Any) -> List[RunConfig]:
    """读取运行表，任意一行无效时抛出该行的 ConfigurationError。"""
    configs, errors = read_run_list(path, **overrides)
    if errors:
        raise errors[0]
    return configs
