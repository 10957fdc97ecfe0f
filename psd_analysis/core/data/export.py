# -*- coding: utf-8 -*-
"""
文本输出模块

提供一次运行的两类纯文本输出：
- 逐帧输出：每个运行独占的文件，运行开始时清空，每个宽度有效的帧写一行
- 运行级输出：多个运行共享的 "Derived Quantities" 文件，每个运行追加一行
  ``<runLabel> <values...>``；由批处理驱动按输入顺序串行写入

summary_frame 将多个 RunSummary 汇总为 pandas DataFrame。
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import ensure_parent_dir, exporter, format_row
from psd_analysis.core.statistics import RunSummary, width_histogram

export, __all__ = exporter()

logger = logging.getLogger(__name__)

DERIVED_DIR = export("Derived Quantities", name="DERIVED_DIR")


def _frame_output_paths(destination: Path, run_id: str) -> Dict[str, Path]:
    return {
        "widths": destination / "Widths" / f"{run_id}_Widths.txt",
        "tail_vs_peak": destination / "Tail vs Peak Integral" / f"{run_id}_Tail_vs_Peak_Integral.txt",
        "risetime": destination / "Risetime vs Amplitude" / f"{run_id}_Risetime_vs_Amplitude.txt",
        "total_vs_width": destination / "Total Integral vs Width" / f"{run_id}_Total_Integral_vs_Widths.txt",
        "pga": destination / "PGA" / f"{run_id}_PGA.txt",
        "time_normalised": destination / "Time Normalised" / f"time_normalised_{run_id}_Widths.txt",
        "first_frames": destination / "First Ten" / f"{run_id}_First Ten.txt",
    }


def _write_rows(path: Path, rows: Iterable[Sequence]) -> int:
    """清空并写入 path，返回写入的行数。"""
    ensure_parent_dir(path)
    n_rows = 0
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(format_row(row) + "\n")
            n_rows += 1
    return n_rows


@export
class FrameSinkWriter:
    """Per-frame text outputs of one run.

    Every file belongs to a single run and is truncated when the run starts,
    so concurrent runs never touch the same per-frame file.
    """

    def __init__(
        self,
        destination: Union[str, Path],
        run_id: str,
        bin_size: float = FeatureDefaults.HISTOGRAM_BIN_SIZE,
        first_frames: int = FeatureDefaults.FIRST_FRAMES,
    ):
        self.destination = Path(destination)
        self.run_id = run_id
        self.bin_size = bin_size
        self.first_frames = first_frames
        self.paths = _frame_output_paths(self.destination, run_id)

    def write(
        self,
        features: np.ndarray,
        frames: np.ndarray,
        run_time: float,
        w_size: int,
    ) -> Dict[str, Path]:
        """写出全部逐帧文件。

        Args:
            features: FEATURE_RECORD_DTYPE 结构化数组
            frames: (n_frames, w_size) 原始帧，用于前 N 个波形的预览
            run_time: 运行时长 (s)，用于时间归一化宽度谱
            w_size: 每帧采样点数

        Returns:
            输出名称到文件路径的映射
        """
        valid = features[features["width_valid"]]

        _write_rows(self.paths["widths"], zip(valid["width"]))
        _write_rows(self.paths["tail_vs_peak"], zip(valid["peak_integral"], valid["tail_integral"]))
        _write_rows(self.paths["risetime"], zip(valid["peak_signed"], valid["risetime"]))
        _write_rows(self.paths["total_vs_width"], zip(valid["width"], valid["total_integral"]))
        _write_rows(self.paths["pga"], zip(valid["pga_value"]))

        spectrum = width_histogram(valid["width"], run_time, self.bin_size, w_size)
        _write_rows(self.paths["time_normalised"], spectrum)

        preview = frames[: self.first_frames]
        _write_rows(
            self.paths["first_frames"],
            ((i, amplitude) for frame in preview for i, amplitude in enumerate(frame)),
        )

        logger.debug(
            "[%s] wrote %d valid frames of %d records to %s", self.run_id, len(valid), len(features), self.destination
        )
        return dict(self.paths)


@export
class SummarySinkWriter:
    """Append-only run-level outputs under ``<destination>/Derived Quantities``.

    Not safe for concurrent writers; the batch driver calls it once per run,
    in input order, after the runs have finished.
    """

    FILES = {
        "counts": "timesandnumneutrons.txt",
        "rate": "FWHM_derived_neutron_rate.txt",
        "efficiency": "FWHM_derived_neutron_absolute_and_intrinsic_efficiency.txt",
        "flux": "Flux.txt",
        "baseline": "AvgBasel.txt",
        "peak": "AvgPeak.txt",
        "deviation": "Baseline Deviation.txt",
    }

    def __init__(self, destination: Union[str, Path]):
        self.directory = Path(destination) / DERIVED_DIR

    def path(self, key: str) -> Path:
        return self.directory / self.FILES[key]

    def _append(self, key: str, label: str, values: Sequence) -> None:
        path = ensure_parent_dir(self.path(key))
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{label} {format_row(values)}\n")

    def append(self, summary: RunSummary, label: Optional[str] = None) -> List[Path]:
        """为一个运行追加一行到每个运行级文件，返回写入的文件。"""
        label = label or summary.run_id
        written = ["counts", "rate", "flux", "baseline", "peak", "deviation"]

        self._append("counts", label, [summary.run_time, summary.neutron_count])
        self._append("rate", label, [summary.neutron_rate.value])
        self._append("flux", label, [summary.flux.value, summary.flux.error])
        self._append("baseline", label, [summary.mean_baseline])
        self._append("peak", label, [summary.mean_peak])
        self._append("deviation", label, [summary.baseline_deviation])
        if summary.absolute_efficiency is not None:
            self._append("efficiency", label, [summary.absolute_efficiency, summary.intrinsic_efficiency])
            written.append("efficiency")
        return [self.path(key) for key in written]


@export
def summary_frame(summaries: Iterable[RunSummary]) -> pd.DataFrame:
    """将多个 RunSummary 汇总为一张表（每个运行一行，以 run_id 为索引）。"""
    rows = [summary.to_dict() for summary in summaries]
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame(rows).set_index("run_id")
