# -*- coding: utf-8 -*-
"""
Run Summary Plugin - 将一个运行的特征与标签折叠为 RunSummary

按帧序号从左到右折叠：
1. frame_stats 的每一帧贡献基线诊断量，退化帧计入排除数
2. pulse_features 与 neutron_labels 逐行配对，宽度无效的帧计入排除数，
   其余按标签计入中子 / 非中子计数
3. StatisticsAggregator 计算通量、计数率和（有源时）效率
"""

import logging
from typing import Any

from psd_analysis.core.classification import PulseLabel
from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.features.record import FeatureRecord
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Option, Plugin
from psd_analysis.core.statistics import RunAccumulator, RunSummary, SourceSetup, StatisticsAggregator

export, __all__ = exporter()

logger = logging.getLogger(__name__)


@export
class RunSummaryPlugin(Plugin):
    """Fold one run's labelled features into a :class:`RunSummary`."""

    provides = "run_summary"
    depends_on = ["frames", "frame_stats", "pulse_features", "neutron_labels"]
    description = "Counts, rates, flux, efficiencies and diagnostics for one run."
    version = "1.0.0"
    options = {
        "run_time": Option(default=None, type=float, help="运行时长 (s)"),
        "source_activity": Option(default=None, type=float, help="中子源活度 (n/s)，无源时为 None"),
        "source_distance": Option(default=0.0, type=float, help="源到探测器的距离 (m)"),
        "orientation": Option(
            default="horizontal", type=str, choices=["horizontal", "vertical"], help="探测器朝向"
        ),
    }

    def __init__(self, aggregator: StatisticsAggregator = None):
        self.aggregator = aggregator or StatisticsAggregator()

    def compute(self, context: Any, run_id: str, **kwargs) -> RunSummary:
        framed = context.get_data(run_id, "frames")
        stats = context.get_data(run_id, "frame_stats")
        features = context.get_data(run_id, "pulse_features")
        labels = context.get_data(run_id, "neutron_labels")

        run_time = context.get_config(self, "run_time")
        if run_time is None:
            raise ConfigurationError("run_summary.run_time is not set", run_id=run_id)

        acc = RunAccumulator()
        for row in stats:
            acc.add_frame(float(row["baseline"]), float(row["peak_abs"]), float(row["baseline_deviation"]))
            if row["degenerate"]:
                acc.add_degenerate("no_crossing")

        for row, label in zip(features, labels["label"]):
            acc.add_record(FeatureRecord.from_row(row), PulseLabel(int(label)))

        source = None
        activity = context.get_config(self, "source_activity")
        distance = context.get_config(self, "source_distance")
        if activity is not None and distance > 0:
            source = SourceSetup(activity, distance, context.get_config(self, "orientation"))

        return self.aggregator.summarize(
            acc,
            run_id,
            run_time,
            source=source,
            n_dropped_samples=framed.n_dropped_samples,
            malformed=str(framed.error) if framed.error is not None else None,
        )
