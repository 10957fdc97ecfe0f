"""
Core module - 核心数据处理功能
"""

from .classification import LABEL_NEUTRON, LABEL_NON_NEUTRON, PulseLabel, classify, classify_array
from .context import Context
from .pipeline import RunPipeline, RunResult
from .statistics import (
    Measurement,
    RunAccumulator,
    RunSummary,
    SourceSetup,
    StatisticsAggregator,
    figure_of_merit,
)

__all__ = [
    "LABEL_NEUTRON",
    "LABEL_NON_NEUTRON",
    "PulseLabel",
    "classify",
    "classify_array",
    "Context",
    "RunPipeline",
    "RunResult",
    "Measurement",
    "RunAccumulator",
    "RunSummary",
    "SourceSetup",
    "StatisticsAggregator",
    "figure_of_merit",
]
