# -*- coding: utf-8 -*-
"""
RunPipeline - 一次运行的端到端编排

为一个 RunConfig 创建 Context、注册标准插件、请求 run_summary，
并把逐帧结果写入该运行的文本输出。运行级汇总行不在这里写入，
由调用方（批处理驱动）在全部运行结束后按输入顺序追加。
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import numpy as np

from psd_analysis.core.config.run_config import RunConfig
from psd_analysis.core.context import Context
from psd_analysis.core.data.export import FrameSinkWriter
from psd_analysis.core.foundation.constants import FeatureDefaults
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.builtin.cpu import standard_plugins
from psd_analysis.core.processing.framer import FramedRun
from psd_analysis.core.statistics import RunSummary

export, __all__ = exporter()

logger = logging.getLogger(__name__)


@export
@dataclass
class RunResult:
    """一次运行的全部产物

    Attributes:
        config: 运行参数
        summary: 运行级统计
        features: FEATURE_RECORD_DTYPE 结构化数组（非退化帧）
        labels: NEUTRON_LABEL_DTYPE 结构化数组
        outputs: 逐帧输出名称到文件路径的映射（未写文件时为空）
    """

    config: RunConfig
    summary: RunSummary
    features: np.ndarray
    labels: np.ndarray
    outputs: Dict[str, Path] = field(default_factory=dict)

    @property
    def run_id(self) -> str:
        return self.config.run_id


@export
class RunPipeline:
    """Analyse one run: frames, features, labels, summary and per-frame outputs.

    Examples:
        >>> cfg = RunConfig.from_site("run_001", 3600, "SeptEdinburgh", "data/")
        >>> result = RunPipeline(cfg).run()
        >>> result.summary.neutron_count
    """

    def __init__(
        self,
        config: RunConfig,
        plugins_factory: Callable[[], Iterable[Any]] = standard_plugins,
        write_outputs: bool = True,
        first_frames: int = FeatureDefaults.FIRST_FRAMES,
        extra_config: Optional[Dict[str, Any]] = None,
    ):
        self.config = config
        self.plugins_factory = plugins_factory
        self.write_outputs = write_outputs
        self.first_frames = first_frames
        self.extra_config = extra_config or {}

    def build_context(self) -> Context:
        context = Context(config=self.config.to_context_config())
        if self.extra_config:
            context.set_config(self.extra_config)
        context.register(*self.plugins_factory())
        return context

    def run(self) -> RunResult:
        run_id = self.config.run_id
        logger.info("[%s] starting run (site=%s, input=%s)", run_id, self.config.site or "-", self.config.input_path)

        context = self.build_context()
        summary: RunSummary = context.get_data(run_id, "run_summary")
        features = context.get_data(run_id, "pulse_features")
        labels = context.get_data(run_id, "neutron_labels")

        outputs: Dict[str, Path] = {}
        if self.write_outputs:
            framed: FramedRun = context.get_data(run_id, "frames")
            writer = FrameSinkWriter(self.config.destination, run_id, first_frames=self.first_frames)
            outputs = writer.write(features, framed.frames, self.config.run_time, self.config.w_size)

        return RunResult(config=self.config, summary=summary, features=features, labels=labels, outputs=outputs)
