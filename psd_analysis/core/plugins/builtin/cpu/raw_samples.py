# -*- coding: utf-8 -*-
"""
Raw Samples Plugin - 读取运行的原始采样文件

**功能**: 读取空白/逗号分隔的数值记号并解析为幅值序列（可选时间戳列）
"""

import logging
from typing import Any

from psd_analysis.core.exceptions import ConfigurationError
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Option, Plugin
from psd_analysis.core.processing.framer import ParsedSamples, parse_samples, read_tokens

export, __all__ = exporter()

logger = logging.getLogger(__name__)


@export
class RawSamplesPlugin(Plugin):
    """Read one run's sample file into a :class:`ParsedSamples`."""

    provides = "raw_samples"
    depends_on = []
    description = "Read whitespace or comma separated samples (timestamp + amplitude or amplitude only)."
    version = "1.0.0"
    options = {
        "input_path": Option(default=None, type=str, help="采样文件路径"),
        "n_columns": Option(default=2, type=int, choices=[1, 2], help="每个采样的列数：1 = 幅值，2 = 时间戳 + 幅值"),
    }

    def compute(self, context: Any, run_id: str, **kwargs) -> ParsedSamples:
        input_path = context.get_config(self, "input_path")
        if not input_path:
            raise ConfigurationError("raw_samples.input_path is not set", run_id=run_id)

        tokens = read_tokens(input_path)
        parsed = parse_samples(tokens, context.get_config(self, "n_columns"))
        if parsed.error is not None:
            parsed.error.run_id = run_id
        logger.debug("[%s] read %d samples from %s", run_id, len(parsed.amplitudes), input_path)
        return parsed
