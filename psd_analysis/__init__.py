"""
PSD Analysis - 闪烁体探测器波形的脉冲形状甄别工具包

将数字化采样流切分为定长波形帧，逐帧提取基线、峰值、阈值穿越宽度、
积分和 PGA 特征，按宽度窗口区分中子 / 非中子脉冲，
并计算计数率、通量、探测效率和品质因数。
"""

__version__ = "0.1.0"

from .core.config import RunConfig, load_run_list
from .core.context import Context
from .core.pipeline import RunPipeline, RunResult
from .core.plugins import Option, Plugin

__all__ = [
    "Context",
    "Option",
    "Plugin",
    "RunConfig",
    "RunPipeline",
    "RunResult",
    "load_run_list",
]
