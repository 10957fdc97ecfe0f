# -*- coding: utf-8 -*-
"""
Plugins 子模块 - 插件系统统一入口

使用方法：
    # 导入插件基类
    from psd_analysis.core.plugins import Plugin, Option

    # 导入内置插件
    from psd_analysis.core.plugins import FramesPlugin, standard_plugins
"""

from .builtin.cpu import (
    FRAME_STATS_DTYPE,
    NEUTRON_LABEL_DTYPE,
    FrameStatsPlugin,
    FramesPlugin,
    NeutronClassifierPlugin,
    PulseFeaturesPlugin,
    RawSamplesPlugin,
    RunSummaryPlugin,
    standard_plugins,
)
from .core import Option, Plugin

__all__ = [
    "Option",
    "Plugin",
    "RawSamplesPlugin",
    "FramesPlugin",
    "PulseFeaturesPlugin",
    "FrameStatsPlugin",
    "FRAME_STATS_DTYPE",
    "NeutronClassifierPlugin",
    "NEUTRON_LABEL_DTYPE",
    "RunSummaryPlugin",
    "standard_plugins",
]
