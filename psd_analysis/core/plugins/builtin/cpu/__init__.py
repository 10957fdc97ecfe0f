"""
CPU 插件模块 - 使用 NumPy 实现

本模块包含一次运行的完整插件链：
- raw_samples.py: 读取采样文件
- frames.py: 成帧
- pulse_features.py: 逐帧特征提取
- frame_stats.py: 逐帧基线诊断
- neutron_classifier.py: 中子 / 非中子分类
- run_summary.py: 运行级统计

**加速器**: CPU (NumPy)
"""

from .frame_stats import FRAME_STATS_DTYPE, FrameStatsPlugin
from .frames import FramesPlugin
from .neutron_classifier import NEUTRON_LABEL_DTYPE, NeutronClassifierPlugin
from .pulse_features import PulseFeaturesPlugin
from .raw_samples import RawSamplesPlugin
from .run_summary import RunSummaryPlugin


def standard_plugins():
    """按依赖顺序返回标准插件链的新实例。"""
    return [
        RawSamplesPlugin(),
        FramesPlugin(),
        PulseFeaturesPlugin(),
        FrameStatsPlugin(),
        NeutronClassifierPlugin(),
        RunSummaryPlugin(),
    ]


__all__ = [
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
