"""
Plugins Builtin 子模块 - 内置标准插件

**CPU 插件** (`builtin/cpu/`): 采样读取、成帧、特征提取、分类与运行统计
"""

from .cpu import *  # noqa: F401,F403
from .cpu import __all__
