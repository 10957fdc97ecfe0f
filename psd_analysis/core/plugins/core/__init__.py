"""
Plugins Core 子模块 - 插件基础设施
"""

from .base import Option, Plugin

__all__ = ["Option", "Plugin"]
