"""
Foundation 子模块 - 导出管理、常量等底层工具。
"""

from .constants import EJ426_GEOMETRY, DetectorGeometry, ErrorDefaults, FeatureDefaults
from .utils import ensure_parent_dir, exporter, format_row

__all__ = [
    "DetectorGeometry",
    "ErrorDefaults",
    "FeatureDefaults",
    "EJ426_GEOMETRY",
    "ensure_parent_dir",
    "exporter",
    "format_row",
]
