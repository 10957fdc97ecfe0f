"""
配置系统模块

核心组件:
- RunConfig: 单次运行的全部参数（构造时校验）
- SITE_PRESETS: 各测量点的默认参数
- read_run_list / load_run_list: 读取纯文本运行表

Examples:
    >>> from psd_analysis.core.config import RunConfig, load_run_list
    >>> cfg = RunConfig.from_site("run_001", 3600, "SeptEdinburgh", "data/", 0.5, "vertical")
    >>> cfg.input_path
    PosixPath('data/run_001.csv')
    >>> runs = load_run_list("File Details.txt")
"""

from .presets import SITE_PRESETS, SitePreset, get_site_preset
from .run_config import ORIENTATIONS, RUN_LIST_COLUMNS, RunConfig, load_run_list, read_run_list

__all__ = [
    "SITE_PRESETS",
    "SitePreset",
    "get_site_preset",
    "ORIENTATIONS",
    "RUN_LIST_COLUMNS",
    "RunConfig",
    "load_run_list",
    "read_run_list",
]
