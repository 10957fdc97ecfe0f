"""
Exceptions 模块 - 脉冲形状分析的异常分类。

按严重程度区分：
- ConfigurationError: 配置错误，终止当前运行
- ResourceNotFoundError: 输入文件缺失，跳过当前运行
- MalformedInputError: 数据流中出现非数值记号，停止读取但保留已成帧的数据
- DegenerateFrameError: 单个波形无法提取特征，仅排除该波形
"""

from enum import Enum
from typing import Optional


class ErrorSeverity(Enum):
    """错误严重程度枚举"""
    FATAL = "fatal"  # 致命错误，当前运行必须停止
    RECOVERABLE = "recoverable"  # 可恢复错误，保留已处理的数据
    WARNING = "warning"  # 警告，仅排除并计数


class PSDError(Exception):
    """Base class for all pulse-shape-analysis errors.

    Carries a severity and, once known, the run the error belongs to.
    """

    severity: ErrorSeverity = ErrorSeverity.FATAL

    def __init__(self, message: str, run_id: Optional[str] = None):
        self.run_id = run_id
        super().__init__(message)

    def __str__(self):
        message = super().__str__()
        if self.run_id:
            return f"[{self.run_id}] {message}"
        return message


class ConfigurationError(PSDError):
    """Invalid run parameter: orientation, window bounds, sample indices, thresholds."""

    severity = ErrorSeverity.FATAL


class ResourceNotFoundError(PSDError):
    """Input file for a run does not exist."""

    severity = ErrorSeverity.FATAL


class MalformedInputError(PSDError):
    """A non-numeric token was found where a sample was expected.

    Attributes:
        token_index: position of the offending token in the stream
        token: the offending token text
    """

    severity = ErrorSeverity.RECOVERABLE

    def __init__(
        self,
        message: str,
        token_index: Optional[int] = None,
        token: Optional[str] = None,
        run_id: Optional[str] = None,
    ):
        self.token_index = token_index
        self.token = token
        super().__init__(message, run_id=run_id)


class DegenerateFrameError(PSDError):
    """A frame has no usable feature (empty, flat, no threshold crossing)."""

    severity = ErrorSeverity.WARNING

    def __init__(self, message: str, reason: str = "degenerate", run_id: Optional[str] = None):
        self.reason = reason
        super().__init__(message, run_id=run_id)


class PluginError(PSDError):
    """插件执行失败，包装原始异常并记录插件名称。"""

    def __init__(self, message: str, plugin_name: str = "", run_id: Optional[str] = None):
        self.plugin_name = plugin_name
        super().__init__(message, run_id=run_id)


__all__ = [
    "ErrorSeverity",
    "PSDError",
    "ConfigurationError",
    "ResourceNotFoundError",
    "MalformedInputError",
    "DegenerateFrameError",
    "PluginError",
]
