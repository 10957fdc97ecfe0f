"""
Data 子模块 - 文本输出与批量处理
"""

from .batch_processor import STATUS_FAILED, STATUS_SKIPPED, STATUS_SUCCESS, BatchProcessor, BatchResult
from .export import DERIVED_DIR, FrameSinkWriter, SummarySinkWriter, summary_frame

__all__ = [
    "BatchProcessor",
    "BatchResult",
    "STATUS_SUCCESS",
    "STATUS_SKIPPED",
    "STATUS_FAILED",
    "DERIVED_DIR",
    "FrameSinkWriter",
    "SummarySinkWriter",
    "summary_frame",
]
