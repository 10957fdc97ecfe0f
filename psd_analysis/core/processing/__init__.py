"""
Processing 子模块 - 原始采样流的读取与成帧
"""

from .framer import (
    FramedRun,
    ParsedSamples,
    WaveformFramer,
    count_frames,
    frame_samples,
    parse_samples,
    read_tokens,
)

__all__ = [
    "FramedRun",
    "ParsedSamples",
    "WaveformFramer",
    "count_frames",
    "frame_samples",
    "parse_samples",
    "read_tokens",
]
