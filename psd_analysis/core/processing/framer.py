# -*- coding: utf-8 -*-
"""
Framer 模块 - 将原始采样流切分为定长波形帧。

输入为空白（或逗号）分隔的数值记号，单列（仅幅值）或双列（时间戳 + 幅值）。
帧为连续、不重叠的 w_size 个幅值；流末尾不足 w_size 的部分被丢弃。
遇到非数值记号时停止读取：正在构建的帧被丢弃，此前完成的帧保留。
"""

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from psd_analysis.core.exceptions import (
    ConfigurationError,
    MalformedInputError,
    ResourceNotFoundError,
)
from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[\s,]+")


@export
@dataclass(frozen=True)
class ParsedSamples:
    """采样流解析结果

    Attributes:
        amplitudes: 按到达顺序排列的幅值
        timestamps: 双列输入时的时间戳（仅用于检测格式错误），单列时为 None
        error: 解析提前终止时的 MalformedInputError，否则为 None
    """

    amplitudes: np.ndarray
    timestamps: Optional[np.ndarray] = None
    error: Optional[MalformedInputError] = None


@export
@dataclass(frozen=True)
class FramedRun:
    """一次运行的成帧结果

    Attributes:
        frames: (n_frames, w_size) 的二维数组
        n_dropped_samples: 末尾被丢弃的采样数（包括格式错误前未完成的帧）
        error: 读取提前终止的原因，正常结束时为 None
    """

    frames: np.ndarray
    n_dropped_samples: int = 0
    error: Optional[MalformedInputError] = None

    @property
    def n_frames(self) -> int:
        return int(self.frames.shape[0])


@export
def read_tokens(path: Union[str, Path]) -> List[str]:
    """读取文件中的全部记号（空白或逗号分隔）。

    Raises:
        ResourceNotFoundError: 文件不存在
    """
    path = Path(path)
    if not path.is_file():
        raise ResourceNotFoundError(f"Input file not found: {path}")
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        text = f.read()
    return [tok for tok in _TOKEN_SPLIT.split(text) if tok]


@export
def parse_samples(tokens: Sequence[str], n_columns: int = 2) -> ParsedSamples:
    """将记号序列解析为幅值（和可选的时间戳）。

    在第一个非数值记号处停止，未完成的一行（时间戳已读、幅值未读）被丢弃。

    Args:
        tokens: 记号序列
        n_columns: 1 = 仅幅值，2 = 时间戳 + 幅值

    Returns:
        ParsedSamples，若遇到非数值记号则 error 字段非空
    """
    if n_columns not in (1, 2):
        raise ConfigurationError(f"n_columns must be 1 or 2, got {n_columns}")

    if len(tokens) == 0:
        empty = np.zeros(0, dtype=np.float64)
        return ParsedSamples(amplitudes=empty, timestamps=empty.copy() if n_columns == 2 else None)

    values = pd.to_numeric(pd.Series(list(tokens), dtype=object), errors="coerce").to_numpy(dtype=np.float64)
    bad = np.flatnonzero(np.isnan(values))
    # 字面量 "nan" 也能被解析，仅把无法解析的记号视为格式错误
    bad = [int(i) for i in bad if not _is_nan_literal(tokens[int(i)])]

    error = None
    n_good = len(values)
    if bad:
        n_good = bad[0]
        error = MalformedInputError(
            f"Non-numeric token {tokens[n_good]!r} at position {n_good}",
            token_index=n_good,
            token=str(tokens[n_good]),
        )

    n_rows = n_good // n_columns
    table = values[: n_rows * n_columns].reshape(n_rows, n_columns)
    if n_columns == 2:
        return ParsedSamples(amplitudes=table[:, 1].copy(), timestamps=table[:, 0].copy(), error=error)
    return ParsedSamples(amplitudes=table[:, 0].copy(), error=error)


def _is_nan_literal(token: str) -> bool:
    return token.strip().lower() in ("nan", "+nan", "-nan")


@export
def frame_samples(amplitudes: np.ndarray, w_size: int) -> np.ndarray:
    """将一维幅值切分为 (n_frames, w_size) 的帧数组，末尾不足一帧的部分被丢弃。"""
    if w_size <= 0:
        raise ConfigurationError(f"w_size must be positive, got {w_size}")
    amplitudes = np.asarray(amplitudes, dtype=np.float64)
    n_frames = len(amplitudes) // w_size
    return amplitudes[: n_frames * w_size].reshape(n_frames, w_size)


@export
class WaveformFramer:
    """Group a sample stream into fixed-size pulse frames.

    Examples:
        >>> framer = WaveformFramer(w_size=1000, n_columns=2)
        >>> run = framer.frame(read_tokens("run_001.csv"))
        >>> run.frames.shape
        (4213, 1000)
    """

    def __init__(self, w_size: int, n_columns: int = 2):
        if w_size <= 0:
            raise ConfigurationError(f"w_size must be positive, got {w_size}")
        if n_columns not in (1, 2):
            raise ConfigurationError(f"n_columns must be 1 or 2, got {n_columns}")
        self.w_size = int(w_size)
        self.n_columns = int(n_columns)

    def frame(self, tokens: Sequence[str]) -> FramedRun:
        """成帧但不抛出 MalformedInputError，错误记录在结果中。"""
        return self.frame_parsed(parse_samples(tokens, self.n_columns))

    def frame_parsed(self, parsed: ParsedSamples) -> FramedRun:
        """对已解析的采样成帧（n_columns 不再参与）。"""
        frames = frame_samples(parsed.amplitudes, self.w_size)
        n_dropped = len(parsed.amplitudes) - frames.size

        if parsed.error is not None:
            logger.warning(
                "%s; keeping %d complete frames, discarding %d samples of the partial frame",
                parsed.error, frames.shape[0], n_dropped,
            )
        elif n_dropped:
            logger.warning(
                "Dropping %d trailing samples shorter than one frame (w_size=%d)", n_dropped, self.w_size
            )
        return FramedRun(frames=frames, n_dropped_samples=int(n_dropped), error=parsed.error)

    def iter_frames(self, tokens: Sequence[str]) -> Iterator[np.ndarray]:
        """逐帧产出；若流中存在非数值记号，产出完好的帧后抛出 MalformedInputError。"""
        run = self.frame(tokens)
        for frame in run.frames:
            yield frame.copy()
        if run.error is not None:
            raise run.error


@export
def count_frames(path: Union[str, Path], w_size: int, n_columns: int = 2) -> int:
    """统计文件中完整帧的数量。"""
    run = WaveformFramer(w_size, n_columns).frame(read_tokens(path))
    logger.info("The number of frames in %s is %d", path, run.n_frames)
    return run.n_frames
