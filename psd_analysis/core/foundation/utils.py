# -*- coding: utf-8 -*-
"""
Utils 模块 - 导出管理与小型工具函数。

1. exporter: 统一管理各模块的 __all__，所有公共接口通过 @export 标记。
2. ensure_parent_dir / format_row: 文本输出所需的路径与格式化辅助函数。
"""

from pathlib import Path
from typing import Any, Iterable, List, Tuple, Union

_EXPORT_SENTINEL = object()


def exporter() -> Tuple[Any, List[str]]:
    """
    创建模块 API 导出管理器，返回 (export, __all__)。

    用法:
        export, __all__ = exporter()

        @export
        def estimate_baseline(...):
            ...

        AREA_ERR = export(0.5, name="AREA_ERR")
    """
    __all__: List[str] = []

    def export(obj: Any = _EXPORT_SENTINEL, name: str = None) -> Any:
        if obj is _EXPORT_SENTINEL:
            return lambda o: export(o, name=name)

        actual_name = name or getattr(obj, "__name__", None)
        if actual_name is None:
            raise ValueError(
                f"Cannot export {obj!r}: it has no __name__ and no name was provided. "
                "For constants, use: CONST = export(value, name='CONST')"
            )
        if actual_name not in __all__:
            __all__.append(actual_name)
        return obj

    return export, __all__


export, __all__ = exporter()
export(exporter)


@export
def ensure_parent_dir(path: Union[str, Path]) -> Path:
    """确保输出文件的父目录存在，返回 Path 对象。"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@export
def format_row(values: Iterable[Any]) -> str:
    """将一行数值格式化为空格分隔文本（整数保持整数，浮点数使用 repr 精度）。"""
    parts = []
    for value in values:
        if isinstance(value, (bool,)):
            parts.append(str(int(value)))
        elif isinstance(value, int):
            parts.append(str(value))
        elif isinstance(value, float):
            parts.append(f"{value:.10g}")
        else:
            # numpy 标量
            item = getattr(value, "item", None)
            parts.append(format_row([item()]) if item is not None else str(value))
    return " ".join(parts)
