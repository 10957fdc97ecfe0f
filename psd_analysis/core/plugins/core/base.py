# -*- coding: utf-8 -*-
"""
插件基类 - 一次运行分析链中的单个步骤。

每个 Plugin 声明：
- provides: 产出的数据项名称（如 "pulse_features"）
- depends_on: 依赖的数据项，可带 PEP 440 版本约束，如 ("pulse_features", ">=1.0")
- options: 可配置参数（Option），由 Context 按优先级解析并校验

Context 根据这些声明决定执行顺序，插件本身只实现 compute。
"""

import abc
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

import numpy as np
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from psd_analysis.core.foundation.utils import exporter

export, __all__ = exporter()

logger = logging.getLogger(__name__)

Dependency = Union[str, Tuple[str, str]]

_TRUE_STRINGS = ("true", "1", "yes", "on")


def _coerce(value: Any, expected: Type) -> Any:
    """尽量把配置值转换为期望类型；无法转换时原样返回，由调用方报告类型错误。"""
    if expected is bool and isinstance(value, str):
        return value.lower() in _TRUE_STRINGS
    if expected is float and isinstance(value, (int, np.integer, np.floating, str)) and not isinstance(value, bool):
        try:
            return float(value)
        except ValueError:
            return value
    if expected is int and isinstance(value, (float, np.integer, np.floating, str)):
        try:
            number = float(value)
        except ValueError:
            return value
        if number.is_integer():
            return int(number)
    return value


@export
class Option:
    """一个插件参数。

    Args:
        default: 未配置时使用的值
        type: 期望类型，None 表示不检查
        help: 参数说明
        validate: 额外的校验函数，返回 False 时报错
        choices: 允许的取值

    Examples:
        >>> w_size = Option(default=1000, type=int, validate=lambda v: v > 0, help="每帧采样点数")
        >>> orientation = Option(default="horizontal", type=str, choices=["horizontal", "vertical"])
    """

    def __init__(
        self,
        default: Any = None,
        type: Optional[Type] = None,
        help: str = "",
        validate: Optional[Callable[[Any], bool]] = None,
        choices: Optional[Sequence[Any]] = None,
    ):
        self.default = default
        self.type = type
        self.help = help
        self.validate = validate
        self.choices = list(choices) if choices is not None else None

    def validate_value(self, name: str, value: Any, plugin_name: str = "unknown") -> Any:
        """转换并校验 value，返回最终使用的值。

        Raises:
            TypeError: 类型不符且无法转换
            ValueError: 不在 choices 中或自定义校验失败
        """
        # 默认值为 None 的参数是可选的
        if value is None and self.default is None:
            return None

        where = f"{plugin_name}.{name}"
        if self.type is not None:
            value = _coerce(value, self.type)
            if not isinstance(value, self.type):
                raise TypeError(f"{where} expects {self.type.__name__}, got {type(value).__name__} ({value!r})")
        if self.choices is not None and value not in self.choices:
            raise ValueError(f"{where} must be one of {self.choices}, got {value!r}")
        if self.validate is not None and not self.validate(value):
            raise ValueError(f"{where} rejected value {value!r}")
        return value

    def __repr__(self):
        return f"Option(default={self.default!r}, type={getattr(self.type, '__name__', None)})"


@export
class Plugin(abc.ABC):
    """Base class of every analysis step.

    Subclasses set ``provides``, ``depends_on`` and ``options`` as class
    attributes and implement :meth:`compute`. Options declared on parent
    classes are inherited and may be overridden by name.
    """

    provides: str = ""
    depends_on: List[Dependency] = []
    options: Dict[str, Option] = {}
    output_dtype: Optional[np.dtype] = None
    description: str = ""
    version: str = "0.0.0"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        merged: Dict[str, Option] = {}
        for klass in reversed(cls.__mro__):
            declared = klass.__dict__.get("options")
            if isinstance(declared, dict):
                merged.update(declared)
        cls.options = merged

    @property
    def semantic_version(self) -> Version:
        try:
            return Version(self.version)
        except (InvalidVersion, TypeError):
            logger.warning("%s declares invalid version %r, treating it as 0.0.0", type(self).__name__, self.version)
            return Version("0.0.0")

    @staticmethod
    def get_dependency_name(dep: Dependency) -> str:
        """
        Examples:
            >>> Plugin.get_dependency_name(("pulse_features", ">=1.0"))
            'pulse_features'
        """
        return dep[0] if isinstance(dep, tuple) else dep

    @staticmethod
    def get_dependency_version_spec(dep: Dependency) -> Optional[str]:
        if isinstance(dep, tuple) and len(dep) > 1:
            return dep[1]
        return None

    def validate(self) -> None:
        """注册前检查插件声明是否完整。

        Raises:
            ValueError: 缺少 provides 或版本约束无法解析
            TypeError: depends_on / options 的结构不正确
        """
        name = type(self).__name__
        if not self.provides:
            raise ValueError(f"{name} must set 'provides'")
        if not isinstance(self.depends_on, (list, tuple)):
            raise TypeError(f"{self.provides}: depends_on must be a list, got {type(self.depends_on).__name__}")

        for dep in self.depends_on:
            if isinstance(dep, str):
                continue
            if not (isinstance(dep, tuple) and len(dep) == 2 and all(isinstance(part, str) for part in dep)):
                raise TypeError(f"{self.provides}: dependency must be 'name' or ('name', 'spec'), got {dep!r}")
            try:
                SpecifierSet(dep[1])
            except InvalidSpecifier as e:
                raise ValueError(f"{self.provides}: invalid version specifier {dep[1]!r} for {dep[0]}") from e

        for key, option in self.options.items():
            if not isinstance(option, Option):
                raise TypeError(f"{self.provides}: option '{key}' is not an Option")

    @abc.abstractmethod
    def compute(self, context: Any, run_id: str, **kwargs) -> Any:
        """计算 provides 对应的数据。

        通过 ``context.get_data(run_id, name)`` 读取依赖，
        通过 ``context.get_config(self, option)`` 读取参数。
        """

    def __repr__(self):
        return f"{type(self).__name__}(provides={self.provides!r}, depends_on={self.depends_on!r})"
