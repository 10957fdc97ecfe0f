# -*- coding: utf-8 -*-
"""
Context 模块 - 插件注册、配置解析与按需计算。

Context 持有已注册插件和配置，get_data(run_id, name) 按拓扑顺序
执行 name 的全部依赖并把结果缓存在 (run_id, name) 下。

配置优先级（从高到低）：
1. 插件级显式配置：{"frames": {"w_size": 1000}} 或 {"frames.w_size": 1000}
2. 全局显式配置：{"w_size": 1000}
3. 插件选项默认值
"""

import inspect
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from packaging.specifiers import SpecifierSet

from psd_analysis.core.exceptions import PluginError, PSDError
from psd_analysis.core.foundation.utils import exporter
from psd_analysis.core.plugins.core.base import Plugin

export, __all__ = exporter()

logger = logging.getLogger(__name__)

_MISSING = object()


@export
class Context:
    """Registry and cache for one analysis session.

    Examples:
        >>> ctx = Context(config=run_config.to_context_config())
        >>> ctx.register(*standard_plugins)
        >>> summary = ctx.get_data("run_001", "run_summary")
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, plugins: Iterable[Any] = ()):
        self._plugins: Dict[str, Plugin] = {}
        self._results: Dict[Tuple[str, str], Any] = {}
        self.config: Dict[str, Any] = {}
        if config:
            self.set_config(config)
        if plugins:
            self.register(*plugins)

    # ------------------------------------------------------------------
    # 插件注册
    # ------------------------------------------------------------------

    def register(self, *plugins: Any, allow_override: bool = False) -> None:
        """注册插件实例或插件类（类会被实例化），支持传入列表。"""
        for plugin in plugins:
            if isinstance(plugin, (list, tuple)):
                self.register(*plugin, allow_override=allow_override)
                continue
            if inspect.isclass(plugin):
                plugin = plugin()
            self.register_plugin(plugin, allow_override=allow_override)

    def register_plugin(self, plugin: Plugin, allow_override: bool = False) -> None:
        """
        Register a plugin instance with strict validation.
        """
        if not isinstance(plugin, Plugin):
            raise TypeError(f"Expected a Plugin instance, got {type(plugin).__name__}")
        plugin.validate()

        provides = plugin.provides
        if provides in self._plugins and not allow_override:
            existing = self._plugins[provides]
            raise RuntimeError(
                f"Plugin conflict: '{provides}' is already provided by {existing.__class__.__name__}. "
                f"Use allow_override=True if you want to replace it."
            )
        self._plugins[provides] = plugin
        logger.debug("Registered plugin %s (v%s)", provides, plugin.version)

    def list_provided_data(self) -> List[str]:
        return sorted(self._plugins)

    def get_plugin(self, name: str) -> Plugin:
        try:
            return self._plugins[name]
        except KeyError:
            raise ValueError(f"No plugin registered for '{name}'") from None

    # ------------------------------------------------------------------
    # 配置
    # ------------------------------------------------------------------

    def set_config(self, config: Dict[str, Any], plugin_name: Optional[str] = None) -> None:
        """更新配置。

        Args:
            config: 配置字典，值为 dict 的键视为插件级配置
            plugin_name: 若给出，config 整体作为该插件的配置
        """
        if plugin_name is not None:
            config = {plugin_name: config}
        for key, value in config.items():
            if isinstance(value, dict):
                self.config.setdefault(key, {}).update(value)
            elif "." in key:
                name, option = key.split(".", 1)
                self.config.setdefault(name, {})[option] = value
            else:
                self.config[key] = value
        # 配置变化后插件计算结果不再有效，注入的数据保留
        for key in [k for k in self._results if k[1] in self._plugins]:
            del self._results[key]

    def get_config(self, plugin: Union[Plugin, str], name: str) -> Any:
        if isinstance(plugin, str):
            plugin = self.get_plugin(plugin)
        if name not in plugin.options:
            raise KeyError(f"Plugin '{plugin.provides}' has no option '{name}'")
        option = plugin.options[name]

        value = _MISSING
        scoped = self.config.get(plugin.provides)
        if isinstance(scoped, dict) and name in scoped:
            value = scoped[name]
        elif name in self.config and not isinstance(self.config[name], dict):
            value = self.config[name]
        if value is _MISSING:
            value = option.default
        return option.validate_value(name, value, plugin_name=plugin.provides)

    # ------------------------------------------------------------------
    # 依赖解析与计算
    # ------------------------------------------------------------------

    def resolve_dependencies(self, target: str) -> List[str]:
        """
        Resolve dependencies and return a list of data_names to compute in order.
        Uses topological sort to determine execution order and detect cycles.
        """
        plan: List[str] = []
        visited = set()
        visiting_stack: List[str] = []

        def visit(node: str) -> None:
            if node in visiting_stack:
                cycle_path = " -> ".join(visiting_stack + [node])
                raise RuntimeError(f"Circular dependency detected: {cycle_path}")
            if node in visited:
                return
            if node not in self._plugins:
                # 没有插件但已注入内存的数据项视为叶子节点
                if any(key[1] == node for key in self._results):
                    visited.add(node)
                    return
                raise ValueError(f"Missing dependency: {' -> '.join(visiting_stack + [node])}")

            visiting_stack.append(node)
            plugin = self._plugins[node]
            for dep in plugin.depends_on:
                dep_name = plugin.get_dependency_name(dep)
                visit(dep_name)
                if dep_name in self._plugins:
                    self._check_version(plugin, dep_name, plugin.get_dependency_version_spec(dep))
            visiting_stack.pop()
            visited.add(node)
            plan.append(node)

        if target not in self._plugins:
            raise ValueError(f"No plugin registered for '{target}'")
        visit(target)
        return plan

    def _check_version(self, plugin: Plugin, dep_name: str, version_spec: Optional[str]) -> None:
        if version_spec is None:
            return
        provider = self._plugins[dep_name]
        if provider.semantic_version not in SpecifierSet(version_spec):
            raise PluginError(
                f"'{plugin.provides}' requires {dep_name}{version_spec}, "
                f"but {provider.__class__.__name__} is version {provider.version}",
                plugin_name=plugin.provides,
            )

    def get_data(self, run_id: str, name: str) -> Any:
        """返回 run_id 的数据项 name，必要时先计算其全部依赖。"""
        cached = self._get_data_from_memory(run_id, name)
        if cached is not _MISSING:
            return cached

        for step in self.resolve_dependencies(name):
            if self._get_data_from_memory(run_id, step) is not _MISSING:
                continue
            if step not in self._plugins:
                raise RuntimeError(f"Dependency '{step}' is missing for run '{run_id}' and no plugin provides it.")
            self._set_data(run_id, step, self._compute(run_id, step))
        return self._results[(run_id, name)]

    def _compute(self, run_id: str, name: str) -> Any:
        plugin = self._plugins[name]
        logger.debug("[%s] computing %s", run_id, name)
        try:
            return plugin.compute(self, run_id)
        except PSDError as e:
            if e.run_id is None:
                e.run_id = run_id
            raise
        except Exception as e:
            raise PluginError(
                f"Plugin '{name}' failed: {type(e).__name__}: {e}", plugin_name=name, run_id=run_id
            ) from e

    def _get_data_from_memory(self, run_id: str, name: str) -> Any:
        return self._results.get((run_id, name), _MISSING)

    def _set_data(self, run_id: str, name: str, value: Any) -> None:
        self._results[(run_id, name)] = value

    def has_data(self, run_id: str, name: str) -> bool:
        return (run_id, name) in self._results

    def clear_cache(self, run_id: Optional[str] = None) -> None:
        if run_id is None:
            self._results.clear()
            return
        for key in [k for k in self._results if k[0] == run_id]:
            del self._results[key]
