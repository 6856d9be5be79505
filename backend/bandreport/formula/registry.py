"""
函数注册表 - 公式可调用函数的唯一来源

注册表是显式构造的对象，随引擎传递；不同渲染请求可持有互不影响的实例。
名称统一转大写保存，重复注册会直接覆盖。
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .builtins import BUILTIN_FUNCTIONS


class FunctionRegistry:
    """公式函数注册表"""

    def __init__(
        self,
        functions: dict[str, Callable[..., Any]] | None = None,
        include_builtins: bool = True,
    ):
        self._functions: dict[str, Callable[..., Any]] = {}
        # 每次注册递增，供外部缓存判断函数表是否变化
        self.version = 0
        if include_builtins:
            self._functions.update(BUILTIN_FUNCTIONS)
        for name, func in (functions or {}).items():
            self.register(name, func)

    def register(self, name: str, func: Callable[..., Any]) -> None:
        """注册自定义函数（同名覆盖）"""
        self._functions[name.upper()] = func
        self.version += 1

    def get(self, name: str) -> Callable[..., Any] | None:
        return self._functions.get(name.upper())

    def names(self) -> list[str]:
        """已注册的函数名"""
        return list(self._functions)

    def copy(self) -> FunctionRegistry:
        return FunctionRegistry(dict(self._functions), include_builtins=False)

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._functions

    def __len__(self) -> int:
        return len(self._functions)
