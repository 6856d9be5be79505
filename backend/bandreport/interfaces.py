"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 模块间通过接口通信，不直接依赖具体实现
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和mock替换

使用方式：
    from bandreport.interfaces import IFormulaEngine

    class MyEngine(IFormulaEngine):
        def evaluate(self, formula, context=None, options=None) -> str:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .models import Band, BandLayout, DataField, FormulaContext, FormulaOptions, PageGeometry, PagePlan


# ============================================================================
# 公式模块接口
# ============================================================================

class IFormulaEngine(ABC):
    """公式引擎接口"""

    @abstractmethod
    def evaluate(
        self,
        formula: str,
        context: FormulaContext | None = None,
        options: FormulaOptions | None = None,
    ) -> str:
        """
        计算公式

        Args:
            formula: 公式字符串，如 "{price} * {quantity}"
            context: 数据上下文
            options: 格式化选项

        Returns:
            计算结果字符串（出错时返回哨兵字符串，不抛异常）
        """
        ...


# ============================================================================
# 排版模块接口
# ============================================================================

class IPaginationPlanner(ABC):
    """分页规划器接口"""

    @abstractmethod
    def plan(
        self,
        bands: list[Band],
        data: dict[str, Any] | None,
        schema: list[DataField],
        geometry: PageGeometry,
    ) -> PagePlan:
        """
        计算分页方案

        流程：
        1. 计算单行高度与每页行数
        2. 计算总页数
        3. 检查最后一页脚注带能否放下，必要时拆分到新页

        Returns:
            分页方案
        """
        ...


class ILayoutCompositor(ABC):
    """单页排版器接口"""

    @abstractmethod
    def layout_page(
        self,
        page_number: int,
        plan: PagePlan,
        bands: list[Band],
    ) -> list[BandLayout]:
        """
        计算单页的带区摆放

        Args:
            page_number: 页码（1起）
            plan: 分页方案
            bands: 模板带区

        Returns:
            按自上而下顺序排列的带区摆放列表
        """
        ...


class IPageRenderer(Protocol):
    """外部渲染器协议（HTML/Canvas/PDF由调用方实现）"""

    def render_page(self, page: Any) -> Any:
        """渲染单页"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class BandReportError(Exception):
    """基础异常"""
    pass


class FormulaError(BandReportError):
    """公式错误"""
    pass


class FormulaSyntaxError(FormulaError):
    """公式语法错误"""

    ILLEGAL_CHAR = "illegal_char"
    UNEXPECTED_TOKEN = "unexpected_token"
    UNEXPECTED_END = "unexpected_end"

    def __init__(self, message: str, kind: str = UNEXPECTED_TOKEN, position: int = -1):
        super().__init__(message)
        self.kind = kind
        self.position = position


class FormulaEvaluationError(FormulaError):
    """公式计算错误"""
    pass


class UndefinedNameError(FormulaEvaluationError):
    """未定义的变量或函数"""

    def __init__(self, name: str):
        super().__init__(f"{name} is not defined")
        self.name = name


class NotCallableError(FormulaEvaluationError):
    """调用对象不是函数"""

    def __init__(self, name: str):
        super().__init__(f"{name} is not a function")
        self.name = name


class TemplateError(BandReportError):
    """模板文档错误"""
    pass


class LayoutError(BandReportError):
    """排版错误"""
    pass
