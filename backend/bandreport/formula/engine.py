"""
公式引擎 - 对单个公式字符串求值

职责：
1. 标点预处理、解析、解释执行、结果格式化
2. 任何解析/计算失败降级为哨兵字符串，不向调用方抛异常
3. 函数注册表由构造方传入，互不干扰
4. 编辑期校验（静态 / 带模拟数据试算）

测试要点：
- test_arithmetic: "{price}*{quantity}" -> "30"
- test_aggregate: SUM / PAGESUM 聚合
- test_error_sentinel: 非法公式返回 "[公式错误]" / "[计算错误]"
- test_register_function: 自定义函数注册
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..config import get_config
from ..config.runtime_config import FormulaConfig
from ..interfaces import FormulaError, FormulaSyntaxError, IFormulaEngine
from ..models import DataField, FormulaContext, FormulaOptions, get_detail_data_key
from .formatting import format_result
from .interpreter import Interpreter
from .parser import Node, contains_call, parse
from .registry import FunctionRegistry
from .resolver import FIELD_PATTERN, FieldResolver
from .tokenizer import normalize_punctuation
from .validation import FormulaValidation, describe_error, validate_formula

logger = logging.getLogger(__name__)


class FormulaEngine(IFormulaEngine):
    """公式引擎"""

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        fields: list[DataField] | None = None,
        config: FormulaConfig | None = None,
        default_detail_key: str | None = None,
    ):
        self.config = config or get_config().formula
        self.registry = registry if registry is not None else FunctionRegistry()
        self.resolver = FieldResolver(fields, currency_symbol=self.config.currency_symbol)
        # 明细数组键：字段清单中第一个明细字段的前缀
        self.detail_key = get_detail_data_key(
            self.resolver.fields,
            default=default_detail_key or get_config().layout.default_detail_key,
        )

    def bind_context(self, context: FormulaContext | None) -> FormulaContext:
        """补全上下文的明细键（调用方未指定时按字段清单推断）"""
        context = context or FormulaContext()
        if context.detail_key is None:
            context = context.model_copy(update={"detail_key": self.detail_key})
        return context

    def evaluate(
        self,
        formula: str,
        context: FormulaContext | None = None,
        options: FormulaOptions | None = None,
    ) -> str:
        """计算公式，返回格式化后的字符串"""
        if not formula or not formula.strip():
            return self.config.empty_marker

        context = self.bind_context(context)
        options = options or FormulaOptions(decimal_places=self.config.decimal_places)
        text = normalize_punctuation(formula)

        try:
            tree = parse(text)
        except FormulaSyntaxError as e:
            logger.error(f"[公式错误] {e}: {formula}")
            return self.config.syntax_error_marker

        interpreter = Interpreter(self.registry, self.resolver, context)
        preview = False
        try:
            result = interpreter.evaluate(tree)
            preview = bool(interpreter.unresolved) and not contains_call(tree)
        except RecursionError:
            logger.error(f"公式嵌套过深: {formula[:50]}")
            return self.config.eval_error_marker
        except (FormulaError, ArithmeticError) as e:
            # 含未解析字段且无函数调用：显示字段预览
            if interpreter.unresolved and not contains_call(tree):
                return FIELD_PATTERN.sub(r"[\1]", text)
            logger.error(f"公式计算错误: {formula}: {e}")
            return self.config.eval_error_marker

        if preview:
            return format_result(result, FormulaOptions())
        return format_result(result, options, self.config.currency_symbol)

    def parse(self, formula: str) -> Node:
        """解析公式（语法错误抛 FormulaSyntaxError）"""
        return parse(normalize_punctuation(formula))

    # ==================== 扩展接口 ====================

    def register_function(self, name: str, func: Callable[..., Any]) -> None:
        """注册自定义函数（名称转大写，同名覆盖）"""
        self.registry.register(name, func)

    def get_registered_functions(self) -> list[str]:
        return self.registry.names()

    # ==================== 校验 ====================

    def validate(self, formula: str) -> FormulaValidation:
        return validate_formula(formula)

    def validate_with_execution(
        self,
        formula: str,
        mock_data: dict[str, Any] | None = None,
        mock_item: dict[str, Any] | None = None,
        detail_key: str | None = None,
    ) -> FormulaValidation:
        """带模拟数据试算公式"""
        if not formula or not formula.strip():
            return FormulaValidation(valid=False, message="公式不能为空")

        mock_data = dict(mock_data or {})
        mock_item = mock_item or {}
        key = detail_key or self.detail_key
        items = mock_data.get(key) or [mock_item]
        context = FormulaContext(
            data={**mock_data, key: items},
            current_item=mock_item,
            page_size=len(items),
            detail_key=key,
        )

        try:
            tree = self.parse(formula)
            result = Interpreter(self.registry, self.resolver, context).evaluate(tree)
        except FormulaError as e:
            logger.warning(f"公式试算失败: {formula}: {e}")
            return FormulaValidation(valid=False, message=describe_error(e))
        except (ArithmeticError, RecursionError) as e:
            return FormulaValidation(valid=False, message=f"执行错误: {e}")

        return FormulaValidation(valid=True, message="校验通过", result=format_result(result))
