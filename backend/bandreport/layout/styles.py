"""
带区行样式 - 行背景色/行高公式求值

仅明细带区和汇总带区支持公式；结果不是有效颜色/正数时回退到静态值。
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Protocol

from ..interfaces import IFormulaEngine
from ..models import Band, FormulaContext
from ..formula.values import parse_number

logger = logging.getLogger(__name__)

COLOR_PATTERN = re.compile(
    r"^(#[0-9a-fA-F]{3,4}|#[0-9a-fA-F]{6}|#[0-9a-fA-F]{8}"
    r"|(rgb|rgba|hsl|hsla)\([^()]*\)"
    r"|[a-zA-Z]+)$"
)
NON_COLOR_WORDS = frozenset({"true", "false", "null", "nan", "infinity", "undefined"})


class FormulaResultCache(Protocol):
    """行公式结果缓存"""

    def get_or_compute(self, key: tuple, compute: Callable[[], str]) -> str:
        ...


def normalize_color(result: str) -> str | None:
    """公式结果转颜色值，无效时返回 None"""
    value = result.strip().strip("\"'").strip()
    if not value or "错误" in value or value.startswith("["):
        return None
    if value.lower() in NON_COLOR_WORDS:
        return None
    return value if COLOR_PATTERN.match(value) else None


class BandStyleResolver:
    """行背景色/行高解析"""

    def __init__(
        self,
        engine: IFormulaEngine,
        cache: FormulaResultCache | None = None,
        version: str = "",
    ):
        # version 标识模板+数据，作为行公式缓存键的一部分
        self.engine = engine
        self.cache = cache
        self.version = version

    def _evaluate(self, band: Band, formula: str, context: FormulaContext) -> str:
        if self.cache is None:
            return self.engine.evaluate(formula, context)
        key = (
            self.version,
            band.id.value,
            formula,
            context.row_index,
            context.current_page,
            context.total_pages,
        )
        return self.cache.get_or_compute(key, lambda: self.engine.evaluate(formula, context))

    def row_height(self, band: Band, context: FormulaContext, default: float) -> float:
        """行高（公式结果须为正数）"""
        formula = band.row_height_formula
        if not formula or not band.supports_row_formulas:
            return default
        result = self._evaluate(band, formula, context)
        height = parse_number(result)
        if height is None or height <= 0:
            logger.debug(f"行高公式结果无效，使用默认行高: {formula} -> {result}")
            return default
        return float(height)

    def background(self, band: Band, context: FormulaContext) -> str | None:
        """背景色（公式结果无效时回退静态背景色）"""
        formula = band.background_color_formula
        if not formula or not band.supports_row_formulas:
            return band.background_color
        color = normalize_color(self._evaluate(band, formula, context))
        return color if color is not None else band.background_color
