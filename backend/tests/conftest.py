"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(engine, sales_template):
        assert engine.evaluate("1+1") == "2"
"""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

import pytest

from bandreport.config import ReportTemplate, RuntimeConfig
from bandreport.formula import FormulaEngine, FunctionRegistry
from bandreport.models import (
    Band,
    BandRole,
    ControlObject,
    DataField,
    FieldSource,
    FieldType,
    FormulaContext,
    PageGeometry,
    PageMargins,
)


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """运行期配置（默认值）"""
    return RuntimeConfig()


@pytest.fixture
def fixed_now() -> datetime:
    """固定时钟"""
    return datetime(2026, 1, 5, 9, 5, 3)


# ============================================================================
# 公式 Fixtures
# ============================================================================

@pytest.fixture
def registry() -> FunctionRegistry:
    """独立的函数注册表（测试间互不影响）"""
    return FunctionRegistry()


@pytest.fixture
def engine(registry: FunctionRegistry, runtime_config: RuntimeConfig) -> FormulaEngine:
    """公式引擎"""
    return FormulaEngine(registry, config=runtime_config.formula)


def _make_context(data: dict[str, Any] | None = None, **kwargs: Any) -> FormulaContext:
    return FormulaContext(data=data or {}, **kwargs)


@pytest.fixture
def make_context():
    """公式上下文工厂"""
    return _make_context


# ============================================================================
# 模板 Fixtures
# ============================================================================

def _make_band(role: BandRole, top: float, bottom: float, objects: list[dict] | None = None, **kwargs: Any) -> Band:
    return Band(
        id=role,
        top=top,
        actual_bottom=bottom,
        objects=[ControlObject(**o) for o in (objects or [])],
        **kwargs,
    )


@pytest.fixture
def make_band():
    """带区工厂"""
    return _make_band


@pytest.fixture
def geometry() -> PageGeometry:
    """页面几何：可用高度 1000"""
    return PageGeometry(width=800, height=1100, margins=PageMargins(top=50, bottom=50, left=40, right=40))


@pytest.fixture
def detail_fields() -> list[DataField]:
    """字段清单（明细键 products）"""
    return [
        DataField(name="orderNo", label="单号", source=FieldSource.MASTER),
        DataField(name="products.name", label="品名", source=FieldSource.DETAIL),
        DataField(name="products.price", label="单价", type=FieldType.CURRENCY, source=FieldSource.DETAIL),
        DataField(name="products.amount", label="金额", type=FieldType.NUMBER, source=FieldSource.DETAIL),
    ]


@pytest.fixture
def simple_bands() -> list[Band]:
    """页眉100 / 明细行高20 / 汇总50(atEnd) / 脚注100"""
    return [
        _make_band(BandRole.HEADER, 0, 100, [
            {"id": "title", "type": "text", "x": 10, "y": 10, "width": 200, "height": 30, "text": "标题"},
        ]),
        _make_band(BandRole.DETAIL, 100, 120, [
            {"id": "name", "type": "field", "x": 10, "y": 100, "width": 100, "height": 20, "fieldName": "products.name"},
            {"id": "amount", "type": "field", "x": 120, "y": 100, "width": 100, "height": 20, "fieldName": "products.amount"},
        ]),
        _make_band(BandRole.SUMMARY, 120, 170, [
            {"id": "total", "type": "calculated", "x": 10, "y": 125, "width": 200, "height": 20,
             "formula": "SUM(products.amount)"},
        ]),
        _make_band(BandRole.FOOTER, 170, 270, [
            {"id": "sign", "type": "text", "x": 10, "y": 170, "width": 100, "height": 40, "text": "签字"},
            {"id": "page", "type": "page_number", "x": 10, "y": 220, "width": 100, "height": 40},
        ]),
    ]


def _make_rows(count: int) -> list[dict[str, Any]]:
    return [{"name": f"品{i + 1}", "amount": i + 1} for i in range(count)]


@pytest.fixture
def make_rows():
    """明细行工厂（amount 依次为 1..N）"""
    return _make_rows


@pytest.fixture
def sales_template(simple_bands: list[Band], detail_fields: list[DataField]) -> ReportTemplate:
    """示例模板"""
    return ReportTemplate(
        name="测试模板",
        bands=simple_bands,
        data_fields=detail_fields,
        sample_data={"orderNo": "SO-1", "products": _make_rows(3)},
    )


# ============================================================================
# 文件 Fixtures
# ============================================================================

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
