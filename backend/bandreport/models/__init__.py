"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- Band / ControlObject: 模板带区与控件
- DataField: 数据字段清单
- FormulaContext / FormulaOptions: 公式求值上下文
- PageGeometry / PagePlan: 页面几何与分页方案
- BandLayout: 单页排版结果
- PageSettings: 页面设置（毫米/英寸）到像素几何的换算
"""

from .band import Band, BandRole, ControlObject, ControlType, SummaryDisplayMode, find_band
from .formula import FormatType, FormulaContext, FormulaOptions
from .layout import BandLayout, FooterPart, PlacedObject, RowLayout
from .page import PageGeometry, PageMargins, PagePlan, PageWindow
from .schema import DEFAULT_DETAIL_KEY, DataField, FieldSource, FieldType, get_detail_data_key
from .units import PAPER_SIZES, Orientation, PageSettings, from_px, to_mm, to_px

__all__ = [
    "Band",
    "BandRole",
    "ControlObject",
    "ControlType",
    "SummaryDisplayMode",
    "find_band",
    "DataField",
    "FieldType",
    "FieldSource",
    "DEFAULT_DETAIL_KEY",
    "get_detail_data_key",
    "FormulaContext",
    "FormulaOptions",
    "FormatType",
    "PageGeometry",
    "PageMargins",
    "PagePlan",
    "PageWindow",
    "BandLayout",
    "FooterPart",
    "PlacedObject",
    "RowLayout",
    "PageSettings",
    "Orientation",
    "PAPER_SIZES",
    "to_mm",
    "to_px",
    "from_px",
]
