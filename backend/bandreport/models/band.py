"""
带区与控件模型 - 模板设计数据

对应设计文档中的 bands[].objects[] 结构，字段名兼容前端的驼峰命名
（actualBottom / backgroundColorFormula 等），Python侧使用蛇形命名访问。
带区和控件在一次渲染内只读，核心模块从不修改。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class BandRole(str, Enum):
    """带区角色"""
    HEADER = "header"
    DETAIL = "detail"
    SUMMARY = "summary"
    FOOTER = "footer"


class SummaryDisplayMode(str, Enum):
    """汇总带显示模式"""
    AT_END = "atEnd"        # 在所有明细后显示
    PER_PAGE = "perPage"    # 每页底部显示
    PER_GROUP = "perGroup"  # 每组后显示（暂无分组数据，按atEnd处理）


class ControlType(str, Enum):
    """控件类型"""
    TEXT = "text"
    MULTILINE_TEXT = "multiline_text"
    FIELD = "field"
    CALCULATED = "calculated"
    IMAGE = "image"
    LINE = "line"
    RECTANGLE = "rectangle"
    PAGE_NUMBER = "page_number"
    CURRENT_DATE = "current_date"
    BARCODE = "barcode"
    QRCODE = "qrcode"
    ELLIPSE = "ellipse"
    STAR = "star"
    TRIANGLE = "triangle"
    DIAMOND = "diamond"


class ControlObject(BaseModel):
    """带区内的定位控件（类型相关的样式属性原样保留在 model_extra）"""
    id: str = ""
    type: ControlType = ControlType.TEXT
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    z_index: int | None = None
    print_visible: bool = True

    # 内容相关
    text: str | None = None
    field_name: str | None = None
    formula: str | None = None
    format_type: str | None = None
    decimal_places: int | None = None

    # 线条端点（绝对设计坐标）
    x1: float | None = None
    y1: float | None = None
    x2: float | None = None
    y2: float | None = None

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
        "frozen": True,
    }

    @property
    def is_line(self) -> bool:
        return self.type == ControlType.LINE

    @property
    def top_edge(self) -> float:
        """上边缘（线条取两端点较小y）"""
        if self.is_line:
            return min(self._line_y1, self._line_y2)
        return self.y

    @property
    def bottom_edge(self) -> float:
        """下边缘（线条取两端点较大y）"""
        if self.is_line:
            return max(self._line_y1, self._line_y2)
        return self.y + self.height

    @property
    def _line_y1(self) -> float:
        return self.y1 if self.y1 is not None else self.y

    @property
    def _line_y2(self) -> float:
        return self.y2 if self.y2 is not None else self.y

    def line_points(self) -> tuple[float, float, float, float]:
        """线条端点，缺省时按对象框推算"""
        x1 = self.x1 if self.x1 is not None else self.x
        x2 = self.x2 if self.x2 is not None else self.x + self.width
        return x1, self._line_y1, x2, self._line_y2

    def style_attrs(self) -> dict:
        """透传给外部渲染器的样式属性"""
        return dict(self.model_extra or {})


class Band(BaseModel):
    """带区"""
    id: BandRole
    name: str = ""
    top: float = 0
    bottom: float | None = None
    actual_bottom: float = 0
    visible: bool = True
    objects: list[ControlObject] = Field(default_factory=list)

    # 样式（公式仅对明细/汇总带区生效）
    background_color: str | None = None
    background_color_formula: str | None = None
    row_height_formula: str | None = None

    summary_display_mode: SummaryDisplayMode = SummaryDisplayMode.AT_END

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
        "frozen": True,
    }

    @property
    def role(self) -> BandRole:
        return self.id

    @property
    def height(self) -> float:
        return self.actual_bottom - self.top

    @property
    def supports_row_formulas(self) -> bool:
        """是否支持行背景色/行高公式"""
        return self.id in (BandRole.DETAIL, BandRole.SUMMARY)

    def contains(self, obj: ControlObject) -> bool:
        """对象与带区纵向范围有交集"""
        return obj.bottom_edge > self.top and obj.top_edge < self.actual_bottom


def find_band(bands: list[Band], role: BandRole) -> Band | None:
    """按角色查找带区"""
    for band in bands:
        if band.id == role:
            return band
    return None
