"""
单位换算 - 页面设置（毫米/英寸）到像素

核心只使用像素；这里是页面设置进入核心前的薄适配层。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .page import PageGeometry, PageMargins

MM_PER_INCH = 25.4
DEFAULT_DPI = 96

# 纸张尺寸预设（宽, 高, 单位）
PAPER_SIZES: dict[str, tuple[float, float, str]] = {
    "A4": (210, 297, "mm"),
    "A3": (297, 420, "mm"),
    "A5": (148, 210, "mm"),
    "B4": (250, 353, "mm"),
    "B5": (176, 250, "mm"),
    "Letter": (8.5, 11, "in"),
    "Legal": (8.5, 14, "in"),
}


class Orientation(str, Enum):
    """纸张方向"""
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


def to_mm(value: float, unit: str) -> float:
    """任意单位转毫米"""
    if unit == "mm":
        return value
    if unit == "cm":
        return value * 10
    if unit in ("in", "inch"):
        return value * MM_PER_INCH
    raise ValueError(f"不支持的单位: {unit}")


def to_px(value: float, unit: str, dpi: float = DEFAULT_DPI) -> float:
    """任意单位转像素"""
    if unit == "px":
        return value
    return to_mm(value, unit) * dpi / MM_PER_INCH


def from_px(px: float, unit: str, dpi: float = DEFAULT_DPI) -> float:
    """像素转任意单位"""
    if unit == "px":
        return px
    mm = px * MM_PER_INCH / dpi
    if unit == "mm":
        return mm
    if unit == "cm":
        return mm / 10
    if unit in ("in", "inch"):
        return mm / MM_PER_INCH
    raise ValueError(f"不支持的单位: {unit}")


class PageSettings(BaseModel):
    """页面设置（设计器保存的格式，边距与纸张同单位）"""
    paper_size: str = "A4"
    width: float = 210
    height: float = 297
    unit: str = "mm"
    margins: PageMargins = Field(
        default_factory=lambda: PageMargins(top=10, bottom=10, left=10, right=10)
    )
    orientation: Orientation = Orientation.PORTRAIT

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    @classmethod
    def preset(cls, paper_size: str, orientation: Orientation = Orientation.PORTRAIT) -> PageSettings:
        """按预设纸张创建"""
        if paper_size not in PAPER_SIZES:
            raise ValueError(f"未知纸张: {paper_size}")
        width, height, unit = PAPER_SIZES[paper_size]
        margin = 10 if unit == "mm" else round(10 / MM_PER_INCH, 3)
        return cls(
            paper_size=paper_size,
            width=width,
            height=height,
            unit=unit,
            margins=PageMargins(top=margin, bottom=margin, left=margin, right=margin),
            orientation=orientation,
        )

    def paper_mm(self) -> tuple[float, float]:
        """按方向调整后的纸张宽高（mm）"""
        w = to_mm(self.width, self.unit)
        h = to_mm(self.height, self.unit)
        if self.orientation == Orientation.LANDSCAPE:
            return max(w, h), min(w, h)
        return min(w, h), max(w, h)

    def to_geometry(self, dpi: float = DEFAULT_DPI) -> PageGeometry:
        """换算为像素页面几何（四舍五入到整数像素）"""
        width_mm, height_mm = self.paper_mm()
        m = self.margins
        return PageGeometry(
            width=round(to_px(width_mm, "mm", dpi)),
            height=round(to_px(height_mm, "mm", dpi)),
            margins=PageMargins(
                top=round(to_px(m.top, self.unit, dpi)),
                bottom=round(to_px(m.bottom, self.unit, dpi)),
                left=round(to_px(m.left, self.unit, dpi)),
                right=round(to_px(m.right, self.unit, dpi)),
            ),
        )
