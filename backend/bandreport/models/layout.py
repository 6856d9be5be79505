"""
单页排版结果模型 - 排版器输出，交给外部渲染器
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from .band import Band, ControlObject


class FooterPart(str, Enum):
    """脚注带拆分部分"""
    BEFORE = "before"   # 溢出页之前那一页上的上半部分
    AFTER = "after"     # 脚注专用页上的剩余部分


class PlacedObject(BaseModel):
    """已定位的控件（坐标相对于所在带区/行的左上角）"""
    obj: ControlObject
    left: float
    top: float
    width: float
    height: float
    # 线条端点（相对坐标）
    line: tuple[float, float, float, float] | None = None
    content: str | None = None


class RowLayout(BaseModel):
    """明细行"""
    row_index: int          # 绝对行号（0起）
    top: float              # 相对于明细带区顶部
    height: float
    background_color: str | None = None
    # 行内控件（带内容），由流水线填充
    objects: list[PlacedObject] = Field(default_factory=list)


class BandLayout(BaseModel):
    """单个带区在某页上的摆放"""
    band: Band
    top: float              # 相对页面顶部
    height: float
    is_detail: bool = False
    footer_part: FooterPart | None = None
    footer_split_y: float = 0
    background_color: str | None = None
    objects: list[PlacedObject] = Field(default_factory=list)
    rows: list[RowLayout] = Field(default_factory=list)

    @property
    def bottom(self) -> float:
        return self.top + self.height
