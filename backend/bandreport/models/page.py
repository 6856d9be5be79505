"""
页面与分页方案模型

PageGeometry 以像素为单位；毫米/英寸到像素的换算见 models.units。
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PageMargins(BaseModel):
    """页边距（px）"""
    top: float = 40
    bottom: float = 40
    left: float = 40
    right: float = 40


class PageGeometry(BaseModel):
    """页面几何（px），默认 A4@96DPI"""
    width: float = 794
    height: float = 1123
    margins: PageMargins = Field(default_factory=PageMargins)

    @property
    def usable_height(self) -> float:
        return self.height - self.margins.top - self.margins.bottom

    @property
    def content_width(self) -> float:
        return self.width - self.margins.left - self.margins.right

    def cache_key(self) -> tuple[float, ...]:
        m = self.margins
        return (self.width, self.height, m.top, m.bottom, m.left, m.right)


class PageWindow(BaseModel):
    """单页明细窗口 [start, end)"""
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


class PagePlan(BaseModel):
    """分页方案（规划器输出，与具体某页的渲染无关）"""
    rows_per_page: int = 1
    total_pages: int = 1
    single_row_height: float = 0
    min_top_offset: float = 0

    # 脚注带溢出
    has_footer_only_page: bool = False
    footer_split_y: float = 0

    # 汇总带放不下时追加的尾页（页眉+汇总+完整脚注）
    has_trailing_summary_page: bool = False

    detail_data_key: str | None = None
    record_count: int = 0
    usable_height: float = 0
    geometry: PageGeometry = Field(default_factory=PageGeometry)

    # 每个承载明细的页面对应一个窗口；无明细时为单个空窗口
    page_windows: list[PageWindow] = Field(default_factory=lambda: [PageWindow(start=0, end=0)])

    # 按绝对行号索引
    row_heights: list[float] = Field(default_factory=list)
    row_backgrounds: list[str | None] = Field(default_factory=list)

    # 按页码索引（页码-1），仅汇总带区有背景色公式时填充
    summary_backgrounds: list[str | None] = Field(default_factory=list)

    @property
    def detail_page_count(self) -> int:
        """承载明细行的页数"""
        return len(self.page_windows)

    @property
    def summary_page(self) -> int:
        """atEnd 汇总所在页码（有脚注专用页时为倒数第二页）"""
        if self.has_footer_only_page:
            return max(1, self.total_pages - 1)
        return self.total_pages

    def window_for(self, page_number: int) -> PageWindow:
        """获取指定页的明细窗口，超出明细页时返回末尾空窗口"""
        index = page_number - 1
        if 0 <= index < len(self.page_windows):
            return self.page_windows[index]
        return PageWindow(start=self.record_count, end=self.record_count)

    def is_footer_only_page(self, page_number: int) -> bool:
        return self.has_footer_only_page and page_number == self.total_pages
