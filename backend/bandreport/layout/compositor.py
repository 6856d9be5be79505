"""
单页排版器 - 把分页方案落到具体某一页

职责：
1. 自上而下摆放 页眉 / 明细 / 汇总 / 脚注 带区
2. 脚注带拆分：前一页放 before 部分，脚注专用页放 after 部分并整体上移
3. 过滤不打印或完全落在带区外的控件，计算控件相对坐标

测试要点：
- test_normal_page: 页眉+明细+汇总+脚注
- test_footer_only_page: 只输出 after 部分，控件上移 footerSplitY
- test_per_page_summary: 每页都有汇总带
"""

from __future__ import annotations

from ..interfaces import ILayoutCompositor, LayoutError
from ..models import (
    Band,
    BandLayout,
    BandRole,
    ControlObject,
    FooterPart,
    PagePlan,
    PlacedObject,
    RowLayout,
    SummaryDisplayMode,
    find_band,
)


def place_object(obj: ControlObject, band: Band, shift: float) -> PlacedObject:
    """计算控件相对带区（或明细行）的位置"""
    origin = band.top + shift
    line = None
    if obj.is_line:
        x1, y1, x2, y2 = obj.line_points()
        line = (x1, y1 - origin, x2, y2 - origin)
    return PlacedObject(
        obj=obj,
        left=obj.x,
        top=obj.y - origin,
        width=obj.width,
        height=obj.height,
        line=line,
    )


def placed_objects(band: Band, shift: float = 0) -> list[PlacedObject]:
    """带区内可打印控件（完全落在带区外的不输出）"""
    return [
        place_object(obj, band, shift)
        for obj in band.objects
        if obj.print_visible and band.contains(obj)
    ]


class LayoutCompositor(ILayoutCompositor):
    """单页排版器"""

    def layout_page(
        self,
        page_number: int,
        plan: PagePlan,
        bands: list[Band],
    ) -> list[BandLayout]:
        if not 1 <= page_number <= plan.total_pages:
            raise LayoutError(f"页码超出范围: {page_number}/{plan.total_pages}")

        header = find_band(bands, BandRole.HEADER)
        detail = find_band(bands, BandRole.DETAIL)
        summary = find_band(bands, BandRole.SUMMARY)
        footer = find_band(bands, BandRole.FOOTER)

        top = plan.geometry.margins.top
        layouts: list[BandLayout] = []

        # 脚注专用页：只放脚注带剩余部分
        if plan.is_footer_only_page(page_number):
            if footer is not None:
                layouts.append(self._footer_after(footer, plan, top))
            return layouts

        if header is not None:
            layouts.append(self._band(header, top))
            top += header.height

        if detail is not None:
            window = plan.window_for(page_number)
            if window.size > 0:
                layout = self._detail(detail, plan, page_number, top)
                layouts.append(layout)
                top += layout.height

        if summary is not None and self._shows_summary(summary, plan, page_number):
            background = summary.background_color
            if len(plan.summary_backgrounds) >= page_number:
                background = plan.summary_backgrounds[page_number - 1]
            layouts.append(self._band(summary, top, background))
            top += summary.height

        if footer is not None:
            if page_number == plan.total_pages and not plan.has_footer_only_page:
                layouts.append(self._band(footer, top))
            elif (
                plan.has_footer_only_page
                and page_number == plan.total_pages - 1
                and plan.footer_split_y > 0
            ):
                layouts.append(self._footer_before(footer, plan, top))

        return layouts

    @staticmethod
    def _shows_summary(summary: Band, plan: PagePlan, page_number: int) -> bool:
        if summary.summary_display_mode == SummaryDisplayMode.PER_PAGE:
            return True
        # atEnd / perGroup
        return page_number == plan.summary_page

    @staticmethod
    def _band(band: Band, top: float, background: str | None = None) -> BandLayout:
        return BandLayout(
            band=band,
            top=top,
            height=band.height,
            background_color=background if background is not None else band.background_color,
            objects=placed_objects(band),
        )

    @staticmethod
    def _detail(detail: Band, plan: PagePlan, page_number: int, top: float) -> BandLayout:
        window = plan.window_for(page_number)
        rows = []
        row_top = 0.0
        for i in range(window.start, window.end):
            height = plan.row_heights[i] if i < len(plan.row_heights) else plan.single_row_height
            background = plan.row_backgrounds[i] if i < len(plan.row_backgrounds) else detail.background_color
            rows.append(RowLayout(row_index=i, top=row_top, height=height, background_color=background))
            row_top += height
        return BandLayout(
            band=detail,
            top=top,
            height=row_top,
            is_detail=True,
            objects=placed_objects(detail, plan.min_top_offset),
            rows=rows,
        )

    @staticmethod
    def _footer_before(footer: Band, plan: PagePlan, top: float) -> BandLayout:
        split = plan.footer_split_y
        objects = [
            placed
            for placed in placed_objects(footer)
            if placed.obj.bottom_edge - footer.top <= split
        ]
        return BandLayout(
            band=footer,
            top=top,
            height=split,
            footer_part=FooterPart.BEFORE,
            footer_split_y=split,
            background_color=footer.background_color,
            objects=objects,
        )

    @staticmethod
    def _footer_after(footer: Band, plan: PagePlan, top: float) -> BandLayout:
        split = plan.footer_split_y
        objects = [
            place_object(obj, footer, split)
            for obj in footer.objects
            if obj.print_visible
            and footer.contains(obj)
            and obj.bottom_edge - footer.top > split
        ]
        return BandLayout(
            band=footer,
            top=top,
            height=footer.height - split,
            footer_part=FooterPart.AFTER,
            footer_split_y=split,
            background_color=footer.background_color,
            objects=objects,
        )
