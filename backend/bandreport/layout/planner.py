"""
分页规划器 - 计算行高、每页行数、总页数与脚注带拆分

职责：
1. 定位四个带区与明细数组，计算单行高度与每页行数
2. 按行高（含行高公式）把明细划分为连续的页窗口
3. 检查最后一页能否放下汇总带与脚注带，必要时追加尾页或拆分脚注
4. 分页确定后按实际页码计算行背景色

测试要点：
- test_total_pages: totalPages == max(1, ceil(N / R))
- test_empty_detail: N=0 时只有一页
- test_footer_split: 脚注带拆分点取放得下的最大底边
- test_row_height_formula: 行高公式驱动分页
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ..config import get_config
from ..config.runtime_config import LayoutConfig
from ..formula import FormulaEngine
from ..interfaces import IFormulaEngine, IPaginationPlanner
from ..models import (
    Band,
    BandRole,
    DataField,
    FormulaContext,
    PageGeometry,
    PagePlan,
    PageWindow,
    SummaryDisplayMode,
    find_band,
    get_detail_data_key,
)
from .styles import BandStyleResolver

logger = logging.getLogger(__name__)


def band_height(band: Band | None) -> float:
    return band.height if band is not None else 0


def min_top_offset(detail: Band) -> float:
    """明细带区内对象的最小上偏移（y 落在带区范围外的对象不参与）"""
    offsets = [
        obj.y - detail.top
        for obj in detail.objects
        if detail.top <= obj.y < detail.actual_bottom
    ]
    return min(offsets) if offsets else 0


def footer_split_y(footer: Band, remaining: float) -> float:
    """
    脚注带拆分点

    对象按相对底边排序，取不超过剩余空间的最大底边；
    第一个对象都放不下时为 0（整个脚注带移到下一页）。
    """
    bottoms = sorted(obj.bottom_edge - footer.top for obj in footer.objects)
    split = 0.0
    for bottom in bottoms:
        if bottom > remaining:
            break
        split = bottom
    return min(max(split, 0.0), footer.height)


def fixed_windows(record_count: int, rows_per_page: int) -> list[PageWindow]:
    """按固定每页行数划分"""
    if record_count <= 0:
        return [PageWindow(start=0, end=0)]
    return [
        PageWindow(start=start, end=min(start + rows_per_page, record_count))
        for start in range(0, record_count, rows_per_page)
    ]


def greedy_windows(heights: list[float], available: float) -> list[PageWindow]:
    """按累计行高划分（每页至少一行）"""
    if not heights:
        return [PageWindow(start=0, end=0)]
    windows = []
    start = 0
    used = 0.0
    for i, height in enumerate(heights):
        if i > start and used + height > available:
            windows.append(PageWindow(start=start, end=i))
            start = i
            used = 0.0
        used += height
    windows.append(PageWindow(start=start, end=len(heights)))
    return windows


class PaginationPlanner(IPaginationPlanner):
    """分页规划器"""

    def __init__(
        self,
        engine: IFormulaEngine | None = None,
        config: LayoutConfig | None = None,
        styles: BandStyleResolver | None = None,
    ):
        self.config = config or get_config().layout
        if styles is None:
            styles = BandStyleResolver(engine or FormulaEngine())
        self.styles = styles

    def plan(
        self,
        bands: list[Band],
        data: dict[str, Any] | None,
        schema: list[DataField],
        geometry: PageGeometry,
    ) -> PagePlan:
        """计算分页方案"""
        data = data or {}
        header = find_band(bands, BandRole.HEADER)
        detail = find_band(bands, BandRole.DETAIL)
        summary = find_band(bands, BandRole.SUMMARY)
        footer = find_band(bands, BandRole.FOOTER)

        detail_key = get_detail_data_key(schema, default=self.config.default_detail_key)
        usable = geometry.usable_height
        items = data.get(detail_key)

        if detail is None or not isinstance(items, list):
            logger.debug(f"无明细带区或明细数据（{detail_key}），按单页处理")
            plan = PagePlan(detail_data_key=detail_key, usable_height=usable, geometry=geometry)
            return self._with_summary_backgrounds(plan, summary, data, detail_key)

        offset = min_top_offset(detail)
        single = detail.height - offset
        if single <= 0:
            logger.warning(f"明细行高无效({single})，使用默认行高 {self.config.default_row_height}")
            single = self.config.default_row_height

        per_page_summary = summary is not None and summary.summary_display_mode == SummaryDisplayMode.PER_PAGE
        fixed = band_height(header) + (band_height(summary) if per_page_summary else 0)
        available = usable - fixed
        rows_per_page = max(1, math.floor(available / single))
        record_count = len(items)

        heights = self._row_heights(detail, data, items, detail_key, single)
        if detail.row_height_formula:
            windows = greedy_windows(heights, available)
        else:
            windows = fixed_windows(record_count, rows_per_page)
        total_pages = max(1, len(windows))

        has_footer_only_page = False
        has_trailing_summary_page = False
        split = 0.0

        if record_count > 0:
            last = windows[-1]
            last_detail_height = sum(heights[last.start:last.end])
            remaining = available - last_detail_height
            summary_at_end = band_height(summary) if summary is not None and not per_page_summary else 0
            footer_h = band_height(footer)

            if remaining < summary_at_end + footer_h:
                if summary_at_end > 0 and remaining < summary_at_end:
                    # 汇总带也放不下：追加一页放页眉+汇总+完整脚注
                    total_pages += 1
                    has_trailing_summary_page = True
                    logger.debug(f"汇总带放不下(剩余{remaining})，追加汇总页")
                elif footer is not None and footer_h > 0:
                    split = footer_split_y(footer, remaining - summary_at_end)
                    total_pages += 1
                    has_footer_only_page = True
                    logger.debug(f"脚注带放不下(剩余{remaining - summary_at_end})，拆分点 {split}")

        plan = PagePlan(
            rows_per_page=rows_per_page,
            total_pages=total_pages,
            single_row_height=single,
            min_top_offset=offset,
            has_footer_only_page=has_footer_only_page,
            footer_split_y=split,
            has_trailing_summary_page=has_trailing_summary_page,
            detail_data_key=detail_key,
            record_count=record_count,
            usable_height=usable,
            geometry=geometry,
            page_windows=windows,
            row_heights=heights,
        )
        plan = plan.model_copy(update={
            "row_backgrounds": self._row_backgrounds(detail, data, items, plan),
        })
        logger.debug(
            f"分页完成: {record_count}行, 每页{rows_per_page}行, 共{total_pages}页"
        )
        return self._with_summary_backgrounds(plan, summary, data, detail_key)

    def _row_heights(
        self,
        detail: Band,
        data: dict[str, Any],
        items: list[Any],
        detail_key: str,
        single: float,
    ) -> list[float]:
        """逐行行高（分页前求值，页码按 1/1）"""
        if not detail.row_height_formula:
            return [single] * len(items)
        heights = []
        for i, item in enumerate(items):
            context = FormulaContext(
                data=data,
                current_item=item if isinstance(item, dict) else None,
                row_index=i,
                page_size=len(items),
                detail_key=detail_key,
            )
            heights.append(self.styles.row_height(detail, context, single))
        return heights

    def _row_backgrounds(
        self,
        detail: Band,
        data: dict[str, Any],
        items: list[Any],
        plan: PagePlan,
    ) -> list[str | None]:
        """逐行背景色（分页后求值，页码为实际页码）"""
        if not detail.background_color_formula:
            return [detail.background_color] * len(items)
        backgrounds: list[str | None] = []
        for page_number, window in enumerate(plan.page_windows, start=1):
            for i in range(window.start, window.end):
                item = items[i]
                context = FormulaContext(
                    data=data,
                    current_item=item if isinstance(item, dict) else None,
                    current_page=page_number,
                    total_pages=plan.total_pages,
                    row_index=i,
                    start_index=window.start,
                    page_size=window.size,
                    detail_key=plan.detail_data_key,
                )
                backgrounds.append(self.styles.background(detail, context))
        return backgrounds

    def _with_summary_backgrounds(
        self,
        plan: PagePlan,
        summary: Band | None,
        data: dict[str, Any],
        detail_key: str,
    ) -> PagePlan:
        """汇总带区按页计算背景色"""
        if summary is None or not summary.background_color_formula:
            return plan
        backgrounds = []
        for page_number in range(1, plan.total_pages + 1):
            window = plan.window_for(page_number)
            context = FormulaContext(
                data=data,
                current_page=page_number,
                total_pages=plan.total_pages,
                start_index=window.start,
                page_size=window.size,
                detail_key=detail_key,
            )
            backgrounds.append(self.styles.background(summary, context))
        return plan.model_copy(update={"summary_backgrounds": backgrounds})
