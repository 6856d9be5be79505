"""
报表流水线 - 模板 + 数据 -> 分页方案 -> 逐页排版 -> 控件内容

职责：
1. 计算并缓存分页方案（模板/数据/页面几何不变时不重算）
2. 逐页调用排版器，生成带区摆放
3. 为每个控件（明细带区按行）生成内容字符串
4. 行公式结果跨页缓存

测试要点：
- test_render_pages: 页数与分页方案一致
- test_plan_memoized: 相同输入命中缓存
- test_detail_row_content: 明细行控件内容取当前行数据
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..config import ReportTemplate, RuntimeConfig, get_config
from ..formula import FormulaEngine, FunctionRegistry
from ..layout import BandStyleResolver, LayoutCompositor, ObjectContentResolver, PaginationPlanner
from ..models import (
    BandLayout,
    BandRole,
    FormulaContext,
    PageGeometry,
    PageMargins,
    PagePlan,
    PlacedObject,
)
from .cache import LRUCache, fingerprint

logger = logging.getLogger(__name__)


class RenderedPage(BaseModel):
    """单页排版结果（控件已带内容）"""
    page_number: int
    bands: list[BandLayout] = Field(default_factory=list)

    def get_band(self, role: BandRole) -> BandLayout | None:
        for layout in self.bands:
            if layout.band.id == role:
                return layout
        return None


class RenderResult(BaseModel):
    """渲染结果，交给外部渲染器/导出器"""
    plan: PagePlan
    pages: list[RenderedPage] = Field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return self.plan.total_pages


class ReportPipeline:
    """报表流水线"""

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        config: RuntimeConfig | None = None,
    ):
        self.config = config or get_config()
        self.registry = registry if registry is not None else FunctionRegistry()
        self.compositor = LayoutCompositor()
        self.plan_cache = LRUCache(self.config.layout.plan_cache_size)
        self.row_cache = LRUCache(self.config.layout.row_cache_size)

    def engine_for(self, template: ReportTemplate) -> FormulaEngine:
        return FormulaEngine(
            self.registry,
            template.data_fields,
            self.config.formula,
            default_detail_key=self.config.layout.default_detail_key,
        )

    def default_geometry(self, template: ReportTemplate) -> PageGeometry:
        """模板页面设置，缺省时取运行期配置"""
        if template.page_settings is not None:
            return template.get_geometry(self.config.page.dpi)
        page = self.config.page
        return PageGeometry(
            width=page.width,
            height=page.height,
            margins=PageMargins(
                top=page.margin_top,
                bottom=page.margin_bottom,
                left=page.margin_left,
                right=page.margin_right,
            ),
        )

    def plan(
        self,
        template: ReportTemplate,
        data: dict[str, Any] | None = None,
        geometry: PageGeometry | None = None,
    ) -> PagePlan:
        """计算分页方案（缓存）"""
        data = template.sample_data if data is None else data
        geometry = geometry or self.default_geometry(template)

        template_fp = fingerprint(template.model_dump(mode="json"))
        data_fp = fingerprint(data)
        key = (template_fp, data_fp, self.registry.version, geometry.cache_key())

        cached = self.plan_cache.get(key)
        if cached is not None:
            logger.debug(f"分页方案命中缓存: {template.name}")
            return cached

        styles = BandStyleResolver(
            self.engine_for(template),
            cache=self.row_cache,
            version=f"{template_fp}:{data_fp}:{self.registry.version}",
        )
        planner = PaginationPlanner(config=self.config.layout, styles=styles)
        result = planner.plan(template.bands, data, template.data_fields, geometry)
        self.plan_cache.put(key, result)
        return result

    def render(
        self,
        template: ReportTemplate,
        data: dict[str, Any] | None = None,
        geometry: PageGeometry | None = None,
        now: datetime | None = None,
    ) -> RenderResult:
        """渲染全部页面"""
        data = template.sample_data if data is None else data
        plan = self.plan(template, data, geometry)
        logger.info(f"开始排版: {template.name or '未命名模板'}, 共{plan.total_pages}页")

        pages = [
            self.render_page(template, data, page_number, plan, now)
            for page_number in range(1, plan.total_pages + 1)
        ]
        return RenderResult(plan=plan, pages=pages)

    def render_page(
        self,
        template: ReportTemplate,
        data: dict[str, Any],
        page_number: int,
        plan: PagePlan,
        now: datetime | None = None,
    ) -> RenderedPage:
        """排版单页并填充控件内容"""
        content = ObjectContentResolver(self.engine_for(template))
        window = plan.window_for(page_number)
        detail_key = plan.detail_data_key or self.config.layout.default_detail_key
        page_context = FormulaContext(
            data=data,
            current_page=page_number,
            total_pages=plan.total_pages,
            start_index=window.start,
            page_size=window.size,
            detail_key=detail_key,
            now=now,
        )

        bands = []
        for layout in self.compositor.layout_page(page_number, plan, template.bands):
            if layout.is_detail:
                layout = self._fill_rows(layout, content, page_context)
            else:
                layout = layout.model_copy(update={
                    "objects": self._fill(layout.objects, content, page_context),
                })
            bands.append(layout)
        return RenderedPage(page_number=page_number, bands=bands)

    def _fill_rows(
        self,
        layout: BandLayout,
        content: ObjectContentResolver,
        page_context: FormulaContext,
    ) -> BandLayout:
        items = page_context.detail_items()
        rows = []
        for row in layout.rows:
            item = items[row.row_index] if row.row_index < len(items) else None
            context = page_context.model_copy(update={
                "current_item": item if isinstance(item, dict) else None,
                "row_index": row.row_index,
            })
            rows.append(row.model_copy(update={
                "objects": self._fill(layout.objects, content, context),
            }))
        return layout.model_copy(update={"rows": rows})

    @staticmethod
    def _fill(
        objects: list[PlacedObject],
        content: ObjectContentResolver,
        context: FormulaContext,
    ) -> list[PlacedObject]:
        return [
            placed.model_copy(update={"content": content.content(placed.obj, context)})
            for placed in objects
        ]

    def clear_cache(self) -> None:
        self.plan_cache.clear()
        self.row_cache.clear()
