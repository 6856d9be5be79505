"""
报表流水线单元测试

每个模块完成后必须运行：pytest tests/unit/test_pipeline.py -v
"""

from pathlib import Path

import pytest

from bandreport.config import ReportTemplate, TemplateLoader
from bandreport.models import BandRole
from bandreport.pipeline import LRUCache, ReportPipeline, fingerprint

SAMPLE_TEMPLATE = Path(__file__).parents[3] / "templates" / "销售单示例.yaml"


@pytest.fixture
def pipeline(registry, runtime_config) -> ReportPipeline:
    return ReportPipeline(registry, config=runtime_config)


def contents(layout) -> list[str | None]:
    return [placed.content for placed in layout.objects]


class TestRender:
    """整体渲染测试"""

    def test_render_sample_data(self, pipeline, sales_template, geometry, fixed_now):
        """测试无数据时使用模板示例数据"""
        result = pipeline.render(sales_template, geometry=geometry, now=fixed_now)

        assert result.total_pages == 1
        page = result.pages[0]
        assert contents(page.get_band(BandRole.HEADER)) == ["标题"]
        assert contents(page.get_band(BandRole.SUMMARY)) == ["6"]
        assert contents(page.get_band(BandRole.FOOTER)) == ["签字", "第1页/共1页"]

    def test_detail_row_content(self, pipeline, sales_template, geometry):
        """测试明细行控件内容取当前行数据"""
        result = pipeline.render(sales_template, geometry=geometry)
        detail = result.pages[0].get_band(BandRole.DETAIL)

        assert [contents(row) for row in detail.rows] == [["品1", "1"], ["品2", "2"], ["品3", "3"]]

    def test_render_pages(self, pipeline, sales_template, geometry, make_rows):
        """测试页数与分页方案一致，页码逐页递增"""
        result = pipeline.render(sales_template, {"products": make_rows(100)}, geometry)

        assert result.total_pages == 3
        assert [p.page_number for p in result.pages] == [1, 2, 3]
        assert result.pages[1].get_band(BandRole.FOOTER) is None
        assert contents(result.pages[2].get_band(BandRole.FOOTER))[-1] == "第3页/共3页"

    def test_default_geometry_from_config(self, pipeline, sales_template, runtime_config):
        """测试无页面设置时取运行期配置"""
        geometry = pipeline.default_geometry(sales_template)
        assert geometry.height == runtime_config.page.height
        assert geometry.margins.top == runtime_config.page.margin_top

    def test_sample_template_file(self, pipeline):
        """测试示例模板文件端到端渲染"""
        template = TemplateLoader.reload(SAMPLE_TEMPLATE)
        result = pipeline.render(template)
        page = result.pages[0]

        detail = page.get_band(BandRole.DETAIL)
        assert [contents(row)[3] for row in detail.rows] == ["¥150.00", "¥160.00"]
        assert detail.rows[1].background_color == "#f5f5f5"

        summary = contents(page.get_band(BandRole.SUMMARY))
        assert summary[0] == "本页合计:310"  # 全角标点预处理
        assert summary[1] == "¥310.00"


class TestCaching:
    """缓存测试"""

    def test_plan_memoized(self, pipeline, sales_template, geometry):
        """测试相同输入命中分页方案缓存"""
        first = pipeline.plan(sales_template, geometry=geometry)
        second = pipeline.plan(sales_template, geometry=geometry)

        assert second is first
        assert pipeline.plan_cache.stats["hits"] == 1
        assert pipeline.plan_cache.stats["misses"] == 1

    def test_data_change_invalidates(self, pipeline, sales_template, geometry, make_rows):
        """测试数据变化后重新规划"""
        first = pipeline.plan(sales_template, {"products": make_rows(3)}, geometry)
        second = pipeline.plan(sales_template, {"products": make_rows(90)}, geometry)

        assert first.record_count == 3
        assert second.record_count == 90
        assert pipeline.plan_cache.stats["misses"] == 2

    def test_row_formula_cache(self, pipeline, make_band, detail_fields, geometry, make_rows):
        """测试行公式结果跨页面几何复用"""
        template = ReportTemplate(
            bands=[make_band(BandRole.DETAIL, 100, 120, background_color_formula="'red'")],
            data_fields=detail_fields,
        )
        data = {"products": make_rows(3)}
        pipeline.plan(template, data, geometry)
        assert len(pipeline.row_cache) == 3

        pipeline.plan(template, data, geometry.model_copy(update={"width": 900}))
        assert pipeline.row_cache.stats["hits"] == 3

    def test_register_function_invalidates(self, pipeline, registry, make_band, detail_fields, geometry, make_rows):
        """测试注册/覆盖函数后分页方案与行公式重新计算"""
        template = ReportTemplate(
            bands=[make_band(BandRole.DETAIL, 100, 120, row_height_formula="ROWH()")],
            data_fields=detail_fields,
        )
        data = {"products": make_rows(3)}
        registry.register("ROWH", lambda: 30)
        assert pipeline.plan(template, data, geometry).row_heights == [30, 30, 30]

        registry.register("ROWH", lambda: 50)
        assert pipeline.plan(template, data, geometry).row_heights == [50, 50, 50]
        assert pipeline.plan_cache.stats["misses"] == 2

    def test_clear_cache(self, pipeline, sales_template, geometry):
        pipeline.plan(sales_template, geometry=geometry)
        pipeline.clear_cache()
        assert len(pipeline.plan_cache) == 0
        assert len(pipeline.row_cache) == 0


class TestLRUCache:
    """LRU缓存测试"""

    def test_eviction(self):
        """测试超出容量淘汰最久未使用项"""
        cache = LRUCache(max_size=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)

        assert "a" in cache
        assert "b" not in cache
        assert cache.stats["evictions"] == 1

    def test_get_or_compute(self):
        """测试命中时不重复计算"""
        cache = LRUCache()
        calls = []

        def compute():
            calls.append(1)
            return "v"

        assert cache.get_or_compute("k", compute) == "v"
        assert cache.get_or_compute("k", compute) == "v"
        assert len(calls) == 1
        assert cache.stats == {"hits": 1, "misses": 1, "evictions": 0}

    def test_fingerprint_key_order(self):
        """测试指纹与键顺序无关"""
        assert fingerprint({"a": 1, "b": [1, 2]}) == fingerprint({"b": [1, 2], "a": 1})
        assert fingerprint({"a": 1}) != fingerprint({"a": 2})
