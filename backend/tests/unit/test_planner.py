"""
分页规划单元测试

每个模块完成后必须运行：pytest tests/unit/test_planner.py -v
"""

import math

import pytest

from bandreport.formula import FormulaEngine
from bandreport.layout import PaginationPlanner, footer_split_y, min_top_offset
from bandreport.models import Band, BandRole, DataField, PageGeometry, PageMargins, PageWindow


FOOTER_OBJECTS = [
    {"id": "sign", "type": "text", "x": 10, "y": 170, "width": 100, "height": 40},
    {"id": "page", "type": "page_number", "x": 10, "y": 220, "width": 100, "height": 40},
]


@pytest.fixture
def planner(engine: FormulaEngine, runtime_config) -> PaginationPlanner:
    return PaginationPlanner(engine=engine, config=runtime_config.layout)


@pytest.fixture
def header_detail(make_band) -> list[Band]:
    """页眉100 + 明细行高20（可用明细高度900，每页45行）"""
    return [
        make_band(BandRole.HEADER, 0, 100),
        make_band(BandRole.DETAIL, 100, 120, [
            {"id": "name", "type": "field", "x": 10, "y": 100, "width": 100, "height": 20, "fieldName": "products.name"},
        ]),
    ]


@pytest.fixture
def with_footer(make_band, header_detail: list[Band]) -> list[Band]:
    """页眉+明细+脚注（脚注高100，对象底边40/90）"""
    return header_detail + [make_band(BandRole.FOOTER, 170, 270, FOOTER_OBJECTS)]


class TestRowsAndPages:
    """每页行数与总页数测试"""

    @pytest.mark.parametrize("count", [1, 44, 45, 46, 90, 200])
    def test_total_pages_formula(self, planner, header_detail, detail_fields, geometry, make_rows, count):
        """测试 totalPages == max(1, ceil(N / R))"""
        plan = planner.plan(header_detail, {"products": make_rows(count)}, detail_fields, geometry)
        assert plan.rows_per_page == 45
        assert plan.total_pages == max(1, math.ceil(count / 45))

    def test_windows_partition_records(self, planner, header_detail, detail_fields, geometry, make_rows):
        """测试页窗口连续且不重叠地覆盖全部行"""
        plan = planner.plan(header_detail, {"products": make_rows(100)}, detail_fields, geometry)
        assert plan.page_windows == [
            PageWindow(start=0, end=45),
            PageWindow(start=45, end=90),
            PageWindow(start=90, end=100),
        ]
        assert sum(w.size for w in plan.page_windows) == plan.record_count

    def test_empty_detail(self, planner, simple_bands, detail_fields, geometry):
        """测试空明细只有一页"""
        plan = planner.plan(simple_bands, {"products": []}, detail_fields, geometry)
        assert plan.total_pages == 1
        assert not plan.has_footer_only_page
        assert plan.page_windows == [PageWindow(start=0, end=0)]

    def test_missing_detail_array(self, planner, simple_bands, detail_fields, geometry):
        """测试无明细数组按单页处理"""
        plan = planner.plan(simple_bands, {"orderNo": "SO-1"}, detail_fields, geometry)
        assert plan.total_pages == 1
        assert plan.rows_per_page >= 1
        assert plan.detail_data_key == "products"

    def test_missing_detail_band(self, planner, make_band, detail_fields, geometry, make_rows):
        """测试无明细带区"""
        bands = [make_band(BandRole.HEADER, 0, 100)]
        plan = planner.plan(bands, {"products": make_rows(500)}, detail_fields, geometry)
        assert plan.total_pages == 1

    def test_per_page_summary_reserved(self, planner, make_band, header_detail, detail_fields, geometry, make_rows):
        """测试每页汇总占用固定高度"""
        bands = header_detail + [make_band(BandRole.SUMMARY, 120, 170, summary_display_mode="perPage")]
        plan = planner.plan(bands, {"products": make_rows(84)}, detail_fields, geometry)
        assert plan.rows_per_page == 42
        assert plan.total_pages == 2

    def test_default_detail_key(self, planner, header_detail, geometry, make_rows):
        """测试字段清单未声明明细字段时默认 products"""
        plan = planner.plan(header_detail, {"products": make_rows(3)}, [], geometry)
        assert plan.detail_data_key == "products"
        assert plan.record_count == 3

    def test_declared_detail_key(self, planner, header_detail, geometry, make_rows):
        """测试按第一个明细字段的前缀定位明细数组"""
        fields = [DataField(name="items.code", source="detail")]
        data = {"products": make_rows(100), "items": make_rows(2)}
        plan = planner.plan(header_detail, data, fields, geometry)
        assert plan.detail_data_key == "items"
        assert plan.record_count == 2

    def test_deterministic(self, planner, simple_bands, detail_fields, geometry, make_rows):
        """测试相同输入方案一致"""
        data = {"products": make_rows(60)}
        assert planner.plan(simple_bands, data, detail_fields, geometry) == planner.plan(
            simple_bands, data, detail_fields, geometry
        )


class TestRowHeight:
    """行高测试"""

    def test_min_top_offset(self, make_band):
        """测试最小上偏移（带区外对象不参与）"""
        detail = make_band(BandRole.DETAIL, 100, 130, [
            {"type": "text", "x": 0, "y": 105, "width": 10, "height": 10},
            {"type": "text", "x": 0, "y": 110, "width": 10, "height": 10},
            {"type": "text", "x": 0, "y": 95, "width": 10, "height": 10},
        ])
        assert min_top_offset(detail) == 5

    def test_single_row_height_subtracts_offset(self, planner, make_band, detail_fields, geometry, make_rows):
        """测试单行高度扣除上偏移"""
        bands = [make_band(BandRole.DETAIL, 100, 130, [
            {"type": "text", "x": 0, "y": 105, "width": 10, "height": 10},
        ])]
        plan = planner.plan(bands, {"products": make_rows(1)}, detail_fields, geometry)
        assert plan.min_top_offset == 5
        assert plan.single_row_height == 25
        assert plan.rows_per_page == 40

    def test_zero_height_falls_back(self, planner, make_band, detail_fields, geometry, make_rows, runtime_config):
        """测试行高为0时使用默认行高"""
        bands = [make_band(BandRole.DETAIL, 100, 100)]
        plan = planner.plan(bands, {"products": make_rows(3)}, detail_fields, geometry)
        assert plan.single_row_height == runtime_config.layout.default_row_height
        assert plan.rows_per_page == 50

    def test_row_height_formula(self, planner, make_band, detail_fields, geometry):
        """测试行高公式驱动分页"""
        bands = [
            make_band(BandRole.HEADER, 0, 100),
            make_band(BandRole.DETAIL, 100, 120, row_height_formula="{h}"),
        ]
        rows = [{"h": 100} for _ in range(12)]
        plan = planner.plan(bands, {"products": rows}, detail_fields, geometry)
        assert plan.row_heights == [100.0] * 12
        assert plan.page_windows == [PageWindow(start=0, end=9), PageWindow(start=9, end=12)]
        assert plan.total_pages == 2

    def test_invalid_row_height_result(self, planner, make_band, detail_fields, geometry):
        """测试行高公式结果无效时回退单行高度"""
        bands = [make_band(BandRole.DETAIL, 100, 120, row_height_formula="{h}")]
        rows = [{"h": -5}, {"h": "abc"}, {}, {"h": 35}]
        plan = planner.plan(bands, {"products": rows}, detail_fields, geometry)
        assert plan.row_heights == [20, 20, 20, 35.0]

    def test_oversized_row_gets_own_page(self, planner, make_band, detail_fields, geometry):
        """测试超高行也至少占一页"""
        bands = [make_band(BandRole.DETAIL, 100, 120, row_height_formula="{h}")]
        rows = [{"h": 5000}, {"h": 5000}]
        plan = planner.plan(bands, {"products": rows}, detail_fields, geometry)
        assert plan.total_pages == 2


class TestRowBackground:
    """行背景色测试"""

    def test_formula_with_fallback(self, planner, make_band, detail_fields, geometry, make_rows):
        """测试背景色公式，无效颜色回退静态背景"""
        bands = [make_band(
            BandRole.DETAIL, 100, 120,
            background_color="#ffffff",
            background_color_formula="IF({rowIndex} % 2 == 0, '#eeeeee', 'not a color')",
        )]
        plan = planner.plan(bands, {"products": make_rows(4)}, detail_fields, geometry)
        assert plan.row_backgrounds == ["#ffffff", "#eeeeee", "#ffffff", "#eeeeee"]

    def test_formula_sees_final_page_numbers(self, planner, header_detail, make_band, detail_fields, geometry, make_rows):
        """测试背景色在分页后按实际页码求值"""
        bands = [
            header_detail[0],
            make_band(BandRole.DETAIL, 100, 120,
                      background_color_formula="{pageNumber} == {totalPages} ? 'red' : 'blue'"),
        ]
        plan = planner.plan(bands, {"products": make_rows(50)}, detail_fields, geometry)
        assert plan.row_backgrounds[:45] == ["blue"] * 45
        assert plan.row_backgrounds[45:] == ["red"] * 5

    def test_static_background(self, planner, make_band, detail_fields, geometry, make_rows):
        """测试无公式时使用静态背景"""
        bands = [make_band(BandRole.DETAIL, 100, 120, background_color="#f0f0f0")]
        plan = planner.plan(bands, {"products": make_rows(2)}, detail_fields, geometry)
        assert plan.row_backgrounds == ["#f0f0f0", "#f0f0f0"]


class TestFooterFit:
    """脚注带拆分测试"""

    def test_footer_fits(self, planner, with_footer, detail_fields, geometry, make_rows):
        """测试脚注放得下时不加页"""
        plan = planner.plan(with_footer, {"products": make_rows(40)}, detail_fields, geometry)
        assert plan.total_pages == 1
        assert not plan.has_footer_only_page

    def test_footer_split(self, planner, with_footer, detail_fields, geometry, make_rows):
        """测试剩余60时拆分点为40"""
        plan = planner.plan(with_footer, {"products": make_rows(42)}, detail_fields, geometry)
        assert plan.footer_split_y == 40
        assert plan.has_footer_only_page
        assert plan.total_pages == 2

    def test_footer_fully_deferred(self, planner, with_footer, detail_fields, geometry, make_rows):
        """测试第一个对象都放不下时拆分点为0"""
        plan = planner.plan(with_footer, {"products": make_rows(44)}, detail_fields, geometry)
        assert plan.footer_split_y == 0
        assert plan.has_footer_only_page
        assert plan.total_pages == 2

    def test_summary_then_footer_split(self, planner, simple_bands, detail_fields, geometry, make_rows):
        """测试汇总放得下、脚注放不下"""
        plan = planner.plan(simple_bands, {"products": make_rows(40)}, detail_fields, geometry)
        assert plan.has_footer_only_page
        assert plan.footer_split_y == 40
        assert plan.summary_page == 1

    def test_summary_does_not_fit(self, planner, simple_bands, detail_fields, geometry, make_rows):
        """测试汇总带也放不下时追加汇总页"""
        plan = planner.plan(simple_bands, {"products": make_rows(45)}, detail_fields, geometry)
        assert plan.has_trailing_summary_page
        assert not plan.has_footer_only_page
        assert plan.total_pages == 2
        assert plan.summary_page == 2

    def test_footer_split_function(self, make_band):
        """测试拆分点计算（线条取两端点较大y）"""
        footer = make_band(BandRole.FOOTER, 170, 270, FOOTER_OBJECTS + [
            {"type": "line", "x": 0, "y": 180, "width": 100, "height": 0, "y1": 180, "y2": 200},
        ])
        assert footer_split_y(footer, 60) == 40
        assert footer_split_y(footer, 35) == 30
        assert footer_split_y(footer, 10) == 0
        assert footer_split_y(footer, 500) == 90

    def test_split_clamped_to_footer_height(self, make_band):
        """测试拆分点不超过脚注高度"""
        footer = make_band(BandRole.FOOTER, 170, 200, [
            {"type": "text", "x": 0, "y": 170, "width": 10, "height": 80},
        ])
        assert footer_split_y(footer, 100) == 30

    def test_zero_height_footer_never_adds_page(self, planner, make_band, detail_fields):
        """测试零高度脚注带在超高行后不追加空白页"""
        geometry = PageGeometry(width=500, height=200, margins=PageMargins(top=0, bottom=0, left=0, right=0))
        bands = [
            make_band(BandRole.DETAIL, 0, 300),
            make_band(BandRole.FOOTER, 300, 300),
        ]
        plan = planner.plan(bands, {"products": [{"name": "超高行"}]}, detail_fields, geometry)
        assert plan.total_pages == 1
        assert not plan.has_footer_only_page
        assert plan.footer_split_y == 0


class TestFooterFitWithRowHeights:
    """行高公式下的脚注带检查"""

    @pytest.fixture
    def variable_bands(self, make_band) -> list[Band]:
        return [
            make_band(BandRole.HEADER, 0, 100),
            make_band(BandRole.DETAIL, 100, 120, row_height_formula="{h}"),
            make_band(BandRole.FOOTER, 170, 270, FOOTER_OBJECTS),
        ]

    def test_footer_fits_after_tall_rows(self, planner, variable_bands, detail_fields, geometry):
        """测试累计行高800，剩余100，脚注刚好放下"""
        rows = [{"h": 100}] * 8
        plan = planner.plan(variable_bands, {"products": rows}, detail_fields, geometry)
        assert plan.total_pages == 1
        assert not plan.has_footer_only_page

    def test_footer_split_uses_summed_heights(self, planner, variable_bands, detail_fields, geometry):
        """测试剩余空间按最后一页实际行高之和计算"""
        rows = [{"h": 100}] * 8 + [{"h": 40}]
        plan = planner.plan(variable_bands, {"products": rows}, detail_fields, geometry)
        assert plan.page_windows == [PageWindow(start=0, end=9)]
        assert plan.has_footer_only_page
        assert plan.footer_split_y == 40
        assert plan.total_pages == 2

    def test_split_on_second_detail_page(self, planner, variable_bands, detail_fields, geometry):
        """测试多页时只看最后一页的行高"""
        rows = [{"h": 300}] * 3 + [{"h": 100}] * 8 + [{"h": 75}]
        plan = planner.plan(variable_bands, {"products": rows}, detail_fields, geometry)
        assert plan.page_windows == [PageWindow(start=0, end=3), PageWindow(start=3, end=12)]
        assert plan.footer_split_y == 0
        assert plan.total_pages == 3


def test_geometry_usable_height(geometry: PageGeometry):
    """测试可用高度"""
    assert geometry.usable_height == 1000
