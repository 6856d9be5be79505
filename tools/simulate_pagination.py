"""
用报表设计文档 + 数据JSON 模拟分页，打印分页方案与每页带区摆放，用于核对分页算法。

示例：
  python tools/simulate_pagination.py templates/销售单示例.yaml --rows 45
  python tools/simulate_pagination.py templates/销售单示例.yaml --data data.json --show-content
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "backend"))

from bandreport.config import get_config, load_template  # noqa: E402
from bandreport.pipeline import ReportPipeline  # noqa: E402

logger = logging.getLogger("simulate_pagination")


def _load_data(path: str | None, template, rows: int | None) -> dict:
    if path:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    data = dict(template.sample_data)
    if rows is not None:
        # 用第一条示例明细复制出指定行数
        key = template.detail_data_key or get_config().layout.default_detail_key
        sample = (data.get(key) or [{}])[0]
        data[key] = [dict(sample, seq=i + 1) for i in range(rows)]
    return data


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="报表分页模拟")
    parser.add_argument("template", help="报表设计文档（YAML/JSON）")
    parser.add_argument("--data", help="数据JSON，缺省使用模板示例数据")
    parser.add_argument("--rows", type=int, help="按示例明细复制的行数")
    parser.add_argument("--show-content", action="store_true", help="打印控件内容")
    args = parser.parse_args(argv)

    config = get_config()
    config.setup_logging()

    try:
        template = load_template(args.template)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    data = _load_data(args.data, template, args.rows)
    result = ReportPipeline(config=config).render(template, data)
    plan = result.plan

    print(f"明细键: {plan.detail_data_key}  行数: {plan.record_count}")
    print(f"单行高: {plan.single_row_height}  每页行数: {plan.rows_per_page}  总页数: {plan.total_pages}")
    print(f"脚注专用页: {plan.has_footer_only_page}  拆分点: {plan.footer_split_y}  汇总尾页: {plan.has_trailing_summary_page}")

    for page in result.pages:
        window = plan.window_for(page.page_number)
        print(f"\n=== 第{page.page_number}页  明细[{window.start}, {window.end}) ===")
        for layout in page.bands:
            part = f" ({layout.footer_part.value})" if layout.footer_part else ""
            print(f"  {layout.band.id.value:<8}{part} top={layout.top:g} height={layout.height:g}")
            if not args.show_content:
                continue
            for placed in layout.objects if not layout.is_detail else []:
                print(f"    {placed.obj.id or placed.obj.type.value}: {placed.content!r}")
            for row in layout.rows:
                contents = ", ".join(repr(p.content) for p in row.objects)
                print(f"    行{row.row_index + 1}: {contents}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
