"""
模板加载器 - 读取保存的报表设计文档（YAML/JSON）

职责：
- 解析设计文档并提供类型安全访问
- 提供带区、字段清单、页面设置等便捷方法
- 缓存加载结果（避免重复解析）

使用方式：
    template = TemplateLoader.load("templates/销售单.yaml")
    detail = template.get_band(BandRole.DETAIL)
    geometry = template.get_geometry()
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..interfaces import TemplateError
from ..models import Band, BandRole, DataField, PageGeometry, PageSettings, find_band, get_detail_data_key


class ReportTemplate(BaseModel):
    """报表设计文档的结构化表示"""
    name: str = ""
    bands: list[Band] = Field(default_factory=list)
    data_fields: list[DataField] = Field(default_factory=list)
    page_settings: PageSettings | None = None

    # 预览数据（设计器保存的示例数据）
    sample_data: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    # === 便捷访问方法 ===

    def get_band(self, role: BandRole) -> Band | None:
        """按角色获取带区"""
        return find_band(self.bands, role)

    @property
    def detail_data_key(self) -> str | None:
        """明细数据键名"""
        return get_detail_data_key(self.data_fields)

    def get_geometry(self, dpi: float = 96) -> PageGeometry:
        """获取页面几何（px），无页面设置时取默认A4"""
        if self.page_settings is None:
            return PageGeometry()
        return self.page_settings.to_geometry(dpi)


def parse_template(raw: dict[str, Any]) -> ReportTemplate:
    """从字典构造模板"""
    if not isinstance(raw, dict):
        raise TemplateError(f"模板文档格式错误: 期望对象，实际为 {type(raw).__name__}")
    try:
        return ReportTemplate(**raw)
    except ValidationError as e:
        raise TemplateError(f"模板文档校验失败: {e}") from e


class TemplateLoader:
    """模板加载器（缓存）"""

    @classmethod
    @lru_cache(maxsize=16)
    def load(cls, template_path: str | Path) -> ReportTemplate:
        """加载并缓存模板（JSON 是 YAML 的子集，统一用 yaml 解析）"""
        path = Path(template_path)
        if not path.exists():
            raise FileNotFoundError(f"模板文件不存在: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise TemplateError(f"模板文件解析失败: {path}: {e}") from e

        return parse_template(data)

    @classmethod
    def reload(cls, template_path: str | Path) -> ReportTemplate:
        """强制重新加载（清除缓存）"""
        cls.load.cache_clear()
        return cls.load(template_path)


# 便捷函数
def load_template(template_path: str | Path) -> ReportTemplate:
    """加载报表模板"""
    return TemplateLoader.load(template_path)
