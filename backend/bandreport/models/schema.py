"""
数据字段定义 - 报表数据源的字段清单

字段名为普通名称（主表字段）或 arrayKey.column 形式（明细字段）。
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

DEFAULT_DETAIL_KEY = "products"


class FieldType(str, Enum):
    """字段类型"""
    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"


class FieldSource(str, Enum):
    """数据来源"""
    MASTER = "master"   # 主表字段
    DETAIL = "detail"   # 明细字段


class DataField(BaseModel):
    """数据字段"""
    name: str
    label: str = ""
    type: FieldType = FieldType.STRING
    source: FieldSource = FieldSource.MASTER

    @property
    def array_key(self) -> str | None:
        """明细数组键名（name 中点号之前的部分）"""
        if "." in self.name:
            return self.name.split(".", 1)[0]
        return None

    @property
    def column(self) -> str:
        """列名（点号之后的部分）"""
        return self.name.split(".", 1)[-1]


def get_detail_data_key(fields: list[DataField], default: str | None = DEFAULT_DETAIL_KEY) -> str | None:
    """从字段定义推断明细数据键名（第一个带点号的明细字段前缀）"""
    for field in fields:
        if field.source == FieldSource.DETAIL:
            if field.array_key:
                return field.array_key
            break
    return default
