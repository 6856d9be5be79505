"""
运行期配置 - 读取 config/报表运行期.yaml

职责：
- 加载页面默认值/公式格式/排版缓存/日志等运行参数
- 提供环境变量覆盖机制（前缀 BANDREPORT_，嵌套分隔符 __）
- 类型安全的配置访问
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic_settings import BaseSettings


class PageDefaultsConfig(BaseModel):
    """页面默认值（未提供页面设置时使用，A4@96DPI）"""

    width: float = 794
    height: float = 1123
    margin_top: float = 40
    margin_bottom: float = 40
    margin_left: float = 40
    margin_right: float = 40
    dpi: float = 96


class FormulaConfig(BaseModel):
    """公式配置"""

    decimal_places: int = 2
    currency_symbol: str = "¥"
    empty_marker: str = "[公式]"
    syntax_error_marker: str = "[公式错误]"
    eval_error_marker: str = "[计算错误]"


class LayoutConfig(BaseModel):
    """排版配置"""

    default_row_height: float = 20
    default_detail_key: str = "products"
    plan_cache_size: int = 32
    row_cache_size: int = 4096


class LoggingConfig(BaseModel):
    """日志配置"""

    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class RuntimeConfig(BaseSettings):
    """运行期配置（支持环境变量覆盖）"""

    page: PageDefaultsConfig = Field(default_factory=PageDefaultsConfig)
    formula: FormulaConfig = Field(default_factory=FormulaConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "BANDREPORT_",
        "env_nested_delimiter": "__",
    }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> RuntimeConfig:
        """从YAML文件加载配置"""
        path = Path(yaml_path)
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        runtime_opts = data.get("runtime_options", {})

        return cls(
            page=PageDefaultsConfig(**cls._extract(runtime_opts, "page")),
            formula=FormulaConfig(**cls._extract(runtime_opts, "formula")),
            layout=LayoutConfig(**cls._extract(runtime_opts, "layout")),
            logging=LoggingConfig(**cls._extract(runtime_opts, "logging")),
        )

    @staticmethod
    def _extract(data: dict[str, Any], key: str) -> dict[str, Any]:
        """提取并展平配置"""
        section = data.get(key) or {}
        result = {}
        for k, v in section.items():
            if isinstance(v, dict) and "default" in v:
                result[k] = v["default"]
            elif not isinstance(v, dict):
                result[k] = v
        return result

    def setup_logging(self) -> None:
        """按配置初始化根日志"""
        logging.basicConfig(
            level=getattr(logging, self.logging.log_level.upper(), logging.INFO),
            format=self.logging.log_format,
        )


DEFAULT_CONFIG_PATH = Path("config/报表运行期.yaml")

# 全局配置实例
_config: RuntimeConfig | None = None


def get_config() -> RuntimeConfig:
    """获取全局配置（惰性加载）"""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_yaml(DEFAULT_CONFIG_PATH)
    return _config


def reload_config(yaml_path: str | Path | None = None) -> RuntimeConfig:
    """重新加载配置"""
    global _config
    _config = RuntimeConfig.from_yaml(yaml_path or DEFAULT_CONFIG_PATH)
    return _config
