"""
配置层 - 加载运行期配置与报表设计文档

职责：
- 加载 config/报表运行期.yaml（运行期参数，可被环境变量覆盖）
- 加载报表设计文档（带区/字段/页面设置）
- 提供类型安全的配置访问接口
"""

from .runtime_config import RuntimeConfig, get_config, reload_config
from .template_loader import ReportTemplate, TemplateLoader, load_template, parse_template

__all__ = [
    "TemplateLoader",
    "ReportTemplate",
    "load_template",
    "parse_template",
    "RuntimeConfig",
    "get_config",
    "reload_config",
]
