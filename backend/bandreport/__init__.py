"""
带区报表核心 - 公式引擎与分页排版

模块结构：
- config/     运行期配置与模板文档加载
- models/     数据模型定义（带区/控件/字段/页面/公式上下文）
- formula/    公式引擎（词法/语法/解释执行/函数注册表/字段解析）
- layout/     分页规划与单页排版
- pipeline/   渲染流水线编排与缓存
"""

__version__ = "0.1.0"
