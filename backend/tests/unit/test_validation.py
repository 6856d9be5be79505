"""
公式校验单元测试

每个模块完成后必须运行：pytest tests/unit/test_validation.py -v
"""

import pytest

from bandreport.formula import FormulaEngine, validate_formula


class TestStaticValidation:
    """静态校验测试"""

    def test_valid_formula(self):
        """测试合法公式"""
        result = validate_formula("{a} + 1")
        assert result.valid
        assert result.message == "公式格式正确"

    def test_empty(self):
        """测试空公式"""
        assert validate_formula("  ").message == "公式不能为空"

    def test_missing_brace(self, engine: FormulaEngine):
        """测试缺少 }：校验报错，求值返回哨兵"""
        result = validate_formula("{price")
        assert not result.valid
        assert "缺少 }" in result.message
        assert engine.evaluate("{price") == "[公式错误]"

    def test_extra_brace(self):
        """测试多余的 }"""
        assert validate_formula("price}").message == "字段引用格式错误：多余的 }"

    @pytest.mark.parametrize("formula, message", [
        ("(1 + 2", "括号不匹配：缺少右括号"),
        ("1 + 2)", "括号不匹配：多余的右括号"),
        ("'abc", "字符串引号不匹配"),
    ])
    def test_unbalanced(self, formula: str, message: str):
        """测试括号/引号不匹配"""
        result = validate_formula(formula)
        assert not result.valid
        assert result.message == message

    def test_trailing_content_after_call(self):
        """测试函数调用后的多余内容"""
        result = validate_formula("ROUND(1.5) abc")
        assert not result.valid
        assert "abc" in result.message

    def test_operator_after_call_allowed(self):
        """测试函数调用后接运算符"""
        assert validate_formula("ROUND(1.5) + 1").valid

    def test_full_width_punctuation(self):
        """测试中文标点"""
        assert validate_formula("ROUND（1，2）").valid


class TestExecutionValidation:
    """带模拟数据试算测试"""

    def test_success(self, engine: FormulaEngine):
        """测试试算通过"""
        result = engine.validate_with_execution("{price} * {quantity}", {"price": 2}, {"quantity": 3})
        assert result.valid
        assert result.message == "校验通过"
        assert result.result == "6"

    def test_aggregate_uses_mock_item(self, engine: FormulaEngine):
        """测试无明细数据时以模拟行作为明细"""
        result = engine.validate_with_execution("SUM(products.amount)", {}, {"amount": 5})
        assert result.result == "5"

    def test_undefined_name(self, engine: FormulaEngine):
        """测试未定义标识符"""
        result = engine.validate_with_execution("abc + 1", {}, {})
        assert not result.valid
        assert result.message.startswith("未定义的变量或函数: \"abc\"")

    def test_not_a_function(self, engine: FormulaEngine):
        """测试调用非函数"""
        engine.registry.register("PI", 3.14)
        result = engine.validate_with_execution("PI()", {}, {})
        assert result.message == "\"PI\" 不是有效的函数，请检查函数名拼写"

    def test_unexpected_end(self, engine: FormulaEngine):
        """测试公式不完整"""
        result = engine.validate_with_execution("(1 + ", {}, {})
        assert result.message == "语法错误: 公式不完整，请检查是否缺少括号或参数"

    def test_unexpected_token(self, engine: FormulaEngine):
        """测试意外的符号"""
        result = engine.validate_with_execution("1 + )", {}, {})
        assert result.message == "语法错误: 意外的符号，请检查括号、引号、运算符是否正确"

    def test_runtime_error(self, engine: FormulaEngine):
        """测试运行期错误"""
        result = engine.validate_with_execution("1/0", {}, {})
        assert not result.valid
        assert result.message.startswith("执行错误:")
