# tests/test_evaluator.py
"""Tests for the strict expression evaluator and the static project model."""

import pytest

from gradle_lint.errors import EvaluationError
from gradle_lint.evaluator import (
    UNRESOLVABLE,
    ExpressionEvaluator,
    StaticProjectModel,
    configuration_names,
    evaluate,
)
from gradle_lint.parser import parse_script


def expression(text):
    return parse_script(text).statements[0].expression


@pytest.fixture
def model():
    return StaticProjectModel(
        configurations=frozenset({"implementation"}),
        gradle_version="4.10",
        properties={
            "group": "com.acme",
            "coreVersion": "2.0",
            "libs.guava": "com.google.guava:guava:19.0",
            "answer": 42,
        },
    )


class TestStaticProjectModel:

    def test_lookup(self, model):
        assert model.lookup("group") == "com.acme"

    def test_project_and_ext_prefixes(self, model):
        assert model.lookup("project.coreVersion") == "2.0"
        assert model.lookup("ext.coreVersion") == "2.0"
        assert model.lookup("project.ext.coreVersion") == "2.0"

    def test_unknown(self, model):
        with pytest.raises(KeyError):
            model.lookup("missing")

    def test_configuration_names(self, model):
        assert configuration_names(model, ("compile",)) == frozenset({"implementation"})
        assert configuration_names(None, ("compile",)) == frozenset({"compile"})
        assert configuration_names(StaticProjectModel(), ("compile",)) == frozenset({"compile"})


class TestExpressionEvaluator:

    def test_constant(self, model):
        assert ExpressionEvaluator(model).evaluate(expression("'a:b:1.0'")) == "a:b:1.0"

    def test_gstring_interpolation(self, model):
        expr = expression('"$group:core:${coreVersion}"')
        assert ExpressionEvaluator(model).evaluate(expr) == "com.acme:core:2.0"

    def test_property_path(self, model):
        assert ExpressionEvaluator(model).evaluate(expression("libs.guava")) == "com.google.guava:guava:19.0"

    def test_concatenation(self, model):
        expr = expression("group + ':core:' + coreVersion")
        assert ExpressionEvaluator(model).evaluate(expr) == "com.acme:core:2.0"

    def test_numeric_addition(self, model):
        assert ExpressionEvaluator(model).evaluate(expression("answer + 1")) == 43

    def test_unknown_property(self, model):
        with pytest.raises(EvaluationError):
            ExpressionEvaluator(model).evaluate(expression("nope"))

    def test_method_calls_not_evaluated(self, model):
        with pytest.raises(EvaluationError):
            ExpressionEvaluator(model).evaluate(expression("file('x').text"))


class TestEvaluate:

    def test_resolvable(self, model):
        assert evaluate(expression("coreVersion"), model) == "2.0"

    def test_unresolvable(self, model):
        result = evaluate(expression("System.getenv('HOME')"), model)
        assert result is UNRESOLVABLE
        assert not result

    def test_model_failure_is_unresolvable(self):
        class BrokenModel(StaticProjectModel):
            def lookup(self, path):
                raise RuntimeError("model unavailable")

        assert evaluate(expression("libs.guava"), BrokenModel()) is UNRESOLVABLE
        assert evaluate(expression('"$group:core:1.0"'), BrokenModel()) is UNRESOLVABLE

    def test_constants_need_no_model_lookup(self):
        class BrokenModel(StaticProjectModel):
            def lookup(self, path):
                raise RuntimeError("model unavailable")

        assert evaluate(expression("'a:b:1.0'"), BrokenModel()) == "a:b:1.0"
