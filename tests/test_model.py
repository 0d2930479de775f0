# tests/test_model.py
"""Tests for the domain values passed to rule callbacks."""

import pytest

from gradle_lint.model import (
    DeclarationKind,
    DependencySyntax,
    GradleDependency,
    GradlePlugin,
    GradleVersion,
)


class TestGradleDependency:

    def test_full_notation(self):
        dep = GradleDependency.from_notation("com.google.guava:guava:19.0:sources@jar")
        assert (dep.group, dep.name, dep.version) == ("com.google.guava", "guava", "19.0")
        assert dep.classifier == "sources"
        assert dep.ext == "jar"
        assert dep.syntax is DependencySyntax.STRING_NOTATION

    def test_name_only(self):
        dep = GradleDependency.from_notation("guava")
        assert dep.group is None
        assert dep.name == "guava"
        assert dep.version is None

    def test_group_and_name(self):
        dep = GradleDependency.from_notation("com.google.guava:guava")
        assert (dep.group, dep.name, dep.version) == ("com.google.guava", "guava", None)

    def test_conf_and_syntax_carried(self):
        dep = GradleDependency.from_notation(
            "a:b:1.0", conf="default", syntax=DependencySyntax.EVALUATED_ARBITRARY_CODE
        )
        assert dep.conf == "default"
        assert dep.syntax is DependencySyntax.EVALUATED_ARBITRARY_CODE

    def test_unparseable_notation(self):
        assert GradleDependency.from_notation("") is None
        assert GradleDependency.from_notation(":") is None

    @pytest.mark.parametrize("notation", [
        "com.google.guava:guava:19.0",
        "com.google.guava:guava:19.0:sources",
        "com.google.guava:guava:19.0:sources@jar",
    ])
    def test_to_notation(self, notation):
        assert GradleDependency.from_notation(notation).to_notation() == notation

    def test_same_module_ignores_version(self):
        a = GradleDependency.from_notation("com.gradle.scans.lint:rules:1.4")
        b = GradleDependency.from_notation("com.gradle.scans.lint:rules:1.3")
        c = GradleDependency.from_notation("com.gradle.scans.lint:other:1.4")
        assert a.same_module(b)
        assert not a.same_module(c)


class TestGradlePlugin:

    def test_defaults(self):
        plugin = GradlePlugin("nebula.lint")
        assert plugin.version is None
        assert plugin.apply is None

    def test_value_equality(self):
        assert GradlePlugin("a", "1.0") == GradlePlugin("a", "1.0")


class TestGradleVersion:

    @pytest.mark.parametrize("lower, higher", [
        ("2.0", "2.1"),
        ("2.1", "2.1.1"),
        ("2.9", "2.10"),
        ("3.2-rc-1", "3.2"),
        ("2.1", "3.2"),
    ])
    def test_ordering(self, lower, higher):
        assert GradleVersion.parse(lower) < GradleVersion.parse(higher)

    def test_trailing_zeros_equal(self):
        assert GradleVersion.parse("2.1") == GradleVersion.parse("2.1.0")
        assert hash(GradleVersion.parse("2.1")) == hash(GradleVersion.parse("2.1.0"))

    def test_str(self):
        assert str(GradleVersion.parse("4.10.2")) == "4.10.2"
        assert str(GradleVersion.parse("3.2-rc-1")) == "3.2-rc-1"

    def test_invalid(self):
        with pytest.raises(ValueError):
            GradleVersion.parse("latest")


def test_declaration_kinds():
    assert {kind.name for kind in DeclarationKind} == {
        "BUILDSCRIPT_BLOCK", "REPOSITORIES_BLOCK", "DEPENDENCIES_BLOCK",
        "PLUGINS_BLOCK", "APPLY_PLUGIN_STATEMENT", "PLUGIN_DECLARATION",
        "DEPENDENCY_DECLARATION", "TASK_DECLARATION",
    }
