# tests/test_patcher.py
"""
Tests for the source patcher: insertion indices, indentation
normalisation, same-anchor ordering and line separators.
"""

import pytest

from gradle_lint.errors import PatchError
from gradle_lint.parser import parse_script
from gradle_lint.patcher import SourcePatcher, apply_edits, reindent, source_snippet
from gradle_lint.violation import Violation


SOURCE = (
    "buildscript {\n"
    "    repositories {\n"
    "        jcenter()\n"
    "    }\n"
    "}\n"
    "apply plugin: 'java'\n"
)


@pytest.fixture(scope="module")
def anchors():
    script = parse_script(SOURCE)
    buildscript = script.statements[0].expression
    repositories = buildscript.closure.statements[0].expression
    apply = script.statements[1].expression
    return buildscript, repositories, apply


class TestReindent:

    def test_single_line(self):
        assert reindent("classpath 'a:b:1'", 9) == ["        classpath 'a:b:1'"]

    def test_common_indentation_stripped(self):
        text = "dependencies {\n        classpath 'a:b:1'\n    }"
        assert reindent(text, 5) == [
            "    dependencies {",
            "        classpath 'a:b:1'",
            "    }",
        ]

    def test_blank_lines_not_padded(self):
        assert reindent("\n//x", 3) == ["", "  //x"]

    def test_relative_indentation_kept(self):
        assert reindent("a\n  b\n    c", 1) == ["a", "b", "  c"]

    def test_template_indentation_ignored(self):
        assert reindent("x {\n            y\n        }", 5) == ["    x {", "        y", "    }"]


class TestInsertionIndices:

    def test_insert_before(self, anchors):
        _, _, apply = anchors
        edits = Violation("r", "m").insert_before(apply, "apply plugin: 'groovy'").edits
        assert apply_edits(SOURCE, edits).splitlines()[5:7] == [
            "apply plugin: 'groovy'",
            "apply plugin: 'java'",
        ]

    def test_insert_after_multiline_anchor(self, anchors):
        _, repositories, _ = anchors
        edits = Violation("r", "m").insert_after(
            repositories, "dependencies {\n    classpath 'a:b:1'\n}").edits
        assert apply_edits(SOURCE, edits) == (
            "buildscript {\n"
            "    repositories {\n"
            "        jcenter()\n"
            "    }\n"
            "    dependencies {\n"
            "        classpath 'a:b:1'\n"
            "    }\n"
            "}\n"
            "apply plugin: 'java'\n"
        )

    def test_document_start(self):
        edits = Violation("r", "m").insert_at_document_start("plugins {\n    id 'x'\n}").edits
        assert apply_edits("apply plugin: 'java'\n", edits) == (
            "plugins {\n    id 'x'\n}\napply plugin: 'java'\n")

    def test_empty_source(self):
        edits = Violation("r", "m").insert_at_document_start("a\nb").edits
        assert apply_edits("", edits) == "a\nb"

    def test_no_edits_returns_source(self):
        assert apply_edits(SOURCE, []) is SOURCE


class TestOrdering:

    def test_same_anchor_after_keeps_planning_order(self, anchors):
        buildscript, _, _ = anchors
        violation = Violation("r", "m")
        violation.insert_after(buildscript, "first")
        violation.insert_after(buildscript, "second")
        lines = apply_edits(SOURCE, violation.edits).splitlines()
        assert lines[5:8] == ["first", "second", "apply plugin: 'java'"]

    def test_after_edits_precede_before_edits_at_same_index(self, anchors):
        buildscript, _, apply = anchors
        violation = Violation("r", "m")
        violation.insert_before(apply, "before-apply")
        violation.insert_after(buildscript, "after-buildscript")
        lines = apply_edits(SOURCE, violation.edits).splitlines()
        assert lines[5:8] == ["after-buildscript", "before-apply", "apply plugin: 'java'"]

    def test_document_start_precedes_before_first_line(self, anchors):
        buildscript, _, _ = anchors
        violation = Violation("r", "m")
        violation.insert_before(buildscript, "before")
        violation.insert_at_document_start("start")
        lines = apply_edits(SOURCE, violation.edits).splitlines()
        assert lines[:3] == ["start", "before", "buildscript {"]

    def test_edits_from_all_positions(self, anchors):
        buildscript, repositories, apply = anchors
        violation = Violation("r", "m")
        violation.insert_after(repositories, "x")
        violation.insert_before(apply, "y")
        violation.insert_after(apply, "z")
        assert apply_edits(SOURCE, violation.edits) == (
            "buildscript {\n"
            "    repositories {\n"
            "        jcenter()\n"
            "    }\n"
            "    x\n"
            "}\n"
            "y\n"
            "apply plugin: 'java'\n"
            "z\n"
        )


class TestSeparators:

    def test_crlf_preserved(self):
        source = "apply plugin: 'java'\r\n"
        apply = parse_script(source).statements[0].expression
        edits = Violation("r", "m").insert_after(apply, "a\nb").edits
        assert apply_edits(source, edits) == "apply plugin: 'java'\r\na\r\nb\r\n"

    def test_no_trailing_newline(self):
        source = "apply plugin: 'java'"
        apply = parse_script(source).statements[0].expression
        edits = Violation("r", "m").insert_after(apply, "x").edits
        assert apply_edits(source, edits) == "apply plugin: 'java'\nx"


class TestErrors:

    def test_anchor_outside_source(self, anchors):
        _, _, apply = anchors
        edits = Violation("r", "m").insert_after(apply, "x").edits
        with pytest.raises(PatchError):
            SourcePatcher("one line").apply(edits)

    def test_anchor_must_be_a_node(self):
        edits = Violation("r", "m").insert_after("not a node", "x").edits
        with pytest.raises(PatchError):
            SourcePatcher(SOURCE).apply(edits)


class TestSourceSnippet:

    def test_single_line(self, anchors):
        _, _, apply = anchors
        assert source_snippet(SOURCE.splitlines(), apply) == "apply plugin: 'java'"

    def test_multi_line_dedented(self, anchors):
        _, repositories, _ = anchors
        assert source_snippet(SOURCE.splitlines(), repositories) == (
            "repositories {\n    jcenter()\n}")
