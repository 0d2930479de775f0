# tests/test_rule.py
"""
Tests for the Rule base class: lifecycle, bookmarks, the violation
recorder and ignore regions.
"""

import pytest

from conftest import run_rule
from gradle_lint.bookmarks import BookmarkPolicy
from gradle_lint.errors import RuleContractError
from gradle_lint.evaluator import StaticProjectModel
from gradle_lint.rule import Rule, ViolationRecorder
from gradle_lint.violation import Violation


class FlagEveryDependency(Rule):
    rule_id = "flag-dependency"
    description = "flags every dependency declaration"

    def visit_gradle_dependency(self, call, conf, dep):
        self.add_lint_violation(f"dependency {dep.name}", call)


class OtherRule(FlagEveryDependency):
    rule_id = "other-rule"


class TestRuleDefaults:

    def test_callbacks_are_no_ops(self):
        assert run_rule(Rule(), "apply plugin: 'java'\ndependencies {\n    compile 'a:b:1'\n}\n") == []

    def test_repr(self):
        assert repr(FlagEveryDependency()) == "<FlagEveryDependency 'flag-dependency'>"

    def test_add_violation_is_a_contract_error(self):
        with pytest.raises(RuleContractError):
            Rule().add_violation("message")

    def test_before_apply_to_called_each_run(self):
        calls = []

        class Counting(Rule):
            def before_apply_to(self):
                calls.append(len(self.bookmarks))

        rule = Counting()
        run_rule(rule, "")
        run_rule(rule, "")
        assert calls == [0, 0]


class TestViolations:

    def test_violation_fields(self):
        source = "dependencies {\n    compile 'com.google.guava:guava:19.0'\n}\n"
        [violation] = run_rule(FlagEveryDependency(), source)
        assert violation.rule_id == "flag-dependency"
        assert violation.message == "dependency guava"
        assert violation.line == 2
        assert violation.source_snippet == "compile 'com.google.guava:guava:19.0'"
        assert not violation.suppressed
        assert not violation.fixable

    def test_to_text(self):
        [violation] = run_rule(FlagEveryDependency(), "dependencies {\n    compile 'a:b:1'\n}\n",
                               build_file="sub/build.gradle")
        assert violation.to_text("sub/build.gradle") == (
            "sub/build.gradle:2: warning: dependency b [flag-dependency]")

    def test_whole_file_violation(self):
        violation = Violation("r", "message")
        assert violation.to_text() == "build.gradle: warning: message [r]"

    def test_state_reset_between_runs(self):
        rule = FlagEveryDependency()
        run_rule(rule, "dependencies {\n    compile 'a:b:1'\n}\n")
        assert run_rule(rule, "apply plugin: 'java'\n") == []

    def test_edit_chaining(self):
        violation = Violation("r", "m")
        assert violation.insert_at_document_start("x") is violation
        assert violation.fixable


class TestIgnoreRegions:

    def test_ignore_everything(self):
        source = "gradleLint.ignore {\n    dependencies {\n        compile 'a:b:1'\n    }\n}\n"
        assert run_rule(FlagEveryDependency(), source) == []

    def test_ignore_named_rule(self):
        source = (
            "dependencies {\n"
            "    gradleLint.ignore('flag-dependency') {\n"
            "        compile 'a:b:1'\n"
            "    }\n"
            "    compile 'c:d:1'\n"
            "}\n"
        )
        violations = run_rule(FlagEveryDependency(), source)
        assert [v.message for v in violations] == ["dependency d"]

    def test_ignore_other_rule_does_not_suppress(self):
        source = "dependencies {\n    gradleLint.ignore('flag-dependency') {\n        compile 'a:b:1'\n    }\n}\n"
        assert len(run_rule(OtherRule(), source)) == 1

    def test_custom_receiver(self):
        source = "lint.ignore {\n    dependencies {\n        compile 'a:b:1'\n    }\n}\n"
        assert len(run_rule(FlagEveryDependency(), source)) == 1
        assert run_rule(FlagEveryDependency(), source, suppression_receivers=("lint",)) == []

    def test_suppressed_violation_is_returned_but_not_recorded(self):
        recorder = ViolationRecorder("r")
        with recorder.suppressing():
            violation = recorder.record(Violation("r", "m"))
        assert violation.suppressed
        assert recorder.violations == []

    def test_nested_regions_restore_state(self):
        recorder = ViolationRecorder("r")
        with recorder.suppressing(["other"]):
            with recorder.suppressing():
                assert recorder.is_suppressed()
            assert not recorder.is_suppressed()
        with recorder.suppressing(["r"]):
            assert recorder.is_suppressed()
        assert not recorder.is_suppressed()


class TestBookmarksOnRule:

    def test_declared_policies(self):
        class Marking(Rule):
            bookmark_policies = {"firstApply": BookmarkPolicy.FIRST_WINS}

            def visit_apply_plugin(self, call, plugin):
                self.bookmark("firstApply", call)
                self.bookmark("lastApply", call)

        rule = Marking()
        run_rule(rule, "apply plugin: 'java'\napply plugin: 'groovy'\n")
        assert rule.bookmark("firstApply").line == 1
        assert rule.bookmark("lastApply").line == 2

    def test_bookmarks_cleared_between_runs(self):
        class Marking(Rule):
            def visit_apply_plugin(self, call, plugin):
                self.bookmark("apply", call)

        rule = Marking()
        run_rule(rule, "apply plugin: 'java'\n")
        run_rule(rule, "\n")
        assert rule.bookmark("apply") is None


class TestGradleVersion:

    def test_tool_version_wins(self):
        rule = Rule()
        run_rule(rule, "", tool_version="2.0", project=StaticProjectModel(gradle_version="3.2"))
        assert str(rule.gradle_version) == "2.0"

    def test_project_version(self):
        rule = Rule()
        run_rule(rule, "", project=StaticProjectModel(gradle_version="3.2"))
        assert str(rule.gradle_version) == "3.2"

    def test_unknown_and_unparseable(self):
        rule = Rule()
        run_rule(rule, "")
        assert rule.gradle_version is None
        run_rule(rule, "", tool_version="nightly")
        assert rule.gradle_version is None
