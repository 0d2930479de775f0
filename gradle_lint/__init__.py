"""
gradle_lint — Rule-based Linting and Auto-remediation for Gradle Build Scripts
==============================================================================

Parses Groovy-DSL build scripts, walks them once per rule recognising
Gradle constructs (blocks, plugins, dependencies, tasks) whatever their
surface syntax, and patches the original text with the insertions the
rules plan.

Core modules
------------
parser
    parsimonious grammar and AST builder (``parse_script``).
visitor
    Structural recognition and traversal context.
rule
    ``Rule`` base class with bookmarks and the violation recorder.
patcher
    Indentation-aware insertion of edits into the original source.
rules
    Shipped rules: ``RequiredPluginRule``, ``BuildScanRule``.
runner
    ``lint_source`` / ``correct_source`` helpers and ``LintConfig``.

Quick start
-----------
>>> from gradle_lint import BuildScanRule, LintConfig, correct_source
>>> print(correct_source("", [BuildScanRule()], LintConfig(gradle_version="3.2")))
plugins {
    id 'com.gradle.build-scan' version '1.4'
}
<BLANKLINE>
//buildScan {
//    licenseAgreementUrl = 'https://gradle.com/terms-of-service'
//    licenseAgree = 'yes'
//}
"""

__version__ = "0.1.0"

from gradle_lint.errors import (
    EvaluationError,
    GradleLintError,
    PatchError,
    RuleContractError,
    ScriptParseError,
)
from gradle_lint.parser import parse_script
from gradle_lint.patcher import SourcePatcher, apply_edits
from gradle_lint.rule import Rule, ViolationRecorder
from gradle_lint.rules import BuildScanRule, RequiredPluginRule
from gradle_lint.runner import LintConfig, LintResult, correct_source, lint_file, lint_source
from gradle_lint.violation import DOCUMENT_START, Edit, Placement, Violation

__all__ = [
    "BuildScanRule",
    "DOCUMENT_START",
    "Edit",
    "EvaluationError",
    "GradleLintError",
    "LintConfig",
    "LintResult",
    "PatchError",
    "Placement",
    "RequiredPluginRule",
    "Rule",
    "RuleContractError",
    "ScriptParseError",
    "SourcePatcher",
    "ViolationRecorder",
    "Violation",
    "__version__",
    "apply_edits",
    "correct_source",
    "lint_file",
    "lint_source",
    "parse_script",
]
