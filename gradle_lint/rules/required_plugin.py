"""gradle_lint/rules/required_plugin.py – make sure a plugin is applied.

:class:`RequiredPluginRule` flags a build script that applies a given
plugin neither in a ``plugins {}`` block nor with ``apply plugin:``,
and plans the insertions that add it in whatever style the script
already uses:

A. ``plugins {}`` block with declarations
     → ``id '<id>' version '<v>'`` before the first declaration,
       template after the block.  When the first declaration sits on the
       ``plugins {`` line itself nothing is inserted and the violation
       is left without a fix.
B. ``apply plugin:`` statements
     → classpath dependency in ``buildscript {}``,
       ``apply plugin: '<id>'`` before the first statement,
       template after the last one.
C. no plugin references at all
     → Gradle newer than 2.1 (or unknown): a new ``plugins {}`` block
       after ``buildscript {}`` or at the start of the file;
       Gradle 2.1 and older: as B, after ``buildscript {}``.

:class:`BuildScanRule` is the rule configured for the Gradle build-scan
plugin.
"""

from __future__ import annotations

import logging
from typing import ClassVar, Mapping, Optional

from gradle_lint import ast as A
from gradle_lint.bookmarks import BookmarkPolicy
from gradle_lint.model import GradleDependency, GradlePlugin, GradleVersion
from gradle_lint.rule import Rule
from gradle_lint.violation import Violation

__all__ = ["BuildScanRule", "RequiredPluginRule"]

logger = logging.getLogger(__name__)

# Bookmark labels
FOUND_IN_PLUGINS_BLOCK = "pluginFoundOnPluginsBlock"
FOUND_IN_APPLY_STATEMENT = "pluginFoundOnApplyStatement"
FIRST_PLUGIN_IN_PLUGINS_BLOCK = "firstPluginInPluginsBlock"
FIRST_APPLY_PLUGIN = "firstApplyPlugin"
LAST_APPLY_PLUGIN = "lastApplyPlugin"
PLUGINS_BLOCK = "plugins"
BUILDSCRIPT_BLOCK = "buildscript"
BUILDSCRIPT_DEPENDENCIES = "buildscriptDependencies"
BUILDSCRIPT_REPOSITORIES = "buildscriptRepositories"
FIRST_BUILDSCRIPT_DEPENDENCY = "firstDependencyInBuildscriptBlock"
DEPENDENCY_ALREADY_PRESENT = "requiredDependencyAlreadyPresent"

# The plugins {} block is legal from this Gradle version on (exclusive).
PLUGINS_BLOCK_CUTOFF = GradleVersion.parse("2.1")


class RequiredPluginRule(Rule):
    """Flags scripts that do not apply ``plugin_id``."""

    rule_id: ClassVar[str] = "required-plugin"
    description: ClassVar[str] = "a required plugin should be applied"
    bookmark_policies: ClassVar[Mapping[str, BookmarkPolicy]] = {
        FIRST_PLUGIN_IN_PLUGINS_BLOCK: BookmarkPolicy.FIRST_WINS,
        FIRST_APPLY_PLUGIN: BookmarkPolicy.FIRST_WINS,
        LAST_APPLY_PLUGIN: BookmarkPolicy.LAST_WINS,
        FIRST_BUILDSCRIPT_DEPENDENCY: BookmarkPolicy.FIRST_WINS,
        FOUND_IN_PLUGINS_BLOCK: BookmarkPolicy.FIRST_WINS,
        FOUND_IN_APPLY_STATEMENT: BookmarkPolicy.FIRST_WINS,
        DEPENDENCY_ALREADY_PRESENT: BookmarkPolicy.FIRST_WINS,
    }

    def __init__(
        self,
        plugin_id: str,
        plugin_version: str,
        classpath_coordinate: str,
        template: str = "",
        message: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.plugin_id = plugin_id
        self.plugin_version = plugin_version
        self.classpath_coordinate = classpath_coordinate
        self.template = template
        self.message = message or f"{plugin_id} plugin is not applied"
        self._required = GradleDependency.from_notation(classpath_coordinate)

    # ── Recognition ──────────────────────────────────────────────────

    def visit_apply_plugin(self, call: A.MethodCall, plugin: Optional[str]) -> None:
        if plugin == self.plugin_id:
            self.bookmark(FOUND_IN_APPLY_STATEMENT, call)
        self.bookmark(FIRST_APPLY_PLUGIN, call)
        self.bookmark(LAST_APPLY_PLUGIN, call)

    def visit_gradle_plugin(self, call: A.MethodCall, conf: str, plugin: GradlePlugin) -> None:
        if plugin.id == self.plugin_id:
            self.bookmark(FOUND_IN_PLUGINS_BLOCK, call)
        self.bookmark(FIRST_PLUGIN_IN_PLUGINS_BLOCK, call)

    def visit_plugins(self, call: A.MethodCall) -> None:
        self.bookmark(PLUGINS_BLOCK, call)

    def visit_buildscript(self, call: A.MethodCall) -> None:
        self.bookmark(BUILDSCRIPT_BLOCK, call)

    def visit_dependencies(self, call: A.MethodCall) -> None:
        if self.context.in_buildscript:
            self.bookmark(BUILDSCRIPT_DEPENDENCIES, call)

    def visit_repositories(self, call: A.MethodCall) -> None:
        if self.context.in_buildscript:
            self.bookmark(BUILDSCRIPT_REPOSITORIES, call)

    def visit_gradle_dependency(self, call: A.MethodCall, conf: str, dep: GradleDependency) -> None:
        if conf != "classpath" or not self.context.in_buildscript:
            return
        if self._required is not None and dep.same_module(self._required):
            self.bookmark(DEPENDENCY_ALREADY_PRESENT, call)
        self.bookmark(FIRST_BUILDSCRIPT_DEPENDENCY, call)

    # ── Planning ─────────────────────────────────────────────────────

    def visit_class_complete(self, script: A.Script) -> None:
        if self.plugin_applied():
            return
        violation = self.add_lint_violation(self.message)
        self.plan_fix(violation)

    def plugin_applied(self) -> bool:
        return bool(self.bookmark(FOUND_IN_PLUGINS_BLOCK) or self.bookmark(FOUND_IN_APPLY_STATEMENT))

    @property
    def plugin_declaration(self) -> str:
        return f"id '{self.plugin_id}' version '{self.plugin_version}'"

    @property
    def apply_statement(self) -> str:
        return f"apply plugin: '{self.plugin_id}'"

    @property
    def classpath_declaration(self) -> str:
        return f"classpath '{self.classpath_coordinate}'"

    def plan_fix(self, violation: Violation) -> None:
        first_plugin = self.bookmark(FIRST_PLUGIN_IN_PLUGINS_BLOCK)
        first_apply = self.bookmark(FIRST_APPLY_PLUGIN)
        if first_plugin is not None:
            self._fix_plugins_block(violation, first_plugin)
        elif first_apply is not None:
            self._fix_apply_statements(violation, first_apply)
        else:
            self._fix_no_plugin_references(violation)

    def _append_template(self, violation: Violation, anchor: Optional[A.Node]) -> None:
        if self.template and anchor is not None:
            violation.insert_after(anchor, self.template)

    def _fix_plugins_block(self, violation: Violation, first_plugin: A.Node) -> None:
        plugins = self.bookmark(PLUGINS_BLOCK)
        if plugins is not None and first_plugin.line == plugins.line:
            # plugins { id 'java' }: a line inserted before the declaration
            # would land outside the block
            logger.info(
                "%s: line %d: first plugin shares a line with plugins {, not adding %s",
                self.rule_id,
                plugins.line,
                self.plugin_id,
            )
            return
        violation.insert_before(first_plugin, self.plugin_declaration)
        self._append_template(violation, plugins)

    def _fix_apply_statements(self, violation: Violation, first_apply: A.Node) -> None:
        self._fix_buildscript(violation)
        violation.insert_before(first_apply, self.apply_statement)
        self._append_template(violation, self.bookmark(LAST_APPLY_PLUGIN))

    def _fix_no_plugin_references(self, violation: Violation) -> None:
        buildscript = self.bookmark(BUILDSCRIPT_BLOCK)
        version = self.gradle_version
        if version is None or version > PLUGINS_BLOCK_CUTOFF:
            plugins = f"plugins {{\n    {self.plugin_declaration}\n}}"
            if buildscript is not None:
                violation.insert_after(buildscript, plugins)
                self._append_template(violation, buildscript)
            else:
                violation.insert_at_document_start(f"{plugins}\n{self.template}" if self.template else plugins)
            return

        self._fix_buildscript(violation)
        if buildscript is not None:
            violation.insert_after(buildscript, self.apply_statement)
            self._append_template(violation, buildscript)
        else:
            text = self.apply_statement
            if self.template:
                text = f"{text}\n{self.template}"
            violation.insert_at_document_start(text)

    def _fix_buildscript(self, violation: Violation) -> None:
        """Make sure the plugin's classpath dependency is declared in ``buildscript {}``."""
        buildscript = self.bookmark(BUILDSCRIPT_BLOCK)
        if buildscript is None:
            violation.insert_at_document_start(
                "buildscript {\n"
                "    dependencies {\n"
                f"        {self.classpath_declaration}\n"
                "    }\n"
                "}"
            )
            return
        if self.bookmark(DEPENDENCY_ALREADY_PRESENT) is not None:
            return

        first_dependency = self.bookmark(FIRST_BUILDSCRIPT_DEPENDENCY)
        if self.bookmark(BUILDSCRIPT_DEPENDENCIES) is None or first_dependency is None:
            repositories = self.bookmark(BUILDSCRIPT_REPOSITORIES)
            if repositories is None:
                logger.info(
                    "%s: buildscript block has no repositories block, not adding %s",
                    self.rule_id,
                    self.classpath_coordinate,
                )
                return
            violation.insert_after(
                repositories, f"dependencies {{\n    {self.classpath_declaration}\n}}"
            )
        else:
            violation.insert_before(first_dependency, self.classpath_declaration)


class BuildScanRule(RequiredPluginRule):
    """The Gradle build-scan plugin should be applied."""

    rule_id: ClassVar[str] = "build-scan"
    description: ClassVar[str] = "build-scan plugin should be applied"

    PLUGIN_ID = "com.gradle.build-scan"
    PLUGIN_VERSION = "1.4"
    CLASSPATH = "com.gradle.scans.lint:rules:1.4"
    LICENSE_AGREEMENT = (
        "\n"
        "//buildScan {\n"
        "//    licenseAgreementUrl = 'https://gradle.com/terms-of-service'\n"
        "//    licenseAgree = 'yes'\n"
        "//}"
    )
    MESSAGE = "build-scan plugin is not applied. Go to: https://scans.gradle.com/get-started"

    def __init__(self) -> None:
        super().__init__(
            self.PLUGIN_ID,
            self.PLUGIN_VERSION,
            self.CLASSPATH,
            template=self.LICENSE_AGREEMENT,
            message=self.MESSAGE,
        )
