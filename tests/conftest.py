# tests/conftest.py
"""Shared build scripts and helpers for the gradle_lint test-suite."""

import textwrap

import pytest

from gradle_lint.parser import parse_script
from gradle_lint.rule import Rule


def script(text):
    """Dedent a triple-quoted build script the way test inputs are written."""
    return textwrap.dedent(text)


class RecordingRule(Rule):
    """Records every callback it receives as ``(callback, *payload)`` tuples."""

    rule_id = "recording"

    def before_apply_to(self):
        self.events = []

    def visit_buildscript(self, call):
        self.events.append(("buildscript", call.line))

    def visit_repositories(self, call):
        self.events.append(("repositories", call.line))

    def visit_dependencies(self, call):
        self.events.append(("dependencies", call.line, self.context.in_buildscript))

    def visit_plugins(self, call):
        self.events.append(("plugins", call.line))

    def visit_apply_plugin(self, call, plugin):
        self.events.append(("apply_plugin", plugin))

    def visit_gradle_plugin(self, call, conf, plugin):
        self.events.append(("gradle_plugin", conf, plugin))

    def visit_gradle_dependency(self, call, conf, dep):
        self.events.append(("dependency", conf, dep))

    def visit_task(self, call, name, args):
        self.events.append(("task", name, args))

    def visit_configuration_exclude(self, call, conf, exclude):
        self.events.append(("exclude", conf, exclude))

    def visit_extension_property(self, statement, extension, prop, value=None):
        self.events.append(("extension_property", extension, prop, value))

    def of(self, kind):
        return [event[1:] for event in self.events if event[0] == kind]


def run_rule(rule, source, **kwargs):
    """Parse ``source`` and apply ``rule`` to it; returns the violations."""
    return rule.apply_to(parse_script(source), source, **kwargs)


@pytest.fixture
def recording_rule():
    return RecordingRule()


# ─────────────────────────────────────────────────────────────────────
# Build scripts shared by several test modules
# ─────────────────────────────────────────────────────────────────────

BUILDSCRIPT_WITHOUT_DEPENDENCIES = script("""
    buildscript {
        repositories {
            jcenter()
        }
    }
""")

OLD_STYLE_WITHOUT_DEPENDENCIES = script("""
    buildscript {
        repositories {
            jcenter()
        }
    }
    apply plugin: 'java'
""")

OLD_STYLE_WITH_DEPENDENCIES = script("""
    buildscript {
        repositories {
            jcenter()
        }
        dependencies {
            classpath "com.netflix.nebula:gradle-lint-plugin:5.1.2"
        }
    }
    apply plugin: 'nebula.lint'
""")

NEW_STYLE = script("""
    plugins {
        id 'nebula.lint' version '6.1.4'
    }
""")

LICENSE_TEMPLATE = (
    "//buildScan {\n"
    "//    licenseAgreementUrl = 'https://gradle.com/terms-of-service'\n"
    "//    licenseAgree = 'yes'\n"
    "//}\n"
)
