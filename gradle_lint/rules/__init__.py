"""Lint rules shipped with gradle_lint."""

from gradle_lint.rules.required_plugin import BuildScanRule, RequiredPluginRule

__all__ = ["BuildScanRule", "RequiredPluginRule"]
