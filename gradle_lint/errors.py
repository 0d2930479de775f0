# gradle_lint/errors.py
"""
Error types for the gradle_lint engine.

Error Hierarchy:
────────────────
┌──────────────────────────────────────────────────────────────────┐
│  GradleLintError (base)                                          │
│  ├── ScriptParseError   - build script does not match grammar    │
│  ├── RuleContractError  - a rule bypassed the violation API      │
│  ├── EvaluationError    - expression outside the strict subset   │
│  └── PatchError         - edit anchored outside the source text  │
└──────────────────────────────────────────────────────────────────┘

``ScriptParseError`` and ``PatchError`` are input/caller problems and
propagate to the caller.  ``EvaluationError`` never leaves the
structural visitor: an unresolvable dependency expression is skipped.
``RuleContractError`` is a programming error in a rule and is not meant
to be caught.
"""

from __future__ import annotations

from typing import Optional


class GradleLintError(Exception):
    """Base exception for all gradle_lint errors."""


class ScriptParseError(GradleLintError):
    """The build script could not be parsed.

    Carries the 1-indexed line and column where the parser gave up so
    the CLI can point at the offending text.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        build_file: str = "<script>",
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column
        self.build_file = build_file

    def __str__(self) -> str:
        msg = self.args[0] if self.args else ""
        if self.line is None:
            return f"{self.build_file}: {msg}"
        return f"{self.build_file}:{self.line}:{self.column}: {msg}"


class RuleContractError(GradleLintError):
    """A rule used the engine in a way its contract forbids."""


class EvaluationError(GradleLintError):
    """An expression could not be resolved against the project model."""


class PatchError(GradleLintError):
    """An edit cannot be applied to the source it was planned against."""
