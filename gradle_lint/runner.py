"""gradle_lint/runner.py – lint and correct whole build scripts.

Glue between the parser, the rules and the patcher::

    source ──parse_script──► Script ──rule.apply_to──► violations
                                                           │ edits
    corrected source ◄────────────apply_edits──────────────┘
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from gradle_lint.evaluator import ProjectModel, StaticProjectModel
from gradle_lint.parser import parse_script
from gradle_lint.patcher import apply_edits
from gradle_lint.rule import Rule
from gradle_lint.violation import Edit, Violation
from gradle_lint.visitor import DEFAULT_SUPPRESSION_RECEIVERS

__all__ = ["LintConfig", "LintResult", "correct_source", "lint_file", "lint_source"]

logger = logging.getLogger(__name__)


@dataclass
class LintConfig:
    """Settings shared by every rule of one run.

    Attributes
    ----------
    gradle_version:
        Gradle version the script is written for; ``None`` when unknown.
    configurations:
        Dependency configuration names; empty means the default set.
    properties:
        Project properties used to resolve evaluated dependency notations.
    suppression_receivers:
        Receivers whose ``ignore(...)`` call opens a suppression region.
    build_file:
        Name used when reporting violations.
    """

    gradle_version: Optional[str] = None
    configurations: FrozenSet[str] = frozenset()
    properties: Dict[str, Any] = field(default_factory=dict)
    suppression_receivers: Tuple[str, ...] = DEFAULT_SUPPRESSION_RECEIVERS
    build_file: str = "build.gradle"

    def project_model(self) -> Optional[ProjectModel]:
        """A static project model, or ``None`` when nothing describes the project."""
        if not self.configurations and not self.properties:
            return None
        return StaticProjectModel(
            configurations=frozenset(self.configurations),
            gradle_version=self.gradle_version,
            properties=dict(self.properties),
        )


@dataclass
class LintResult:
    """Violations found in one source, and the corrected text when requested."""

    build_file: str
    source: str
    violations: List[Violation] = field(default_factory=list)
    corrected: Optional[str] = None

    @property
    def edits(self) -> List[Edit]:
        return [edit for violation in self.violations for edit in violation.edits]

    @property
    def fixable(self) -> bool:
        return any(violation.fixable for violation in self.violations)

    def report(self) -> List[str]:
        return [violation.to_text(self.build_file) for violation in self.violations]


def lint_source(
    source: str,
    rules: Sequence[Rule],
    config: Optional[LintConfig] = None,
    *,
    fix: bool = False,
) -> LintResult:
    """Run ``rules`` over ``source``; with ``fix`` also apply their edits."""
    config = config or LintConfig()
    script = parse_script(source, config.build_file)
    project = config.project_model()

    result = LintResult(config.build_file, source)
    for rule in rules:
        result.violations.extend(
            rule.apply_to(
                script,
                source,
                project=project,
                tool_version=config.gradle_version,
                build_file=config.build_file,
                suppression_receivers=config.suppression_receivers,
            )
        )
    logger.info("%s: %d violation(s) from %d rule(s)",
                config.build_file, len(result.violations), len(rules))

    if fix:
        result.corrected = apply_edits(source, result.edits)
    return result


def correct_source(
    source: str, rules: Sequence[Rule], config: Optional[LintConfig] = None
) -> str:
    """``source`` with the edits of every violation applied."""
    corrected = lint_source(source, rules, config, fix=True).corrected
    return source if corrected is None else corrected


def lint_file(
    path: Path,
    rules: Sequence[Rule],
    config: Optional[LintConfig] = None,
    *,
    fix: bool = False,
) -> LintResult:
    """Read ``path`` and lint it; the file itself is never modified."""
    path = Path(path)
    config = config or LintConfig(build_file=str(path))
    # newline="" keeps CRLF separators for the patcher
    with open(path, encoding="utf-8", newline="") as fh:
        source = fh.read()
    logger.debug("read %d character(s) from %s", len(source), path)
    return lint_source(source, rules, config, fix=fix)
