"""gradle_lint/rule.py – the Rule interface and its violation recorder.

A rule only *reacts*: :class:`~gradle_lint.visitor.StructuralVisitor`
recognises constructs and calls the matching ``visit_*`` callback, the
rule bookmarks nodes and records violations.  Remediation is planned
in :meth:`Rule.visit_class_complete`, once the whole script has been
seen.

Lifecycle
─────────
  1. ``apply_to(script, source)``  — resets bookmarks and violations
  2. ``before_apply_to()``         — one-off preparation hook
  3. ``visit_*`` callbacks          — driven by the structural visitor
  4. ``visit_class_complete()``     — plan violations and edits

Subclass Contract
─────────────────
  - Override ``rule_id`` and ``description``
  - Declare write policies of bookmark labels in ``bookmark_policies``
  - Record findings with ``add_lint_violation`` only
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
)

from gradle_lint import ast as A
from gradle_lint.bookmarks import BookmarkPolicy, BookmarkStore
from gradle_lint.errors import RuleContractError
from gradle_lint.evaluator import ProjectModel
from gradle_lint.model import (
    ConfigurationExclude,
    GradleDependency,
    GradlePlugin,
    GradleVersion,
)
from gradle_lint.patcher import source_snippet
from gradle_lint.violation import Violation
from gradle_lint.visitor import (
    DEFAULT_SUPPRESSION_RECEIVERS,
    StructuralVisitor,
    TraversalContext,
)

__all__ = ["Rule", "ViolationRecorder"]

logger = logging.getLogger(__name__)

_MISSING = object()


class ViolationRecorder:
    """
    Collects the violations of one rule during one traversal.

    Suppression regions nest: each ``suppressing(...)`` pushes either
    ``None`` (every rule) or a set of rule ids, and pops it on exit so
    the enclosing region is back in force.
    """

    def __init__(self, rule_id: str) -> None:
        self.rule_id = rule_id
        self._violations: List[Violation] = []
        self._suppressions: List[Optional[FrozenSet[str]]] = []

    @property
    def violations(self) -> List[Violation]:
        return list(self._violations)

    def reset(self) -> None:
        self._violations.clear()
        self._suppressions.clear()

    @contextmanager
    def suppressing(self, rule_ids: Optional[Iterable[str]] = None) -> Iterator[None]:
        self._suppressions.append(None if rule_ids is None else frozenset(rule_ids))
        try:
            yield
        finally:
            self._suppressions.pop()

    def is_suppressed(self) -> bool:
        return any(ids is None or self.rule_id in ids for ids in self._suppressions)

    def record(self, violation: Violation) -> Violation:
        if self.is_suppressed():
            violation.suppressed = True
            logger.debug("%s: suppressed %r", self.rule_id, violation.message)
        else:
            self._violations.append(violation)
        return violation


class Rule:
    """
    Base class for all lint rules.

    Every ``visit_*`` callback is a no-op; override only what you need.
    """

    # ── Metadata (override in subclasses) ────────────────────────────

    rule_id: ClassVar[str] = "base-rule"
    description: ClassVar[str] = ""
    priority: ClassVar[int] = 3
    bookmark_policies: ClassVar[Mapping[str, BookmarkPolicy]] = {}

    def __init__(self) -> None:
        self.bookmarks = BookmarkStore(self.bookmark_policies)
        self.recorder = ViolationRecorder(self.rule_id)
        self.context: Optional[TraversalContext] = None
        self.project: Optional[ProjectModel] = None
        self.tool_version: Optional[str] = None
        self.build_file = "build.gradle"
        self.source = ""
        self.source_lines: List[str] = []

    # ── Callbacks ────────────────────────────────────────────────────

    def visit_buildscript(self, call: A.MethodCall) -> None:
        pass

    def visit_repositories(self, call: A.MethodCall) -> None:
        pass

    def visit_dependencies(self, call: A.MethodCall) -> None:
        pass

    def visit_plugins(self, call: A.MethodCall) -> None:
        pass

    def visit_apply_plugin(self, call: A.MethodCall, plugin: Optional[str]) -> None:
        pass

    def visit_gradle_plugin(self, call: A.MethodCall, conf: str, plugin: GradlePlugin) -> None:
        pass

    def visit_gradle_dependency(self, call: A.MethodCall, conf: str, dep: GradleDependency) -> None:
        pass

    def visit_task(self, call: A.MethodCall, name: str, args: Dict[str, Optional[str]]) -> None:
        pass

    def visit_configuration_exclude(
        self, call: A.MethodCall, conf: str, exclude: ConfigurationExclude
    ) -> None:
        pass

    def visit_extension_property(
        self,
        statement: A.ExpressionStatement,
        extension: str,
        prop: str,
        value: Optional[str] = None,
    ) -> None:
        pass

    def visit_method_call(self, call: A.MethodCall) -> None:
        pass

    def visit_class_complete(self, script: A.Script) -> None:
        pass

    def before_apply_to(self) -> None:
        """One-off preparation before each traversal."""

    # ── Bookmarks ────────────────────────────────────────────────────

    def bookmark(self, label: str, node: Any = _MISSING) -> Optional[A.Node]:
        """``bookmark(label, node)`` writes, ``bookmark(label)`` reads."""
        if node is _MISSING:
            return self.bookmarks.get(label)
        self.bookmarks.set(label, node)
        return self.bookmarks.get(label)

    # ── Traversal context ────────────────────────────────────────────

    def parent_closure(self) -> Optional[A.MethodCall]:
        return self.context.parent_closure() if self.context is not None else None

    def closure_stack(self) -> List[A.MethodCall]:
        return self.context.closure_stack() if self.context is not None else []

    @property
    def gradle_version(self) -> Optional[GradleVersion]:
        """Declared Gradle version: explicit tool version first, then the project model."""
        declared = self.tool_version
        if declared is None and self.project is not None:
            declared = self.project.gradle_version
        if not declared:
            return None
        try:
            return GradleVersion.parse(declared)
        except ValueError:
            logger.warning("%s: ignoring unparseable Gradle version %r", self.rule_id, declared)
            return None

    # ── Violations ───────────────────────────────────────────────────

    @property
    def violations(self) -> List[Violation]:
        return self.recorder.violations

    def add_lint_violation(self, message: str, node: Optional[A.Node] = None) -> Violation:
        """Create a violation; it is recorded unless inside an ignore region."""
        violation = Violation(
            rule_id=self.rule_id,
            message=message,
            node=node,
            line=node.line if node is not None else None,
            source_snippet=source_snippet(self.source_lines, node) if node is not None else None,
        )
        return self.recorder.record(violation)

    def add_violation(self, *args: Any, **kwargs: Any) -> Violation:
        raise RuleContractError(
            "use add_lint_violation(message, node) to create a lint violation"
        )

    # ── Entry point ──────────────────────────────────────────────────

    def apply_to(
        self,
        script: A.Script,
        source: str,
        *,
        project: Optional[ProjectModel] = None,
        tool_version: Optional[str] = None,
        build_file: str = "build.gradle",
        suppression_receivers: Iterable[str] = DEFAULT_SUPPRESSION_RECEIVERS,
    ) -> List[Violation]:
        """Run this rule over one parsed script and return its violations."""
        self.bookmarks.clear()
        self.recorder.reset()
        self.project = project
        self.tool_version = tool_version
        self.build_file = build_file
        self.source = source
        self.source_lines = source.splitlines()
        self.before_apply_to()
        StructuralVisitor(self, project, suppression_receivers).run(script)
        logger.info("%s: %d violation(s) in %s", self.rule_id, len(self.violations), build_file)
        return self.violations

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.rule_id}'>"
