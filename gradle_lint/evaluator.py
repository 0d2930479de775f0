"""gradle_lint/evaluator.py – strict expression evaluation against a project model.

Dependency declarations sometimes name their coordinate through project
properties (``compile "$group:core:$coreVersion"``, ``compile
libs.guava``).  When the caller supplies a project model the structural
visitor resolves such expressions here.  Only a small, side-effect free
subset is understood:

* literal constants
* GString interpolation of property paths (``$a.b`` and ``${a.b}``)
* variables and property paths (a leading ``project.`` is optional)
* ``+`` concatenation of the above

Anything else raises :class:`~gradle_lint.errors.EvaluationError`;
:func:`evaluate` turns that, and any failure of the model, into
:data:`UNRESOLVABLE`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Protocol

from gradle_lint import ast as A
from gradle_lint.errors import EvaluationError

__all__ = [
    "ExpressionEvaluator",
    "ProjectModel",
    "StaticProjectModel",
    "UNRESOLVABLE",
    "evaluate",
]

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(
    r"(?<!\\)\$(?:\{(?P<braced>[^}]*)\}|(?P<bare>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*))"
)
_PATH = re.compile(r"^[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*$")


class _Unresolvable:
    def __repr__(self) -> str:
        return "UNRESOLVABLE"

    def __bool__(self) -> bool:
        return False


UNRESOLVABLE = _Unresolvable()


class ProjectModel(Protocol):
    """Read-only view of the Gradle project a build script belongs to."""

    gradle_version: Optional[str]

    def configuration_names(self) -> FrozenSet[str]:
        ...

    def lookup(self, path: str) -> Any:
        """Value of the property ``path``; raises ``KeyError`` when unknown."""
        ...


@dataclass
class StaticProjectModel:
    """A project model backed by plain values (CLI flags, tests)."""

    configurations: FrozenSet[str] = frozenset()
    gradle_version: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    def configuration_names(self) -> FrozenSet[str]:
        return frozenset(self.configurations)

    def lookup(self, path: str) -> Any:
        candidates = [path]
        if path.startswith("project."):
            candidates.append(path[len("project."):])
        for candidate in list(candidates):
            if candidate.startswith("ext."):
                candidates.append(candidate[len("ext."):])
        for candidate in candidates:
            if candidate in self.properties:
                return self.properties[candidate]
        raise KeyError(path)


class ExpressionEvaluator:
    """Evaluates the strict expression subset against one project model."""

    def __init__(self, model: ProjectModel) -> None:
        self.model = model

    def evaluate(self, expr: A.Expression) -> Any:
        if isinstance(expr, A.Constant):
            return expr.value
        if isinstance(expr, A.GString):
            return _PLACEHOLDER.sub(self._interpolate, expr.value)
        if isinstance(expr, (A.Variable, A.PropertyExpr)):
            return self._lookup(_property_path(expr))
        if isinstance(expr, A.BinaryExpr) and expr.operator == "+":
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            if isinstance(left, str) or isinstance(right, str):
                return f"{left}{right}"
            try:
                return left + right
            except TypeError as exc:
                raise EvaluationError(f"cannot add {expr.text!r}: {exc}") from exc
        raise EvaluationError(f"unsupported expression {expr.kind}: {expr.text!r}")

    def _interpolate(self, match: "re.Match[str]") -> str:
        path = (match.group("braced") or match.group("bare") or "").strip()
        if not _PATH.match(path):
            raise EvaluationError(f"unsupported placeholder ${{{path}}}")
        return str(self._lookup(path))

    def _lookup(self, path: str) -> Any:
        try:
            return self.model.lookup(path)
        except KeyError:
            raise EvaluationError(f"unknown property {path!r}") from None


def _property_path(expr: A.Expression) -> str:
    if isinstance(expr, A.Variable):
        return expr.name
    if isinstance(expr, A.PropertyExpr) and expr.operator == ".":
        return f"{_property_path(expr.receiver)}.{expr.name}"
    raise EvaluationError(f"not a property path: {expr.text!r}")


def evaluate(expr: A.Expression, model: ProjectModel) -> Any:
    """Value of ``expr`` or :data:`UNRESOLVABLE`; never raises.

    Errors raised by the project model itself also yield
    :data:`UNRESOLVABLE`.
    """
    try:
        return ExpressionEvaluator(model).evaluate(expr)
    except EvaluationError as exc:
        logger.debug("unable to evaluate %r: %s", expr.text, exc)
    except Exception as exc:
        logger.debug("project model failed evaluating %r: %r", expr.text, exc)
    return UNRESOLVABLE


def configuration_names(model: Optional[ProjectModel], default: Iterable[str]) -> FrozenSet[str]:
    """The model's configuration names, or ``default`` when it declares none."""
    if model is not None:
        names = model.configuration_names()
        if names:
            return frozenset(names)
    return frozenset(default)
