"""gradle_lint/visitor.py – structural recognition of Gradle constructs.

:class:`StructuralVisitor` walks a parsed build script once, top-down,
and turns the many ways Groovy can spell the same thing into one
callback per construct on a :class:`~gradle_lint.rule.Rule`::

    compile 'a:b:1.0'                        ─┐
    compile group: 'a', name: 'b', ...        ├─► rule.visit_gradle_dependency(call, "compile", dep)
    compile("a:b:$v")                        ─┘

Recognition per method call, in order:

1. ``ignore(...)`` on a suppression receiver opens a suppression region.
2. Inside ``dependencies {}`` (or ``buildscript {}``): dependency
   declarations.  Inside ``configurations {}``: ``exclude``.  Inside
   ``plugins {}``: plugin declarations.
3. ``buildscript``/``repositories``/``dependencies``/``plugins``/
   ``configurations`` with a trailing closure open the matching block.
4. ``apply plugin: ...``.
5. ``task ...``, ``tasks.create ...`` and ``tasks.register ...``.
6. Any other call with a trailing closure is pushed on the closure
   stack while its body is visited.

Everything else is descended into normally, so nested constructs are
still found.

Each recognised construct is also kept, in callback order, as a
``(DeclarationKind, call)`` pair in :attr:`StructuralVisitor.declarations`.
"""

from __future__ import annotations

import logging
from collections import Counter
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional, Tuple

from gradle_lint import ast as A
from gradle_lint.evaluator import UNRESOLVABLE, ProjectModel, configuration_names, evaluate
from gradle_lint.model import (
    ConfigurationExclude,
    DeclarationKind,
    DependencySyntax,
    GradleDependency,
    GradlePlugin,
)

if TYPE_CHECKING:
    from gradle_lint.rule import Rule

__all__ = [
    "DEFAULT_CONFIGURATIONS",
    "DEFAULT_SUPPRESSION_RECEIVERS",
    "StructuralVisitor",
    "TraversalContext",
]

logger = logging.getLogger(__name__)

DEFAULT_CONFIGURATIONS = ("archives", "default", "compile", "runtime", "testCompile", "testRuntime")
DEFAULT_SUPPRESSION_RECEIVERS = ("gradleLint",)

BLOCK_NAMES = ("buildscript", "repositories", "dependencies", "plugins", "configurations")

_BLOCK_KINDS = {
    "buildscript": DeclarationKind.BUILDSCRIPT_BLOCK,
    "repositories": DeclarationKind.REPOSITORIES_BLOCK,
    "dependencies": DeclarationKind.DEPENDENCIES_BLOCK,
    "plugins": DeclarationKind.PLUGINS_BLOCK,
}

_TASK_FACTORIES = ("create", "register")


def _string_argument(expr: A.Expression) -> bool:
    return isinstance(expr, A.GString) or (
        isinstance(expr, A.Constant) and isinstance(expr.value, str)
    )


def _literal_value(expr: A.Expression) -> Optional[str]:
    """Text of a literal constant, ``None`` for anything else."""
    if not isinstance(expr, A.Constant) or expr.value is None:
        return None
    return expr.value if isinstance(expr.value, str) else expr.text


def _entry_texts(entries: Dict[str, A.Expression]) -> Dict[str, Optional[str]]:
    return {key: A.constant_text(value) for key, value in entries.items()}


class TraversalContext:
    """Where the traversal currently is: open blocks and enclosing closures.

    One context exists per traversal and is exposed read-only to the rule
    as ``rule.context``.
    """

    def __init__(self) -> None:
        self._closures: List[A.MethodCall] = []
        self._depth: Counter = Counter()

    # ── block nesting ───────────────────────────────────────────────

    @contextmanager
    def opened(self, block: str) -> Iterator[None]:
        self._depth[block] += 1
        try:
            yield
        finally:
            self._depth[block] -= 1

    def inside(self, block: str) -> bool:
        return self._depth[block] > 0

    @property
    def in_buildscript(self) -> bool:
        return self.inside("buildscript")

    @property
    def in_repositories(self) -> bool:
        return self.inside("repositories")

    @property
    def in_dependencies(self) -> bool:
        return self.inside("dependencies")

    @property
    def in_plugins(self) -> bool:
        return self.inside("plugins")

    @property
    def in_configurations(self) -> bool:
        return self.inside("configurations")

    # ── closures ────────────────────────────────────────────────────

    @contextmanager
    def closure(self, call: A.MethodCall) -> Iterator[None]:
        self._closures.append(call)
        try:
            yield
        finally:
            self._closures.pop()

    def parent_closure(self) -> Optional[A.MethodCall]:
        return self._closures[-1] if self._closures else None

    def closure_stack(self) -> List[A.MethodCall]:
        return list(self._closures)


class StructuralVisitor:
    """Drives one rule over one parsed script."""

    def __init__(
        self,
        rule: "Rule",
        project: Optional[ProjectModel] = None,
        suppression_receivers: Iterable[str] = DEFAULT_SUPPRESSION_RECEIVERS,
    ) -> None:
        self.rule = rule
        self.project = project
        self.context = TraversalContext()
        self.configurations = configuration_names(project, DEFAULT_CONFIGURATIONS)
        self.suppression_receivers = frozenset(suppression_receivers)
        self.declarations: List[Tuple[DeclarationKind, A.MethodCall]] = []

    def run(self, script: A.Script) -> None:
        self.rule.context = self.context
        self.visit(script)
        self.rule.visit_class_complete(script)

    # ── dispatch ────────────────────────────────────────────────────

    def visit(self, node: A.Node) -> Any:
        method = getattr(self, f"visit_{node.kind}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: A.Node) -> None:
        for child in node.children():
            self.visit(child)

    # ── statements ──────────────────────────────────────────────────

    def visit_expression_statement(self, statement: A.ExpressionStatement) -> None:
        self._extension_property(statement)
        self.generic_visit(statement)

    def _extension_property(self, statement: A.ExpressionStatement) -> None:
        expr = statement.expression
        parent = self.context.parent_closure()
        if parent is not None:
            if isinstance(expr, A.Assignment):
                # nebula { moduleOwner = 'me' }
                self.rule.visit_extension_property(
                    statement, parent.name, expr.target.text, _literal_value(expr.value)
                )
            elif isinstance(expr, A.MethodCall) and len(expr.arguments) == 1:
                # nebula { moduleOwner 'me' }
                arg = expr.arguments[0]
                if not isinstance(arg, (A.ClosureExpr, A.MapExpr)):
                    self.rule.visit_extension_property(
                        statement, parent.name, expr.name, _literal_value(arg)
                    )
        elif isinstance(expr, A.Assignment) and isinstance(expr.target, A.PropertyExpr):
            # nebula.moduleOwner = 'me'
            self.rule.visit_extension_property(
                statement, expr.target.receiver.text, expr.target.name, _literal_value(expr.value)
            )
        elif (
            isinstance(expr, A.MethodCall)
            and expr.receiver is not None
            and len(expr.arguments) == 1
            and not isinstance(expr.arguments[0], (A.ClosureExpr, A.MapExpr))
        ):
            # nebula.moduleOwner 'me'
            self.rule.visit_extension_property(
                statement, expr.receiver.text, expr.name, _literal_value(expr.arguments[0])
            )

    # ── method calls ────────────────────────────────────────────────

    def visit_method_call(self, call: A.MethodCall) -> None:
        name = call.name
        ctx = self.context

        if name == "ignore" and call.receiver_text in self.suppression_receivers:
            rule_ids = [
                arg.value for arg in call.arguments
                if isinstance(arg, A.Constant) and isinstance(arg.value, str)
            ]
            with self.rule.recorder.suppressing(rule_ids or None):
                self.generic_visit(call)
                self.rule.visit_method_call(call)
            return

        if ctx.in_dependencies:
            self._dependency(call)
        elif ctx.in_configurations:
            self._configuration_exclude(call)
        elif ctx.in_plugins:
            if self._plugin(call):
                self.rule.visit_method_call(call)
                return
        elif ctx.in_buildscript:
            self._dependency(call)

        if name in BLOCK_NAMES and call.closure is not None:
            with ctx.opened(name):
                self.generic_visit(call)
            if name != "configurations":
                self._declared(_BLOCK_KINDS[name], call)
                getattr(self.rule, f"visit_{name}")(call)
        elif name == "apply":
            plugin = call.entries().get("plugin")
            if plugin is not None:
                self._declared(DeclarationKind.APPLY_PLUGIN_STATEMENT, call)
                self.rule.visit_apply_plugin(call, A.constant_text(plugin))
        elif name == "task" or (call.receiver_text == "tasks" and name in _TASK_FACTORIES):
            task = self._task(call)
            self.generic_visit(call)
            if task is not None:
                self._declared(DeclarationKind.TASK_DECLARATION, call)
                self.rule.visit_task(call, *task)
        elif call.closure is not None:
            with ctx.closure(call):
                self.generic_visit(call)
                self.rule.visit_method_call(call)
            return
        else:
            self.generic_visit(call)
        self.rule.visit_method_call(call)

    def _declared(self, kind: DeclarationKind, call: A.MethodCall) -> None:
        self.declarations.append((kind, call))
        logger.debug("line %d: %s", call.line, kind.name.lower())

    def _dependency(self, call: A.MethodCall) -> None:
        conf = call.name
        args = call.arguments
        if not args or (conf not in self.configurations and conf != "classpath"):
            return

        dependency: Optional[GradleDependency] = None
        if any(isinstance(arg, A.MapExpr) for arg in args):
            # compile group: 'a', name: 'b', version: '1.0'
            entries = _entry_texts(call.entries())
            if entries.get("name"):
                dependency = GradleDependency(
                    name=entries["name"],
                    group=entries.get("group"),
                    version=entries.get("version"),
                    classifier=entries.get("classifier"),
                    ext=entries.get("ext"),
                    conf=entries.get("conf"),
                    syntax=DependencySyntax.MAP_NOTATION,
                )
        elif any(_string_argument(arg) for arg in args):
            # compile 'a:b:1.0'
            notation = next(A.constant_text(arg) for arg in args if _string_argument(arg))
            dependency = GradleDependency.from_notation(notation)
        elif self.project is not None:
            # compile libs.guava
            value = evaluate(args[0], self.project)
            if value is UNRESOLVABLE:
                return
            if isinstance(value, str):
                dependency = GradleDependency.from_notation(
                    value, syntax=DependencySyntax.EVALUATED_ARBITRARY_CODE
                )

        if dependency is not None:
            self._declared(DeclarationKind.DEPENDENCY_DECLARATION, call)
            self.rule.visit_gradle_dependency(call, conf, dependency)
        else:
            logger.debug("line %d: not a recognisable dependency: %r", call.line, call.text)

    def _configuration_exclude(self, call: A.MethodCall) -> None:
        if call.name != "exclude":
            return
        conf = call.receiver_text
        if not conf:
            # configurations { all { exclude ... } }
            parent = self.context.parent_closure()
            conf = parent.name if parent is not None else ""
        if conf in self.configurations or conf == "all":
            entries = _entry_texts(call.entries())
            self.rule.visit_configuration_exclude(
                call, conf, ConfigurationExclude(entries.get("group"), entries.get("module"))
            )

    def _plugin(self, call: A.MethodCall) -> bool:
        """``id 'x' version '1.4' apply false``: one declaration for the whole chain."""
        chain = [call]
        while isinstance(chain[-1].receiver, A.MethodCall):
            chain.append(chain[-1].receiver)
        innermost = chain[-1]
        plugin_id = next(
            (A.constant_text(arg) for arg in innermost.arguments if _string_argument(arg)), None
        )
        if plugin_id is None:
            return False
        version: Optional[str] = None
        apply: Optional[bool] = None
        for link in chain[:-1]:
            arg = link.arguments[0] if link.arguments else None
            if link.name == "version" and arg is not None:
                version = A.constant_text(arg)
            elif link.name == "apply" and isinstance(arg, A.Constant) and isinstance(arg.value, bool):
                apply = arg.value
        self._declared(DeclarationKind.PLUGIN_DECLARATION, call)
        self.rule.visit_gradle_plugin(call, innermost.name, GradlePlugin(plugin_id, version, apply))
        return True

    def _task(self, call: A.MethodCall) -> Optional[Tuple[str, Dict[str, Optional[str]]]]:
        """Task name and arguments from the first argument shape that matches."""
        args = call.arguments
        possible_name = next(
            (arg for arg in args if not isinstance(arg, (A.MapExpr, A.ClosureExpr))), None
        )
        if possible_name is None:
            # tasks.create(name: 't14')
            task_args = _entry_texts(call.entries())
            name = task_args.get("name")
        elif isinstance(possible_name, A.Variable):
            # task t5
            name = possible_name.name
            task_args = _entry_texts(call.entries())
        elif isinstance(possible_name, A.Constant):
            # task 't2', tasks.create('t18', Wrapper)
            name = A.constant_text(possible_name)
            task_args = _entry_texts(call.entries())
            if not task_args and len(args) > 1:
                task_type = args[1]
                if isinstance(task_type, A.Variable):
                    task_args["type"] = task_type.name
                elif isinstance(task_type, A.PropertyExpr):
                    task_args["type"] = task_type.receiver.text
        elif isinstance(possible_name, A.MethodCall):
            # task t9(type: Wrapper)
            name = possible_name.name
            task_args = _entry_texts(possible_name.entries())
        else:
            return None
        if name is None:
            return None
        return name, task_args
