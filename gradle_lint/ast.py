"""gradle_lint/ast.py – AST for Gradle build scripts (Groovy DSL subset).

The parser in :mod:`gradle_lint.parser` produces a tree of these nodes;
the structural visitor and the rules only ever read them.

Design invariants
-----------------
* Every AST node is a frozen dataclass (immutable after construction).
* Nodes that carry children use tuples, never lists.
* Every node records its ``Span`` and the exact source ``text`` it was
  parsed from.  Lines and columns are 1-indexed; ``column`` is the first
  character of the node and ``last_column`` is one past its last
  character.
* Named arguments of a call are gathered into a single ``MapExpr`` that
  comes first in ``MethodCall.arguments``; a trailing block is a
  ``ClosureExpr`` in last position.  This mirrors how Groovy itself
  shapes a call, so ``compile group: 'a', name: 'b'`` and
  ``compile([group: 'a', name: 'b'])`` look alike to a rule.

Module layout
-------------
§1  Source span & node base
§2  Statements
§3  Expressions
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple

# ════════════════════════════════════════════════════════════════════════
# §1  Source span & node base
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Span:
    """Start and (exclusive) end position of a node in the build script."""

    line: int
    column: int
    last_line: int
    last_column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}-{self.last_line}:{self.last_column}"


@dataclass(frozen=True, slots=True, kw_only=True)
class Node:
    """Base class of every AST node.

    A node is the *Node Reference* the rest of the engine talks about:
    rules bookmark nodes, violations are anchored to nodes and edits are
    inserted before or after nodes.
    """

    kind: ClassVar[str] = "node"

    span: Span
    text: str = ""

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column

    @property
    def last_line(self) -> int:
        return self.span.last_line

    @property
    def last_column(self) -> int:
        return self.span.last_column

    def children(self) -> Iterator["Node"]:
        return iter(())


# ════════════════════════════════════════════════════════════════════════
# §2  Statements
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class Statement(Node):
    kind: ClassVar[str] = "statement"


@dataclass(frozen=True, slots=True, kw_only=True)
class Script(Node):
    """Root of a parsed build script."""

    kind: ClassVar[str] = "script"

    statements: Tuple[Statement, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.statements)


@dataclass(frozen=True, slots=True, kw_only=True)
class Block(Statement):
    """``{ ... }`` used as the body of an ``if``/``else``."""

    kind: ClassVar[str] = "block"

    statements: Tuple[Statement, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.statements)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExpressionStatement(Statement):
    kind: ClassVar[str] = "expression_statement"

    expression: "Expression"

    def children(self) -> Iterator[Node]:
        yield self.expression


@dataclass(frozen=True, slots=True, kw_only=True)
class IfStatement(Statement):
    kind: ClassVar[str] = "if_statement"

    condition: "Expression"
    then_branch: Statement
    else_branch: Optional[Statement] = None

    def children(self) -> Iterator[Node]:
        yield self.condition
        yield self.then_branch
        if self.else_branch is not None:
            yield self.else_branch


@dataclass(frozen=True, slots=True, kw_only=True)
class ForStatement(Statement):
    """``for (x in items)`` and ``for (Type x : items)``."""

    kind: ClassVar[str] = "for_statement"

    variable: str
    iterable: "Expression"
    body: Statement

    def children(self) -> Iterator[Node]:
        yield self.iterable
        yield self.body


@dataclass(frozen=True, slots=True, kw_only=True)
class ReturnStatement(Statement):
    kind: ClassVar[str] = "return_statement"

    value: Optional["Expression"] = None

    def children(self) -> Iterator[Node]:
        if self.value is not None:
            yield self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class MethodDefinition(Statement):
    """A helper method declared in the script, ``def name(a, b) { ... }``."""

    kind: ClassVar[str] = "method_definition"

    return_type: str = "def"
    name: str
    parameters: Tuple[str, ...] = ()
    statements: Tuple[Statement, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.statements)


# ════════════════════════════════════════════════════════════════════════
# §3  Expressions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, kw_only=True)
class Expression(Node):
    kind: ClassVar[str] = "expression"


@dataclass(frozen=True, slots=True, kw_only=True)
class Constant(Expression):
    """A literal: string without interpolation, number, boolean or null."""

    kind: ClassVar[str] = "constant"

    value: Any = None


@dataclass(frozen=True, slots=True, kw_only=True)
class GString(Expression):
    """A double-quoted string with ``$`` interpolation.

    ``value`` is the raw content between the quotes, placeholders
    included, which is what Groovy reports as the GString's text.
    """

    kind: ClassVar[str] = "gstring"

    value: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class Variable(Expression):
    kind: ClassVar[str] = "variable"

    name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyExpr(Expression):
    """``receiver.name`` (also ``?.`` and ``*.``)."""

    kind: ClassVar[str] = "property"

    receiver: Expression
    name: str
    operator: str = "."

    def children(self) -> Iterator[Node]:
        yield self.receiver


@dataclass(frozen=True, slots=True, kw_only=True)
class IndexExpr(Expression):
    kind: ClassVar[str] = "index"

    receiver: Expression
    index: Expression

    def children(self) -> Iterator[Node]:
        yield self.receiver
        yield self.index


@dataclass(frozen=True, slots=True, kw_only=True)
class MapEntry(Node):
    kind: ClassVar[str] = "map_entry"

    key: str
    value: Expression

    def children(self) -> Iterator[Node]:
        yield self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class MapExpr(Expression):
    kind: ClassVar[str] = "map"

    entries: Tuple[MapEntry, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.entries)

    def get(self, key: str) -> Optional[Expression]:
        for entry in self.entries:
            if entry.key == key:
                return entry.value
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class ListExpr(Expression):
    kind: ClassVar[str] = "list"

    items: Tuple[Expression, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.items)


@dataclass(frozen=True, slots=True, kw_only=True)
class ClosureExpr(Expression):
    kind: ClassVar[str] = "closure"

    parameters: Tuple[str, ...] = ()
    statements: Tuple[Statement, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.statements)


@dataclass(frozen=True, slots=True, kw_only=True)
class MethodCall(Expression):
    """``name(args)``, ``receiver.name(args)``, ``name args`` and
    ``name { ... }`` all end up here."""

    kind: ClassVar[str] = "method_call"

    receiver: Optional[Expression] = None
    name: str
    arguments: Tuple[Expression, ...] = ()
    operator: str = "."

    def children(self) -> Iterator[Node]:
        if self.receiver is not None:
            yield self.receiver
        yield from self.arguments

    @property
    def receiver_text(self) -> str:
        return self.receiver.text if self.receiver is not None else ""

    @property
    def closure(self) -> Optional[ClosureExpr]:
        """The trailing block argument, if any."""
        if self.arguments and isinstance(self.arguments[-1], ClosureExpr):
            return self.arguments[-1]
        return None

    def entries(self) -> Dict[str, Expression]:
        """All named-argument entries of this call, in source order."""
        collected: Dict[str, Expression] = {}
        for arg in self.arguments:
            if isinstance(arg, MapExpr):
                for entry in arg.entries:
                    collected[entry.key] = entry.value
        return collected


@dataclass(frozen=True, slots=True, kw_only=True)
class Assignment(Expression):
    kind: ClassVar[str] = "assignment"

    target: Expression
    operator: str = "="
    value: Expression

    def children(self) -> Iterator[Node]:
        yield self.target
        yield self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class VariableDeclaration(Expression):
    """``def name = value`` or ``Type name = value``."""

    kind: ClassVar[str] = "variable_declaration"

    type_name: str = "def"
    name: str
    value: Optional[Expression] = None

    def children(self) -> Iterator[Node]:
        if self.value is not None:
            yield self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class BinaryExpr(Expression):
    kind: ClassVar[str] = "binary"

    left: Expression
    operator: str
    right: Expression

    def children(self) -> Iterator[Node]:
        yield self.left
        yield self.right


@dataclass(frozen=True, slots=True, kw_only=True)
class TernaryExpr(Expression):
    """``condition ? a : b``; the elvis form ``value ?: b`` has no ``true_value``."""

    kind: ClassVar[str] = "ternary"

    condition: Expression
    true_value: Optional[Expression] = None
    false_value: Expression

    def children(self) -> Iterator[Node]:
        yield self.condition
        if self.true_value is not None:
            yield self.true_value
        yield self.false_value


@dataclass(frozen=True, slots=True, kw_only=True)
class ConstructorCall(Expression):
    """``new Type(args)``."""

    kind: ClassVar[str] = "constructor_call"

    type_name: str
    arguments: Tuple[Expression, ...] = ()

    def children(self) -> Iterator[Node]:
        return iter(self.arguments)


@dataclass(frozen=True, slots=True, kw_only=True)
class UnaryExpr(Expression):
    kind: ClassVar[str] = "unary"

    operator: str
    operand: Expression

    def children(self) -> Iterator[Node]:
        yield self.operand


def constant_text(expr: Optional[Expression]) -> Optional[str]:
    """The value a rule sees for a map-entry or argument expression.

    Literal constants yield their value as a string; anything else
    yields its source text.
    """
    if expr is None:
        return None
    if isinstance(expr, Constant):
        return None if expr.value is None else str(expr.value)
    if isinstance(expr, GString):
        return expr.value
    return expr.text
