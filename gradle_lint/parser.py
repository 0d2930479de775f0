"""gradle_lint/parser.py – build script text → :mod:`gradle_lint.ast`.

The parsimonious parse tree produced by :data:`GRADLE_GRAMMAR` is
turned into frozen AST nodes by :class:`_ScriptBuilder`.  Every node gets
a :class:`~gradle_lint.ast.Span` computed from the parse-tree offsets and
the exact slice of source text it covers.

Public API
----------
``parse_script(source, build_file="<script>") -> ast.Script``
    Parse a complete build script.  Raises
    :class:`~gradle_lint.errors.ScriptParseError` with the line and
    column where the grammar stopped matching.
"""

from __future__ import annotations

import bisect
import logging
import re
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.nodes import NodeVisitor

from gradle_lint import ast as A
from gradle_lint.errors import GradleLintError, ScriptParseError
from gradle_lint.grammar import GRADLE_GRAMMAR

__all__ = ["parse_script"]

logger = logging.getLogger(__name__)

_INTERPOLATION = re.compile(r"(?<!\\)\$")
_SLASHY_INTERPOLATION = re.compile(r"(?<!\\)\$(?=[{A-Za-z_])")
_ESCAPE = re.compile(r"\\(.)", re.DOTALL)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f"}


def _unescape(body: str) -> str:
    return _ESCAPE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


# ─────────────────────────────────────────────────────────────────────
# Intermediate markers passed between visit methods
# ─────────────────────────────────────────────────────────────────────


class _Name(NamedTuple):
    text: str
    start: int
    end: int


class _Member(NamedTuple):
    operator: str
    name: _Name


class _Args(NamedTuple):
    items: Tuple[Any, ...]


class _Tail(NamedTuple):
    name: str
    arguments: Tuple[A.Expression, ...]
    end: int


class _Suffix(NamedTuple):
    kind: str  # "call", "property" or "index"
    operator: str
    name: str
    payload: Any
    end: int


class _Params(NamedTuple):
    names: Tuple[str, ...]


class _Ternary(NamedTuple):
    true_value: Optional[A.Expression]  # None for the elvis operator
    false_value: A.Expression


# ═════════════════════════════════════════════════════════════════════
#  Parse tree → AST
# ═════════════════════════════════════════════════════════════════════


class _ScriptBuilder(NodeVisitor):
    """Transforms the parsimonious parse tree into a :class:`ast.Script`."""

    unwrapped_exceptions = (GradleLintError,)

    def __init__(self, source: str):
        self._source = source
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]

    # ─────────────────────────────────────────────────────────────
    # Positions
    # ─────────────────────────────────────────────────────────────

    def _position(self, offset: int) -> Tuple[int, int]:
        line = bisect.bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def _span(self, start: int, end: int) -> A.Span:
        line, column = self._position(start)
        if end > start:
            last_line, last_column = self._position(end - 1)
            last_column += 1
        else:
            last_line, last_column = line, column
        return A.Span(line, column, last_line, last_column)

    def _offset(self, line: int, column: int) -> int:
        return self._line_starts[line - 1] + column - 1

    def _start(self, node: A.Node) -> int:
        return self._offset(node.line, node.column)

    def _end(self, node: A.Node) -> int:
        return self._offset(node.last_line, node.last_column)

    def _build(self, cls, start: int, end: int, **fields):
        return cls(span=self._span(start, end), text=self._source[start:end], **fields)

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def generic_visit(self, node, visited_children):
        """Default: return the visited children, or the node itself for leaves."""
        return visited_children or node

    @classmethod
    def _flatten(cls, items, kinds=(A.Node,)) -> List[Any]:
        """Collect every object of ``kinds`` from nested visit results."""
        out: List[Any] = []
        if isinstance(items, list):
            for item in items:
                out.extend(cls._flatten(item, kinds))
        elif isinstance(items, kinds):
            out.append(items)
        return out

    def _arrange(self, items: Sequence[Any]) -> Tuple[A.Expression, ...]:
        """Gather named arguments into one leading map, keep the rest in order."""
        entries = [item for item in items if isinstance(item, A.MapEntry)]
        positional = [item for item in items if not isinstance(item, A.MapEntry)]
        if not entries:
            return tuple(positional)
        named = self._build(
            A.MapExpr,
            self._start(entries[0]),
            self._end(entries[-1]),
            entries=tuple(entries),
        )
        return (named, *positional)

    def _variable(self, name: _Name) -> A.Variable:
        return self._build(A.Variable, name.start, name.end, name=name.text)

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    def visit_script(self, node, visited_children):
        statements = self._flatten(visited_children[1], A.Statement)
        return self._build(A.Script, 0, len(self._source), statements=tuple(statements))

    def visit_statement_list(self, node, visited_children):
        return self._flatten(visited_children, A.Statement)

    def visit_statement(self, node, visited_children):
        child = visited_children[0]
        if isinstance(child, A.Statement):
            return child
        return A.ExpressionStatement(span=child.span, text=child.text, expression=child)

    def visit_if_statement(self, node, visited_children):
        condition = visited_children[4]
        then_branch = visited_children[8]
        else_branches = self._flatten(visited_children[9], A.Statement)
        return self._build(
            A.IfStatement,
            node.start,
            node.end,
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branches[0] if else_branches else None,
        )

    def visit_else_clause(self, node, visited_children):
        return visited_children[3]

    def visit_statement_body(self, node, visited_children):
        return visited_children[0]

    def visit_block(self, node, visited_children):
        statements = self._flatten(visited_children[2], A.Statement)
        return self._build(A.Block, node.start, node.end, statements=tuple(statements))

    def visit_for_statement(self, node, visited_children):
        return self._build(
            A.ForStatement,
            node.start,
            node.end,
            variable=visited_children[4].text,
            iterable=visited_children[8],
            body=visited_children[12],
        )

    def visit_for_variable(self, node, visited_children):
        return visited_children[1]

    def visit_return_statement(self, node, visited_children):
        values = self._flatten(visited_children[1], A.Expression)
        return self._build(
            A.ReturnStatement, node.start, node.end, value=values[0] if values else None
        )

    def visit_method_definition(self, node, visited_children):
        return_type, name = visited_children[1], visited_children[3]
        parameters = self._flatten(visited_children[7], _Name)
        body = visited_children[11]
        return self._build(
            A.MethodDefinition,
            node.start,
            node.end,
            return_type=return_type,
            name=name.text,
            parameters=tuple(parameter.text for parameter in parameters),
            statements=body.statements,
        )

    def visit_method_return(self, node, visited_children):
        return node.text

    def visit_parameter_list(self, node, visited_children):
        return self._flatten(visited_children, _Name)

    def visit_parameter(self, node, visited_children):
        return visited_children[1]

    def visit_declaration(self, node, visited_children):
        return visited_children[0]

    def visit_def_declaration(self, node, visited_children):
        _, _, name, initializer = visited_children
        values = self._flatten(initializer, A.Expression)
        return self._build(
            A.VariableDeclaration,
            node.start,
            node.end,
            type_name="def",
            name=name.text,
            value=values[0] if values else None,
        )

    def visit_typed_declaration(self, node, visited_children):
        type_name, _, name, value = visited_children
        return self._build(
            A.VariableDeclaration,
            node.start,
            node.end,
            type_name=type_name,
            name=name.text,
            value=value,
        )

    def visit_initializer(self, node, visited_children):
        return visited_children[3]

    def visit_type_name(self, node, visited_children):
        return node.text

    def visit_assignment(self, node, visited_children):
        target, _, operator, _, value = visited_children
        return self._build(
            A.Assignment,
            node.start,
            node.end,
            target=target,
            operator=operator.text,
            value=value,
        )

    # ─────────────────────────────────────────────────────────────
    # Command expressions
    # ─────────────────────────────────────────────────────────────

    def visit_command_expression(self, node, visited_children):
        result, tails = visited_children[0]
        for tail in self._flatten(tails, _Tail):
            result = self._build(
                A.MethodCall,
                node.start,
                tail.end,
                receiver=result,
                name=tail.name,
                arguments=tail.arguments,
            )
        return result

    def visit_command_call(self, node, visited_children):
        members, _, arguments = visited_children
        start = members[0].name.start
        receiver: Optional[A.Expression] = None
        for member in members[:-1]:
            if receiver is None:
                receiver = self._variable(member.name)
            else:
                receiver = self._build(
                    A.PropertyExpr,
                    start,
                    member.name.end,
                    receiver=receiver,
                    name=member.name.text,
                    operator=member.operator,
                )
        last = members[-1]
        return self._build(
            A.MethodCall,
            start,
            node.end,
            receiver=receiver,
            name=last.name.text,
            arguments=arguments.items,
            operator=last.operator,
        )

    def visit_command_head(self, node, visited_children):
        first, rest = visited_children
        return [_Member(".", first)] + self._flatten(rest, _Member)

    def visit_head_member(self, node, visited_children):
        operator, name = visited_children
        return _Member(operator, name)

    def visit_command_tail(self, node, visited_children):
        _, name, _, arguments = visited_children
        return _Tail(name.text, arguments.items, node.end)

    def visit_command_arguments(self, node, visited_children):
        items = self._flatten(visited_children, (A.Expression, A.MapEntry))
        return _Args(self._arrange(items))

    def visit_argument(self, node, visited_children):
        return visited_children[0]

    def visit_named_argument(self, node, visited_children):
        key, _, _, _, value = visited_children
        return self._build(A.MapEntry, node.start, node.end, key=key, value=value)

    def visit_map_key(self, node, visited_children):
        key = visited_children[0]
        if isinstance(key, _Name):
            return key.text
        return str(key.value)

    # ─────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────

    def visit_expression(self, node, visited_children):
        condition, tail = visited_children
        tails = self._flatten(tail, _Ternary)
        if not tails:
            return condition
        return self._build(
            A.TernaryExpr,
            node.start,
            node.end,
            condition=condition,
            true_value=tails[0].true_value,
            false_value=tails[0].false_value,
        )

    def visit_ternary_tail(self, node, visited_children):
        return visited_children[0]

    def visit_elvis_tail(self, node, visited_children):
        return _Ternary(None, visited_children[3])

    def visit_conditional_tail(self, node, visited_children):
        return _Ternary(visited_children[3], visited_children[7])

    def visit_or_expression(self, node, visited_children):
        result, rest = visited_children
        if not isinstance(rest, list):
            return result
        for item, matched in zip(rest, node.children[1].children):
            result = self._build(
                A.BinaryExpr,
                node.start,
                matched.end,
                left=result,
                operator=item[1].text,
                right=item[3],
            )
        return result

    visit_and_expression = visit_or_expression
    visit_equality = visit_or_expression
    visit_relational = visit_or_expression
    visit_shift = visit_or_expression
    visit_additive = visit_or_expression
    visit_multiplicative = visit_or_expression

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_unary_operation(self, node, visited_children):
        operator, _, operand = visited_children
        return self._build(
            A.UnaryExpr, node.start, node.end, operator=operator.text, operand=operand
        )

    def visit_postfix_expression(self, node, visited_children):
        result, suffixes = visited_children
        for suffix in self._flatten(suffixes, _Suffix):
            if suffix.kind == "call":
                result = self._build(
                    A.MethodCall,
                    node.start,
                    suffix.end,
                    receiver=result,
                    name=suffix.name,
                    arguments=suffix.payload,
                    operator=suffix.operator,
                )
            elif suffix.kind == "property":
                result = self._build(
                    A.PropertyExpr,
                    node.start,
                    suffix.end,
                    receiver=result,
                    name=suffix.name,
                    operator=suffix.operator,
                )
            else:
                result = self._build(
                    A.IndexExpr, node.start, suffix.end, receiver=result, index=suffix.payload
                )
        return result

    def visit_postfix_suffix(self, node, visited_children):
        return visited_children[0]

    def visit_member_call(self, node, visited_children):
        operator, name, arguments = visited_children
        return _Suffix("call", operator, name.text, arguments.items, node.end)

    def visit_member_access(self, node, visited_children):
        operator, name = visited_children
        return _Suffix("property", operator, name.text, None, node.end)

    def visit_index_access(self, node, visited_children):
        return _Suffix("index", "[", "", visited_children[2], node.end)

    def visit_member_operator(self, node, visited_children):
        return node.children[1].text

    def visit_member_name(self, node, visited_children):
        return _Name(node.text, node.start, node.end)

    visit_identifier = visit_member_name

    # ─────────────────────────────────────────────────────────────
    # Primaries
    # ─────────────────────────────────────────────────────────────

    def visit_primary(self, node, visited_children):
        child = visited_children[0]
        if isinstance(child, _Name):
            return self._variable(child)
        return child

    def visit_call(self, node, visited_children):
        name, arguments = visited_children
        return self._build(
            A.MethodCall, node.start, node.end, name=name.text, arguments=arguments.items
        )

    def visit_call_arguments(self, node, visited_children):
        items: List[Any] = []
        for piece in self._flatten(visited_children, (_Args, A.ClosureExpr)):
            if isinstance(piece, _Args):
                items.extend(piece.items)
            else:
                items.append(piece)
        return _Args(self._arrange(items))

    def visit_closure_suffix(self, node, visited_children):
        return visited_children[1]

    def visit_paren_arguments(self, node, visited_children):
        return _Args(tuple(self._flatten(visited_children[2], (A.Expression, A.MapEntry))))

    def visit_argument_list(self, node, visited_children):
        return self._flatten(visited_children, (A.Expression, A.MapEntry))

    def visit_parenthesized(self, node, visited_children):
        return visited_children[2]

    def visit_new_expression(self, node, visited_children):
        _, _, type_name, _, arguments = visited_children
        return self._build(
            A.ConstructorCall,
            node.start,
            node.end,
            type_name=type_name,
            arguments=self._arrange(arguments.items),
        )

    def visit_new_type(self, node, visited_children):
        return node.text

    def visit_closure(self, node, visited_children):
        params = self._flatten(visited_children[2], _Params)
        statements = self._flatten(visited_children[4], A.Statement)
        return self._build(
            A.ClosureExpr,
            node.start,
            node.end,
            parameters=params[0].names if params else (),
            statements=tuple(statements),
        )

    def visit_closure_params(self, node, visited_children):
        declared = node.text[: node.text.rindex("->")]
        names = tuple(part.split()[-1] for part in declared.split(",") if part.strip())
        return _Params(names)

    def visit_collection(self, node, visited_children):
        return visited_children[0]

    def visit_empty_map(self, node, visited_children):
        return self._build(A.MapExpr, node.start, node.end, entries=())

    def visit_map_literal(self, node, visited_children):
        entries = self._flatten(visited_children, A.MapEntry)
        return self._build(A.MapExpr, node.start, node.end, entries=tuple(entries))

    def visit_list_literal(self, node, visited_children):
        items = self._flatten(visited_children[2], A.Expression)
        return self._build(A.ListExpr, node.start, node.end, items=tuple(items))

    def visit_list_items(self, node, visited_children):
        return self._flatten(visited_children, A.Expression)

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    def visit_literal(self, node, visited_children):
        return visited_children[0]

    visit_string = visit_literal

    def _quoted(self, node, body: str, interpolating: bool):
        if interpolating and _INTERPOLATION.search(body):
            return self._build(A.GString, node.start, node.end, value=body)
        return self._build(A.Constant, node.start, node.end, value=_unescape(body))

    def visit_single_string(self, node, visited_children):
        return self._quoted(node, node.text[1:-1], interpolating=False)

    def visit_double_string(self, node, visited_children):
        return self._quoted(node, node.text[1:-1], interpolating=True)

    def visit_triple_single(self, node, visited_children):
        return self._build(A.Constant, node.start, node.end, value=node.text[3:-3])

    def visit_triple_double(self, node, visited_children):
        return self._quoted(node, node.text[3:-3], interpolating=True)

    def visit_slashy_string(self, node, visited_children):
        body = node.text[1:-1]
        if _SLASHY_INTERPOLATION.search(body):
            return self._build(A.GString, node.start, node.end, value=body)
        # only \/ is an escape; everything else is kept for the regex
        return self._build(A.Constant, node.start, node.end, value=body.replace("\\/", "/"))

    def visit_number(self, node, visited_children):
        digits = node.text.rstrip("gGlLdDfFiI")
        if node.text[-1:] in "dDfF" or "." in digits or "e" in digits.lower():
            value: Any = float(digits)
        else:
            value = int(digits)
        return self._build(A.Constant, node.start, node.end, value=value)

    def visit_keyword_literal(self, node, visited_children):
        value = {"true": True, "false": False, "null": None}[node.text]
        return self._build(A.Constant, node.start, node.end, value=value)


# ═════════════════════════════════════════════════════════════════════
#  Public API
# ═════════════════════════════════════════════════════════════════════


def parse_script(source: str, build_file: str = "<script>") -> A.Script:
    """Parse a Gradle build script into an :class:`ast.Script`."""
    try:
        tree = GRADLE_GRAMMAR.parse(source)
    except ParseError as exc:
        excerpt = source[exc.pos:exc.pos + 30].split("\n", 1)[0]
        raise ScriptParseError(
            f"unexpected input {excerpt!r}",
            line=exc.line(),
            column=exc.column(),
            build_file=build_file,
        ) from exc
    try:
        script = _ScriptBuilder(source).visit(tree)
    except VisitationError as exc:
        raise ScriptParseError(
            f"cannot build syntax tree: {exc.original_class.__name__}",
            build_file=build_file,
        ) from exc
    logger.debug("parsed %s: %d top-level statements", build_file, len(script.statements))
    return script
