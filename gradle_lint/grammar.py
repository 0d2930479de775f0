"""gradle_lint/grammar.py – PEG grammar for Gradle build scripts.

Covers the part of the Groovy language that build scripts are written
in: statements separated by newlines or semicolons, paren-less command
calls and command chains (``id 'x' version '1.4' apply false``), named
arguments, trailing closures, property access with ``.``/``?.``/``*.``,
assignments, ``def``/typed local declarations, helper method
definitions, ``if``/``else``, ``for``/``in`` loops, ``return``, list and
map literals, ``new`` expressions, single/double/triple quoted and
slashy strings, the ternary and elvis operators, ``as`` casts, ranges
and the usual binary operators.

Whitespace handling
-------------------
Groovy is newline sensitive, so the grammar uses three whitespace rules:

``_``    any whitespace and comments (inside brackets, after operators)
``hs``   horizontal whitespace and comments only (never a newline)
``hs1``  at least one space or tab (between a command and its arguments)

Statements are separated by ``sep``: optional horizontal space followed
by a newline or ``;``.

Rule names are what :class:`gradle_lint.parser._ScriptBuilder` dispatches
on; expression rules never consume trailing whitespace so that every node
span ends on its last significant character.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

__all__ = ["GRADLE_GRAMMAR", "KEYWORDS"]

KEYWORDS = (
    "if", "else", "for", "def", "return", "new", "true", "false", "null",
    "in", "instanceof", "as",
)

GRADLE_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Script structure
    # ─────────────────────────────────────────────────────────────

    script              = _ statement_list? _
    statement_list      = statement (sep statement)* sep?
    statement           = if_statement
                        / for_statement
                        / return_statement
                        / method_definition
                        / declaration
                        / assignment
                        / command_expression
                        / expression

    if_statement        = ~r"if\b" hs "(" _ expression _ ")" _ statement_body else_clause?
    else_clause         = _ ~r"else\b" _ statement_body
    statement_body      = block / statement
    block               = "{" _ statement_list? _ "}"

    for_statement       = ~r"for\b" hs "(" _ for_variable hs ~r"in\b|:" _ expression _ ")" _ statement_body
    for_variable        = (parameter_type hs1)? identifier
    return_statement    = ~r"return\b" (hs expression)?

    method_definition   = modifiers method_return hs1 identifier hs "(" _ parameter_list? _ ")" _ block
    modifiers           = ~r"(?:(?:private|protected|public|static|final)\b[ \t]+)*"
    method_return       = ~r"def\b" / ~r"void\b" / type_name
    parameter_list      = parameter (_ "," _ parameter)*
    parameter           = (parameter_type hs1)? identifier default_value?
    parameter_type      = ~r"def\b" / type_name
    default_value       = hs "=" _ expression

    declaration         = def_declaration / typed_declaration
    def_declaration     = ~r"def\b" hs1 identifier initializer?
    typed_declaration   = type_name hs1 identifier initializer
    initializer         = hs "=" _ expression
    type_name           = ~r"(?:[A-Z][\w.]*|int|long|boolean|double|float|char|byte|short)(?:<[^>\n]*>)?(?:\[\])*(?![\w.])"

    assignment          = postfix_expression hs assign_op _ expression
    assign_op           = ~r"(?:\+|-|\*|/|<<)?=(?!=)"

    # ─────────────────────────────────────────────────────────────
    # Command expressions: paren-less calls and call chains
    # ─────────────────────────────────────────────────────────────

    command_expression  = (command_call command_tail*)
                        / (postfix_expression command_tail+)
    command_call        = command_head hs1 command_arguments
    command_head        = identifier head_member*
    head_member         = member_operator member_name
    command_tail        = hs1 member_name hs1 command_arguments
    command_arguments   = argument (hs "," _ argument)*

    argument            = named_argument / expression
    named_argument      = map_key hs ":" _ expression
    map_key             = identifier / string / number

    # ─────────────────────────────────────────────────────────────
    # Operators, lowest precedence first
    # ─────────────────────────────────────────────────────────────

    expression          = or_expression ternary_tail?
    ternary_tail        = elvis_tail / conditional_tail
    elvis_tail          = hs ~r"\?:" _ expression
    conditional_tail    = hs ~r"\?(?![.:])" _ expression _ ":" _ expression

    or_expression       = and_expression (hs ~r"\|\|" _ and_expression)*
    and_expression      = equality (hs ~r"&&" _ equality)*
    equality            = relational (hs ~r"==~|==|!=|=~" _ relational)*
    relational          = shift (hs ~r"<=|>=|<(?!<)|>(?!>)|in\b|instanceof\b|as\b" _ shift)*
    shift               = additive (hs ~r"<<|>>|\.\.<|\.\." _ additive)*
    additive            = multiplicative (hs ~r"\+(?!=)|-(?![=>])" _ multiplicative)*
    multiplicative      = unary (hs ~r"[*/%](?![=/*])" _ unary)*

    unary               = unary_operation / postfix_expression
    unary_operation     = ~r"!|-" hs unary

    postfix_expression  = primary postfix_suffix*
    postfix_suffix      = member_call / member_access / index_access
    member_call         = member_operator member_name call_arguments
    member_access       = member_operator member_name
    index_access        = "[" _ expression _ "]"
    member_operator     = _ ~r"\?\.|\*\.|\.(?![.\d])"
    member_name         = ~r"[A-Za-z_]\w*"

    # ─────────────────────────────────────────────────────────────
    # Primaries
    # ─────────────────────────────────────────────────────────────

    primary             = new_expression
                        / call
                        / literal
                        / collection
                        / closure
                        / parenthesized
                        / identifier

    call                = identifier call_arguments
    call_arguments      = (paren_arguments closure_suffix?) / closure_suffix
    closure_suffix      = hs closure
    paren_arguments     = "(" _ argument_list? _ ")"
    argument_list       = argument (_ "," _ argument)* (_ ",")?

    parenthesized       = "(" _ expression _ ")"

    new_expression      = ~r"new\b" hs1 new_type hs paren_arguments
    new_type            = ~r"[A-Za-z_][\w.]*(?:<[^>\n]*>)?"

    closure             = "{" _ closure_params? _ statement_list? _ "}"
    closure_params      = ~r"(?:(?:[A-Za-z_][\w.<>\[\]]*[ \t]+)?[A-Za-z_]\w*(?:[ \t]*,[ \t]*(?:[A-Za-z_][\w.<>\[\]]*[ \t]+)?[A-Za-z_]\w*)*)?[ \t]*->"

    collection          = empty_map / map_literal / list_literal
    empty_map           = "[" _ ":" _ "]"
    map_literal         = "[" _ named_argument (_ "," _ named_argument)* (_ ",")? _ "]"
    list_literal        = "[" _ list_items? _ "]"
    list_items          = expression (_ "," _ expression)* (_ ",")?

    # ─────────────────────────────────────────────────────────────
    # Literals & lexical rules
    # ─────────────────────────────────────────────────────────────

    literal             = string / number / keyword_literal
    string              = triple_double / triple_single / double_string / single_string / slashy_string
    triple_double       = ~r'"{3}.*?"{3}'s
    triple_single       = ~r"'{3}.*?'{3}"s
    double_string       = ~r'"(?:[^"\\\n]|\\.)*"'
    single_string       = ~r"'(?:[^'\\\n]|\\.)*'"
    slashy_string       = ~r"/(?![/*])(?:[^/\\\n]|\\.)+/"
    number              = ~r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?[gGlLdDfFiI]?(?!\w)"
    keyword_literal     = ~r"(?:true|false|null)\b"

    identifier          = ~r"(?!(?:if|else|for|def|return|new|true|false|null|in|instanceof|as)\b)[A-Za-z_]\w*"

    sep                 = ~r"(?:[ \t\r]|//[^\n]*|/\*.*?\*/)*[\n;](?:\s|;|//[^\n]*|/\*.*?\*/)*"s
    hs1                 = ~r"[ \t]+"
    hs                  = ~r"(?:[ \t\r]|//[^\n]*|/\*.*?\*/)*"s
    _                   = ~r"(?:\s|//[^\n]*|/\*.*?\*/)*"s
''')
