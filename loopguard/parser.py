"""loopguard/parser.py – JavaScript source → syntax tree.

Runs the parsimonious grammar from :mod:`loopguard.grammar` over the
source text and folds the resulting parse tree into the dataclass nodes of
:mod:`loopguard.ast_nodes`.

Design principles
-----------------
* **Fail-fast with location** – grammar failures become
  :class:`~loopguard.errors.ParseError` carrying a line/column
  :class:`~loopguard.errors.SourceSpan`; nothing is silently skipped.
* **Flat operator chains** – the grammar matches ``a + b * c`` as an
  operand/operator list; :func:`fold_binary` applies precedence here.
* **Grouping is preserved** – parenthesised expressions stay in the tree
  as :class:`~loopguard.ast_nodes.ParenthesizedExpression` so that the
  generator reproduces the source grouping exactly.

Public API
----------
``parse(text, filename="") -> Program``
"""

from __future__ import annotations

import bisect
import logging
from typing import Any, List, Optional, Sequence

from parsimonious.exceptions import (
    IncompleteParseError,
    ParseError as PegParseError,
    VisitationError,
)
from parsimonious.expressions import Literal as PegLiteral, Regex as PegRegex
from parsimonious.nodes import Node as PegNode, NodeVisitor

from loopguard import ast_nodes as A
from loopguard.errors import ErrorCodes, LoopGuardError, ParseError, SourceSpan
from loopguard.grammar import JS_GRAMMAR

logger = logging.getLogger(__name__)

__all__ = ["parse", "fold_binary", "ASTBuilder", "BINARY_PRECEDENCE"]


BINARY_PRECEDENCE: dict[str, int] = {
    "??": 1,
    "||": 2,
    "&&": 3,
    "|": 4,
    "^": 5,
    "&": 6,
    "==": 7, "!=": 7, "===": 7, "!==": 7,
    "<": 8, ">": 8, "<=": 8, ">=": 8, "instanceof": 8, "in": 8,
    "<<": 9, ">>": 9, ">>>": 9,
    "+": 10, "-": 10,
    "*": 11, "/": 11, "%": 11,
    "**": 12,
}

_RIGHT_ASSOCIATIVE = frozenset({"**"})


def fold_binary(operands: Sequence[A.Node], operators: Sequence[str]) -> A.Node:
    """Fold ``operand (operator operand)*`` into a tree by precedence.

    Shunting-yard over the flat chain: left-associative everywhere except
    ``**``.
    """
    if len(operands) != len(operators) + 1:
        raise ValueError("operand/operator count mismatch")

    output: List[A.Node] = [operands[0]]
    pending: List[str] = []

    def reduce() -> None:
        right = output.pop()
        left = output.pop()
        output.append(A.BinaryExpression(pending.pop(), left, right, loc=left.loc))

    for op, rhs in zip(operators, operands[1:]):
        prec = BINARY_PRECEDENCE[op]
        while pending:
            top = BINARY_PRECEDENCE[pending[-1]]
            if top > prec or (top == prec and op not in _RIGHT_ASSOCIATIVE):
                reduce()
            else:
                break
        pending.append(op)
        output.append(rhs)

    while pending:
        reduce()
    return output[0]


def _opt(value: Any) -> Any:
    """Unwrap an optional (``x?``) result: the value, or ``None``."""
    return value[0] if value else None


def _rest(value: Sequence[Any], index: int) -> List[Any]:
    """Collect element *index* from each repetition of ``(_ "," _ x)*``."""
    return [item[index] for item in value]


def _collect_holes(first: Any, rest: Sequence[Any]) -> List[Optional[A.Node]]:
    """Array element list with holes; a trailing comma adds no hole."""
    elements = [_opt(first)] + [_opt(item[3]) for item in rest]
    if elements and elements[-1] is None:
        elements.pop()
    return elements


class ASTBuilder(NodeVisitor):
    """Transforms a parsimonious parse tree into :mod:`loopguard.ast_nodes`."""

    grammar = JS_GRAMMAR
    unwrapped_exceptions = (LoopGuardError,)

    def __init__(self, text: str = "", filename: str = "") -> None:
        self._text = text
        self._filename = filename
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _loc(self, node: PegNode) -> A.Loc:
        line = bisect.bisect_right(self._line_starts, node.start)
        return A.Loc(line=line, col=node.start - self._line_starts[line - 1] + 1)

    def _span(self, node: PegNode) -> SourceSpan:
        loc = self._loc(node)
        return SourceSpan(file=self._filename, line=loc.line, column=loc.col)

    def generic_visit(self, node, visited_children):
        """Tokens come back as the parse node; everything else as the child list."""
        if isinstance(node.expr, (PegLiteral, PegRegex)):
            return node
        return visited_children

    @staticmethod
    def _apply_tail(target: A.Node, tail: Any) -> A.Node:
        if isinstance(tail, A.TemplateLiteral):
            return A.TaggedTemplateExpression(target, tail, loc=target.loc)
        if isinstance(tail, list):
            return A.CallExpression(target, tail, loc=target.loc)
        kind, payload, computed, optional = tail
        if kind == "call":
            return A.CallExpression(target, payload, optional=optional, loc=target.loc)
        return A.MemberExpression(target, payload, computed=computed,
                                  optional=optional, loc=target.loc)

    # ─────────────────────────────────────────────────────────────
    # Program & statements
    # ─────────────────────────────────────────────────────────────

    def visit_program(self, node, visited_children):
        body, _ = visited_children
        return A.Program(body=body, loc=A.Loc(1, 1))

    def visit_statement_list(self, node, visited_children):
        return _rest(visited_children, 1)

    def visit_statement(self, node, visited_children):
        return visited_children[0]

    def visit_block(self, node, visited_children):
        _, body, _, _ = visited_children
        return A.BlockStatement(body=body, loc=self._loc(node))

    def visit_empty_statement(self, node, visited_children):
        return A.EmptyStatement(loc=self._loc(node))

    def visit_variable_statement(self, node, visited_children):
        return visited_children[0]

    def visit_variable_declaration(self, node, visited_children):
        kind, _, first, rest = visited_children
        return A.VariableDeclaration(kind, [first] + _rest(rest, 3), loc=self._loc(node))

    def visit_declaration_kind(self, node, visited_children):
        return A.VarKind(node.text)

    def visit_variable_declarator(self, node, visited_children):
        target, init = visited_children
        init = _opt(init)
        return A.VariableDeclarator(target, init[4] if init else None, loc=target.loc)

    def visit_function_declaration(self, node, visited_children):
        (is_async, generator), _, name, _, (params, body) = visited_children
        return A.FunctionDeclaration(name, params, body, is_async=is_async,
                                     generator=generator, loc=self._loc(node))

    def visit_function_head(self, node, visited_children):
        is_async, _, generator = visited_children
        return bool(is_async), bool(generator)

    def visit_async_prefix(self, node, visited_children):
        return True

    def visit_generator_star(self, node, visited_children):
        return True

    def visit_function_rest(self, node, visited_children):
        _, _, params, _, _, _, body = visited_children
        return _opt(params) or [], body

    def visit_function_body(self, node, visited_children):
        _, body, _, _ = visited_children
        return A.BlockStatement(body=body, loc=self._loc(node))

    def visit_formal_parameters(self, node, visited_children):
        first, rest, _ = visited_children
        return [first] + _rest(rest, 3)

    def visit_formal_parameter(self, node, visited_children):
        return visited_children[0]

    # --- classes ---

    def visit_class_declaration(self, node, visited_children):
        _, _, name, (superclass, members) = visited_children
        return A.ClassDeclaration(name, superclass, members, loc=self._loc(node))

    def visit_class_expression(self, node, visited_children):
        _, name, (superclass, members) = visited_children
        return A.ClassExpression(_opt(name), superclass, members, loc=self._loc(node))

    def visit_class_name(self, node, visited_children):
        return visited_children[1]

    def visit_class_tail(self, node, visited_children):
        heritage, _, _, members, _, _ = visited_children
        return _opt(heritage), members

    def visit_class_heritage(self, node, visited_children):
        return visited_children[3]

    def visit_class_members(self, node, visited_children):
        return [m for m in _rest(visited_children, 1) if not isinstance(m, A.EmptyStatement)]

    def visit_class_member(self, node, visited_children):
        return visited_children[0]

    def visit_static_prefix(self, node, visited_children):
        return True

    def visit_method_definition(self, node, visited_children):
        static, prop = visited_children
        kind = prop.kind if prop.kind in ("get", "set") else "method"
        if (kind == "method" and not prop.computed
                and isinstance(prop.key, A.Identifier) and prop.key.name == "constructor"):
            kind = "constructor"
        return A.MethodDefinition(prop.key, prop.value, kind=kind, static=bool(static),
                                  computed=prop.computed, loc=self._loc(node))

    def visit_class_field(self, node, visited_children):
        static, (key, computed), value, _ = visited_children
        value = _opt(value)
        return A.PropertyDefinition(key, value[4] if value else None, static=bool(static),
                                    computed=computed, loc=self._loc(node))

    # --- control flow ---

    def visit_if_statement(self, node, visited_children):
        test, consequent, alternate = visited_children[4], visited_children[8], visited_children[9]
        return A.IfStatement(test, consequent, _opt(alternate), loc=self._loc(node))

    def visit_else_clause(self, node, visited_children):
        return visited_children[3]

    def visit_for_statement(self, node, visited_children):
        init, test, update = visited_children[4], visited_children[8], visited_children[12]
        return A.ForStatement(_opt(init), _opt(test), _opt(update), visited_children[16],
                              loc=self._loc(node))

    def visit_for_init(self, node, visited_children):
        return visited_children[0]

    def visit_for_in_statement(self, node, visited_children):
        left, right, body = visited_children[4], visited_children[8], visited_children[12]
        return A.ForInStatement(left, right, body, loc=self._loc(node))

    def visit_for_of_statement(self, node, visited_children):
        left, right, body = visited_children[4], visited_children[8], visited_children[12]
        return A.ForOfStatement(left, right, body, loc=self._loc(node))

    def visit_for_await_of_statement(self, node, visited_children):
        left, right, body = visited_children[6], visited_children[10], visited_children[14]
        return A.ForOfStatement(left, right, body, is_await=True, loc=self._loc(node))

    def visit_for_binding(self, node, visited_children):
        return visited_children[0]

    def visit_for_declaration(self, node, visited_children):
        kind, _, target = visited_children
        return A.VariableDeclaration(kind, [A.VariableDeclarator(target, loc=target.loc)],
                                     loc=self._loc(node))

    def visit_while_statement(self, node, visited_children):
        return A.WhileStatement(visited_children[4], visited_children[8], loc=self._loc(node))

    def visit_do_while_statement(self, node, visited_children):
        return A.DoWhileStatement(visited_children[2], visited_children[8], loc=self._loc(node))

    def visit_continue_statement(self, node, visited_children):
        return A.ContinueStatement(_opt(visited_children[1]), loc=self._loc(node))

    def visit_break_statement(self, node, visited_children):
        return A.BreakStatement(_opt(visited_children[1]), loc=self._loc(node))

    def visit_statement_label(self, node, visited_children):
        return visited_children[1]

    def visit_return_statement(self, node, visited_children):
        return A.ReturnStatement(_opt(visited_children[1]), loc=self._loc(node))

    def visit_throw_statement(self, node, visited_children):
        return A.ThrowStatement(visited_children[1], loc=self._loc(node))

    def visit_same_line_expression(self, node, visited_children):
        return visited_children[1]

    def visit_try_statement(self, node, visited_children):
        _, _, block, handler, finalizer = visited_children
        handler, finalizer = _opt(handler), _opt(finalizer)
        if handler is None and finalizer is None:
            raise ParseError(
                "Missing catch or finally after try",
                code=ErrorCodes.INVALID_CONSTRUCT,
                span=self._span(node),
            )
        return A.TryStatement(block, handler, finalizer, loc=self._loc(node))

    def visit_catch_clause(self, node, visited_children):
        _, _, param, _, body = visited_children
        return A.CatchClause(_opt(param), body, loc=self._loc(node))

    def visit_catch_parameter(self, node, visited_children):
        return visited_children[3]

    def visit_finally_clause(self, node, visited_children):
        return visited_children[3]

    def visit_switch_statement(self, node, visited_children):
        return A.SwitchStatement(visited_children[4], visited_children[9], loc=self._loc(node))

    def visit_switch_cases(self, node, visited_children):
        return _rest(visited_children, 1)

    def visit_switch_case(self, node, visited_children):
        test, consequent = visited_children
        return A.SwitchCase(test, consequent, loc=self._loc(node))

    def visit_case_label(self, node, visited_children):
        return visited_children[0]

    def visit_case_test(self, node, visited_children):
        return visited_children[2]

    def visit_default_test(self, node, visited_children):
        return None

    def visit_debugger_statement(self, node, visited_children):
        return A.DebuggerStatement(loc=self._loc(node))

    def visit_labeled_statement(self, node, visited_children):
        return A.LabeledStatement(visited_children[0], visited_children[4], loc=self._loc(node))

    def visit_expression_statement(self, node, visited_children):
        return A.ExpressionStatement(visited_children[1], loc=self._loc(node))

    # ─────────────────────────────────────────────────────────────
    # Binding patterns
    # ─────────────────────────────────────────────────────────────

    def visit_binding_target(self, node, visited_children):
        return visited_children[0]

    def visit_binding_element(self, node, visited_children):
        target, default = visited_children
        default = _opt(default)
        if default is None:
            return target
        return A.AssignmentPattern(target, default[4], loc=target.loc)

    def visit_rest_element(self, node, visited_children):
        return A.RestElement(visited_children[2], loc=self._loc(node))

    def visit_object_pattern(self, node, visited_children):
        return A.ObjectPattern(_opt(visited_children[2]) or [], loc=self._loc(node))

    def visit_pattern_properties(self, node, visited_children):
        first, rest, _ = visited_children
        return [first] + _rest(rest, 3)

    def visit_pattern_property(self, node, visited_children):
        prop = visited_children[0]
        if isinstance(prop, (A.Property, A.RestElement)):
            return prop
        name = prop.left if isinstance(prop, A.AssignmentPattern) else prop
        if not isinstance(name, A.Identifier):
            raise ParseError(
                "Object pattern shorthand must be an identifier",
                code=ErrorCodes.INVALID_CONSTRUCT,
                span=self._span(node),
            )
        return A.Property(A.Identifier(name.name, loc=name.loc), prop,
                          shorthand=True, loc=name.loc)

    def visit_keyed_pattern_property(self, node, visited_children):
        (key, computed), _, _, _, value = visited_children
        return A.Property(key, value, computed=computed, loc=self._loc(node))

    def visit_array_pattern(self, node, visited_children):
        _, _, first, rest, _, _ = visited_children
        return A.ArrayPattern(_collect_holes(first, rest), loc=self._loc(node))

    def visit_array_pattern_item(self, node, visited_children):
        return visited_children[0]

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_expression(self, node, visited_children):
        first, rest = visited_children
        if not rest:
            return first
        return A.SequenceExpression([first] + _rest(rest, 3), loc=first.loc)

    def visit_assignment_expression(self, node, visited_children):
        return visited_children[0]

    def visit_assignment(self, node, visited_children):
        left, _, op, _, right = visited_children
        return A.AssignmentExpression(op.text, left, right, loc=left.loc)

    def visit_arrow_function(self, node, visited_children):
        is_async, params, _, _, _, body = visited_children
        return A.ArrowFunctionExpression(params, body, is_async=bool(is_async),
                                         loc=self._loc(node))

    def visit_arrow_parameters(self, node, visited_children):
        params = visited_children[0]
        return [params] if isinstance(params, A.Identifier) else params

    def visit_parenthesized_parameters(self, node, visited_children):
        return _opt(visited_children[2]) or []

    def visit_arrow_body(self, node, visited_children):
        return visited_children[0]

    def visit_yield_expression(self, node, visited_children):
        _, delegate, argument = visited_children
        return A.YieldExpression(_opt(argument), delegate=bool(delegate), loc=self._loc(node))

    def visit_yield_delegate(self, node, visited_children):
        return True

    def visit_yield_argument(self, node, visited_children):
        return visited_children[1]

    def visit_conditional_expression(self, node, visited_children):
        test, tail = visited_children
        tail = _opt(tail)
        if tail is None:
            return test
        consequent, alternate = tail
        return A.ConditionalExpression(test, consequent, alternate, loc=test.loc)

    def visit_conditional_tail(self, node, visited_children):
        return visited_children[3], visited_children[7]

    def visit_binary_expression(self, node, visited_children):
        first, rest = visited_children
        if not rest:
            return first
        operands = [first] + _rest(rest, 3)
        operators = [item[1].text for item in rest]
        return fold_binary(operands, operators)

    def visit_unary_expression(self, node, visited_children):
        return visited_children[0]

    def visit_prefix_expression(self, node, visited_children):
        op, _, argument = visited_children
        if op.text in ("++", "--"):
            return A.UpdateExpression(op.text, argument, prefix=True, loc=self._loc(node))
        return A.UnaryExpression(op.text, argument, loc=self._loc(node))

    def visit_await_expression(self, node, visited_children):
        return A.AwaitExpression(visited_children[2], loc=self._loc(node))

    def visit_postfix_expression(self, node, visited_children):
        argument, op = visited_children
        op = _opt(op)
        if op is None:
            return argument
        return A.UpdateExpression(op, argument, prefix=False, loc=argument.loc)

    def visit_postfix_operator(self, node, visited_children):
        return visited_children[1].text

    def visit_left_hand_side_expression(self, node, visited_children):
        head, tails = visited_children
        for tail in tails:
            head = self._apply_tail(head, tail)
        return head

    def visit_lhs_head(self, node, visited_children):
        return visited_children[0]

    def visit_lhs_tail(self, node, visited_children):
        return visited_children[1][0]

    def visit_new_expression(self, node, visited_children):
        _, _, callee, arguments = visited_children
        return A.NewExpression(callee, _opt(arguments), loc=self._loc(node))

    def visit_new_callee(self, node, visited_children):
        head, tails = visited_children
        head = head[0]
        for tail in tails:
            head = self._apply_tail(head, tail)
        return head

    def visit_new_callee_tail(self, node, visited_children):
        return visited_children[1][0]

    def visit_new_arguments(self, node, visited_children):
        return visited_children[1]

    def visit_dot_member(self, node, visited_children):
        return ("member", visited_children[2], False, False)

    def visit_computed_member(self, node, visited_children):
        return ("member", visited_children[2], True, False)

    def visit_optional_chain(self, node, visited_children):
        inner = visited_children[2][0]
        if isinstance(inner, list):
            return ("call", inner, False, True)
        if isinstance(inner, tuple):
            return ("member", inner[1], True, True)
        return ("member", inner, False, True)

    def visit_property_identifier(self, node, visited_children):
        return visited_children[0]

    def visit_private_name(self, node, visited_children):
        return A.Identifier(node.text, loc=self._loc(node))

    def visit_arguments(self, node, visited_children):
        return _opt(visited_children[2]) or []

    def visit_argument_list(self, node, visited_children):
        first, rest, _ = visited_children
        return [first] + _rest(rest, 3)

    def visit_argument(self, node, visited_children):
        return visited_children[0]

    def visit_spread_element(self, node, visited_children):
        return A.SpreadElement(visited_children[2], loc=self._loc(node))

    # ─────────────────────────────────────────────────────────────
    # Primary expressions
    # ─────────────────────────────────────────────────────────────

    def visit_primary_expression(self, node, visited_children):
        return visited_children[0]

    def visit_this_expression(self, node, visited_children):
        return A.ThisExpression(loc=self._loc(node))

    def visit_super_expression(self, node, visited_children):
        return A.Super(loc=self._loc(node))

    def visit_function_expression(self, node, visited_children):
        (is_async, generator), name, _, (params, body) = visited_children
        return A.FunctionExpression(_opt(name), params, body, is_async=is_async,
                                    generator=generator, loc=self._loc(node))

    def visit_function_name(self, node, visited_children):
        return visited_children[1]

    def visit_parenthesized_expression(self, node, visited_children):
        return A.ParenthesizedExpression(visited_children[2], loc=self._loc(node))

    def visit_array_literal(self, node, visited_children):
        _, _, first, rest, _, _ = visited_children
        return A.ArrayExpression(_collect_holes(first, rest), loc=self._loc(node))

    def visit_array_element(self, node, visited_children):
        return visited_children[0]

    def visit_object_literal(self, node, visited_children):
        return A.ObjectExpression(_opt(visited_children[2]) or [], loc=self._loc(node))

    def visit_property_definitions(self, node, visited_children):
        first, rest, _ = visited_children
        return [first] + _rest(rest, 3)

    def visit_property_definition(self, node, visited_children):
        return visited_children[0]

    def visit_keyed_property(self, node, visited_children):
        (key, computed), _, _, _, value = visited_children
        return A.Property(key, value, computed=computed, loc=self._loc(node))

    def visit_shorthand_property(self, node, visited_children):
        name = visited_children[0]
        return A.Property(name, A.Identifier(name.name, loc=name.loc),
                          shorthand=True, loc=name.loc)

    def visit_method_def(self, node, visited_children):
        return visited_children[0]

    def _method(self, node, key_info, rest, kind="init", is_async=False, generator=False):
        key, computed = key_info
        params, body = rest
        value = A.FunctionExpression(None, params, body, is_async=is_async,
                                     generator=generator, loc=self._loc(node))
        return A.Property(key, value, kind=kind, computed=computed,
                          method=kind == "init", loc=self._loc(node))

    def visit_accessor_method(self, node, visited_children):
        kind, _, key_info, _, rest = visited_children
        return self._method(node, key_info, rest, kind=kind)

    def visit_accessor_kind(self, node, visited_children):
        return node.text

    def visit_async_method(self, node, visited_children):
        _, _, star, key_info, _, rest = visited_children
        return self._method(node, key_info, rest, is_async=True, generator=bool(star))

    def visit_generator_method(self, node, visited_children):
        _, _, key_info, _, rest = visited_children
        return self._method(node, key_info, rest, generator=True)

    def visit_plain_method(self, node, visited_children):
        key_info, _, rest = visited_children
        return self._method(node, key_info, rest)

    def visit_method_star(self, node, visited_children):
        return True

    def visit_property_name(self, node, visited_children):
        key = visited_children[0]
        if isinstance(key, tuple):
            return key
        return key, False

    def visit_computed_property_name(self, node, visited_children):
        return visited_children[2], True

    # ─────────────────────────────────────────────────────────────
    # Literals & identifiers
    # ─────────────────────────────────────────────────────────────

    def visit_keyword_literal(self, node, visited_children):
        kind = "null" if node.text == "null" else "boolean"
        return A.Literal(node.text, kind=kind, loc=self._loc(node))

    def visit_numeric_literal(self, node, visited_children):
        return A.Literal(node.text, kind="number", loc=self._loc(node))

    def visit_string_literal(self, node, visited_children):
        return A.Literal(node.text, kind="string", loc=self._loc(node))

    def visit_regex_literal(self, node, visited_children):
        return A.Literal(node.text, kind="regex", loc=self._loc(node))

    def visit_template_literal(self, node, visited_children):
        _, spans, _ = visited_children
        quasis: List[str] = [""]
        expressions: List[A.Node] = []
        for span in spans:
            if isinstance(span, str):
                quasis[-1] += span
            else:
                expressions.append(span)
                quasis.append("")
        return A.TemplateLiteral(quasis, expressions, loc=self._loc(node))

    def visit_template_span(self, node, visited_children):
        return visited_children[0]

    def visit_template_substitution(self, node, visited_children):
        return visited_children[2]

    def visit_template_chars(self, node, visited_children):
        return node.text

    def visit_identifier(self, node, visited_children):
        return visited_children[1]

    def visit_identifier_name(self, node, visited_children):
        return A.Identifier(node.text, loc=self._loc(node))


def _excerpt(text: str, pos: int, width: int = 20) -> str:
    chunk = text[pos:pos + width]
    return chunk.split("\n", 1)[0] or "<end of input>"


def parse(text: str, filename: str = "") -> A.Program:
    """Parse JavaScript *text* into a :class:`~loopguard.ast_nodes.Program`.

    Raises
    ------
    ParseError
        If *text* is not a valid program in the supported grammar.
    """
    try:
        tree = JS_GRAMMAR.parse(text)
    except IncompleteParseError as exc:
        raise ParseError(
            f"Unexpected input {_excerpt(text, exc.pos)!r}",
            code=ErrorCodes.INCOMPLETE_PARSE,
            span=SourceSpan.from_offset(text, exc.pos, filename),
            got=_excerpt(text, exc.pos),
            cause=exc,
        ) from exc
    except PegParseError as exc:
        raise ParseError(
            f"Unexpected input {_excerpt(text, exc.pos)!r}",
            code=ErrorCodes.UNEXPECTED_INPUT,
            span=SourceSpan.from_offset(text, exc.pos, filename),
            got=_excerpt(text, exc.pos),
            cause=exc,
        ) from exc
    except RecursionError as exc:
        raise ParseError(
            "Input is nested too deeply to parse",
            code=ErrorCodes.INVALID_CONSTRUCT,
            span=SourceSpan(file=filename),
            cause=exc,
        ) from exc

    try:
        program = ASTBuilder(text, filename).visit(tree)
    except VisitationError as exc:
        raise ParseError(
            f"Could not build syntax tree: {exc.original_class.__name__}",
            code=ErrorCodes.INVALID_CONSTRUCT,
            span=SourceSpan(file=filename),
            cause=exc,
        ) from exc
    except RecursionError as exc:
        raise ParseError(
            "Input is nested too deeply to parse",
            code=ErrorCodes.INVALID_CONSTRUCT,
            span=SourceSpan(file=filename),
            cause=exc,
        ) from exc

    logger.debug("Parsed %d top-level statement(s)", len(program.body))
    return program
