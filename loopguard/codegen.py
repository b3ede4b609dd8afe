#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
loopguard/codegen.py
====================

Code generator: JavaScript syntax tree → source text.

Statements are written line by line through a :class:`CodeEmitter`;
expressions are rendered to strings and placed on the current line.

Layout rules
------------
- One statement per line, every simple statement terminated with ``;``.
- Blocks use braces on the header line; empty blocks print as ``{}``.
- ``else``, ``catch``, ``finally`` and a ``do`` loop's ``while`` join the
  closing brace of the preceding block.
- Expressions are printed in their parsed grouping; parenthesised
  expressions are kept as nodes, so no precedence analysis happens here.
- Function bodies inside expressions are rendered at the indentation of
  the enclosing statement; the lines of a multi-line template literal
  are never re-indented.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from loopguard import ast_nodes as A
from loopguard.errors import GenerationError, SourceSpan
from loopguard.visitor import ASTVisitor

logger = logging.getLogger(__name__)

__all__ = ["CodeEmitter", "CodeGenerator", "generate"]


INLINE_OBJECT_WIDTH = 72

_WORD_OPERATORS = frozenset({"typeof", "void", "delete", "in", "instanceof"})
_DECIMAL_INTEGER_RE = re.compile(r"[\d_]+")
_STATEMENT_LOOKALIKE_RE = re.compile(r"(?:\{|function\b|class\b|async\s+function\b|let\s*\[)")


class CodeEmitter:
    """Line buffer with indentation management.

    Lines are stored already indented.  ``label`` queues a prefix (such
    as ``outer: ``) that is placed in front of the next emitted line.
    """

    def __init__(self, indent_str: str = "  ", level: int = 0) -> None:
        self._lines: List[str] = []
        self._indent_str = indent_str
        self._prefix = ""
        self.level = level

    @property
    def indent_str(self) -> str:
        return self._indent_str

    def pad(self, level: Optional[int] = None) -> str:
        return self._indent_str * (self.level if level is None else level)

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        self._lines.append(self.pad() + self._prefix + code)
        self._prefix = ""

    def extend_last(self, text: str) -> None:
        """Append *text* to the most recently emitted line."""
        if not self._lines:
            self.emit(text.lstrip())
            return
        self._lines[-1] += text

    def label(self, text: str) -> None:
        self._prefix += text

    @contextmanager
    def indented(self) -> Iterator["CodeEmitter"]:
        self.level += 1
        try:
            yield self
        finally:
            self.level -= 1

    def getvalue(self) -> str:
        return "\n".join(self._lines)


class CodeGenerator(ASTVisitor):
    """Prints a syntax tree.

    Statement visitors emit lines and return ``None``; expression
    visitors return the rendered text.
    """

    def __init__(self, indent: int = 2, level: int = 0) -> None:
        self.indent = indent
        self.emitter = CodeEmitter(" " * indent, level)
        self._depth = 0

    def generate(self, tree: A.Node) -> str:
        self._statement(tree)
        return self.emitter.getvalue()

    def generic_visit(self, node: A.Node):
        raise GenerationError(
            f"Cannot generate code for {type(node).__name__}",
            span=SourceSpan.from_node(node),
        )

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _statement(self, node: A.Node) -> None:
        if self.visit(node) is not None:
            raise GenerationError(
                f"{type(node).__name__} is not a statement",
                span=SourceSpan.from_node(node),
            )

    def _statements(self, nodes: Sequence[A.Node]) -> None:
        for node in nodes:
            self._statement(node)

    def expr(self, node: A.Node) -> str:
        if isinstance(node, A.VariableDeclaration):
            return self._declaration(node)
        text = self.visit(node)
        if not isinstance(text, str):
            raise GenerationError(
                f"{type(node).__name__} is not an expression",
                span=SourceSpan.from_node(node),
            )
        return text

    def _level(self) -> int:
        return self.emitter.level + self._depth

    @contextmanager
    def _deeper(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def _open(self, text: str, join: bool) -> None:
        if join:
            self.emitter.extend_last(" " + text)
        else:
            self.emitter.emit(text)

    def _body(self, header: str, body: A.Node, join: bool = False) -> bool:
        """Emit ``header`` followed by *body*; return True if it ended in ``}``."""
        if isinstance(body, A.BlockStatement):
            if not body.body:
                self._open(header + " {}", join)
                return True
            self._open(header + " {", join)
            with self.emitter.indented():
                self._statements(body.body)
            self.emitter.emit("}")
            return True
        self._open(header, join)
        with self.emitter.indented():
            self._statement(body)
        return False

    def _render_block(self, block: A.BlockStatement) -> str:
        if not block.body:
            return "{}"
        level = self._level()
        sub = CodeGenerator(self.indent, level=level + 1)
        sub._statements(block.body)
        return "{\n" + sub.emitter.getvalue() + "\n" + self.emitter.pad(level) + "}"

    def _render_class_body(self, members: Sequence[A.Node]) -> str:
        if not members:
            return "{}"
        level = self._level()
        sub = CodeGenerator(self.indent, level=level + 1)
        for member in members:
            sub._class_member(member)
        return "{\n" + sub.emitter.getvalue() + "\n" + self.emitter.pad(level) + "}"

    def _params(self, params: Sequence[A.Node]) -> str:
        return ", ".join(self.expr(p) for p in params)

    def _key(self, key: A.Node, computed: bool) -> str:
        text = self.expr(key)
        return f"[{text}]" if computed else text

    def _function_head(self, is_async: bool, generator: bool) -> str:
        head = "async " if is_async else ""
        return head + ("function*" if generator else "function")

    def _method_head(self, key: str, fn: A.FunctionExpression, kind: str = "") -> str:
        prefix = ""
        if kind in ("get", "set"):
            prefix = kind + " "
        if fn.is_async:
            prefix += "async "
        if fn.generator:
            prefix += "*"
        return f"{prefix}{key}({self._params(fn.params)})"

    def _declaration(self, node: A.VariableDeclaration) -> str:
        parts = []
        for decl in node.declarations:
            text = self.expr(decl.id)
            if decl.init is not None:
                text += f" = {self.expr(decl.init)}"
            parts.append(text)
        return f"{node.kind.value} " + ", ".join(parts)

    def _elements(self, elements: Sequence[Optional[A.Node]]) -> str:
        text = ", ".join("" if e is None else self.expr(e) for e in elements)
        if elements and elements[-1] is None:
            text += ","
        return text

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    def visit_program(self, node: A.Program) -> None:
        self._statements(node.body)

    def visit_block_statement(self, node: A.BlockStatement) -> None:
        if not node.body:
            self.emitter.emit("{}")
            return
        self.emitter.emit("{")
        with self.emitter.indented():
            self._statements(node.body)
        self.emitter.emit("}")

    def visit_empty_statement(self, node: A.EmptyStatement) -> None:
        self.emitter.emit(";")

    def visit_expression_statement(self, node: A.ExpressionStatement) -> None:
        text = self.expr(node.expression)
        if _STATEMENT_LOOKALIKE_RE.match(text):
            text = f"({text})"
        self.emitter.emit(text + ";")

    def visit_variable_declaration(self, node: A.VariableDeclaration) -> None:
        self.emitter.emit(self._declaration(node) + ";")

    def visit_function_declaration(self, node: A.FunctionDeclaration) -> None:
        head = self._function_head(node.is_async, node.generator)
        self._body(f"{head} {node.id.name}({self._params(node.params)})", node.body)

    def visit_class_declaration(self, node: A.ClassDeclaration) -> None:
        header = f"class {node.id.name}"
        if node.superclass is not None:
            header += f" extends {self.expr(node.superclass)}"
        if not node.body:
            self.emitter.emit(header + " {}")
            return
        self.emitter.emit(header + " {")
        with self.emitter.indented():
            for member in node.body:
                self._class_member(member)
        self.emitter.emit("}")

    def _class_member(self, member: A.Node) -> None:
        if isinstance(member, A.MethodDefinition):
            static = "static " if member.static else ""
            kind = member.kind if member.kind in ("get", "set") else ""
            head = self._method_head(self._key(member.key, member.computed), member.value, kind)
            self._body(static + head, member.value.body)
        elif isinstance(member, A.PropertyDefinition):
            text = ("static " if member.static else "") + self._key(member.key, member.computed)
            if member.value is not None:
                text += f" = {self.expr(member.value)}"
            self.emitter.emit(text + ";")
        else:
            self.generic_visit(member)

    def visit_if_statement(self, node: A.IfStatement) -> None:
        self._if(node)

    def _if(self, node: A.IfStatement, lead: str = "", join: bool = False) -> None:
        braced = self._body(f"{lead}if ({self.expr(node.test)})", node.consequent, join)
        alternate = node.alternate
        if alternate is None:
            return
        if isinstance(alternate, A.IfStatement):
            self._if(alternate, "else ", braced)
        else:
            self._body("else", alternate, braced)

    def visit_for_statement(self, node: A.ForStatement) -> None:
        init = self.expr(node.init) if node.init is not None else ""
        test = f" {self.expr(node.test)}" if node.test is not None else ""
        update = f" {self.expr(node.update)}" if node.update is not None else ""
        self._body(f"for ({init};{test};{update})", node.body)

    def visit_for_in_statement(self, node: A.ForInStatement) -> None:
        self._body(f"for ({self.expr(node.left)} in {self.expr(node.right)})", node.body)

    def visit_for_of_statement(self, node: A.ForOfStatement) -> None:
        keyword = "for await" if node.is_await else "for"
        self._body(f"{keyword} ({self.expr(node.left)} of {self.expr(node.right)})", node.body)

    def visit_while_statement(self, node: A.WhileStatement) -> None:
        self._body(f"while ({self.expr(node.test)})", node.body)

    def visit_do_while_statement(self, node: A.DoWhileStatement) -> None:
        braced = self._body("do", node.body)
        self._open(f"while ({self.expr(node.test)});", braced)

    def visit_return_statement(self, node: A.ReturnStatement) -> None:
        if node.argument is None:
            self.emitter.emit("return;")
        else:
            self.emitter.emit(f"return {self.expr(node.argument)};")

    def visit_throw_statement(self, node: A.ThrowStatement) -> None:
        self.emitter.emit(f"throw {self.expr(node.argument)};")

    def visit_break_statement(self, node: A.BreakStatement) -> None:
        self.emitter.emit(f"break {node.label.name};" if node.label else "break;")

    def visit_continue_statement(self, node: A.ContinueStatement) -> None:
        self.emitter.emit(f"continue {node.label.name};" if node.label else "continue;")

    def visit_debugger_statement(self, node: A.DebuggerStatement) -> None:
        self.emitter.emit("debugger;")

    def visit_labeled_statement(self, node: A.LabeledStatement) -> None:
        self.emitter.label(f"{node.label.name}: ")
        self._statement(node.body)

    def visit_try_statement(self, node: A.TryStatement) -> None:
        self._body("try", node.block)
        if node.handler is not None:
            header = "catch"
            if node.handler.param is not None:
                header += f" ({self.expr(node.handler.param)})"
            self._body(header, node.handler.body, join=True)
        if node.finalizer is not None:
            self._body("finally", node.finalizer, join=True)

    def visit_switch_statement(self, node: A.SwitchStatement) -> None:
        header = f"switch ({self.expr(node.discriminant)})"
        if not node.cases:
            self.emitter.emit(header + " {}")
            return
        self.emitter.emit(header + " {")
        with self.emitter.indented():
            for case in node.cases:
                if case.test is None:
                    self.emitter.emit("default:")
                else:
                    self.emitter.emit(f"case {self.expr(case.test)}:")
                with self.emitter.indented():
                    self._statements(case.consequent)
        self.emitter.emit("}")

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_identifier(self, node: A.Identifier) -> str:
        return node.name

    def visit_literal(self, node: A.Literal) -> str:
        return node.raw

    def visit_template_literal(self, node: A.TemplateLiteral) -> str:
        parts = [node.quasis[0]]
        for expression, quasi in zip(node.expressions, node.quasis[1:]):
            parts.append("${" + self.expr(expression) + "}")
            parts.append(quasi)
        return "`" + "".join(parts) + "`"

    def visit_tagged_template_expression(self, node: A.TaggedTemplateExpression) -> str:
        return self.expr(node.tag) + self.expr(node.quasi)

    def visit_this_expression(self, node: A.ThisExpression) -> str:
        return "this"

    def visit_super(self, node: A.Super) -> str:
        return "super"

    def visit_array_expression(self, node: A.ArrayExpression) -> str:
        return f"[{self._elements(node.elements)}]"

    def visit_array_pattern(self, node: A.ArrayPattern) -> str:
        return f"[{self._elements(node.elements)}]"

    def visit_object_expression(self, node: A.ObjectExpression) -> str:
        return self._object(node.properties)

    def visit_object_pattern(self, node: A.ObjectPattern) -> str:
        return self._object(node.properties)

    def _object(self, properties: Sequence[A.Node]) -> str:
        if not properties:
            return "{}"
        level = self._level()
        with self._deeper():
            parts = [self.expr(p) for p in properties]
        inline = "{ " + ", ".join(parts) + " }"
        if len(inline) <= INLINE_OBJECT_WIDTH and "\n" not in inline:
            return inline
        pad = self.emitter.pad(level + 1)
        return "{\n" + ",\n".join(pad + p for p in parts) + "\n" + self.emitter.pad(level) + "}"

    def visit_property(self, node: A.Property) -> str:
        key = self._key(node.key, node.computed)
        if node.kind in ("get", "set") or node.method:
            fn = node.value
            kind = node.kind if node.kind in ("get", "set") else ""
            return f"{self._method_head(key, fn, kind)} {self._render_block(fn.body)}"
        if node.shorthand:
            if isinstance(node.value, A.AssignmentPattern):
                return self.expr(node.value)
            return key
        return f"{key}: {self.expr(node.value)}"

    def visit_spread_element(self, node: A.SpreadElement) -> str:
        return "..." + self.expr(node.argument)

    def visit_rest_element(self, node: A.RestElement) -> str:
        return "..." + self.expr(node.argument)

    def visit_assignment_pattern(self, node: A.AssignmentPattern) -> str:
        return f"{self.expr(node.left)} = {self.expr(node.right)}"

    def visit_function_expression(self, node: A.FunctionExpression) -> str:
        head = self._function_head(node.is_async, node.generator)
        name = f" {node.id.name}" if node.id is not None else " "
        return f"{head}{name}({self._params(node.params)}) {self._render_block(node.body)}"

    def visit_arrow_function_expression(self, node: A.ArrowFunctionExpression) -> str:
        head = "async " if node.is_async else ""
        head += f"({self._params(node.params)}) =>"
        if isinstance(node.body, A.BlockStatement):
            return f"{head} {self._render_block(node.body)}"
        body = self.expr(node.body)
        if body.startswith("{"):
            body = f"({body})"
        return f"{head} {body}"

    def visit_class_expression(self, node: A.ClassExpression) -> str:
        text = "class"
        if node.id is not None:
            text += f" {node.id.name}"
        if node.superclass is not None:
            text += f" extends {self.expr(node.superclass)}"
        return f"{text} {self._render_class_body(node.body)}"

    def visit_unary_expression(self, node: A.UnaryExpression) -> str:
        argument = self.expr(node.argument)
        if node.operator in _WORD_OPERATORS:
            return f"{node.operator} {argument}"
        if node.operator in ("+", "-") and argument.startswith(node.operator):
            return f"{node.operator} {argument}"
        return node.operator + argument

    def visit_update_expression(self, node: A.UpdateExpression) -> str:
        argument = self.expr(node.argument)
        if node.prefix:
            return node.operator + argument
        return argument + node.operator

    def visit_await_expression(self, node: A.AwaitExpression) -> str:
        return f"await {self.expr(node.argument)}"

    def visit_yield_expression(self, node: A.YieldExpression) -> str:
        text = "yield*" if node.delegate else "yield"
        if node.argument is not None:
            text += f" {self.expr(node.argument)}"
        return text

    def visit_binary_expression(self, node: A.BinaryExpression) -> str:
        return f"{self.expr(node.left)} {node.operator} {self.expr(node.right)}"

    def visit_conditional_expression(self, node: A.ConditionalExpression) -> str:
        return (f"{self.expr(node.test)} ? {self.expr(node.consequent)}"
                f" : {self.expr(node.alternate)}")

    def visit_assignment_expression(self, node: A.AssignmentExpression) -> str:
        return f"{self.expr(node.left)} {node.operator} {self.expr(node.right)}"

    def visit_sequence_expression(self, node: A.SequenceExpression) -> str:
        return ", ".join(self.expr(e) for e in node.expressions)

    def visit_member_expression(self, node: A.MemberExpression) -> str:
        obj = self.expr(node.object)
        if (isinstance(node.object, A.Literal) and node.object.kind == "number"
                and _DECIMAL_INTEGER_RE.fullmatch(obj)):
            obj = f"({obj})"
        if node.computed:
            return f"{obj}{'?.' if node.optional else ''}[{self.expr(node.property)}]"
        return f"{obj}{'?.' if node.optional else '.'}{self.expr(node.property)}"

    def visit_call_expression(self, node: A.CallExpression) -> str:
        args = ", ".join(self.expr(a) for a in node.arguments)
        return f"{self.expr(node.callee)}{'?.' if node.optional else ''}({args})"

    def visit_new_expression(self, node: A.NewExpression) -> str:
        callee = self.expr(node.callee)
        if node.arguments is None:
            return f"new {callee}"
        return f"new {callee}({', '.join(self.expr(a) for a in node.arguments)})"

    def visit_parenthesized_expression(self, node: A.ParenthesizedExpression) -> str:
        return f"({self.expr(node.expression)})"


def generate(tree: A.Node, indent: int = 2) -> str:
    """Render *tree* as JavaScript source text.

    Raises
    ------
    GenerationError
        If the tree contains a node the generator cannot print.
    """
    text = CodeGenerator(indent).generate(tree)
    logger.debug("Generated %d line(s)", text.count("\n") + 1 if text else 0)
    return text
