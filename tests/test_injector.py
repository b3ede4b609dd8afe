# tests/test_injector.py
"""
Tests for guard injection on the syntax tree (before code generation).
"""

import pytest

from loopguard.ast_nodes import (
    BlockStatement, ExpressionStatement, IfStatement, LabeledStatement,
    Literal, ThrowStatement, UpdateExpression, VariableDeclaration,
    VarKind, WhileStatement, ForStatement, LoopKind,
)
from loopguard.injector import (
    guard_declaration, guard_statements, inject, threshold_message,
)
from loopguard.locator import GuardContext, locate
from loopguard.parser import parse
from tests.conftest import NESTED_LOOPS, LABELLED_LOOPS


def _guarded(src, max=1000, kinds=None):
    tree = parse(src)
    loops = locate(tree) if kinds is None else locate(tree, kinds)
    return inject(tree, loops, max)


def _is_declaration_of(stmt, guard):
    return (isinstance(stmt, VariableDeclaration)
            and stmt.kind is VarKind.LET
            and stmt.declarations[0].id.name == guard)


class TestGuardStatements:

    def test_declaration_shape(self):
        decl = guard_declaration("loopGuard_3")
        assert decl.kind is VarKind.LET
        assert decl.declarations[0].init.raw == "0"

    def test_increment_and_check(self):
        increment, check = guard_statements("loopGuard_1", 500)
        assert isinstance(increment.expression, UpdateExpression)
        assert increment.expression.operator == "++"
        assert isinstance(check, IfStatement)
        assert check.test.operator == ">"
        assert check.test.right.raw == "500"
        throw = check.consequent.body[0]
        assert isinstance(throw, ThrowStatement)
        assert throw.argument.callee.name == "RangeError"
        assert throw.argument.arguments[0].raw == '"loopGuard_1 is greater than 500"'

    def test_threshold_message(self):
        assert threshold_message("loopGuard_1", 500) == "loopGuard_1 is greater than 500"


class TestInject:

    def test_guards_prepended_to_block(self):
        tree = _guarded("while (x) { step(); }")
        decl, loop = tree.body
        assert _is_declaration_of(decl, "loopGuard_1")
        increment, check, original = loop.body.body
        assert increment.expression.argument.name == "loopGuard_1"
        assert isinstance(check, IfStatement)
        assert isinstance(original, ExpressionStatement)

    def test_single_statement_body_wrapped(self):
        tree = _guarded("while (x) x--;")
        loop = tree.body[1]
        assert isinstance(loop.body, BlockStatement)
        assert len(loop.body.body) == 3

    def test_empty_statement_body_becomes_empty_block(self):
        tree = _guarded("while (x);")
        loop = tree.body[1]
        assert isinstance(loop.body, BlockStatement)
        assert len(loop.body.body) == 2

    def test_nested_declaration_inside_outer_body(self):
        tree = _guarded(NESTED_LOOPS)
        decl, outer = tree.body
        assert _is_declaration_of(decl, "loopGuard_1")
        body = outer.body.body
        assert _is_declaration_of(body[2], "loopGuard_2")
        assert isinstance(body[3], ForStatement)

    def test_declaration_before_outermost_label(self):
        tree = _guarded(LABELLED_LOOPS)
        decl, labelled = tree.body
        assert _is_declaration_of(decl, "loopGuard_1")
        assert isinstance(labelled, LabeledStatement)
        inner_block = labelled.body.body.body
        assert _is_declaration_of(inner_block[2], "loopGuard_2")
        assert isinstance(inner_block[3], LabeledStatement)

    def test_stacked_labels(self):
        tree = _guarded("a: b: while (x) { break a; }")
        decl, labelled = tree.body
        assert _is_declaration_of(decl, "loopGuard_1")
        assert isinstance(labelled.body, LabeledStatement)
        assert isinstance(labelled.body.body, WhileStatement)

    def test_loop_in_if_branch_gets_block(self):
        tree = _guarded("if (a) while (b) c();")
        branch = tree.body[0].consequent
        assert isinstance(branch, BlockStatement)
        assert _is_declaration_of(branch.body[0], "loopGuard_1")
        assert isinstance(branch.body[1], WhileStatement)

    def test_loop_as_body_of_unguarded_loop(self):
        tree = _guarded("for (;;) while (b) c();", kinds={LoopKind.WHILE})
        outer = tree.body[0]
        assert isinstance(outer, ForStatement)
        assert isinstance(outer.body, BlockStatement)
        assert _is_declaration_of(outer.body.body[0], "loopGuard_1")

    def test_custom_max(self):
        tree = _guarded("while (x) {}", max=42)
        check = tree.body[1].body.body[1]
        assert check.test.right.raw == "42"

    def test_no_loops_is_noop(self):
        tree = parse("a();")
        assert inject(tree, [], 1000) is tree
        assert len(tree.body) == 1

    def test_context_names_guards(self):
        tree = parse("while (x) {}")
        ctx = GuardContext(prefix="g")
        loops = locate(tree, context=ctx)
        inject(tree, loops, 10, ctx)
        assert _is_declaration_of(tree.body[0], "g1")
