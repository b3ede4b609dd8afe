# tests/test_locator.py
"""
Tests for loop discovery: pre-order walk, kind filtering and numbering.
"""

import pytest

from loopguard.ast_nodes import ALL_LOOP_KINDS, LoopKind, WhileStatement
from loopguard.locator import GuardContext, LoopNode, locate
from loopguard.parser import parse
from tests.conftest import (
    ALREADY_GUARDED, LOOP_SNIPPETS, NESTED_LOOPS, SIBLING_LOOPS, NO_LOOPS, MIXED_PROGRAM,
)


class TestLocateKinds:

    @pytest.mark.parametrize("kind", list(LOOP_SNIPPETS))
    def test_each_kind_found_once(self, kind):
        loops = locate(parse(LOOP_SNIPPETS[kind]))
        assert len(loops) == 1
        assert loops[0].kind is LoopKind(kind)
        assert loops[0].discovery_order == 1
        assert loops[0].guard == "loopGuard_1"

    def test_no_loops(self):
        assert locate(parse(NO_LOOPS)) == []

    def test_disabled_kind_is_skipped(self):
        loops = locate(parse(SIBLING_LOOPS), {LoopKind.WHILE})
        assert [l.kind for l in loops] == [LoopKind.WHILE]
        assert loops[0].discovery_order == 1

    def test_empty_kind_set(self):
        assert locate(parse(SIBLING_LOOPS), set()) == []


class TestLocateOrder:

    def test_outer_before_inner(self):
        loops = locate(parse(NESTED_LOOPS))
        outer, inner = loops
        assert outer.discovery_order == 1
        assert inner.discovery_order == 2
        assert inner.node in outer.body.body

    def test_siblings_in_source_order(self):
        loops = locate(parse(SIBLING_LOOPS))
        assert [l.kind for l in loops] == [LoopKind.FOR, LoopKind.WHILE, LoopKind.DO_WHILE]
        assert [l.discovery_order for l in loops] == [1, 2, 3]

    def test_numbering_contiguous_with_filter(self):
        loops = locate(parse(SIBLING_LOOPS), {LoopKind.FOR, LoopKind.DO_WHILE})
        assert [l.guard for l in loops] == ["loopGuard_1", "loopGuard_2"]

    def test_loops_in_nested_scopes(self):
        loops = locate(parse(MIXED_PROGRAM))
        assert [l.kind for l in loops] == [
            LoopKind.WHILE,     # generator method
            LoopKind.FOR_OF,    # arrow function body
            LoopKind.DO_WHILE,  # async function
            LoopKind.FOR_IN,    # switch case
            LoopKind.WHILE,     # labelled, default case
        ]

    def test_loop_inside_function_inside_loop(self):
        src = "while (a) { items.forEach(function (x) { for (;;) { break; } }); }"
        loops = locate(parse(src))
        assert [l.kind for l in loops] == [LoopKind.WHILE, LoopKind.FOR]

    def test_labelled_loop_located(self):
        loops = locate(parse("outer: while (a) { continue outer; }"))
        assert isinstance(loops[0].node, WhileStatement)


class TestGuardContext:

    def test_fresh_context_per_call(self):
        tree = parse(SIBLING_LOOPS)
        first = locate(tree)
        second = locate(tree)
        assert [l.guard for l in first] == [l.guard for l in second]

    def test_shared_context_keeps_counting(self):
        ctx = GuardContext()
        locate(parse(LOOP_SNIPPETS["for"]), ALL_LOOP_KINDS, ctx)
        loops = locate(parse(LOOP_SNIPPETS["while"]), ALL_LOOP_KINDS, ctx)
        assert loops[0].guard == "loopGuard_2"
        assert ctx.allocated == ["loopGuard_1", "loopGuard_2"]

    def test_numbering_continues_after_existing_guards(self):
        loops = locate(parse(ALREADY_GUARDED + "while (x) { x--; }"))
        assert [l.guard for l in loops] == ["loopGuard_2", "loopGuard_3"]

    def test_highest_existing_guard_wins(self):
        src = "let loopGuard_7 = 0, loopGuard_2 = 0;\nwhile (x) {}"
        assert locate(parse(src))[0].guard == "loopGuard_8"

    def test_similar_names_are_not_guards(self):
        src = "let loopGuard_x = 0, myloopGuard_9 = 1;\nwhile (x) {}"
        assert locate(parse(src))[0].guard == "loopGuard_1"

    def test_reset(self):
        ctx = GuardContext()
        ctx.allocate()
        ctx.reset()
        assert ctx.counter == 0
        assert ctx.allocate() == 1

    def test_loop_node_body_tracks_statement(self):
        loop = locate(parse("while (x) y();"))[0]
        assert isinstance(loop, LoopNode)
        assert loop.body is loop.node.body
