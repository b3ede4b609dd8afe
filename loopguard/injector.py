# loopguard/injector.py
"""
Guard injector.

Rewrites located loops in place.  For every loop, in discovery order:

1. a non-block body is wrapped in a block (an empty statement becomes an
   empty block);
2. ``loopGuard_<n>++;`` and the threshold check
   ``if (loopGuard_<n> > max) { throw new RangeError(...); }`` are
   prepended to the body;
3. ``let loopGuard_<n> = 0;`` is inserted immediately before the loop in
   its enclosing statement list, ahead of any labels on the loop.

Step 3 runs as a separate transforming walk because nodes do not keep
parent links.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from loopguard import ast_nodes as A
from loopguard.locator import GuardContext, LoopNode
from loopguard.visitor import TransformingVisitor

logger = logging.getLogger(__name__)

__all__ = [
    "inject",
    "guard_statements",
    "guard_declaration",
    "threshold_message",
]


def threshold_message(guard: str, max: int) -> str:
    return f"{guard} is greater than {max}"


def guard_declaration(guard: str) -> A.VariableDeclaration:
    """``let <guard> = 0;``"""
    return A.VariableDeclaration(
        A.VarKind.LET,
        [A.VariableDeclarator(A.Identifier(guard), A.Literal("0"))],
    )


def guard_statements(guard: str, max: int) -> List[A.Node]:
    """The increment and threshold check placed at the top of a loop body."""
    increment = A.ExpressionStatement(
        A.UpdateExpression("++", A.Identifier(guard), prefix=False)
    )
    error = A.NewExpression(
        A.Identifier("RangeError"),
        [A.Literal(json.dumps(threshold_message(guard, max)), kind="string")],
    )
    check = A.IfStatement(
        A.BinaryExpression(">", A.Identifier(guard), A.Literal(str(max))),
        A.BlockStatement([A.ThrowStatement(error)]),
    )
    return [increment, check]


def _ensure_block(loop: A.LoopStatement) -> A.BlockStatement:
    body = loop.body
    if isinstance(body, A.BlockStatement):
        return body
    if isinstance(body, A.EmptyStatement):
        block = A.BlockStatement([], loc=body.loc)
    else:
        block = A.BlockStatement([body], loc=body.loc)
    loop.body = block
    return block


class _DeclarationInserter(TransformingVisitor):
    """Places each guard declaration in front of its loop (or label chain)."""

    def __init__(self, guards: Dict[int, str]) -> None:
        self.guards = guards
        self.declared: set = set()

    def _target(self, node: A.Node) -> Optional[A.Node]:
        while isinstance(node, A.LabeledStatement):
            node = node.body
        if id(node) in self.guards and id(node) not in self.declared:
            return node
        return None

    def visit(self, node: A.Node) -> Any:
        loop = self._target(node)
        if loop is None:
            return node.accept(self)
        self.declared.add(id(loop))
        self.generic_visit(node)
        return [guard_declaration(self.guards[id(loop)]), node]


def inject(
    tree: A.Program,
    loops: Sequence[LoopNode],
    max: int,
    context: Optional[GuardContext] = None,
) -> A.Program:
    """Inject guards for *loops* into *tree* in place and return it."""
    if not loops:
        return tree

    names: Dict[int, str] = {}
    for loop in sorted(loops, key=lambda item: item.discovery_order):
        guard = context.name_for(loop.discovery_order) if context is not None else loop.guard
        block = _ensure_block(loop.node)
        block.body[0:0] = guard_statements(guard, max)
        names[id(loop.node)] = guard
        logger.debug("Guarded %s loop at %s as %s", loop.kind.value, loop.loc, guard)

    _DeclarationInserter(names).visit(tree)
    return tree
