# loopguard/locator.py
"""
Loop locator & classifier.

A single pre-order walk over the syntax tree that records every loop
statement whose :class:`~loopguard.ast_nodes.LoopKind` is enabled.  The
walk enters every nested scope (function, arrow, method and class bodies,
expressions, loop headers) so loops are found wherever they occur.

Guard numbers are allocated from a :class:`GuardContext` owned by a single
invocation; only loops that will be guarded consume a number, so the
numbers of one invocation are contiguous.  Numbering starts after the
highest guard name already present in the tree, so guarding the output of
an earlier run never declares the same name twice.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional

from loopguard import ast_nodes as A
from loopguard.visitor import DepthFirstVisitor

logger = logging.getLogger(__name__)

__all__ = [
    "GuardContext",
    "LoopNode",
    "LoopLocator",
    "GuardNameScanner",
    "locate",
    "GUARD_PREFIX",
]


GUARD_PREFIX = "loopGuard_"


@dataclass
class GuardContext:
    """Per-invocation guard allocator."""

    prefix: str = GUARD_PREFIX
    counter: int = 0
    allocated: List[str] = field(default_factory=list)

    def allocate(self) -> int:
        """Reserve the next discovery number."""
        self.counter += 1
        self.allocated.append(self.name_for(self.counter))
        return self.counter

    def name_for(self, order: int) -> str:
        return f"{self.prefix}{order}"

    def reset(self) -> None:
        self.counter = 0
        self.allocated.clear()

    def skip_past(self, order: int) -> None:
        """Make the next allocation greater than *order*."""
        self.counter = max(self.counter, order)


class GuardNameScanner(DepthFirstVisitor):
    """Finds the highest ``<prefix><n>`` identifier already in a tree."""

    def __init__(self, prefix: str = GUARD_PREFIX) -> None:
        self._pattern = re.compile(re.escape(prefix) + r"(\d+)")
        self.highest = 0

    def enter(self, node: A.Node) -> None:
        if not isinstance(node, A.Identifier):
            return
        match = self._pattern.fullmatch(node.name)
        if match:
            self.highest = max(self.highest, int(match.group(1)))


@dataclass(frozen=True, eq=False)
class LoopNode:
    """A located loop: its kind, statement node and discovery order."""

    kind: A.LoopKind
    node: A.LoopStatement
    discovery_order: int
    guard: str

    @property
    def body(self) -> A.Node:
        return self.node.body

    @property
    def loc(self) -> A.Loc:
        return self.node.loc


class LoopLocator(DepthFirstVisitor):
    """Collects enabled loops in pre-order."""

    def __init__(self, kinds: AbstractSet[A.LoopKind], context: GuardContext) -> None:
        self.kinds = kinds
        self.context = context
        self.loops: List[LoopNode] = []

    def enter(self, node: A.Node) -> None:
        if not isinstance(node, A.LoopStatement):
            return
        kind = node.loop_kind
        if kind not in self.kinds:
            logger.debug("Skipping %s loop at %s (kind not enabled)", kind.value, node.loc)
            return
        order = self.context.allocate()
        loop = LoopNode(kind=kind, node=node, discovery_order=order,
                        guard=self.context.name_for(order))
        logger.debug("Found %s loop #%d at %s", kind.value, order, node.loc)
        self.loops.append(loop)


def locate(
    tree: A.Node,
    kinds: Iterable[A.LoopKind] = A.ALL_LOOP_KINDS,
    context: Optional[GuardContext] = None,
) -> List[LoopNode]:
    """Return the enabled loops of *tree* in discovery order.

    A fresh :class:`GuardContext` is created when none is passed, so
    numbering restarts at 1 for every call unless the tree already holds
    guard names, in which case it continues after the highest of them.
    """
    if context is None:
        context = GuardContext()
    scanner = GuardNameScanner(context.prefix)
    scanner.visit(tree)
    if scanner.highest:
        logger.debug("Existing guards up to %s%d", context.prefix, scanner.highest)
        context.skip_past(scanner.highest)
    locator = LoopLocator(frozenset(kinds), context)
    locator.visit(tree)
    return locator.loops
