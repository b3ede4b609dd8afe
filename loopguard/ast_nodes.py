# loopguard/ast_nodes.py
"""
JavaScript syntax tree node definitions.

The node set follows ESTree naming so the tree reads like the structures
other JavaScript tooling produces.  Every node carries a ``Loc`` for
diagnostics; nodes synthesised by the injector keep the default
(unknown) location.

Field order in every dataclass matches source order, so
:meth:`Node.children` yields children in document order and a
pre-order walk visits outer constructs before the ones nested inside.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields
from enum import Enum
from functools import lru_cache
from typing import Any, Iterator, Optional, Union


# ── Source Location ──────────────────────────────────────────────

@dataclass(frozen=True)
class Loc:
    """Source location for diagnostics (1-based; 0 means unknown)."""
    line: int = 0
    col: int = 0

    def __str__(self):
        return f"{self.line}:{self.col}"


# ── Enums ────────────────────────────────────────────────────────

class LoopKind(Enum):
    FOR = "for"
    WHILE = "while"
    DO_WHILE = "do-while"
    FOR_OF = "for-of"
    FOR_IN = "for-in"
    FOR_AWAIT_OF = "for-await-of"

    @classmethod
    def coerce(cls, value: Union[str, "LoopKind"]) -> "LoopKind":
        """Accept a ``LoopKind`` or its string value; raise ``ValueError`` otherwise."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"{value!r} is not a loop kind")


ALL_LOOP_KINDS: tuple[LoopKind, ...] = tuple(LoopKind)


class VarKind(Enum):
    VAR = "var"
    LET = "let"
    CONST = "const"


# ── Base ─────────────────────────────────────────────────────────

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


@lru_cache(maxsize=None)
def _visit_name(class_name: str) -> str:
    return "visit_" + _CAMEL_RE.sub("_", class_name).lower()


class Node:
    """Base class for all syntax tree nodes."""

    def accept(self, visitor: Any) -> Any:
        """Dispatch to ``visitor.visit_<snake_case_class_name>``."""
        method = getattr(visitor, _visit_name(type(self).__name__), visitor.generic_visit)
        return method(self)

    def children(self) -> Iterator["Node"]:
        """Yield direct child nodes in source order."""
        for f in fields(self):
            if f.name == "loc":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item


# ── Program & Statements ─────────────────────────────────────────

@dataclass
class Program(Node):
    body: list[Node] = field(default_factory=list)
    loc: Loc = field(default_factory=Loc)


@dataclass
class BlockStatement(Node):
    body: list[Node] = field(default_factory=list)
    loc: Loc = field(default_factory=Loc)


@dataclass
class EmptyStatement(Node):
    loc: Loc = field(default_factory=Loc)


@dataclass
class ExpressionStatement(Node):
    expression: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class VariableDeclarator(Node):
    id: Node
    init: Optional[Node] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class VariableDeclaration(Node):
    kind: VarKind
    declarations: list[VariableDeclarator]
    loc: Loc = field(default_factory=Loc)


@dataclass
class FunctionDeclaration(Node):
    id: Identifier
    params: list[Node]
    body: BlockStatement
    is_async: bool = False
    generator: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class ClassDeclaration(Node):
    id: Identifier
    superclass: Optional[Node]
    body: list[Node]
    loc: Loc = field(default_factory=Loc)


@dataclass
class IfStatement(Node):
    test: Node
    consequent: Node
    alternate: Optional[Node] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class ReturnStatement(Node):
    argument: Optional[Node] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class BreakStatement(Node):
    label: Optional[Identifier] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class ContinueStatement(Node):
    label: Optional[Identifier] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class ThrowStatement(Node):
    argument: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class CatchClause(Node):
    param: Optional[Node]
    body: BlockStatement
    loc: Loc = field(default_factory=Loc)


@dataclass
class TryStatement(Node):
    block: BlockStatement
    handler: Optional[CatchClause] = None
    finalizer: Optional[BlockStatement] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class SwitchCase(Node):
    test: Optional[Node]
    consequent: list[Node] = field(default_factory=list)
    loc: Loc = field(default_factory=Loc)


@dataclass
class SwitchStatement(Node):
    discriminant: Node
    cases: list[SwitchCase] = field(default_factory=list)
    loc: Loc = field(default_factory=Loc)


@dataclass
class LabeledStatement(Node):
    label: Identifier
    body: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class DebuggerStatement(Node):
    loc: Loc = field(default_factory=Loc)


# ── Loops ────────────────────────────────────────────────────────

class LoopStatement(Node):
    """Mixin for the six loop statements; each has a ``body``."""

    body: Node

    @property
    def loop_kind(self) -> LoopKind:
        raise NotImplementedError


@dataclass
class ForStatement(LoopStatement):
    init: Optional[Node]
    test: Optional[Node]
    update: Optional[Node]
    body: Node
    loc: Loc = field(default_factory=Loc)

    @property
    def loop_kind(self) -> LoopKind:
        return LoopKind.FOR


@dataclass
class ForInStatement(LoopStatement):
    left: Node
    right: Node
    body: Node
    loc: Loc = field(default_factory=Loc)

    @property
    def loop_kind(self) -> LoopKind:
        return LoopKind.FOR_IN


@dataclass
class ForOfStatement(LoopStatement):
    left: Node
    right: Node
    body: Node
    is_await: bool = False
    loc: Loc = field(default_factory=Loc)

    @property
    def loop_kind(self) -> LoopKind:
        return LoopKind.FOR_AWAIT_OF if self.is_await else LoopKind.FOR_OF


@dataclass
class WhileStatement(LoopStatement):
    test: Node
    body: Node
    loc: Loc = field(default_factory=Loc)

    @property
    def loop_kind(self) -> LoopKind:
        return LoopKind.WHILE


@dataclass
class DoWhileStatement(LoopStatement):
    body: Node
    test: Node
    loc: Loc = field(default_factory=Loc)

    @property
    def loop_kind(self) -> LoopKind:
        return LoopKind.DO_WHILE


# ── Expressions ──────────────────────────────────────────────────

@dataclass
class Identifier(Node):
    name: str
    loc: Loc = field(default_factory=Loc)


@dataclass
class Literal(Node):
    """Numeric, string, regex, boolean or null literal, kept as source text."""
    raw: str
    kind: str = "number"
    loc: Loc = field(default_factory=Loc)


@dataclass
class TemplateLiteral(Node):
    """``quasis`` holds the raw text chunks; there is one more quasi than expressions."""
    quasis: list[str]
    expressions: list[Node]
    loc: Loc = field(default_factory=Loc)


@dataclass
class TaggedTemplateExpression(Node):
    tag: Node
    quasi: TemplateLiteral
    loc: Loc = field(default_factory=Loc)


@dataclass
class ThisExpression(Node):
    loc: Loc = field(default_factory=Loc)


@dataclass
class Super(Node):
    loc: Loc = field(default_factory=Loc)


@dataclass
class ArrayExpression(Node):
    elements: list[Optional[Node]]
    loc: Loc = field(default_factory=Loc)


@dataclass
class Property(Node):
    """Object literal / object pattern member.

    ``kind`` is ``"init"``, ``"get"`` or ``"set"``; methods have
    ``method=True`` and a ``FunctionExpression`` value.
    """
    key: Node
    value: Optional[Node]
    kind: str = "init"
    computed: bool = False
    shorthand: bool = False
    method: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class ObjectExpression(Node):
    properties: list[Node]
    loc: Loc = field(default_factory=Loc)


@dataclass
class SpreadElement(Node):
    argument: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class RestElement(Node):
    argument: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class AssignmentPattern(Node):
    left: Node
    right: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class ArrayPattern(Node):
    elements: list[Optional[Node]]
    loc: Loc = field(default_factory=Loc)


@dataclass
class ObjectPattern(Node):
    properties: list[Node]
    loc: Loc = field(default_factory=Loc)


@dataclass
class FunctionExpression(Node):
    id: Optional[Identifier]
    params: list[Node]
    body: BlockStatement
    is_async: bool = False
    generator: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class ArrowFunctionExpression(Node):
    params: list[Node]
    body: Node
    is_async: bool = False
    loc: Loc = field(default_factory=Loc)

    @property
    def expression(self) -> bool:
        return not isinstance(self.body, BlockStatement)


@dataclass
class MethodDefinition(Node):
    key: Node
    value: FunctionExpression
    kind: str = "method"
    static: bool = False
    computed: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class PropertyDefinition(Node):
    key: Node
    value: Optional[Node] = None
    static: bool = False
    computed: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class ClassExpression(Node):
    id: Optional[Identifier]
    superclass: Optional[Node]
    body: list[Node]
    loc: Loc = field(default_factory=Loc)


@dataclass
class UnaryExpression(Node):
    operator: str
    argument: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class UpdateExpression(Node):
    operator: str
    argument: Node
    prefix: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class AwaitExpression(Node):
    argument: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class YieldExpression(Node):
    argument: Optional[Node] = None
    delegate: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class BinaryExpression(Node):
    """Arithmetic, relational, bitwise and logical (``&& || ??``) operators."""
    operator: str
    left: Node
    right: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class ConditionalExpression(Node):
    test: Node
    consequent: Node
    alternate: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class AssignmentExpression(Node):
    operator: str
    left: Node
    right: Node
    loc: Loc = field(default_factory=Loc)


@dataclass
class SequenceExpression(Node):
    expressions: list[Node]
    loc: Loc = field(default_factory=Loc)


@dataclass
class MemberExpression(Node):
    object: Node
    property: Node
    computed: bool = False
    optional: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class CallExpression(Node):
    callee: Node
    arguments: list[Node] = field(default_factory=list)
    optional: bool = False
    loc: Loc = field(default_factory=Loc)


@dataclass
class NewExpression(Node):
    """``arguments`` is ``None`` for ``new Foo`` without a parameter list."""
    callee: Node
    arguments: Optional[list[Node]] = None
    loc: Loc = field(default_factory=Loc)


@dataclass
class ParenthesizedExpression(Node):
    expression: Node
    loc: Loc = field(default_factory=Loc)


STATEMENT_LIST_OWNERS = (Program, BlockStatement, SwitchCase)
"""Node types whose statements live in a list (``body`` / ``consequent``)."""
