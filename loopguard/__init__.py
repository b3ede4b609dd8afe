"""loopguard — iteration guards for JavaScript loops.

This package rewrites JavaScript source so that every loop carries an
iteration counter and throws a ``RangeError`` once the counter passes a
configurable threshold.  Code that cannot be parsed is passed through
unchanged.

Submodules
----------
grammar
    Parsimonious PEG grammar for the supported JavaScript subset.

ast_nodes
    Dataclass syntax tree nodes, ``LoopKind`` and ``Loc``.

parser
    ``parse(text) -> Program``: parse-tree → syntax tree builder.

visitor
    ``ASTVisitor``, ``DepthFirstVisitor`` and ``TransformingVisitor``.

locator / injector
    Find enabled loops in discovery order and rewrite them in place.

codegen
    ``generate(tree) -> str`` via a ``CodeEmitter``.

config
    ``config()`` factory, ``deep_merge`` and the validated ``GuardConfig``.

errors
    ``LoopGuardError`` hierarchy with ``LG-NNNN`` error codes.

lens
    ``transform``, ``insert_loop_guards`` and the snippet-level ``lens``.

main
    CLI entry-point with subcommands: ``guard``, ``loops``, ``parse``.

Usage
-----
Command-line::

    python -m loopguard guard snippet.js --max 500
    python -m loopguard --help

Programmatic::

    from loopguard import transform

    result = transform("while (true) {}", {"max": 500})
    print(result.code)
"""

from __future__ import annotations

__version__: str = "0.1.0"

from loopguard.config import GuardConfig, config  # noqa: E402
from loopguard.errors import (  # noqa: E402
    ConfigurationError,
    GenerationError,
    LoopGuardError,
    ParseError,
)
from loopguard.lens import (  # noqa: E402
    LensOutput,
    Snippet,
    TransformResult,
    insert_loop_guards,
    lens,
    transform,
)

__all__: list[str] = [
    "__version__",
    "ConfigurationError",
    "GenerationError",
    "GuardConfig",
    "LensOutput",
    "LoopGuardError",
    "ParseError",
    "Snippet",
    "TransformResult",
    "config",
    "insert_loop_guards",
    "lens",
    "transform",
]
