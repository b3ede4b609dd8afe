# loopguard/lens.py
"""
Loop-guard lens: the fallback-wrapped transform pipeline.

``transform`` runs parse → locate → inject → generate and never raises
for bad *source*: a :class:`~loopguard.errors.ParseError` or
:class:`~loopguard.errors.GenerationError` turns into a failed
:class:`TransformResult` whose ``code`` is the original text.  Bad
*configuration* is the caller's fault and raises
:class:`~loopguard.errors.ConfigurationError` before any parsing.

``lens`` adapts ``transform`` to the snippet pipeline: it takes and
returns snippets and only touches JavaScript-family code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from loopguard.codegen import generate
from loopguard.config import GuardConfig
from loopguard.errors import LoopGuardError
from loopguard.injector import inject
from loopguard.locator import GuardContext, locate
from loopguard.parser import parse

logger = logging.getLogger(__name__)

__all__ = [
    "SUPPORTED_LANGUAGES",
    "Snippet",
    "LensOutput",
    "TransformResult",
    "insert_loop_guards",
    "transform",
    "lens",
]


SUPPORTED_LANGUAGES = frozenset({"javascript", "js", "mjs", "cjs", "typescript", "ts"})

ConfigLike = Union[None, Mapping[str, Any], GuardConfig]


@dataclass(frozen=True)
class Snippet:
    code: str
    lang: str = "javascript"
    test: bool = False


@dataclass(frozen=True)
class LensOutput:
    snippet: Snippet
    ui: Any = None


@dataclass(frozen=True)
class TransformResult:
    """Outcome of one transform.

    ``ok`` is False only when the source could not be parsed or printed;
    ``code`` is then the unchanged input and ``error`` says why.
    """

    code: str
    ok: bool = True
    guards: Tuple[str, ...] = field(default_factory=tuple)
    error: Optional[LoopGuardError] = None


def _run(code: str, settings: GuardConfig, filename: str = "") -> Tuple[str, Tuple[str, ...]]:
    tree = parse(code, filename)
    context = GuardContext()
    loops = locate(tree, settings.loops, context)
    if not loops:
        return code, ()
    inject(tree, loops, settings.max, context)
    return generate(tree, settings.indent), tuple(context.allocated)


def insert_loop_guards(code: str, config: ConfigLike = None, *, filename: str = "") -> str:
    """Guard every enabled loop in *code*.

    Unlike :func:`transform` this raises on unparseable input.
    """
    return _run(code, GuardConfig.coerce(config), filename)[0]


def transform(
    source: str,
    config: ConfigLike = None,
    *,
    log: Optional[logging.Logger] = None,
    filename: str = "",
) -> TransformResult:
    """Guard the loops of *source*, falling back to the original text.

    Raises
    ------
    ConfigurationError
        If *config* is invalid.
    """
    settings = GuardConfig.coerce(config)
    log = log or logger
    try:
        code, guards = _run(source, settings, filename)
    except LoopGuardError as error:
        log.warning("Loop guard lens failed: %s", error)
        return TransformResult(code=source, ok=False, error=error)
    log.debug("Inserted %d loop guard(s)", len(guards))
    return TransformResult(code=code, ok=True, guards=guards)


def lens(snippet: Snippet, config: ConfigLike = None) -> LensOutput:
    """Pipeline entry point: guard a JavaScript snippet."""
    settings = GuardConfig.coerce(config)
    if snippet.lang.lower() not in SUPPORTED_LANGUAGES:
        logger.debug("Skipping loop guards for unsupported language %r", snippet.lang)
        return LensOutput(snippet=snippet)
    result = transform(snippet.code, settings)
    return LensOutput(snippet=Snippet(code=result.code, lang=snippet.lang, test=snippet.test))
