# loopguard/errors.py
"""
Loop-guard error types.

Error hierarchy
───────────────
┌──────────────────────────────────────────────────────────────────┐
│  LoopGuardError (base)                                           │
│  ├── ParseError          - source text is not a valid program    │
│  ├── GenerationError     - tree could not be serialised          │
│  └── ConfigurationError  - caller supplied an invalid config     │
└──────────────────────────────────────────────────────────────────┘

Error codes follow the pattern ``LG-NNNN``:
  - 1000-1999: Syntax errors
  - 2000-2999: Configuration errors
  - 4000-4999: Code generation errors
  - 9000-9999: Internal errors

``ParseError`` and ``GenerationError`` are recovered by the lens fallback
(:func:`loopguard.lens.transform`); ``ConfigurationError`` always
propagates to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Optional


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    SYNTAX = "syntax"
    CONFIG = "config"
    CODEGEN = "codegen"
    INTERNAL = "internal"


class ErrorCode:
    """
    Structured error code ``PREFIX-NNNN``.

    Compares equal to its string form so tests and callers can write
    ``err.code == "LG-1000"``.
    """

    __slots__ = ("prefix", "number", "phase", "title")

    def __init__(self, prefix: str, number: int, phase: ErrorPhase, title: str) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.title = title

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.title!r})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    # Syntax (1000-1999)
    UNEXPECTED_INPUT = ErrorCode("LG", 1000, ErrorPhase.SYNTAX, "unexpected input")
    INCOMPLETE_PARSE = ErrorCode("LG", 1001, ErrorPhase.SYNTAX, "incomplete parse")
    INVALID_CONSTRUCT = ErrorCode("LG", 1002, ErrorPhase.SYNTAX, "invalid construct")

    # Configuration (2000-2999)
    INVALID_MAX = ErrorCode("LG", 2000, ErrorPhase.CONFIG, "invalid max")
    UNKNOWN_LOOP_KIND = ErrorCode("LG", 2001, ErrorPhase.CONFIG, "unknown loop kind")
    INVALID_OPTION = ErrorCode("LG", 2002, ErrorPhase.CONFIG, "invalid option")

    # Code generation (4000-4999)
    UNSUPPORTED_NODE = ErrorCode("LG", 4000, ErrorPhase.CODEGEN, "unsupported node")

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode("LG", 9000, ErrorPhase.INTERNAL, "internal error")


@dataclass(frozen=True)
class SourceSpan:
    """A position in source text; ``line`` and ``column`` are 1-based."""

    file: str = ""
    line: int = 0
    column: int = 0

    @classmethod
    def from_offset(cls, text: str, offset: int, file: str = "") -> "SourceSpan":
        """Compute the span for a character offset into *text*."""
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(file=file, line=line, column=column)

    @classmethod
    def from_node(cls, node: Any) -> "SourceSpan":
        """Create a span from an AST node carrying a ``loc``."""
        loc = getattr(node, "loc", None)
        if loc is None:
            return cls()
        return cls(line=getattr(loc, "line", 0), column=getattr(loc, "col", 0))

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"
        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))
        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════

class LoopGuardError(Exception):
    """
    Base exception for all loop-guard errors.

    Carries a structured :class:`ErrorCode`, an optional
    :class:`SourceSpan` and an optional hint, and renders itself in GCC
    style: ``file:line:col: error[LG-1000]: message``.
    """

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.span = span or SourceSpan()
        self.hint = hint
        self.cause = cause

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    def to_gcc_format(self) -> str:
        """Format as a GCC-style diagnostic line."""
        text = f"error[{self.code}]: {self.message}"
        if self.span.line > 0 or self.span.file:
            text = f"{self.span}: {text}"
        if self.hint:
            text += f" (hint: {self.hint})"
        return text

    def to_json(self) -> dict:
        return {
            "code": str(self.code),
            "phase": self.phase.value,
            "message": self.message,
            "file": self.span.file,
            "line": self.span.line,
            "column": self.span.column,
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


class ParseError(LoopGuardError):
    """Source text is not syntactically valid in the supported grammar."""

    default_code = ErrorCodes.UNEXPECTED_INPUT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        got: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code=code, span=span, **kwargs)
        self.got = got


class GenerationError(LoopGuardError):
    """The syntax tree contains something the generator cannot print."""

    default_code = ErrorCodes.UNSUPPORTED_NODE


class ConfigurationError(LoopGuardError, ValueError):
    """Invalid guard configuration (caller contract violation)."""

    default_code = ErrorCodes.INVALID_OPTION

    def __init__(self, message: str, key: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.key = key


__all__ = [
    "ErrorPhase",
    "ErrorCode",
    "ErrorCodes",
    "SourceSpan",
    "LoopGuardError",
    "ParseError",
    "GenerationError",
    "ConfigurationError",
]
