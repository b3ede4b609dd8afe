#!/usr/bin/env python3
"""loopguard/main.py — CLI entry-point for the loop-guard transform.

Usage examples
--------------
    # Guard every loop in a file, writing to stdout
    python -m loopguard guard snippet.js

    # Lower threshold, only while/do-while loops, into a file
    python -m loopguard guard snippet.js --max 500 --loops while,do-while -o out.js

    # Fail instead of passing unparseable code through
    python -m loopguard guard snippet.js --strict

    # Same, reporting the error as a JSON object
    python -m loopguard --error-format json guard snippet.js --strict

    # List the loops that would be guarded
    python -m loopguard loops snippet.js --format json

    # Re-print a file without guards (grammar check / formatter)
    cat snippet.js | python -m loopguard parse -

Exit codes
----------
    0   Success (including a non-strict fallback to the original code).
    1   The source could not be parsed or printed (strict mode, ``loops``
        and ``parse``).
    2   Infrastructure failure (missing file, bad configuration, etc.).

The module doubles as ``python -m loopguard`` via the companion
``loopguard/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Tuple

from loopguard import __version__
from loopguard.ast_nodes import ALL_LOOP_KINDS
from loopguard.codegen import generate
from loopguard.config import GuardConfig
from loopguard.errors import ConfigurationError, LoopGuardError
from loopguard.lens import insert_loop_guards, transform
from loopguard.locator import locate
from loopguard.parser import parse

_log = logging.getLogger("loopguard")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``loopguard`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler._loopguard_cli = True  # type: ignore[attr-defined]
    root = logging.getLogger("loopguard")
    for old in [h for h in root.handlers if getattr(h, "_loopguard_cli", False)]:
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _read_source(raw: str) -> Tuple[str, str]:
    """Return ``(text, display_name)`` for a path or ``-`` (stdin)."""
    if raw == "-":
        return sys.stdin.read(), "<stdin>"
    p = Path(raw).expanduser()
    if not p.is_file():
        _log.error("source file not found: %s", p)
        raise SystemExit(EXIT_INFRA)
    try:
        return p.read_text(encoding="utf-8"), raw
    except (OSError, UnicodeDecodeError) as exc:
        _log.error("cannot read %s: %s", p, exc)
        raise SystemExit(EXIT_INFRA)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _write_code(code: str, dest: Optional[str]) -> None:
    stream = _open_output(dest)
    try:
        stream.write(code)
        if code and not code.endswith("\n"):
            stream.write("\n")
    finally:
        if stream is not sys.stdout:
            stream.close()


def _report_error(exc: LoopGuardError, fmt: str) -> None:
    """Write a source error to stderr as a GCC-style line or a JSON object."""
    if fmt == "json":
        sys.stderr.write(json.dumps(exc.to_json()) + "\n")
    else:
        sys.stderr.write(exc.to_gcc_format() + "\n")


def _split_kinds(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


def _build_config(args: argparse.Namespace) -> GuardConfig:
    """Turn CLI flags into a validated config; unset flags keep the defaults."""
    overrides: Dict[str, Any] = {
        "max": getattr(args, "max", None),
        "loops": _split_kinds(getattr(args, "loops", None)),
        "indent": getattr(args, "indent", None),
    }
    try:
        return GuardConfig.from_mapping(overrides)
    except ConfigurationError as exc:
        _log.error("invalid configuration: %s", exc)
        raise SystemExit(EXIT_INFRA)


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_guard(args: argparse.Namespace) -> int:
    """Insert loop guards into a source file."""
    settings = _build_config(args)
    source, name = _read_source(args.input)

    if args.strict:
        try:
            code = insert_loop_guards(source, settings, filename=name)
        except LoopGuardError as exc:
            _report_error(exc, args.error_format)
            return EXIT_ERROR
    else:
        result = transform(source, settings, filename=name)
        code = result.code
        _log.info("%s: %d guard(s) inserted", name, len(result.guards))

    _write_code(code, args.output)
    return EXIT_OK


def cmd_loops(args: argparse.Namespace) -> int:
    """List the loops that would be guarded."""
    settings = _build_config(args)
    source, name = _read_source(args.input)
    try:
        loops = locate(parse(source, name), settings.loops)
    except LoopGuardError as exc:
        _report_error(exc, args.error_format)
        return EXIT_ERROR

    if args.format == "json":
        rows = [
            {
                "order": loop.discovery_order,
                "kind": loop.kind.value,
                "guard": loop.guard,
                "line": loop.loc.line,
                "column": loop.loc.col,
            }
            for loop in loops
        ]
        sys.stdout.write(json.dumps(rows, indent=2) + "\n")
    else:
        for loop in loops:
            sys.stdout.write(
                f"{loop.discovery_order:>3}  {loop.kind.value:<12}  {loop.guard:<14}  "
                f"{name}:{loop.loc}\n"
            )
        sys.stdout.write(f"\n--- {len(loops)} loop(s) ---\n")
    return EXIT_OK


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse and re-print a source file without guards."""
    source, name = _read_source(args.input)
    try:
        code = generate(parse(source, name), args.indent)
    except LoopGuardError as exc:
        _report_error(exc, args.error_format)
        return EXIT_ERROR
    _write_code(code, args.output)
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _add_kinds_option(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--loops",
        default=None,
        metavar="K1,K2",
        help="Comma-separated loop kinds to guard "
             f"(default: {','.join(k.value for k in ALL_LOOP_KINDS)})",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loopguard",
        description="Insert iteration guards into JavaScript loops.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s guard snippet.js
              %(prog)s guard snippet.js --max 500 --loops for,while
              %(prog)s loops snippet.js --format json
              %(prog)s parse -
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--error-format",
        choices=["gcc", "json"],
        default="gcc",
        help="Format of parse/generation errors on stderr (default: gcc)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # ── guard ────────────────────────────────────────────────────────────

    p_guard = subparsers.add_parser(
        "guard",
        help="Insert loop guards into a file",
        description=(
            "Insert an iteration counter and a RangeError threshold check "
            "into every loop. Unparseable input is written back unchanged "
            "unless --strict is given."
        ),
    )
    p_guard.add_argument("input", help="JavaScript source file (use '-' for stdin)")
    p_guard.add_argument("--max", type=int, default=None,
                         help="Iteration threshold (default: 1000)")
    _add_kinds_option(p_guard)
    p_guard.add_argument("--indent", type=int, default=None,
                         help="Spaces per indentation level (default: 2)")
    p_guard.add_argument("--strict", action="store_true", default=False,
                         help="Exit with status 1 instead of passing unparseable code through")
    p_guard.add_argument("-o", "--output", default=None,
                         help="Output file (default: stdout)")
    p_guard.set_defaults(func=cmd_guard)

    # ── loops ────────────────────────────────────────────────────────────

    p_loops = subparsers.add_parser(
        "loops",
        help="List the loops that would be guarded",
    )
    p_loops.add_argument("input", help="JavaScript source file (use '-' for stdin)")
    _add_kinds_option(p_loops)
    p_loops.add_argument("--format", choices=["text", "json"], default="text",
                         help="Output format (default: text)")
    p_loops.set_defaults(func=cmd_loops)

    # ── parse ────────────────────────────────────────────────────────────

    p_parse = subparsers.add_parser(
        "parse",
        help="Parse and re-print a file without guards",
    )
    p_parse.add_argument("input", help="JavaScript source file (use '-' for stdin)")
    p_parse.add_argument("--indent", type=int, default=2,
                         help="Spaces per indentation level (default: 2)")
    p_parse.add_argument("-o", "--output", default=None,
                         help="Output file (default: stdout)")
    p_parse.set_defaults(func=cmd_parse)

    return parser


# ===========================================================================
# main
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the loopguard CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
