# loopguard/config.py
"""
Loop-guard configuration.

Two layers:

* the plain-mapping layer – ``DEFAULTS``, :func:`deep_merge`,
  :func:`deep_clone` and the :func:`config` factory, which returns a fresh
  dict of defaults with caller overrides merged on top;
* :class:`GuardConfig` – the validated, immutable form consumed by the
  transform.  Invalid values raise :class:`ConfigurationError`.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Union

from loopguard.ast_nodes import ALL_LOOP_KINDS, LoopKind
from loopguard.errors import ConfigurationError, ErrorCodes

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULTS",
    "DEFAULT_MAX",
    "DEFAULT_INDENT",
    "GuardConfig",
    "config",
    "deep_clone",
    "deep_merge",
]


DEFAULT_MAX = 1000
DEFAULT_INDENT = 2

DEFAULTS: Mapping[str, Any] = {
    "max": DEFAULT_MAX,
    "loops": [kind.value for kind in ALL_LOOP_KINDS],
    "indent": DEFAULT_INDENT,
}

_KNOWN_KEYS = frozenset(DEFAULTS)


def deep_clone(value: Any) -> Any:
    return copy.deepcopy(value)


def deep_merge(base: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]) -> dict:
    """Merge *overrides* onto *base* into a new dict.

    Nested mappings merge recursively; lists and scalars replace; ``None``
    override values are skipped.  Neither argument is modified.
    """
    result = {key: deep_clone(value) for key, value in base.items()}
    if not overrides:
        return result
    for key, value in overrides.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = deep_clone(value)
    return result


def config(overrides: Optional[Mapping[str, Any]] = None) -> dict:
    """Return the default configuration with *overrides* merged in.

    Every call returns an independent dict.
    """
    return deep_merge(DEFAULTS, overrides or {})


@dataclass(frozen=True)
class GuardConfig:
    """Validated loop-guard settings."""

    max: int = DEFAULT_MAX
    loops: frozenset = field(default_factory=lambda: frozenset(ALL_LOOP_KINDS))
    indent: int = DEFAULT_INDENT

    def validate(self) -> List[ConfigurationError]:
        """Return every problem with this configuration (empty when valid)."""
        problems: List[ConfigurationError] = []
        if isinstance(self.max, bool) or not isinstance(self.max, int) or self.max <= 0:
            problems.append(ConfigurationError(
                f"max must be a positive integer, got {self.max!r}",
                key="max",
                code=ErrorCodes.INVALID_MAX,
            ))
        for kind in self.loops:
            if not isinstance(kind, LoopKind):
                problems.append(ConfigurationError(
                    f"Unknown loop kind {kind!r}",
                    key="loops",
                    code=ErrorCodes.UNKNOWN_LOOP_KIND,
                ))
        if isinstance(self.indent, bool) or not isinstance(self.indent, int) or self.indent < 0:
            problems.append(ConfigurationError(
                f"indent must be a non-negative integer, got {self.indent!r}",
                key="indent",
                code=ErrorCodes.INVALID_OPTION,
            ))
        return problems

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]] = None) -> "GuardConfig":
        """Build a config from overrides, filling in the defaults.

        Raises
        ------
        ConfigurationError
            On the first invalid value.
        """
        merged = config(mapping)
        for key in sorted(set(merged) - _KNOWN_KEYS):
            logger.debug("Ignoring unknown configuration key %r", key)

        loops = merged["loops"]
        if isinstance(loops, (str, LoopKind)) or not isinstance(loops, Iterable):
            raise ConfigurationError(
                f"loops must be a list of loop kinds, got {loops!r}",
                key="loops",
                code=ErrorCodes.INVALID_OPTION,
            )
        kinds = []
        for item in loops:
            try:
                kinds.append(LoopKind.coerce(item))
            except ValueError as exc:
                raise ConfigurationError(
                    f"Unknown loop kind {item!r}",
                    key="loops",
                    code=ErrorCodes.UNKNOWN_LOOP_KIND,
                    hint="expected one of: " + ", ".join(k.value for k in ALL_LOOP_KINDS),
                    cause=exc,
                ) from exc

        result = cls(max=merged["max"], loops=frozenset(kinds), indent=merged["indent"])
        problems = result.validate()
        if problems:
            raise problems[0]
        return result

    @classmethod
    def coerce(cls, value: Union[None, Mapping[str, Any], "GuardConfig"]) -> "GuardConfig":
        """Accept ``None``, a mapping of overrides or a ``GuardConfig``."""
        if value is None:
            return cls()
        if isinstance(value, GuardConfig):
            problems = value.validate()
            if problems:
                raise problems[0]
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise ConfigurationError(
            f"Expected a mapping or GuardConfig, got {type(value).__name__}",
            code=ErrorCodes.INVALID_OPTION,
        )

    def to_dict(self) -> dict:
        return {
            "max": self.max,
            "loops": [kind.value for kind in ALL_LOOP_KINDS if kind in self.loops],
            "indent": self.indent,
        }
