# SPDX-License-Identifier: MIT

"""Warning/critical thresholds by exact name or priority-ordered regex."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from kub_check.errors import ConfigError
from kub_check.models import Number

WARNING = "warning"
CRITICAL = "critical"
LIMIT_KINDS = (WARNING, CRITICAL)


def parse_number(val: Any, what: str = "value") -> Number:
    if isinstance(val, bool):
        raise ConfigError(f"Invalid {what}: {val!r}")
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        num = val
    else:
        text = str(val).strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            num = float(text)
        except ValueError:
            raise ConfigError(f"Invalid {what}: {val!r} is not a number") from None
    if math.isnan(num):
        raise ConfigError(f"Invalid {what}: {val!r}")
    return num


def split_declaration(decl: str) -> tuple[str, str]:
    """Split ``NAME=VALUE`` on the last ``=`` so patterns may contain ``=``."""
    name, sep, value = str(decl).rpartition("=")
    if not sep or not name:
        raise ConfigError(f"Invalid limit {decl!r}, expected NAME=VALUE")
    return name, value


def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Invalid regular expression {pattern!r}: {exc}") from exc


@dataclass
class LimitTable:
    exact: dict[str, dict[str, Number]] = field(default_factory=dict)
    regex: dict[str, list[tuple[re.Pattern, Number]]] = field(
        default_factory=lambda: {WARNING: [], CRITICAL: []}
    )
    always_show: set[str] = field(default_factory=set)
    always_show_regex: list[re.Pattern] = field(default_factory=list)

    # -- building ----------------------------------------------------------

    def set_exact(self, name: str, kind: str, value: Any) -> None:
        _check_kind(kind)
        if not name:
            raise ConfigError("Limit name must not be empty")
        self.exact.setdefault(name, {})[kind] = parse_number(value, f"{kind} limit for {name!r}")

    def add_regex(self, pattern: str, kind: str, value: Any) -> None:
        """Register a regex limit ahead of all earlier ones."""
        _check_kind(kind)
        if not pattern:
            raise ConfigError("Limit pattern must not be empty")
        number = parse_number(value, f"{kind} limit for /{pattern}/")
        self.regex[kind].insert(0, (_compile(pattern), number))

    def add_always_show(self, name: str) -> None:
        self.always_show.add(name)

    def add_always_show_regex(self, pattern: str) -> None:
        self.always_show_regex.append(_compile(pattern))

    # -- lookup --------------------------------------------------------------

    def resolve(self, name: str, kind: str) -> Number | None:
        exact = self.exact.get(name)
        if exact is not None and kind in exact:
            return exact[kind]
        for pattern, value in self.regex.get(kind, ()):
            if pattern.search(name):
                return value
        return None

    def is_always_shown(self, name: str) -> bool:
        if name in self.always_show:
            return True
        return any(p.search(name) for p in self.always_show_regex)


def _check_kind(kind: str) -> None:
    if kind not in LIMIT_KINDS:
        raise ConfigError(f"Unknown limit kind {kind!r}")


def _exact_items(decls: Mapping[str, Any] | Iterable[str] | None) -> Iterable[tuple[str, Any]]:
    if not decls:
        return []
    if isinstance(decls, Mapping):
        return decls.items()
    return [split_declaration(d) for d in decls]


def build_limit_table(
    warning: Mapping[str, Any] | Iterable[str] | None = None,
    critical: Mapping[str, Any] | Iterable[str] | None = None,
    warning_regex: Iterable[str] | None = None,
    critical_regex: Iterable[str] | None = None,
    always_show: Iterable[str] | None = None,
    always_show_regex: Iterable[str] | None = None,
) -> LimitTable:
    """Build a table from declarations in the order they were given.

    Exact limits accept a mapping or ``NAME=VALUE`` strings; regex limits are
    ``PATTERN=VALUE`` strings, the last declared taking priority.
    """
    table = LimitTable()
    for kind, decls in ((WARNING, warning), (CRITICAL, critical)):
        for name, value in _exact_items(decls):
            table.set_exact(name, kind, value)
    for kind, decls in ((WARNING, warning_regex), (CRITICAL, critical_regex)):
        for decl in decls or []:
            pattern, value = split_declaration(decl)
            table.add_regex(pattern, kind, value)
    for name in always_show or []:
        table.add_always_show(name)
    for pattern in always_show_regex or []:
        table.add_always_show_regex(pattern)
    return table
