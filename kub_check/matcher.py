# SPDX-License-Identifier: MIT

"""Ordered selector rules claiming persistent volumes for availability checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from kub_check.errors import ConfigError
from kub_check.limits import parse_number
from kub_check.models import Number
from kub_check.resources import PersistentVolume

logger = logging.getLogger(__name__)

ANY_CLASS = "*"


@dataclass(frozen=True)
class SelectorRule:
    storage_class: str = ANY_CLASS
    label_key: str | None = None
    label_value: str | None = None
    capacity: str | None = None
    warn: Number | None = None
    crit: Number | None = None

    def matches(self, pv: PersistentVolume) -> bool:
        if self.storage_class != ANY_CLASS and pv.storage_class != self.storage_class:
            return False
        if self.label_key is not None and pv.meta.labels.get(self.label_key) != self.label_value:
            return False
        # Literal comparison: "10Gi" and "10240Mi" are different capacities.
        if self.capacity is not None and pv.capacity != self.capacity:
            return False
        return True

    @property
    def label_selector(self) -> str | None:
        if self.label_key is None:
            return None
        return f"{self.label_key}={self.label_value}"


@dataclass(frozen=True)
class VolumeGroup:
    storage_class: str
    capacity: str
    label_selector: str | None
    total: int
    avail: int
    warn: Number | None = None
    crit: Number | None = None

    @property
    def used(self) -> int:
        return self.total - self.avail

    @property
    def name(self) -> str:
        parts = [p for p in (self.storage_class, self.label_selector, self.capacity) if p]
        return ".".join(parts + ["used"])

    @property
    def message(self) -> str:
        msg = f"{self.avail} of {self.total} volumes with {self.capacity} available"
        if self.storage_class:
            msg += f" in storage class {self.storage_class}"
        return msg


# =====================================================================
# Declaration parsing
# =====================================================================

_TEXT_KEYS = {
    "class": "storage_class",
    "storage_class": "storage_class",
    "label": "label",
    "capacity": "capacity",
    "warning": "warning",
    "warn": "warning",
    "critical": "critical",
    "crit": "critical",
}


def _split_label(label: str) -> tuple[str, str]:
    key, sep, value = label.partition("=")
    if not sep or not key:
        raise ConfigError(f"Invalid label selector {label!r}, expected KEY=VALUE")
    return key, value


def parse_selector(decl: str | Mapping[str, Any]) -> SelectorRule:
    """Parse ``class=fast,label=tier=gold,capacity=10Gi,warning=3,critical=1``.

    The mapping form uses the same keys.
    """
    if isinstance(decl, Mapping):
        fields = {k: v for k, v in decl.items() if v is not None}
    else:
        fields = {}
        for part in str(decl).split(","):
            part = part.strip()
            if not part:
                continue
            key, sep, value = part.partition("=")
            if not sep:
                raise ConfigError(f"Invalid selector item {part!r} in {decl!r}")
            fields[key.strip()] = value.strip()

    opts: dict[str, Any] = {}
    for key, value in fields.items():
        canonical = _TEXT_KEYS.get(key)
        if canonical is None:
            raise ConfigError(f"Unknown selector key {key!r}")
        opts[canonical] = value

    label_key = label_value = None
    if opts.get("label"):
        label_key, label_value = _split_label(str(opts["label"]))

    return SelectorRule(
        storage_class=str(opts.get("storage_class", ANY_CLASS)),
        label_key=label_key,
        label_value=label_value,
        capacity=str(opts["capacity"]) if opts.get("capacity") else None,
        warn=parse_number(opts["warning"], "selector warning") if "warning" in opts else None,
        crit=parse_number(opts["critical"], "selector critical") if "critical" in opts else None,
    )


# =====================================================================
# Matching
# =====================================================================

def _group(
    rule: SelectorRule,
    volumes: list[PersistentVolume],
    warn: Number | None,
    crit: Number | None,
) -> list[VolumeGroup]:
    counts: dict[tuple[str, str], list[int]] = {}
    for pv in volumes:
        key = (pv.storage_class, pv.capacity or "")
        total_avail = counts.setdefault(key, [0, 0])
        total_avail[0] += 1
        if pv.available:
            total_avail[1] += 1
    return [
        VolumeGroup(
            storage_class=sc, capacity=capacity, label_selector=rule.label_selector,
            total=total, avail=avail, warn=warn, crit=crit,
        )
        for (sc, capacity), (total, avail) in sorted(counts.items())
    ]


def match_volumes(
    volumes: Iterable[PersistentVolume],
    rules: Iterable[SelectorRule],
    warn: Number | None = None,
    crit: Number | None = None,
) -> list[VolumeGroup]:
    """Apply ``rules`` in order, then the default rule, over one volume pool.

    Each volume is claimed by at most one rule: once matched its identity is
    excluded from every later rule, the default rule included. Rules without
    their own thresholds use ``warn``/``crit``.
    """
    pool = list(volumes)
    excluded: set[str] = set()
    groups: list[VolumeGroup] = []

    for rule in [*rules, SelectorRule()]:
        matched = [
            pv for pv in pool
            if pv.identity not in excluded
            and not pv.externally_provisioned
            and rule.matches(pv)
        ]
        excluded.update(pv.identity for pv in matched)
        logger.debug("Selector %s matched %d volumes", rule, len(matched))
        groups.extend(_group(
            rule, matched,
            rule.warn if rule.warn is not None else warn,
            rule.crit if rule.crit is not None else crit,
        ))
    return groups
