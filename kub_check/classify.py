# SPDX-License-Identifier: MIT

"""Threshold classification, severity merge and report visibility."""

from __future__ import annotations

import dataclasses
from typing import Iterable

from kub_check.limits import CRITICAL, WARNING, LimitTable
from kub_check.matcher import VolumeGroup
from kub_check.models import Metric, Number, ReportEntry, Severity


def status_above(value: Number, warn: Number | None, crit: Number | None) -> Severity:
    """Too much: the value exceeds a threshold."""
    if crit is not None and value > crit:
        return Severity.CRITICAL
    if warn is not None and value > warn:
        return Severity.WARNING
    return Severity.OK


def status_below(value: Number, warn: Number | None, crit: Number | None) -> Severity:
    """Too little: the value falls short of a threshold."""
    if crit is not None and value < crit:
        return Severity.CRITICAL
    if warn is not None and value < warn:
        return Severity.WARNING
    return Severity.OK


def worst(statuses: Iterable[Severity]) -> Severity:
    return min(statuses, key=lambda s: s.sort_order, default=Severity.OK)


def is_visible(entry: ReportEntry, limits: LimitTable | None, verbose: bool) -> bool:
    if verbose or entry.status != Severity.OK or entry.message:
        return True
    return limits is not None and limits.is_always_shown(entry.name)


def classify_metric(metric: Metric, limits: LimitTable, verbose: bool = False) -> ReportEntry:
    warn = limits.resolve(metric.label, WARNING)
    crit = limits.resolve(metric.label, CRITICAL)
    entry = ReportEntry(
        name=metric.label, value=metric.value, uom=metric.uom,
        min=metric.min, max=metric.max, warn=warn, crit=crit,
        status=status_above(metric.value, warn, crit),
    )
    return _with_visibility(entry, limits, verbose)


def classify_volume_group(group: VolumeGroup, verbose: bool = False) -> ReportEntry:
    entry = ReportEntry(
        name=group.name, value=group.used, min=0, max=group.total,
        warn=group.warn, crit=group.crit,
        status=status_below(group.avail, group.warn, group.crit),
        message=group.message,
    )
    return _with_visibility(entry, None, verbose)


def _with_visibility(entry: ReportEntry, limits: LimitTable | None, verbose: bool) -> ReportEntry:
    visible = is_visible(entry, limits, verbose)
    if visible == entry.visible:
        return entry
    return dataclasses.replace(entry, visible=visible)
