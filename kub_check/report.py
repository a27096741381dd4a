# SPDX-License-Identifier: MIT

"""Nagios plugin output: ``<summary> | <perfdata>``."""

from __future__ import annotations

from typing import Iterable

from kub_check.classify import worst
from kub_check.models import Number, Report, ReportEntry, Severity

COUNTER_CONSIDERED = "metrics.considered"
COUNTER_SELECTED = "metrics.selected"
COUNTER_FILTERED = "metrics.filtered"


def format_number(val: Number | None) -> str:
    if val is None:
        return ""
    return str(val)


def quote_label(label: str) -> str:
    return "'" + label.replace("'", "''") + "'"


def perfdata_token(
    label: str,
    value: Number,
    uom: str | None = None,
    warn: Number | None = None,
    crit: Number | None = None,
    min: Number | None = None,
    max: Number | None = None,
) -> str:
    fields = [
        f"{quote_label(label)}={format_number(value)}{uom or ''}",
        format_number(warn),
        format_number(crit),
        format_number(min),
        format_number(max),
    ]
    while fields[-1] == "":
        fields.pop()
    return ";".join(fields)


def entry_token(entry: ReportEntry) -> str:
    return perfdata_token(
        entry.name, entry.value, entry.uom, entry.warn, entry.crit, entry.min, entry.max,
    )


def sort_entries(entries: Iterable[ReportEntry]) -> list[ReportEntry]:
    return sorted(entries, key=lambda e: (e.status.sort_order, e.name))


def summary_text(status: Severity, entries: Iterable[ReportEntry]) -> str:
    messages = [e.message for e in entries if e.message]
    if messages:
        return f"{status.label}: {', '.join(messages)}"
    return status.label


def format_report(
    entries: Iterable[ReportEntry],
    verbose: bool = False,
    counters: bool = True,
) -> Report:
    """Render classified entries into the final plugin output.

    The overall status covers every entry, hidden ones included; only visible
    entries are rendered, worst first and by name within a severity.
    """
    entries = list(entries)
    status = worst(e.status for e in entries)
    shown = sort_entries(e for e in entries if e.visible)

    tokens = [entry_token(e) for e in shown]
    if counters:
        tokens.extend([
            perfdata_token(COUNTER_CONSIDERED, len(entries)),
            perfdata_token(COUNTER_SELECTED, len(shown)),
            perfdata_token(COUNTER_FILTERED, len(entries) - len(shown)),
        ])

    summary = summary_text(status, shown)
    if not tokens:
        return Report(status=status, text=summary)
    separator = "\n" if verbose else " "
    return Report(status=status, text=f"{summary} | {separator.join(tokens)}")


def error_report(severity: Severity, message: str) -> Report:
    return Report(status=severity, text=f"{severity.label}: {message}")
