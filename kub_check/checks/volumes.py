# SPDX-License-Identifier: MIT

"""Persistent volume availability check."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from kub_check.classify import classify_volume_group
from kub_check.matcher import SelectorRule, match_volumes
from kub_check.models import Number, Report
from kub_check.report import format_report
from kub_check.resources import PersistentVolume, parse_snapshot

logger = logging.getLogger(__name__)


def check_pv_avail(
    document: Any,
    rules: Iterable[SelectorRule] = (),
    warn: Number | None = None,
    crit: Number | None = None,
    verbose: bool = False,
) -> Report:
    volumes = [
        obj for obj in parse_snapshot(document, kind=PersistentVolume.kind)
        if isinstance(obj, PersistentVolume)
    ]
    groups = match_volumes(volumes, rules, warn, crit)
    entries = [classify_volume_group(g, verbose) for g in groups]
    report = format_report(entries, verbose=verbose, counters=False)
    logger.debug("PV availability: %d volumes in %d groups, status %s",
                 len(volumes), len(groups), report.status.value)
    return report
