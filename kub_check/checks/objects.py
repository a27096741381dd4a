# SPDX-License-Identifier: MIT

"""Object statistics check: counts, ages and durations of pods, jobs and cron jobs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from kub_check.classify import classify_metric
from kub_check.combine import MetricAccumulator
from kub_check.extract import extract
from kub_check.limits import LimitTable
from kub_check.models import Metric, Report
from kub_check.report import format_report
from kub_check.resources import parse_snapshot

logger = logging.getLogger(__name__)


def collect_metrics(document: Any, now: datetime | None = None) -> dict[str, Metric]:
    now = now or datetime.now(timezone.utc)
    acc = MetricAccumulator()
    for obj in parse_snapshot(document):
        acc.extend(extract(obj, now))
    return acc.finalize()


def check_object_stats(
    document: Any,
    limits: LimitTable | None = None,
    verbose: bool = False,
    now: datetime | None = None,
) -> Report:
    limits = limits or LimitTable()
    metrics = collect_metrics(document, now)
    entries = [classify_metric(m, limits, verbose) for m in metrics.values()]
    report = format_report(entries, verbose=verbose)
    logger.debug("Object stats: %d metrics, status %s", len(entries), report.status.value)
    return report
