# SPDX-License-Identifier: MIT

"""Merge measurements sharing a label into metrics."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from kub_check.errors import DataError
from kub_check.models import Combinator, Measurement, Metric

logger = logging.getLogger(__name__)


def _order_key(key: Any, value: Any) -> tuple:
    # Keys decide; the value only breaks ties so the outcome is independent of
    # arrival order.
    if key is None:
        return (value,)
    return (key, value)


class MetricAccumulator:
    """Per-run mapping from label to metric, finalized exactly once."""

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._finalized = False

    def __len__(self) -> int:
        return len(self._metrics)

    def __contains__(self, label: str) -> bool:
        return label in self._metrics

    def add(self, m: Measurement) -> None:
        if self._finalized:
            raise DataError(f"Cannot add measurement {m.label!r} after finalize")

        existing = self._metrics.get(m.label)
        if existing is None:
            self._metrics[m.label] = Metric.from_measurement(m)
            return

        if existing.combinator != m.combinator:
            raise DataError(
                f"Metric {m.label!r} combined with {m.combinator.value!r}, "
                f"but was created with {existing.combinator.value!r}"
            )

        if m.combinator in (Combinator.SUM, Combinator.PERCENTAGE_OF):
            existing.value += m.value
        elif m.combinator == Combinator.MAX:
            if _order_key(m.combinator_key, m.value) > _order_key(existing.combinator_key, existing.value):
                existing.value = m.value
                existing.combinator_key = m.combinator_key
        elif m.combinator == Combinator.MIN:
            if _order_key(m.combinator_key, m.value) < _order_key(existing.combinator_key, existing.value):
                existing.value = m.value
                existing.combinator_key = m.combinator_key

    def extend(self, measurements: Iterable[Measurement]) -> None:
        for m in measurements:
            self.add(m)

    def finalize(self) -> dict[str, Metric]:
        """Resolve percentages against their reference totals and freeze.

        A percentage whose reference was never measured is a wiring error and
        raises; a zero reference leaves nothing to compute and the percentage
        is dropped.
        """
        if self._finalized:
            raise DataError("Metrics already finalized")
        self._finalized = True

        result: dict[str, Metric] = {}
        for label, metric in self._metrics.items():
            if metric.combinator != Combinator.PERCENTAGE_OF:
                result[label] = metric
                continue
            reference = self._metrics.get(metric.combinator_key)
            if reference is None:
                raise DataError(f"Metric {label!r} references missing total {metric.combinator_key!r}")
            if not reference.value:
                logger.debug("Dropping %s: reference %s is zero", label, metric.combinator_key)
                continue
            result[label] = Metric(
                label=label,
                value=math.floor(1000 * metric.value / reference.value) / 10,
                uom="%", min=0, max=100,
                combinator=metric.combinator,
                combinator_key=metric.combinator_key,
            )
        logger.debug("Finalized %d metrics", len(result))
        return result
