# SPDX-License-Identifier: MIT

"""Turn one resource object into raw measurements.

Label scheme::

    project.<namespace>.<kind>.count            one per namespaced object
    global.<kind>.count                         one per object
    project.<namespace>.<kind>.<name>.<metric>  per-object measurements
    global.<kind>.<name>.<metric>               per-object, cluster scoped
"""

from __future__ import annotations

import dataclasses
import logging
import math
from datetime import datetime

from kub_check.models import Combinator, Measurement
from kub_check.resources import CronJob, Job, OtherObject, PersistentVolume, Pod, Resource

logger = logging.getLogger(__name__)

PERCENT_SUFFIX = "percent"


# =====================================================================
# Label helpers
# =====================================================================

def _scopes(obj: Resource) -> list[str]:
    scopes = []
    if obj.meta.namespace:
        scopes.append(f"project.{obj.meta.namespace}")
    scopes.append("global")
    return scopes


def object_prefix(kind: str, name: str, namespace: str = "") -> str:
    if namespace:
        return f"project.{namespace}.{kind.lower()}.{name}"
    return f"global.{kind.lower()}.{name}"


def _prefix(obj: Resource) -> str:
    return object_prefix(obj.kind, obj.meta.name, obj.meta.namespace)


def _epoch(ts: datetime) -> int:
    return math.floor(ts.timestamp())


def _seconds(delta) -> int:
    return math.floor(delta.total_seconds())


def elapsed(prefix: str, ts: datetime | None, now: datetime) -> list[Measurement]:
    """Absolute timestamp plus age in seconds; age only once ``ts`` has passed."""
    if ts is None:
        return []
    out = [Measurement(f"{prefix}.timestamp", _epoch(ts))]
    if now >= ts:
        out.append(Measurement(f"{prefix}.age", _seconds(now - ts), uom="s", min=0))
    return out


def _counts(obj: Resource) -> list[Measurement]:
    kind = obj.kind.lower()
    return [Measurement(f"{scope}.{kind}.count", 1, min=0) for scope in _scopes(obj)]


# =====================================================================
# Per-kind extraction
# =====================================================================

def running_after(pod: Pod) -> int | None:
    """Seconds between scheduling and the last container start.

    A restarted container has lost its original start time, so any restart
    makes the figure unrecoverable.
    """
    scheduled = pod.scheduled_at()
    if scheduled is None or not pod.container_statuses:
        return None
    starts = []
    for cs in pod.container_statuses:
        if cs.restart_count > 0 or cs.started_at is None:
            return None
        starts.append(cs.started_at)
    return _seconds(max(starts) - scheduled)


def _extract_pod(pod: Pod, now: datetime) -> list[Measurement]:
    out = _counts(pod)
    phase = pod.phase.lower()
    for scope in _scopes(pod):
        out.append(Measurement(f"{scope}.pod.{phase}.count", 1, min=0))
        out.append(Measurement(
            f"{scope}.pod.{phase}.{PERCENT_SUFFIX}", 1, uom="%", min=0, max=100,
            combinator=Combinator.PERCENTAGE_OF, combinator_key=f"{scope}.pod.count",
        ))

    prefix = _prefix(pod)
    out.extend(elapsed(f"{prefix}.deletion", pod.meta.deletion_timestamp, now))

    creation_phase = phase
    if phase == "pending" and not pod.is_scheduled:
        creation_phase = "unscheduled"
    out.extend(elapsed(f"{prefix}.creation.{creation_phase}", pod.meta.creation_timestamp, now))

    started = running_after(pod)
    if started is not None:
        out.append(Measurement(f"{prefix}.running_after", started, uom="s", min=0))
    return out


def _extract_cronjob(cj: CronJob, now: datetime) -> list[Measurement]:
    out = _counts(cj) + _extract_timestamps(cj, now)
    prefix = _prefix(cj)
    out.append(Measurement(f"{prefix}.suspend", 1 if cj.suspend else 0, min=0, max=1))
    out.extend(elapsed(f"{prefix}.last_schedule", cj.last_schedule_time, now))
    # Surfaces cron jobs that never completed successfully; a real completion
    # always has a larger key and replaces it.
    out.append(Measurement(
        f"{prefix}.lastsuccess.completion.timestamp", 0,
        combinator=Combinator.MAX, combinator_key=0,
    ))
    return out


def _extract_job(job: Job, now: datetime) -> list[Measurement]:
    out = _counts(job) + _extract_timestamps(job, now)
    if not job.has_status:
        return out

    prefix = _prefix(job)
    details: list[Measurement] = []
    for field_name in ("active", "failed", "succeeded"):
        val = getattr(job, field_name)
        if val is not None:
            details.append(Measurement(f"{prefix}.{field_name}", val, min=0))
    details.extend(elapsed(f"{prefix}.start", job.start_time, now))
    details.extend(elapsed(f"{prefix}.completion", job.completion_time, now))
    if job.start_time is not None and job.completion_time is not None:
        details.append(Measurement(
            f"{prefix}.duration", _seconds(job.completion_time - job.start_time), uom="s", min=0,
        ))
    out.extend(details)

    owner = job.meta.controller_of_kind("CronJob")
    if owner and job.successful:
        key = _epoch(job.completion_time)
        target = object_prefix("CronJob", owner, job.meta.namespace) + ".lastsuccess"
        for m in details:
            suffix = m.label[len(prefix) + 1:]
            out.append(dataclasses.replace(
                m, label=f"{target}.{suffix}", combinator=Combinator.MAX, combinator_key=key,
            ))
    return out


def _extract_timestamps(obj: Resource, now: datetime) -> list[Measurement]:
    prefix = _prefix(obj)
    return (
        elapsed(f"{prefix}.deletion", obj.meta.deletion_timestamp, now)
        + elapsed(f"{prefix}.creation", obj.meta.creation_timestamp, now)
    )


def _extract_volume(pv: PersistentVolume, now: datetime) -> list[Measurement]:
    return _counts(pv) + _extract_timestamps(pv, now)


def _extract_other(obj: OtherObject, now: datetime) -> list[Measurement]:
    logger.debug("No extractor for kind %s, counting %s with its timestamps", obj.kind, obj.meta.name)
    return _counts(obj) + _extract_timestamps(obj, now)


_EXTRACTORS = {
    Pod: _extract_pod,
    CronJob: _extract_cronjob,
    Job: _extract_job,
    PersistentVolume: _extract_volume,
    OtherObject: _extract_other,
}


def extract(obj: Resource, now: datetime) -> list[Measurement]:
    return _EXTRACTORS[type(obj)](obj, now)
