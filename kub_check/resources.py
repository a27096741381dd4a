# SPDX-License-Identifier: MIT

"""Typed views over raw Kubernetes JSON objects.

Every item of a snapshot is converted exactly once into one of the variants
below, selected by its ``kind``. Only the fields the extractor and the volume
matcher read are kept; absent fields become ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from dateutil.parser import isoparse

from kub_check.errors import DataError

logger = logging.getLogger(__name__)

PROVISIONED_BY_ANNOTATION = "pv.kubernetes.io/provisioned-by"


# =====================================================================
# Field helpers
# =====================================================================

def parse_time(val: Any) -> datetime | None:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        ts = val
    else:
        try:
            ts = isoparse(str(val))
        except ValueError as exc:
            raise DataError(f"Invalid timestamp {val!r}: {exc}") from exc
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _int_or_none(val: Any) -> int | None:
    if val is None:
        return None
    try:
        return int(val)
    except (TypeError, ValueError) as exc:
        raise DataError(f"Expected an integer, got {val!r}") from exc


def _mapping(val: Any) -> dict[str, Any]:
    return val if isinstance(val, dict) else {}


# =====================================================================
# Variants
# =====================================================================

@dataclass(frozen=True)
class OwnerReference:
    kind: str
    name: str
    controller: bool = False


@dataclass(frozen=True)
class ObjectMeta:
    name: str
    namespace: str = ""
    creation_timestamp: datetime | None = None
    deletion_timestamp: datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    owner_references: tuple[OwnerReference, ...] = ()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ObjectMeta:
        owners = tuple(
            OwnerReference(
                kind=ref.get("kind", ""),
                name=ref.get("name", ""),
                controller=bool(ref.get("controller", False)),
            )
            for ref in raw.get("ownerReferences") or []
        )
        return cls(
            name=raw.get("name", ""),
            namespace=raw.get("namespace") or "",
            creation_timestamp=parse_time(raw.get("creationTimestamp")),
            deletion_timestamp=parse_time(raw.get("deletionTimestamp")),
            labels=dict(_mapping(raw.get("labels"))),
            annotations=dict(_mapping(raw.get("annotations"))),
            owner_references=owners,
        )

    def controller_of_kind(self, kind: str) -> str | None:
        for ref in self.owner_references:
            if ref.controller and ref.kind == kind:
                return ref.name
        return None


@dataclass(frozen=True)
class PodCondition:
    type: str
    status: str
    last_transition_time: datetime | None = None


@dataclass(frozen=True)
class ContainerStatus:
    name: str
    restart_count: int = 0
    started_at: datetime | None = None


@dataclass(frozen=True)
class Pod:
    meta: ObjectMeta
    phase: str = "Unknown"
    conditions: tuple[PodCondition, ...] = ()
    container_statuses: tuple[ContainerStatus, ...] = ()

    kind = "Pod"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Pod:
        status = _mapping(raw.get("status"))
        conditions = tuple(
            PodCondition(
                type=c.get("type", ""),
                status=c.get("status", ""),
                last_transition_time=parse_time(c.get("lastTransitionTime")),
            )
            for c in status.get("conditions") or []
        )
        containers = []
        for cs in status.get("containerStatuses") or []:
            running = _mapping(_mapping(cs.get("state")).get("running"))
            containers.append(ContainerStatus(
                name=cs.get("name", ""),
                restart_count=_int_or_none(cs.get("restartCount")) or 0,
                started_at=parse_time(running.get("startedAt")),
            ))
        return cls(
            meta=ObjectMeta.from_dict(_mapping(raw.get("metadata"))),
            phase=status.get("phase") or "Unknown",
            conditions=conditions,
            container_statuses=tuple(containers),
        )

    def scheduled_at(self) -> datetime | None:
        """Transition time of the PodScheduled=True condition, if any."""
        for cond in self.conditions:
            if cond.type == "PodScheduled" and cond.status == "True":
                return cond.last_transition_time
        return None

    @property
    def is_scheduled(self) -> bool:
        return any(c.type == "PodScheduled" and c.status == "True" for c in self.conditions)


@dataclass(frozen=True)
class Job:
    meta: ObjectMeta
    has_status: bool = False
    active: int | None = None
    failed: int | None = None
    succeeded: int | None = None
    start_time: datetime | None = None
    completion_time: datetime | None = None

    kind = "Job"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Job:
        status = raw.get("status")
        meta = ObjectMeta.from_dict(_mapping(raw.get("metadata")))
        if not isinstance(status, dict):
            return cls(meta=meta)
        return cls(
            meta=meta,
            has_status=True,
            active=_int_or_none(status.get("active")),
            failed=_int_or_none(status.get("failed")),
            succeeded=_int_or_none(status.get("succeeded")),
            start_time=parse_time(status.get("startTime")),
            completion_time=parse_time(status.get("completionTime")),
        )

    @property
    def successful(self) -> bool:
        return (
            self.completion_time is not None
            and (self.active or 0) == 0
            and (self.succeeded or 0) > 0
        )


@dataclass(frozen=True)
class CronJob:
    meta: ObjectMeta
    suspend: bool = False
    last_schedule_time: datetime | None = None

    kind = "CronJob"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CronJob:
        spec = _mapping(raw.get("spec"))
        status = _mapping(raw.get("status"))
        return cls(
            meta=ObjectMeta.from_dict(_mapping(raw.get("metadata"))),
            suspend=bool(spec.get("suspend", False)),
            last_schedule_time=parse_time(status.get("lastScheduleTime")),
        )


@dataclass(frozen=True)
class PersistentVolume:
    meta: ObjectMeta
    storage_class: str = ""
    capacity: str | None = None
    phase: str = "Unknown"

    kind = "PersistentVolume"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PersistentVolume:
        spec = _mapping(raw.get("spec"))
        status = _mapping(raw.get("status"))
        capacity = _mapping(spec.get("capacity")).get("storage")
        return cls(
            meta=ObjectMeta.from_dict(_mapping(raw.get("metadata"))),
            storage_class=spec.get("storageClassName") or "",
            capacity=str(capacity) if capacity is not None else None,
            phase=status.get("phase") or "Unknown",
        )

    @property
    def identity(self) -> str:
        return self.meta.name

    @property
    def available(self) -> bool:
        return self.phase == "Available"

    @property
    def externally_provisioned(self) -> bool:
        return PROVISIONED_BY_ANNOTATION in self.meta.annotations


@dataclass(frozen=True)
class OtherObject:
    meta: ObjectMeta
    kind: str = "Unknown"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OtherObject:
        return cls(
            meta=ObjectMeta.from_dict(_mapping(raw.get("metadata"))),
            kind=raw.get("kind") or "Unknown",
        )


Resource = Union[Pod, Job, CronJob, PersistentVolume, OtherObject]

_VARIANTS: dict[str, Any] = {
    "Pod": Pod,
    "Job": Job,
    "CronJob": CronJob,
    "PersistentVolume": PersistentVolume,
}


# =====================================================================
# Snapshot parsing
# =====================================================================

def parse_object(raw: dict[str, Any], kind: str | None = None) -> Resource:
    kind = kind or raw.get("kind") or ""
    variant = _VARIANTS.get(kind)
    if variant is None:
        return OtherObject.from_dict({**raw, "kind": kind or "Unknown"})
    return variant.from_dict(raw)


def snapshot_items(document: Any) -> list[dict[str, Any]]:
    if isinstance(document, list):
        items = document
    elif isinstance(document, dict) and "items" in document:
        items = document.get("items") or []
    elif isinstance(document, dict) and document.get("kind"):
        items = [document]
    else:
        raise DataError("Snapshot must be a JSON list or a Kubernetes List document")
    for item in items:
        if not isinstance(item, dict):
            raise DataError(f"Snapshot item is not an object: {item!r}")
    return items


def parse_snapshot(document: Any, kind: str | None = None) -> list[Resource]:
    """Convert a snapshot document into resource variants.

    ``kind`` forces the variant for every item, which is how bare lists of
    persistent volumes (where items often lack a ``kind`` field) are read.
    """
    resources = [parse_object(item, kind) for item in snapshot_items(document)]
    logger.debug("Parsed %d objects from snapshot", len(resources))
    return resources
