"""
Pytest configuration and shared fixtures for the kub-check test suite.

Object factories build raw Kubernetes JSON the way ``kubectl get -o json``
returns it, relative to a fixed clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")


def iso(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


def ago(seconds: float) -> datetime:
    return NOW - timedelta(seconds=seconds)


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def now():
    """Fixed evaluation time shared by all factories."""
    return NOW


@pytest.fixture
def make_pod():
    """Factory for raw pod objects."""

    def _make(
        name: str = "web",
        namespace: str = "default",
        phase: str = "Running",
        created: Optional[datetime] = None,
        deleted: Optional[datetime] = None,
        scheduled: Optional[datetime] = None,
        starts: Optional[List[Optional[datetime]]] = None,
        restarts: int = 0,
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"name": name, "namespace": namespace}
        if created is not None:
            metadata["creationTimestamp"] = iso(created)
        if deleted is not None:
            metadata["deletionTimestamp"] = iso(deleted)

        conditions = []
        if scheduled is not None:
            conditions.append({
                "type": "PodScheduled", "status": "True", "lastTransitionTime": iso(scheduled),
            })
        elif phase == "Pending":
            conditions.append({"type": "PodScheduled", "status": "False", "reason": "Unschedulable"})

        container_statuses = []
        for i, started in enumerate(starts or []):
            state: Dict[str, Any] = {"waiting": {"reason": "ContainerCreating"}}
            if started is not None:
                state = {"running": {"startedAt": iso(started)}}
            container_statuses.append({
                "name": f"c{i}", "restartCount": restarts if i == 0 else 0, "state": state,
            })

        return {
            "kind": "Pod",
            "metadata": metadata,
            "status": {
                "phase": phase,
                "conditions": conditions,
                "containerStatuses": container_statuses,
            },
        }

    return _make


@pytest.fixture
def make_job():
    """Factory for raw job objects, optionally owned by a cron job."""

    def _make(
        name: str = "backup-1",
        namespace: str = "default",
        status: Optional[Dict[str, Any]] = None,
        cronjob: Optional[str] = None,
        created: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"name": name, "namespace": namespace}
        if created is not None:
            metadata["creationTimestamp"] = iso(created)
        if cronjob is not None:
            metadata["ownerReferences"] = [{
                "apiVersion": "batch/v1", "kind": "CronJob", "name": cronjob, "controller": True,
            }]
        job: Dict[str, Any] = {"kind": "Job", "metadata": metadata}
        if status is not None:
            job["status"] = status
        return job

    return _make


@pytest.fixture
def make_cronjob():
    """Factory for raw cron job objects."""

    def _make(
        name: str = "backup",
        namespace: str = "default",
        suspend: bool = False,
        last_schedule: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        status: Dict[str, Any] = {}
        if last_schedule is not None:
            status["lastScheduleTime"] = iso(last_schedule)
        return {
            "kind": "CronJob",
            "metadata": {"name": name, "namespace": namespace},
            "spec": {"schedule": "0 * * * *", "suspend": suspend},
            "status": status,
        }

    return _make


@pytest.fixture
def make_pv():
    """Factory for raw persistent volume objects."""

    def _make(
        name: str,
        capacity: str = "1Gi",
        phase: str = "Available",
        storage_class: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
        provisioned_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {"name": name, "labels": labels or {}}
        if provisioned_by:
            metadata["annotations"] = {"pv.kubernetes.io/provisioned-by": provisioned_by}
        spec: Dict[str, Any] = {"capacity": {"storage": capacity}}
        if storage_class:
            spec["storageClassName"] = storage_class
        return {"metadata": metadata, "spec": spec, "status": {"phase": phase}}

    return _make


@pytest.fixture
def pv_pool(make_pv):
    """Ten 1Gi volumes, two of them available."""
    return [
        make_pv(f"pv{i:02d}", phase="Available" if i < 2 else "Bound")
        for i in range(10)
    ]
