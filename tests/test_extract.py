"""
Unit tests for per-kind measurement extraction.
"""

from datetime import timedelta

import pytest

from kub_check.extract import extract, running_after
from kub_check.models import Combinator
from kub_check.resources import parse_object


def _by_label(measurements):
    return {m.label: m for m in measurements}


@pytest.mark.unit
class TestPodExtraction:
    def test_counts_and_phase_fraction(self, make_pod, now):
        ms = _by_label(extract(parse_object(make_pod()), now))

        assert ms["project.default.pod.count"].value == 1
        assert ms["global.pod.count"].value == 1
        assert ms["project.default.pod.running.count"].value == 1
        assert ms["global.pod.running.count"].min == 0

        fraction = ms["project.default.pod.running.percent"]
        assert fraction.combinator == Combinator.PERCENTAGE_OF
        assert fraction.combinator_key == "project.default.pod.count"
        assert ms["global.pod.running.percent"].combinator_key == "global.pod.count"

    def test_creation_branches_by_phase(self, make_pod, now):
        pod = make_pod(phase="Failed", created=now - timedelta(seconds=30))
        ms = _by_label(extract(parse_object(pod), now))

        assert ms["project.default.pod.web.creation.failed.age"].value == 30
        assert ms["project.default.pod.web.creation.failed.age"].uom == "s"
        assert "project.default.pod.web.creation.failed.timestamp" in ms

    def test_pending_unscheduled(self, make_pod, now):
        pod = make_pod(phase="Pending", created=now - timedelta(seconds=10))
        ms = _by_label(extract(parse_object(pod), now))

        assert "project.default.pod.web.creation.unscheduled.age" in ms
        assert "project.default.pod.web.creation.pending.age" not in ms
        # The phase count keeps the real phase.
        assert "project.default.pod.pending.count" in ms

    def test_pending_scheduled_stays_pending(self, make_pod, now):
        pod = make_pod(phase="Pending", created=now - timedelta(seconds=10), scheduled=now)
        ms = _by_label(extract(parse_object(pod), now))

        assert "project.default.pod.web.creation.pending.age" in ms

    def test_deletion_pair(self, make_pod, now):
        pod = make_pod(deleted=now - timedelta(seconds=7))
        ms = _by_label(extract(parse_object(pod), now))

        assert ms["project.default.pod.web.deletion.age"].value == 7
        assert ms["project.default.pod.web.deletion.timestamp"].value == int((now - timedelta(seconds=7)).timestamp())

    def test_future_timestamp_has_no_age(self, make_pod, now):
        pod = make_pod(deleted=now + timedelta(seconds=30))
        ms = _by_label(extract(parse_object(pod), now))

        assert "project.default.pod.web.deletion.timestamp" in ms
        assert "project.default.pod.web.deletion.age" not in ms

    def test_running_after(self, make_pod, now):
        scheduled = now - timedelta(seconds=100)
        pod = make_pod(
            scheduled=scheduled,
            starts=[scheduled + timedelta(seconds=2), scheduled + timedelta(seconds=5)],
        )
        ms = _by_label(extract(parse_object(pod), now))

        m = ms["project.default.pod.web.running_after"]
        assert m.value == 5
        assert m.uom == "s"

    def test_running_after_omitted_on_restart(self, make_pod, now):
        pod = make_pod(scheduled=now, starts=[now], restarts=1)
        assert running_after(parse_object(pod)) is None

    def test_running_after_omitted_without_start_time(self, make_pod, now):
        pod = make_pod(scheduled=now, starts=[now, None])
        assert running_after(parse_object(pod)) is None

    def test_running_after_omitted_when_not_scheduled(self, make_pod, now):
        pod = make_pod(phase="Pending", starts=[now])
        assert running_after(parse_object(pod)) is None

    def test_running_after_omitted_without_containers(self, make_pod, now):
        assert running_after(parse_object(make_pod(scheduled=now))) is None


@pytest.mark.unit
class TestCronJobExtraction:
    def test_suspend_and_sentinel(self, make_cronjob, now):
        ms = _by_label(extract(parse_object(make_cronjob(suspend=True)), now))

        assert ms["project.default.cronjob.count"].value == 1
        assert ms["project.default.cronjob.backup.suspend"].value == 1
        assert ms["project.default.cronjob.backup.suspend"].max == 1

        sentinel = ms["project.default.cronjob.backup.lastsuccess.completion.timestamp"]
        assert sentinel.value == 0
        assert sentinel.combinator == Combinator.MAX
        assert sentinel.combinator_key == 0

    def test_last_schedule(self, make_cronjob, now):
        cj = make_cronjob(last_schedule=now - timedelta(minutes=5))
        ms = _by_label(extract(parse_object(cj), now))

        assert ms["project.default.cronjob.backup.suspend"].value == 0
        assert ms["project.default.cronjob.backup.last_schedule.age"].value == 300


@pytest.mark.unit
class TestJobExtraction:
    def test_without_status_only_counts(self, make_job, now):
        labels = {m.label for m in extract(parse_object(make_job()), now)}
        assert labels == {"project.default.job.count", "global.job.count"}

    def test_status_fields(self, make_job, now):
        start = now - timedelta(seconds=90)
        done = now - timedelta(seconds=30, milliseconds=500)
        job = make_job(status={
            "failed": 2,
            "succeeded": 1,
            "startTime": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "completionTime": done.isoformat(),
        })
        ms = _by_label(extract(parse_object(job), now))

        assert "project.default.job.backup-1.active" not in ms
        assert ms["project.default.job.backup-1.failed"].value == 2
        assert ms["project.default.job.backup-1.succeeded"].value == 1
        assert ms["project.default.job.backup-1.start.age"].value == 90
        assert ms["project.default.job.backup-1.completion.age"].value == 30
        assert ms["project.default.job.backup-1.duration"].value == 59
        assert ms["project.default.job.backup-1.duration"].uom == "s"

    def test_successful_job_reports_under_cronjob(self, make_job, now):
        done = now - timedelta(seconds=60)
        job = make_job(cronjob="backup", status={
            "active": 0,
            "succeeded": 1,
            "startTime": (done - timedelta(seconds=20)).isoformat(),
            "completionTime": done.isoformat(),
        })
        ms = _by_label(extract(parse_object(job), now))

        prefix = "project.default.cronjob.backup.lastsuccess"
        duration = ms[f"{prefix}.duration"]
        assert duration.value == 20
        assert duration.combinator == Combinator.MAX
        assert duration.combinator_key == int(done.timestamp())
        assert ms[f"{prefix}.completion.timestamp"].value == int(done.timestamp())
        assert ms[f"{prefix}.active"].value == 0
        assert ms[f"{prefix}.succeeded"].value == 1

    def test_unsuccessful_job_not_reported_under_cronjob(self, make_job, now):
        job = make_job(cronjob="backup", status={"active": 1, "startTime": now.isoformat()})
        labels = {m.label for m in extract(parse_object(job), now)}
        assert not any(".lastsuccess." in label for label in labels)


@pytest.mark.unit
class TestOtherKinds:
    def test_persistent_volume_is_cluster_scoped(self, make_pv, now):
        pv = make_pv("pv1")
        pv["metadata"]["creationTimestamp"] = (now - timedelta(seconds=3)).isoformat()
        ms = _by_label(extract(parse_object(pv, kind="PersistentVolume"), now))

        assert ms["global.persistentvolume.count"].value == 1
        assert ms["global.persistentvolume.pv1.creation.age"].value == 3
        assert not any(label.startswith("project.") for label in ms)

    def test_unknown_kind_without_timestamps_counts_only(self, now):
        obj = parse_object({"kind": "ConfigMap", "metadata": {"name": "cfg", "namespace": "ns"}})
        labels = {m.label for m in extract(obj, now)}
        assert labels == {"project.ns.configmap.count", "global.configmap.count"}

    def test_unknown_kind_keeps_creation_age(self, now):
        created = now - timedelta(seconds=120)
        obj = parse_object({"kind": "Deployment", "metadata": {
            "name": "web", "namespace": "default", "creationTimestamp": created.isoformat(),
        }})
        ms = _by_label(extract(obj, now))

        assert set(ms) == {
            "project.default.deployment.count",
            "global.deployment.count",
            "project.default.deployment.web.creation.timestamp",
            "project.default.deployment.web.creation.age",
        }
        assert ms["project.default.deployment.web.creation.age"].value == 120
        assert ms["project.default.deployment.web.creation.age"].uom == "s"
