# SPDX-License-Identifier: MIT

"""Snapshot retrieval from a cluster (kubernetes client) or from a JSON file.

All API calls are read-only list operations. Any failure is reported as a
:class:`FetchError` carrying the diagnostic text; the checks never run on a
partial snapshot.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable

from kub_check.errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_KINDS = ("pod", "job", "cronjob")
KIND_NAMES = {
    "pod": "Pod",
    "job": "Job",
    "cronjob": "CronJob",
    "persistentvolume": "PersistentVolume",
}


def connect(kubeconfig: str | None = None, context: str | None = None):
    """Load the kubeconfig, falling back to the in-cluster service account."""
    from kubernetes import client, config
    from kubernetes.config.config_exception import ConfigException

    try:
        config.load_kube_config(config_file=kubeconfig, context=context)
    except ConfigException:
        config.load_incluster_config()
    return client.ApiClient()


def _list_calls(api_client, namespace: str | None) -> dict[str, Any]:
    from kubernetes.client import BatchV1Api, CoreV1Api

    core = CoreV1Api(api_client)
    batch = BatchV1Api(api_client)
    ns_args: dict[str, Any] = {"namespace": namespace} if namespace else {}

    def _ns_call(namespaced_fn, all_ns_fn):
        fn = namespaced_fn if namespace else all_ns_fn
        return lambda: fn(**ns_args)

    return {
        "pod": _ns_call(core.list_namespaced_pod, core.list_pod_for_all_namespaces),
        "job": _ns_call(batch.list_namespaced_job, batch.list_job_for_all_namespaces),
        "cronjob": _ns_call(batch.list_namespaced_cron_job, batch.list_cron_job_for_all_namespaces),
        "persistentvolume": core.list_persistent_volume,
    }


def collect_snapshot(api_client, kinds: Iterable[str] = DEFAULT_KINDS, namespace: str | None = None) -> dict[str, Any]:
    """List ``kinds`` and return them as one Kubernetes ``List`` document.

    Items returned by list calls carry no ``kind`` of their own, so each is
    tagged with the kind it was listed as.
    """
    calls = _list_calls(api_client, namespace)
    items: list[dict[str, Any]] = []
    for kind in kinds:
        key = kind.lower()
        if key not in calls:
            raise FetchError(f"Unsupported kind {kind!r}, choose from {sorted(calls)}")
        result = api_client.sanitize_for_serialization(calls[key]())
        listed = result.get("items") or []
        logger.debug("Listed %d %s objects", len(listed), KIND_NAMES[key])
        for item in listed:
            item["kind"] = KIND_NAMES[key]
            items.append(item)
    return {"apiVersion": "v1", "kind": "List", "items": items}


def fetch_snapshot(
    kubeconfig: str | None = None,
    context: str | None = None,
    kinds: Iterable[str] = DEFAULT_KINDS,
    namespace: str | None = None,
) -> dict[str, Any]:
    try:
        api_client = connect(kubeconfig, context)
    except Exception as exc:
        raise FetchError(f"Failed to connect to Kubernetes cluster: {exc}") from exc
    try:
        return collect_snapshot(api_client, kinds, namespace)
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Failed to collect cluster snapshot: {exc}") from exc


def load_snapshot(path: str | Path) -> Any:
    """Read a snapshot document from ``path``; ``-`` reads standard input."""
    try:
        if str(path) == "-":
            return json.load(sys.stdin)
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        raise FetchError(f"Failed to read snapshot {path}: {exc}") from exc
