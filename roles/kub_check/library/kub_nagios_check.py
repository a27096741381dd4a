#!/usr/bin/python
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT

"""Ansible module running the kub-check Nagios checks from the control node.

The module connects to the K8s API from the Ansible control node (or reads a
snapshot file), derives metrics and returns the Nagios plugin line together
with its status. All API calls are read-only (list). Zero writes to the cluster.
"""

from __future__ import annotations

DOCUMENTATION = r"""
---
module: kub_nagios_check
short_description: Run Nagios-style metric checks against Kubernetes objects
version_added: "1.0.0"
description:
  - Derives counts, ages and durations of pods, jobs and cron jobs, or the
    number of available persistent volumes, and classifies them against
    warning/critical limits.
  - Returns the Nagios plugin output line and its status. The task itself
    never fails on a non-ok status; use C(failed_when) on the result.
  - Completely read-only. All API calls are list operations.
options:
  check:
    description: Which check to run.
    type: str
    default: objects
    choices: [objects, volumes]
  snapshot_file:
    description: Read the snapshot from this JSON file instead of the cluster API.
    type: path
  kubeconfig:
    description: Path to the kubeconfig file.
    type: path
    default: ~/.kube/config
  context:
    description: Kubeconfig context to use. Defaults to current context.
    type: str
  namespace:
    description: Limit the objects check to a single namespace.
    type: str
  kinds:
    description: Object kinds fetched for the objects check.
    type: list
    elements: str
    default: [pod, job, cronjob]
  warning:
    description: Exact warning limits, metric name to value.
    type: dict
    default: {}
  critical:
    description: Exact critical limits, metric name to value.
    type: dict
    default: {}
  warning_regex:
    description: Warning limits as PATTERN=VALUE. Later entries take priority.
    type: list
    elements: str
    default: []
  critical_regex:
    description: Critical limits as PATTERN=VALUE. Later entries take priority.
    type: list
    elements: str
    default: []
  always_show:
    description: Metric names always included in the output.
    type: list
    elements: str
    default: []
  always_show_regex:
    description: Patterns of metric names always included in the output.
    type: list
    elements: str
    default: []
  volume_warning:
    description: Warn when fewer volumes are available (volumes check).
    type: raw
  volume_critical:
    description: Critical when fewer volumes are available (volumes check).
    type: raw
  volume_rules:
    description: Ordered selector rules claiming volumes (volumes check).
    type: list
    elements: dict
    default: []
  verbose:
    description: Include every metric in the output.
    type: bool
    default: false
requirements:
  - kubernetes (Python package)
  - kub-check (Python package)
author:
  - kub-check contributors
"""

EXAMPLES = r"""
- name: Check pods and jobs of one namespace
  kub_nagios_check:
    namespace: batch
    critical_regex:
      - '\.creation\.pending\.age$=600'
  register: objects

- name: Check available volumes per capacity
  kub_nagios_check:
    check: volumes
    volume_critical: 5
    volume_rules:
      - storage_class: fast
        capacity: 10Gi
        critical: 2
  register: volumes
  failed_when: volumes.exit_code == 2
"""

RETURN = r"""
status:
  description: Overall status.
  type: str
  returned: success
  sample: critical
exit_code:
  description: Nagios exit code of the status.
  type: int
  returned: success
  sample: 2
report_text:
  description: Nagios plugin output line.
  type: str
  returned: success
  sample: "CRITICAL: 2 of 10 volumes with 1Gi available | '1Gi.used'=8;;5;0;10"
"""

from ansible.module_utils.basic import AnsibleModule


def run_module():
    module = AnsibleModule(
        argument_spec=dict(
            check=dict(type="str", default="objects", choices=["objects", "volumes"]),
            snapshot_file=dict(type="path", default=None),
            kubeconfig=dict(type="path", default="~/.kube/config"),
            context=dict(type="str", default=None),
            namespace=dict(type="str", default=None),
            kinds=dict(type="list", elements="str", default=["pod", "job", "cronjob"]),
            warning=dict(type="dict", default={}),
            critical=dict(type="dict", default={}),
            warning_regex=dict(type="list", elements="str", default=[]),
            critical_regex=dict(type="list", elements="str", default=[]),
            always_show=dict(type="list", elements="str", default=[]),
            always_show_regex=dict(type="list", elements="str", default=[]),
            volume_warning=dict(type="raw", default=None),
            volume_critical=dict(type="raw", default=None),
            volume_rules=dict(type="list", elements="dict", default=[]),
            verbose=dict(type="bool", default=False),
        ),
        supports_check_mode=True,
    )

    try:
        from kub_check import (
            ConfigError, DataError, FetchError, build_limit_table,
            check_object_stats, check_pv_avail, parse_selector,
        )
        from kub_check.limits import parse_number
        from kub_check.collector import fetch_snapshot, load_snapshot
    except ImportError:
        module.fail_json(msg="The 'kub-check' Python package is required. Install with: pip install kub-check")
        return

    params = module.params
    volumes = params["check"] == "volumes"

    try:
        if volumes:
            rules = [parse_selector(r) for r in params["volume_rules"]]
            warn, crit = (
                parse_number(params[key], key) if params[key] is not None else None
                for key in ("volume_warning", "volume_critical")
            )
        else:
            limits = build_limit_table(
                warning=params["warning"],
                critical=params["critical"],
                warning_regex=params["warning_regex"],
                critical_regex=params["critical_regex"],
                always_show=params["always_show"],
                always_show_regex=params["always_show_regex"],
            )
    except ConfigError as e:
        module.fail_json(msg=f"Invalid check configuration: {e}", status="unknown", exit_code=3)
        return

    try:
        if params["snapshot_file"]:
            document = load_snapshot(params["snapshot_file"])
        elif volumes:
            document = fetch_snapshot(params["kubeconfig"], params["context"], ["persistentvolume"])
        else:
            document = fetch_snapshot(params["kubeconfig"], params["context"], params["kinds"], params["namespace"])
    except FetchError as e:
        # A failed fetch is itself a critical finding, not a task error.
        module.exit_json(changed=False, status="critical", exit_code=2, report_text=f"CRITICAL: {e}")
        return

    try:
        if volumes:
            report = check_pv_avail(
                document, rules, warn, crit,
                verbose=params["verbose"],
            )
        else:
            report = check_object_stats(document, limits, verbose=params["verbose"])
    except DataError as e:
        module.fail_json(msg=f"Inconsistent snapshot data: {e}", status="unknown", exit_code=3)
        return

    module.exit_json(
        changed=False,
        status=report.status.value,
        exit_code=report.exit_code,
        report_text=report.text,
    )


def main():
    run_module()


if __name__ == "__main__":
    main()
