# SPDX-License-Identifier: MIT

"""Nagios/Icinga checks derived from Kubernetes object snapshots.

The engine is a pure function of a JSON snapshot and a set of limits: it
extracts measurements per object, combines them into metrics, classifies each
metric against warning/critical thresholds and renders plugin output.
"""

__version__ = "1.0.0"

from kub_check.checks import check_object_stats, check_pv_avail
from kub_check.errors import ConfigError, DataError, FetchError, KubCheckError
from kub_check.limits import LimitTable, build_limit_table
from kub_check.matcher import SelectorRule, parse_selector
from kub_check.models import Report, Severity

__all__ = [
    "ConfigError",
    "DataError",
    "FetchError",
    "KubCheckError",
    "LimitTable",
    "Report",
    "SelectorRule",
    "Severity",
    "build_limit_table",
    "check_object_stats",
    "check_pv_avail",
    "parse_selector",
]
