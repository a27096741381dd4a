# SPDX-License-Identifier: MIT

"""Nagios/Icinga plugin entry points.

``kub-check-objects`` reports pod, job and cron job statistics;
``kub-check-pv-avail`` reports the number of available persistent volumes.
Both print a single plugin line on stdout and exit with the Nagios status code.
Diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Callable, Sequence

from kub_check import __version__
from kub_check.checks import check_object_stats, check_pv_avail
from kub_check.collector import DEFAULT_KINDS, KIND_NAMES, fetch_snapshot, load_snapshot
from kub_check.errors import ConfigError, KubCheckError
from kub_check.limits import build_limit_table, parse_number
from kub_check.matcher import parse_selector
from kub_check.models import Report
from kub_check.report import error_report

logger = logging.getLogger(__name__)


class PluginArgumentParser(argparse.ArgumentParser):
    """Argument errors are plugin configuration errors (UNKNOWN), not exit code 2."""

    def error(self, message: str) -> None:
        raise ConfigError(message)


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-f", "--file",
        help="Read the snapshot from a JSON file ('-' for stdin) instead of the cluster API.",
    )
    parser.add_argument(
        "--kubeconfig",
        help="Path to the kubeconfig file. Defaults to $KUBECONFIG, then ~/.kube/config.",
    )
    parser.add_argument("--context", help="Kubeconfig context to use. Defaults to the current context.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show every metric, one per line.")
    parser.add_argument("--debug", action="store_true", help="Log debug output to stderr.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")


def build_objects_parser() -> argparse.ArgumentParser:
    parser = PluginArgumentParser(
        prog="kub-check-objects",
        description="Check counts, ages and durations of pods, jobs and cron jobs.",
    )
    _add_source_args(parser)
    parser.add_argument("-n", "--namespace", help="Limit the snapshot to one namespace.")
    parser.add_argument(
        "-k", "--kind", action="append", dest="kinds", choices=sorted(KIND_NAMES),
        help=f"Object kind to fetch (repeatable). Defaults to {', '.join(DEFAULT_KINDS)}.",
    )
    parser.add_argument("-w", "--warning", action="append", default=[], metavar="NAME=VALUE",
                        help="Warning limit for one metric (repeatable).")
    parser.add_argument("-c", "--critical", action="append", default=[], metavar="NAME=VALUE",
                        help="Critical limit for one metric (repeatable).")
    parser.add_argument("--warning-regex", action="append", default=[], metavar="PATTERN=VALUE",
                        help="Warning limit for metrics matching PATTERN. Later options take priority.")
    parser.add_argument("--critical-regex", action="append", default=[], metavar="PATTERN=VALUE",
                        help="Critical limit for metrics matching PATTERN. Later options take priority.")
    parser.add_argument("--always-show", action="append", default=[], metavar="NAME",
                        help="Always include this metric in the output.")
    parser.add_argument("--always-show-regex", action="append", default=[], metavar="PATTERN",
                        help="Always include metrics matching PATTERN in the output.")
    return parser


def build_pv_parser() -> argparse.ArgumentParser:
    parser = PluginArgumentParser(
        prog="kub-check-pv-avail",
        description="Check the number of available persistent volumes per storage class and capacity.",
    )
    _add_source_args(parser)
    parser.add_argument("-w", "--warning", metavar="N", help="Warn when fewer than N volumes are available.")
    parser.add_argument("-c", "--critical", metavar="N", help="Critical when fewer than N volumes are available.")
    parser.add_argument(
        "-r", "--rule", action="append", default=[], metavar="SELECTOR",
        help="Selector rule, e.g. 'class=fast,label=tier=gold,capacity=10Gi,warning=3,critical=1'. "
             "Rules claim volumes in order; unclaimed volumes fall to the default rule.",
    )
    return parser


def _snapshot(args: argparse.Namespace, kinds: Sequence[str], namespace: str | None = None) -> Any:
    if args.file:
        return load_snapshot(args.file)
    return fetch_snapshot(args.kubeconfig, args.context, kinds, namespace)


def run_objects(argv: Sequence[str] | None = None) -> Report:
    args = build_objects_parser().parse_args(argv)
    _setup_logging(args.debug)
    limits = build_limit_table(
        warning=args.warning,
        critical=args.critical,
        warning_regex=args.warning_regex,
        critical_regex=args.critical_regex,
        always_show=args.always_show,
        always_show_regex=args.always_show_regex,
    )
    document = _snapshot(args, args.kinds or DEFAULT_KINDS, args.namespace)
    return check_object_stats(document, limits, verbose=args.verbose)


def run_pv_avail(argv: Sequence[str] | None = None) -> Report:
    args = build_pv_parser().parse_args(argv)
    _setup_logging(args.debug)
    warn = parse_number(args.warning, "warning") if args.warning is not None else None
    crit = parse_number(args.critical, "critical") if args.critical is not None else None
    rules = [parse_selector(r) for r in args.rule]
    document = _snapshot(args, ["persistentvolume"])
    return check_pv_avail(document, rules, warn, crit, verbose=args.verbose)


def _run(runner: Callable[[Sequence[str] | None], Report], argv: Sequence[str] | None) -> int:
    try:
        report = runner(argv)
    except KubCheckError as exc:
        logger.debug("Check aborted", exc_info=True)
        report = error_report(exc.severity, str(exc))
    print(report.text)
    return report.exit_code


def main_objects(argv: Sequence[str] | None = None) -> None:
    sys.exit(_run(run_objects, argv))


def main_pv_avail(argv: Sequence[str] | None = None) -> None:
    sys.exit(_run(run_pv_avail, argv))
