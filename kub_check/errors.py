# SPDX-License-Identifier: MIT

"""Exception hierarchy shared by the checks, the CLI and the Ansible module."""

from __future__ import annotations

from kub_check.models import Severity


class KubCheckError(Exception):
    severity = Severity.UNKNOWN


class ConfigError(KubCheckError):
    """Malformed limit, selector or option declaration."""

    severity = Severity.UNKNOWN


class FetchError(KubCheckError):
    """The snapshot could not be retrieved from the cluster or read from disk."""

    severity = Severity.CRITICAL


class DataError(KubCheckError):
    """Inconsistent measurements, e.g. a percentage without its reference total."""

    severity = Severity.UNKNOWN
