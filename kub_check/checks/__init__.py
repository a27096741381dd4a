# SPDX-License-Identifier: MIT

from kub_check.checks.objects import check_object_stats
from kub_check.checks.volumes import check_pv_avail

__all__ = ["check_object_stats", "check_pv_avail"]
