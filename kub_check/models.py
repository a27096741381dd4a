# SPDX-License-Identifier: MIT

"""Core data model: severities, measurements, metrics and report entries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

Number = Union[int, float]


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    UNKNOWN = "unknown"
    OK = "ok"

    @property
    def sort_order(self) -> int:
        return {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.UNKNOWN: 2, Severity.OK: 3}[self]

    @property
    def exit_code(self) -> int:
        return {Severity.OK: 0, Severity.WARNING: 1, Severity.CRITICAL: 2, Severity.UNKNOWN: 3}[self]

    @property
    def label(self) -> str:
        return self.value.upper()


class Combinator(str, Enum):
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    PERCENTAGE_OF = "percentage_of"


@dataclass(frozen=True)
class Measurement:
    label: str
    value: Number
    uom: str | None = None
    min: Number | None = None
    max: Number | None = None
    combinator: Combinator = Combinator.SUM
    combinator_key: Any = None


@dataclass
class Metric:
    label: str
    value: Number
    uom: str | None = None
    min: Number | None = None
    max: Number | None = None
    combinator: Combinator = Combinator.SUM
    combinator_key: Any = None

    @classmethod
    def from_measurement(cls, m: Measurement) -> Metric:
        return cls(
            label=m.label, value=m.value, uom=m.uom, min=m.min, max=m.max,
            combinator=m.combinator, combinator_key=m.combinator_key,
        )


@dataclass(frozen=True)
class ReportEntry:
    name: str
    value: Number
    uom: str | None = None
    min: Number | None = None
    max: Number | None = None
    warn: Number | None = None
    crit: Number | None = None
    status: Severity = Severity.OK
    message: str | None = None
    visible: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "uom": self.uom,
            "min": self.min,
            "max": self.max,
            "warn": self.warn,
            "crit": self.crit,
            "status": self.status.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class Report:
    status: Severity
    text: str

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def __str__(self) -> str:
        return self.text
