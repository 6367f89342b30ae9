"""Target-day schedules: which days a habit is expected on, per frequency.

Raw schedules arrive as a list of mixed markers, e.g. ``["monday", "friday"]``
for a weekly habit or ``[1, 15, "last"]`` for a monthly one. ``parse`` turns
that list into tagged markers once, so validation and month resolution never
have to inspect raw types again.
"""

from __future__ import annotations

import calendar
import json
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Union

from ..errors import InvalidScheduleError, MalformedScheduleError

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
LAST_DAY_SENTINEL = "last"
# Every month has at least this many days, so configured numbers always exist.
MAX_MONTH_DAY = 28


class Frequency(str, Enum):
    """Supported habit frequencies."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


@dataclass(frozen=True)
class WeekdayMarker:
    """A named day of the week; only meaningful for weekly habits."""

    name: str

    def to_payload(self) -> str:
        return self.name


@dataclass(frozen=True)
class MonthDayMarker:
    """A numeric day of the month, kept as given until validated."""

    value: Union[int, float]

    @property
    def is_whole(self) -> bool:
        return isinstance(self.value, int) or float(self.value).is_integer()

    @property
    def day(self) -> int:
        return int(self.value)

    def to_payload(self) -> Union[int, float]:
        return self.day if self.is_whole else self.value


@dataclass(frozen=True)
class LastDayMarker:
    """The final calendar day of whichever month is being resolved."""

    def to_payload(self) -> str:
        return LAST_DAY_SENTINEL


DayMarker = Union[WeekdayMarker, MonthDayMarker, LastDayMarker]


def _parse_marker(raw: Any) -> DayMarker:
    # bool is an int subclass; reject it before the numeric branch
    if isinstance(raw, bool):
        raise MalformedScheduleError(f"unsupported day marker: {raw!r}")
    if isinstance(raw, str):
        if raw == LAST_DAY_SENTINEL:
            return LastDayMarker()
        return WeekdayMarker(raw)
    if isinstance(raw, (int, float)):
        return MonthDayMarker(raw)
    raise MalformedScheduleError(f"unsupported day marker: {raw!r}")


@dataclass(frozen=True)
class TargetDaySchedule:
    """Ordered collection of day markers attached to a habit."""

    markers: tuple[DayMarker, ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> "TargetDaySchedule | None":
        """Build a schedule from an external value.

        Accepts a list of markers, the ``{"days": [...]}`` object form, or a
        JSON string of either. ``None`` and the empty string mean "no schedule".
        Anything else raises ``MalformedScheduleError``.
        """

        if raw is None:
            return None
        if isinstance(raw, TargetDaySchedule):
            return raw
        if isinstance(raw, str):
            if not raw.strip():
                return None
            try:
                raw = json.loads(raw)
            except ValueError as exc:
                raise MalformedScheduleError() from exc
        if isinstance(raw, dict):
            if "days" not in raw:
                raise MalformedScheduleError("target days object must contain 'days'")
            raw = raw["days"]
        if raw is None:
            return None
        if not isinstance(raw, (list, tuple)):
            raise MalformedScheduleError("target days must be a list")
        return cls(tuple(_parse_marker(item) for item in raw))

    def __len__(self) -> int:
        return len(self.markers)

    def __iter__(self):
        return iter(self.markers)

    def validate(self, frequency: str) -> None:
        """Raise ``InvalidScheduleError`` unless every marker suits ``frequency``."""

        if frequency == Frequency.DAILY.value:
            return
        if frequency == Frequency.WEEKLY.value:
            for marker in self.markers:
                if not isinstance(marker, WeekdayMarker) or marker.name not in WEEKDAYS:
                    raise InvalidScheduleError("invalid weekday")
            return
        if frequency == Frequency.MONTHLY.value:
            for marker in self.markers:
                if isinstance(marker, LastDayMarker):
                    continue
                if (
                    not isinstance(marker, MonthDayMarker)
                    or not marker.is_whole
                    or not 1 <= marker.day <= MAX_MONTH_DAY
                ):
                    raise InvalidScheduleError("invalid month day")
            return
        raise InvalidScheduleError("invalid frequency")

    def resolve_for_month(self, year: int, month: int) -> list[int]:
        """Return the concrete, ascending day numbers this schedule hits in a month.

        ``"last"`` resolves to the month's final day. Numeric days that do not
        exist in the month and weekday markers are skipped.
        """

        last_day = calendar.monthrange(year, month)[1]
        days: set[int] = set()
        for marker in self.markers:
            if isinstance(marker, LastDayMarker):
                days.add(last_day)
            elif isinstance(marker, MonthDayMarker) and marker.is_whole:
                if 1 <= marker.day <= last_day:
                    days.add(marker.day)
        return sorted(days)

    def is_valid_for_month(self, year: int, month: int) -> bool:
        return bool(self.resolve_for_month(year, month))

    def weekdays(self) -> list[str]:
        return [m.name for m in self.markers if isinstance(m, WeekdayMarker)]

    def includes(self, day: date, frequency: str) -> bool:
        """True when ``day`` is one of the scheduled days for ``frequency``."""

        if frequency == Frequency.WEEKLY.value:
            return WEEKDAYS[day.weekday()] in self.weekdays()
        if frequency == Frequency.MONTHLY.value:
            return day.day in self.resolve_for_month(day.year, day.month)
        return True

    def to_payload(self) -> list[Union[str, int, float]]:
        """Serialize back to the external list-of-markers form."""

        return [marker.to_payload() for marker in self.markers]

    @classmethod
    def from_markers(cls, markers: Iterable[DayMarker]) -> "TargetDaySchedule":
        return cls(tuple(markers))


def validate_schedule(frequency: str, schedule: TargetDaySchedule | None) -> None:
    """Module-level form of ``TargetDaySchedule.validate``; ``None`` always passes."""

    if schedule is None:
        return
    schedule.validate(frequency)


__all__ = [
    "DayMarker",
    "Frequency",
    "LAST_DAY_SENTINEL",
    "LastDayMarker",
    "MAX_MONTH_DAY",
    "MonthDayMarker",
    "TargetDaySchedule",
    "WEEKDAYS",
    "WeekdayMarker",
    "validate_schedule",
]
