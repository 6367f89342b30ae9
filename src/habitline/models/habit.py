"""Habit aggregate: configuration plus streak and completion statistics."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..domain.schedule import Frequency, TargetDaySchedule
from ..errors import DomainValidationError
from .types import timestamp_column

_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_optional_text(value: Optional[str]) -> Optional[str]:
    """Trim text and collapse blank input to ``None``."""

    if value is None:
        return None
    value = value.strip()
    return value or None


class Habit(SQLModel, table=True):
    """A user-defined recurring activity with its tracked statistics.

    Rows are built through ``Habit.create`` so that a habit which fails
    ``ensure_valid`` is never handed to callers. Statistics only change through
    the streak and completion methods below.
    """

    __tablename__: ClassVar[str] = "habit"

    id: str = Field(primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="user.id", nullable=False, index=True, max_length=36)
    name: str = Field(nullable=False, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    motivation: Optional[str] = Field(default=None, max_length=1000)
    color: str = Field(nullable=False, max_length=7)
    category: Optional[str] = Field(default=None, max_length=100)
    frequency: str = Field(default=Frequency.DAILY.value, nullable=False, max_length=16)
    target_count: int = Field(default=1, nullable=False)
    target_days: Optional[list[Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    current_streak: int = Field(default=0, nullable=False)
    best_streak: int = Field(default=0, nullable=False)
    total_completions: int = Field(default=0, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    @classmethod
    def create(
        cls,
        *,
        id: str,
        user_id: str,
        name: str,
        frequency: str,
        target_count: int,
        color: str,
        description: Optional[str] = None,
        motivation: Optional[str] = None,
        category: Optional[str] = None,
        schedule: Optional[TargetDaySchedule] = None,
    ) -> "Habit":
        """Build a fresh habit with zeroed statistics, or raise on invalid input."""

        now = utcnow()
        habit = cls(
            id=id,
            user_id=user_id,
            name=name,
            frequency=frequency,
            target_count=target_count,
            color=color,
            description=_clean_optional_text(description),
            motivation=_clean_optional_text(motivation),
            category=_clean_optional_text(category),
            target_days=schedule.to_payload() if schedule is not None else None,
            current_streak=0,
            best_streak=0,
            total_completions=0,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        habit.ensure_valid()
        return habit

    # -- schedule -------------------------------------------------------------

    @property
    def schedule(self) -> Optional[TargetDaySchedule]:
        return TargetDaySchedule.parse(self.target_days)

    def set_target_day_schedule(self, schedule: Optional[TargetDaySchedule]) -> None:
        """Replace the schedule after checking it against the current frequency.

        On rejection the stored schedule is left untouched.
        """

        if schedule is not None:
            schedule.validate(self.frequency)
        self.target_days = schedule.to_payload() if schedule is not None else None

    def is_due_on(self, day: date) -> bool:
        schedule = self.schedule
        if not schedule:
            return True
        return schedule.includes(day, self.frequency)

    # -- optional text --------------------------------------------------------

    def set_description(self, description: str) -> None:
        self.description = _clean_optional_text(description)

    def set_motivation(self, motivation: str) -> None:
        self.motivation = _clean_optional_text(motivation)

    def set_category(self, category: str) -> None:
        self.category = _clean_optional_text(category)

    # -- statistics -----------------------------------------------------------

    def increment_streak(self) -> None:
        self.current_streak += 1
        if self.current_streak > self.best_streak:
            self.best_streak = self.current_streak

    def reset_streak(self) -> None:
        self.current_streak = 0

    def increment_completions(self, amount: int = 1) -> None:
        self.adjust_completions(amount)

    def decrement_completions(self, amount: int = 1) -> None:
        self.adjust_completions(-amount)

    def adjust_completions(self, delta: int) -> None:
        """Shift the completion total by ``delta``, never below zero."""

        self.total_completions = max(0, self.total_completions + delta)

    def activate(self) -> None:
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False

    def touch(self, now: Optional[datetime] = None) -> None:
        self.updated_at = now or utcnow()

    # -- validation -----------------------------------------------------------

    def ensure_valid(self) -> None:
        """Raise ``DomainValidationError`` (or ``InvalidScheduleError``) on a broken habit."""

        if not self.id:
            raise DomainValidationError("id is required")
        if not self.user_id:
            raise DomainValidationError("user ID is required")
        if not self.name or not self.name.strip():
            raise DomainValidationError("name is required")
        if self.frequency not in Frequency.values():
            raise DomainValidationError("invalid frequency")
        if isinstance(self.target_count, bool) or not isinstance(self.target_count, int) or self.target_count <= 0:
            raise DomainValidationError("target count must be positive")
        if not isinstance(self.color, str) or not _COLOR_PATTERN.match(self.color):
            raise DomainValidationError("invalid color format")
        if self.current_streak < 0 or self.total_completions < 0:
            raise DomainValidationError("statistics must not be negative")
        if self.best_streak < self.current_streak:
            raise DomainValidationError("best streak must not trail current streak")
        schedule = self.schedule
        if schedule is not None:
            schedule.validate(self.frequency)

    def to_dict(self, *, today: Optional[date] = None) -> dict[str, Any]:
        """Serialize for JSON responses."""

        today = today or utcnow().date()
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "motivation": self.motivation,
            "color": self.color,
            "category": self.category,
            "frequency": self.frequency,
            "target_count": self.target_count,
            "target_days": self.target_days,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "total_completions": self.total_completions,
            "is_active": self.is_active,
            "due_today": self.is_due_on(today),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
