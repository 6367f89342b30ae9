"""Completion records: one habit performed on one calendar day."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..errors import DomainValidationError
from .habit import _clean_optional_text, utcnow
from .types import timestamp_column


class HabitCompletion(SQLModel, table=True):
    """A habit performed ``count`` times on ``completion_date``.

    At most one row exists per (habit, date); the completion services check
    this before inserting and the unique constraint backs them up.
    """

    __tablename__: ClassVar[str] = "habit_completion"
    __table_args__ = (
        UniqueConstraint("habit_id", "completion_date", name="uq_completion_habit_date"),
    )

    id: str = Field(primary_key=True, max_length=36)
    habit_id: str = Field(foreign_key="habit.id", nullable=False, index=True, max_length=36)
    user_id: str = Field(foreign_key="user.id", nullable=False, index=True, max_length=36)
    completed_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    completion_date: date = Field(nullable=False, index=True)
    count: int = Field(default=1, nullable=False)
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    @classmethod
    def create(
        cls,
        *,
        id: str,
        habit_id: str,
        user_id: str,
        completion_date: date,
        count: int,
        notes: Optional[str] = None,
    ) -> "HabitCompletion":
        now = utcnow()
        completion = cls(
            id=id,
            habit_id=habit_id,
            user_id=user_id,
            completed_at=now,
            completion_date=completion_date,
            count=count,
            notes=_clean_optional_text(notes),
            created_at=now,
        )
        completion.ensure_valid()
        return completion

    def set_notes(self, notes: str) -> None:
        self.notes = _clean_optional_text(notes)

    def ensure_valid(self) -> None:
        if not self.id:
            raise DomainValidationError("id is required")
        if not self.habit_id:
            raise DomainValidationError("habit ID is required")
        if not self.user_id:
            raise DomainValidationError("user ID is required")
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise DomainValidationError("count must be positive")
        # datetime is a date subclass but carries a time of day
        if not isinstance(self.completion_date, date) or isinstance(self.completion_date, datetime):
            raise DomainValidationError("completion date is required")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "habit_id": self.habit_id,
            "user_id": self.user_id,
            "completed_at": self.completed_at.isoformat(),
            "completion_date": self.completion_date.isoformat(),
            "count": self.count,
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
        }
