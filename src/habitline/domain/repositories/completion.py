"""Completion repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, runtime_checkable

from ...models.completion import HabitCompletion


@runtime_checkable
class CompletionRepository(Protocol):
    """Repository for completion records inside one session."""

    def get_by_id(self, completion_id: str) -> Optional[HabitCompletion]:
        """Retrieve a completion by ID."""
        ...

    def get_by_habit_and_date(
        self, habit_id: str, completion_date: date
    ) -> Optional[HabitCompletion]:
        """Retrieve the completion recorded for a habit on a date."""
        ...

    def insert(self, completion: HabitCompletion) -> HabitCompletion:
        """Insert a completion."""
        ...

    def update(self, completion: HabitCompletion) -> int:
        """Write count and notes; return rows affected."""
        ...

    def delete(self, completion_id: str) -> int:
        """Delete a completion; return rows affected."""
        ...

    def delete_for_habit(self, habit_id: str) -> int:
        """Delete every completion of a habit; return rows affected."""
        ...

    def list_by_user(
        self,
        user_id: str,
        *,
        habit_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[HabitCompletion]:
        """List a user's completions, newest completion date first."""
        ...

    def list_by_habit(
        self,
        habit_id: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[HabitCompletion]:
        """List a habit's completions, newest completion date first."""
        ...

    def count_by_user(
        self,
        user_id: str,
        *,
        habit_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count a user's completions matching the filters."""
        ...
