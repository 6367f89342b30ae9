"""Habit repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ...models.habit import Habit


@runtime_checkable
class HabitRepository(Protocol):
    """Repository for managing habit entities inside one session."""

    def get_by_id(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def get_for_update(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit and hold a row lock until the transaction ends."""
        ...

    def list_by_user(self, user_id: str, *, include_inactive: bool = True) -> list[Habit]:
        """List a user's habits, newest first."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Insert a new habit."""
        ...

    def update(self, habit: Habit) -> int:
        """Write configuration fields; return rows affected."""
        ...

    def update_stats(self, habit: Habit) -> int:
        """Write streak and completion counters; return rows affected."""
        ...

    def delete(self, habit_id: str) -> int:
        """Delete a habit by ID; return rows affected."""
        ...
