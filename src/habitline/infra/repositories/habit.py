"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from ...models.habit import Habit


class SQLModelHabitRepository:
    """SQLModel-based habit repository bound to one session.

    Every call runs inside the caller's transaction; nothing here commits.
    Returned entities are detached so callers can mutate them freely and
    write back through ``update`` or ``update_stats``.
    """

    def __init__(self, session: Session):
        """Initialize with an open session."""
        self.session = session

    def get_by_id(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        obj = self.session.exec(select(Habit).where(Habit.id == habit_id)).first()
        if obj:
            self.session.expunge(obj)
        return obj

    def get_for_update(self, habit_id: str) -> Optional[Habit]:
        """Retrieve a habit and lock its row until the transaction ends."""
        statement = (
            select(Habit)
            .where(Habit.id == habit_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        obj = self.session.exec(statement).first()
        if obj:
            self.session.expunge(obj)
        return obj

    def list_by_user(self, user_id: str, *, include_inactive: bool = True) -> list[Habit]:
        """List a user's habits, newest first."""
        statement = (
            select(Habit)
            .where(Habit.user_id == user_id)
            .order_by(Habit.created_at.desc(), Habit.id)  # type: ignore
        )

        if not include_inactive:
            statement = statement.where(Habit.is_active == True)  # noqa: E712

        rows = list(self.session.exec(statement).all())
        self.session.expunge_all()
        return rows

    def create(self, habit: Habit) -> Habit:
        """Insert a new habit."""
        self.session.add(habit)
        self.session.flush()
        self.session.expunge(habit)
        return habit

    def update(self, habit: Habit) -> int:
        """Write configuration fields; statistics are left alone."""
        statement = (
            update(Habit)
            .where(Habit.id == habit.id)
            .values(
                name=habit.name,
                description=habit.description,
                motivation=habit.motivation,
                color=habit.color,
                category=habit.category,
                frequency=habit.frequency,
                target_count=habit.target_count,
                target_days=habit.target_days,
                is_active=habit.is_active,
                updated_at=habit.updated_at,
            )
        )
        return self._rowcount(statement)

    def update_stats(self, habit: Habit) -> int:
        """Write streak and completion counters."""
        statement = (
            update(Habit)
            .where(Habit.id == habit.id)
            .values(
                current_streak=habit.current_streak,
                best_streak=habit.best_streak,
                total_completions=habit.total_completions,
                updated_at=habit.updated_at,
            )
        )
        return self._rowcount(statement)

    def delete(self, habit_id: str) -> int:
        """Delete a habit by ID."""
        return self._rowcount(delete(Habit).where(Habit.id == habit_id))

    def _rowcount(self, statement) -> int:
        self.session.flush()
        result = self.session.connection().execute(statement)
        return result.rowcount
