"""SQLModel implementation of Completion repository."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...errors import AlreadyExistsError
from ...models.completion import HabitCompletion


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "uq_completion_habit_date" in message


class SQLModelCompletionRepository:
    """SQLModel-based completion repository bound to one session."""

    def __init__(self, session: Session):
        """Initialize with an open session."""
        self.session = session

    def get_by_id(self, completion_id: str) -> Optional[HabitCompletion]:
        """Retrieve a completion by ID."""
        obj = self.session.exec(
            select(HabitCompletion).where(HabitCompletion.id == completion_id)
        ).first()
        if obj:
            self.session.expunge(obj)
        return obj

    def get_by_habit_and_date(
        self, habit_id: str, completion_date: date
    ) -> Optional[HabitCompletion]:
        """Retrieve the completion recorded for a habit on a date."""
        statement = select(HabitCompletion).where(
            HabitCompletion.habit_id == habit_id,
            HabitCompletion.completion_date == completion_date,
        )
        obj = self.session.exec(statement).first()
        if obj:
            self.session.expunge(obj)
        return obj

    def insert(self, completion: HabitCompletion) -> HabitCompletion:
        """Insert a completion.

        A second row for the same habit and date raises ``AlreadyExistsError``.
        The session must be rolled back afterwards, which ``transaction`` does.
        """
        self.session.add(completion)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise AlreadyExistsError("completion already exists for this date") from exc
            raise
        self.session.expunge(completion)
        return completion

    def update(self, completion: HabitCompletion) -> int:
        """Write count and notes; return rows affected."""
        statement = (
            update(HabitCompletion)
            .where(HabitCompletion.id == completion.id)
            .values(count=completion.count, notes=completion.notes)
        )
        return self._rowcount(statement)

    def delete(self, completion_id: str) -> int:
        """Delete a completion; return rows affected."""
        return self._rowcount(delete(HabitCompletion).where(HabitCompletion.id == completion_id))

    def delete_for_habit(self, habit_id: str) -> int:
        """Delete every completion of a habit."""
        return self._rowcount(delete(HabitCompletion).where(HabitCompletion.habit_id == habit_id))

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
        statement = select(HabitCompletion).where(HabitCompletion.user_id == user_id)
        statement = self._apply_filters(statement, habit_id, start_date, end_date)
        return self._page(statement, limit, offset)

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
        statement = select(HabitCompletion)
        statement = self._apply_filters(statement, habit_id, start_date, end_date)
        return self._page(statement, limit, offset)

    def count_by_user(
        self,
        user_id: str,
        *,
        habit_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        """Count a user's completions matching the filters."""
        statement = (
            select(func.count())
            .select_from(HabitCompletion)
            .where(HabitCompletion.user_id == user_id)
        )
        statement = self._apply_filters(statement, habit_id, start_date, end_date)
        return int(self.session.exec(statement).one())

    @staticmethod
    def _apply_filters(statement, habit_id, start_date, end_date):
        if habit_id:
            statement = statement.where(HabitCompletion.habit_id == habit_id)
        if start_date:
            statement = statement.where(HabitCompletion.completion_date >= start_date)
        if end_date:
            statement = statement.where(HabitCompletion.completion_date <= end_date)
        return statement

    def _page(self, statement, limit: int, offset: int) -> list[HabitCompletion]:
        statement = (
            statement.order_by(
                HabitCompletion.completion_date.desc(),  # type: ignore
                HabitCompletion.created_at.desc(),  # type: ignore
            )
            .offset(offset)
            .limit(limit)
        )
        rows = list(self.session.exec(statement).all())
        self.session.expunge_all()
        return rows

    def _rowcount(self, statement) -> int:
        self.session.flush()
        return self.session.connection().execute(statement).rowcount
