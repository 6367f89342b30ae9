"""Habit management: create, read, reconfigure and delete habits."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from ..domain.repositories import HabitRepository
from ..domain.schedule import Frequency, TargetDaySchedule
from ..errors import DomainValidationError, ForbiddenError, InvalidInputError, NotFoundError
from ..infra.database import SessionFactory, transaction
from ..infra.repositories import SQLModelCompletionRepository, SQLModelHabitRepository
from ..logging_config import get_logger
from ..models.habit import Habit

logger = get_logger("services.habits")

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "motivation",
        "color",
        "category",
        "frequency",
        "target_count",
        "target_days",
        "is_active",
    }
)


def _owned(habit: Optional[Habit], habit_id: str, user_id: str) -> Habit:
    if habit is None:
        raise NotFoundError("habit not found")
    if habit.user_id != user_id:
        logger.warning("Rejected access by non-owner", extra={"habit_id": habit_id, "user_id": user_id})
        raise ForbiddenError()
    return habit


def create_habit(
    session_factory: SessionFactory,
    *,
    user_id: str,
    name: str,
    color: str,
    frequency: str = Frequency.DAILY.value,
    target_count: int = 1,
    description: Optional[str] = None,
    motivation: Optional[str] = None,
    category: Optional[str] = None,
    target_days: Any = None,
    deadline: Optional[float] = None,
) -> Habit:
    """Create a habit for ``user_id`` with zeroed statistics."""

    schedule = TargetDaySchedule.parse(target_days)
    habit = Habit.create(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=name.strip() if isinstance(name, str) else name,
        frequency=frequency,
        target_count=target_count,
        color=color,
        description=description,
        motivation=motivation,
        category=category,
        schedule=schedule,
    )

    with transaction(session_factory, deadline=deadline) as session:
        SQLModelHabitRepository(session).create(habit)

    logger.info("Habit created", extra={"habit_id": habit.id, "user_id": user_id})
    return habit


def get_habit(session_factory: SessionFactory, *, habit_id: str, user_id: str) -> Habit:
    """Fetch one of the user's habits."""

    with session_factory() as session:
        habit = SQLModelHabitRepository(session).get_by_id(habit_id)
    return _owned(habit, habit_id, user_id)


def list_habits(
    session_factory: SessionFactory, *, user_id: str, include_inactive: bool = True
) -> list[Habit]:
    """Return the user's habits, newest first."""

    with session_factory() as session:
        return SQLModelHabitRepository(session).list_by_user(
            user_id, include_inactive=include_inactive
        )


def _apply_changes(habit: Habit, changes: Mapping[str, Any]) -> None:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidInputError(f"unknown fields: {', '.join(sorted(unknown))}")

    if "name" in changes:
        name = changes["name"]
        habit.name = name.strip() if isinstance(name, str) else name
    if "description" in changes:
        habit.set_description(changes["description"] or "")
    if "motivation" in changes:
        habit.set_motivation(changes["motivation"] or "")
    if "category" in changes:
        habit.set_category(changes["category"] or "")
    if "color" in changes:
        habit.color = changes["color"]
    if "target_count" in changes:
        habit.target_count = changes["target_count"]
    if "frequency" in changes:
        if changes["frequency"] not in Frequency.values():
            raise DomainValidationError("invalid frequency")
        habit.frequency = changes["frequency"]
    if "target_days" in changes:
        habit.set_target_day_schedule(TargetDaySchedule.parse(changes["target_days"]))
    if "is_active" in changes:
        if changes["is_active"]:
            habit.activate()
        else:
            habit.deactivate()


def update_habit(
    session_factory: SessionFactory,
    *,
    habit_id: str,
    user_id: str,
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
    deadline: Optional[float] = None,
) -> Habit:
    """Apply ``changes`` to a habit's configuration.

    ``changes`` holds only the fields the caller supplied. A frequency change
    without new target days re-checks the stored days against the new
    frequency. Statistics are never touched here.
    """

    with transaction(session_factory, deadline=deadline) as session:
        repo: HabitRepository = SQLModelHabitRepository(session)
        habit = _owned(repo.get_for_update(habit_id), habit_id, user_id)

        _apply_changes(habit, changes)
        habit.touch(now)
        habit.ensure_valid()

        if repo.update(habit) == 0:
            raise NotFoundError("habit not found")

    logger.info(
        "Habit updated",
        extra={"habit_id": habit_id, "user_id": user_id, "fields": sorted(changes)},
    )
    return habit


def delete_habit(
    session_factory: SessionFactory,
    *,
    habit_id: str,
    user_id: str,
    deadline: Optional[float] = None,
) -> None:
    """Delete a habit together with all of its completions."""

    with transaction(session_factory, deadline=deadline) as session:
        habits: HabitRepository = SQLModelHabitRepository(session)
        _owned(habits.get_for_update(habit_id), habit_id, user_id)

        removed = SQLModelCompletionRepository(session).delete_for_habit(habit_id)
        if habits.delete(habit_id) == 0:
            raise NotFoundError("habit not found")

    logger.info(
        "Habit deleted",
        extra={"habit_id": habit_id, "user_id": user_id, "completions_removed": removed},
    )


__all__ = [
    "UPDATABLE_FIELDS",
    "create_habit",
    "delete_habit",
    "get_habit",
    "list_habits",
    "update_habit",
]
