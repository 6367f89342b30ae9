"""Completion lifecycle: record, amend and remove completions of a habit.

Every write runs as one transaction over the completion row and the owning
habit's statistics. The habit row is locked for the whole read-modify-write so
two completions landing at once cannot both read the same counters.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from ..domain.repositories import CompletionRepository, HabitRepository
from ..errors import AlreadyExistsError, ForbiddenError, InvalidInputError, NotFoundError
from ..infra.database import SessionFactory, transaction
from ..infra.repositories import SQLModelCompletionRepository, SQLModelHabitRepository
from ..logging_config import get_logger
from ..models.completion import HabitCompletion

logger = get_logger("services.completions")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 1000
DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
INVALID_DATE_MESSAGE = "invalid completion date format, expected YYYY-MM-DD"

DateInput = Union[date, str]


@dataclass
class CompletionPage:
    """One page of completions plus the size of the full result."""

    items: list[HabitCompletion] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    def to_dict(self) -> dict:
        return {
            "completions": [c.to_dict() for c in self.items],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


def _utc_today(now: Optional[datetime]) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def should_extend_streak(completion_date: date, now: Optional[datetime] = None) -> bool:
    """Return True when a completion on ``completion_date`` extends the streak.

    Only today and yesterday count. Earlier backfills add to the totals but
    leave the streak alone. Future dates are not rejected here.
    """

    today = _utc_today(now)
    return completion_date in (today, today - timedelta(days=1))


def parse_completion_date(value: DateInput) -> date:
    """Accept a ``date`` or a ``YYYY-MM-DD`` string."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value = value.strip()
        if _DATE_PATTERN.match(value):
            try:
                return datetime.strptime(value, DATE_FORMAT).date()
            except ValueError as exc:
                raise InvalidInputError(INVALID_DATE_MESSAGE) from exc
        raise InvalidInputError(INVALID_DATE_MESSAGE)
    raise InvalidInputError("completion date is required")


def _parse_optional_date(value: Optional[DateInput], name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_completion_date(value)
    except InvalidInputError as exc:
        raise InvalidInputError(f"invalid {name} format, expected YYYY-MM-DD") from exc


def _page_bounds(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    limit = DEFAULT_PAGE_SIZE if limit is None else limit
    offset = 0 if offset is None else offset
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise InvalidInputError("offset must not be negative")
    return limit, offset


def _date_range(
    start_date: Optional[DateInput], end_date: Optional[DateInput]
) -> tuple[Optional[date], Optional[date]]:
    start = _parse_optional_date(start_date, "start_date")
    end = _parse_optional_date(end_date, "end_date")
    if start and end and start > end:
        raise InvalidInputError("start_date must not be after end_date")
    return start, end


def _check_owner(owner_id: str, user_id: str, **ids: str) -> None:
    if owner_id != user_id:
        logger.warning("Rejected access by non-owner", extra={"user_id": user_id, **ids})
        raise ForbiddenError()


def create_completion(
    session_factory: SessionFactory,
    *,
    habit_id: str,
    user_id: str,
    completion_date: DateInput,
    count: int = 1,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    deadline: Optional[float] = None,
) -> HabitCompletion:
    """Record that ``user_id`` performed ``habit_id`` on ``completion_date``.

    Raises ``NotFoundError``, ``ForbiddenError``, ``InvalidInputError`` or
    ``AlreadyExistsError``; on any failure nothing is written.
    """

    with transaction(session_factory, deadline=deadline) as session:
        habits: HabitRepository = SQLModelHabitRepository(session)
        completions: CompletionRepository = SQLModelCompletionRepository(session)

        habit = habits.get_for_update(habit_id)
        if habit is None:
            raise NotFoundError("habit not found")
        _check_owner(habit.user_id, user_id, habit_id=habit_id)

        day = parse_completion_date(completion_date)
        if completions.get_by_habit_and_date(habit_id, day) is not None:
            logger.info(
                "Duplicate completion rejected",
                extra={"habit_id": habit_id, "completion_date": day.isoformat()},
            )
            raise AlreadyExistsError("completion already exists for this date")

        completion = HabitCompletion.create(
            id=str(uuid.uuid4()),
            habit_id=habit_id,
            user_id=user_id,
            completion_date=day,
            count=count,
            notes=notes,
        )

        habit.increment_completions(completion.count)
        if should_extend_streak(day, now):
            habit.increment_streak()
        habit.touch(now)

        completions.insert(completion)
        if habits.update_stats(habit) == 0:
            raise NotFoundError("habit not found")

    logger.info(
        "Completion created",
        extra={
            "completion_id": completion.id,
            "habit_id": habit_id,
            "user_id": user_id,
            "completion_date": day.isoformat(),
        },
    )
    return completion


def update_completion(
    session_factory: SessionFactory,
    *,
    completion_id: str,
    user_id: str,
    count: Optional[int] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    deadline: Optional[float] = None,
) -> HabitCompletion:
    """Change the count and/or notes of a completion.

    A count change shifts the habit's total by the difference. Passing an empty
    string for ``notes`` clears them; ``None`` leaves them as they are.
    """

    with transaction(session_factory, deadline=deadline) as session:
        habits: HabitRepository = SQLModelHabitRepository(session)
        completions: CompletionRepository = SQLModelCompletionRepository(session)

        completion = completions.get_by_id(completion_id)
        if completion is None:
            raise NotFoundError("completion not found")
        _check_owner(completion.user_id, user_id, completion_id=completion_id)

        # The loaded row is detached; a failed check below discards it unwritten.
        original_count = completion.count
        if count is not None:
            completion.count = count
        if notes is not None:
            completion.set_notes(notes)
        completion.ensure_valid()

        habit = habits.get_for_update(completion.habit_id)
        if habit is None:
            raise NotFoundError("habit not found")
        habit.adjust_completions(completion.count - original_count)
        habit.touch(now)

        if completions.update(completion) == 0:
            raise NotFoundError("completion not found")
        if habits.update_stats(habit) == 0:
            raise NotFoundError("habit not found")

    logger.info(
        "Completion updated",
        extra={"completion_id": completion_id, "habit_id": completion.habit_id, "user_id": user_id},
    )
    return completion


def delete_completion(
    session_factory: SessionFactory,
    *,
    completion_id: str,
    user_id: str,
    now: Optional[datetime] = None,
    deadline: Optional[float] = None,
) -> None:
    """Remove a completion and take its count off the habit's total.

    Streaks are not recomputed.
    """

    with transaction(session_factory, deadline=deadline) as session:
        habits: HabitRepository = SQLModelHabitRepository(session)
        completions: CompletionRepository = SQLModelCompletionRepository(session)

        completion = completions.get_by_id(completion_id)
        if completion is None:
            raise NotFoundError("completion not found")
        _check_owner(completion.user_id, user_id, completion_id=completion_id)

        habit = habits.get_for_update(completion.habit_id)
        if habit is None:
            raise NotFoundError("habit not found")
        habit.decrement_completions(completion.count)
        habit.touch(now)

        if completions.delete(completion_id) == 0:
            raise NotFoundError("completion not found")
        if habits.update_stats(habit) == 0:
            raise NotFoundError("habit not found")

    logger.info(
        "Completion deleted",
        extra={"completion_id": completion_id, "habit_id": completion.habit_id, "user_id": user_id},
    )


def get_completion(
    session_factory: SessionFactory, *, completion_id: str, user_id: str
) -> HabitCompletion:
    """Fetch one of the user's completions."""

    with session_factory() as session:
        completion = SQLModelCompletionRepository(session).get_by_id(completion_id)
    if completion is None:
        raise NotFoundError("completion not found")
    _check_owner(completion.user_id, user_id, completion_id=completion_id)
    return completion


def list_completions(
    session_factory: SessionFactory,
    *,
    user_id: str,
    habit_id: Optional[str] = None,
    start_date: Optional[DateInput] = None,
    end_date: Optional[DateInput] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> CompletionPage:
    """Page through the user's completions, newest first."""

    limit, offset = _page_bounds(limit, offset)
    start, end = _date_range(start_date, end_date)
    with session_factory() as session:
        repo = SQLModelCompletionRepository(session)
        items = repo.list_by_user(
            user_id,
            habit_id=habit_id,
            start_date=start,
            end_date=end,
            limit=limit,
            offset=offset,
        )
        total = repo.count_by_user(user_id, habit_id=habit_id, start_date=start, end_date=end)
    return CompletionPage(items=items, total=total, limit=limit, offset=offset)


def list_habit_completions(
    session_factory: SessionFactory,
    *,
    habit_id: str,
    user_id: str,
    start_date: Optional[DateInput] = None,
    end_date: Optional[DateInput] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> CompletionPage:
    """Page through one habit's completions after checking the user owns it."""

    limit, offset = _page_bounds(limit, offset)
    start, end = _date_range(start_date, end_date)
    with session_factory() as session:
        habit = SQLModelHabitRepository(session).get_by_id(habit_id)
        if habit is None:
            raise NotFoundError("habit not found")
        _check_owner(habit.user_id, user_id, habit_id=habit_id)

        repo = SQLModelCompletionRepository(session)
        items = repo.list_by_habit(
            habit_id, start_date=start, end_date=end, limit=limit, offset=offset
        )
        total = repo.count_by_user(user_id, habit_id=habit_id, start_date=start, end_date=end)
    return CompletionPage(items=items, total=total, limit=limit, offset=offset)


__all__ = [
    "CompletionPage",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "create_completion",
    "delete_completion",
    "get_completion",
    "list_completions",
    "list_habit_completions",
    "parse_completion_date",
    "should_extend_streak",
    "update_completion",
]
