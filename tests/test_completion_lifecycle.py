"""Tests for the completion lifecycle operations.

Each operation touches a completion row and the owning habit's statistics in
one transaction, so most tests check both sides and assert that a failure
leaves neither changed.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from habitline.errors import (
    AlreadyExistsError,
    DeadlineExceededError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from habitline.infra.repositories import SQLModelCompletionRepository, SQLModelHabitRepository
from habitline.models import HabitCompletion
from habitline.services import completions as service
from habitline.services import habits as habit_service

# Monday
NOW = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()
YESTERDAY = TODAY - timedelta(days=1)


def completion_rows(session_factory) -> list[HabitCompletion]:
    with session_factory() as session:
        return list(session.exec(select(HabitCompletion)).all())


class TestShouldExtendStreak:
    def test_today_and_yesterday_extend(self):
        assert service.should_extend_streak(TODAY, NOW)
        assert service.should_extend_streak(YESTERDAY, NOW)

    def test_older_dates_do_not_extend(self):
        assert not service.should_extend_streak(TODAY - timedelta(days=2), NOW)
        assert not service.should_extend_streak(TODAY - timedelta(days=30), NOW)

    def test_future_dates_do_not_extend(self):
        assert not service.should_extend_streak(TODAY + timedelta(days=1), NOW)

    def test_day_boundary_is_utc(self):
        late_evening_west = datetime(2023, 12, 31, 22, 0, tzinfo=timezone(timedelta(hours=-5)))

        # 03:00 UTC on January 1st
        assert service.should_extend_streak(date(2024, 1, 1), late_evening_west)
        assert not service.should_extend_streak(date(2023, 12, 30), late_evening_west)


class TestParseCompletionDate:
    def test_accepts_iso_string(self):
        assert service.parse_completion_date("2024-02-29") == date(2024, 2, 29)

    def test_accepts_date(self):
        assert service.parse_completion_date(TODAY) == TODAY

    @pytest.mark.parametrize(
        "raw",
        ["2024-02-30", "01/02/2024", "2024-1-5", "2024-01-5", "24-01-05", "yesterday", "", None, 20240101],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(InvalidInputError):
            service.parse_completion_date(raw)


class TestCreateCompletion:
    def test_today_increments_totals_and_streak(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory()

        completion = service.create_completion(
            session_factory,
            habit_id=habit.id,
            user_id=user.id,
            completion_date=TODAY.isoformat(),
            now=NOW,
        )

        stored = load_habit(habit.id)
        assert completion.completion_date == TODAY
        assert stored.total_completions == 1
        assert stored.current_streak == 1
        assert stored.best_streak == 1

    def test_yesterday_extends_streak(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory(current_streak=4, best_streak=4)

        service.create_completion(
            session_factory, habit_id=habit.id, user_id=user.id, completion_date=YESTERDAY, now=NOW
        )

        assert load_habit(habit.id).current_streak == 5
        assert load_habit(habit.id).best_streak == 5

    def test_backfill_counts_but_does_not_extend_streak(
        self, session_factory, habit_factory, user, load_habit
    ):
        habit = habit_factory(current_streak=2, best_streak=6, total_completions=8)

        service.create_completion(
            session_factory,
            habit_id=habit.id,
            user_id=user.id,
            completion_date=TODAY - timedelta(days=3),
            now=NOW,
        )

        stored = load_habit(habit.id)
        assert stored.total_completions == 9
        assert (stored.current_streak, stored.best_streak) == (2, 6)

    def test_count_is_added_to_total(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory(total_completions=1)

        service.create_completion(
            session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, count=3, now=NOW
        )

        assert load_habit(habit.id).total_completions == 4

    def test_notes_are_trimmed(self, session_factory, habit_factory, user, load_completion):
        habit = habit_factory()

        completion = service.create_completion(
            session_factory,
            habit_id=habit.id,
            user_id=user.id,
            completion_date=TODAY,
            notes="  felt great  ",
            now=NOW,
        )

        assert load_completion(completion.id).notes == "felt great"

    def test_duplicate_date_is_rejected(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory()
        kwargs = dict(habit_id=habit.id, user_id=user.id, completion_date=TODAY, now=NOW)
        service.create_completion(session_factory, **kwargs)

        with pytest.raises(AlreadyExistsError):
            service.create_completion(session_factory, **kwargs)

        assert len(completion_rows(session_factory)) == 1
        assert load_habit(habit.id).total_completions == 1

    def test_unique_constraint_backs_up_lookup(
        self, session_factory, habit_factory, user, load_habit, monkeypatch
    ):
        """A duplicate that slips past the lookup still fails cleanly."""
        habit = habit_factory()
        service.create_completion(
            session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, now=NOW
        )
        monkeypatch.setattr(
            SQLModelCompletionRepository, "get_by_habit_and_date", lambda self, habit_id, day: None
        )

        with pytest.raises(AlreadyExistsError):
            service.create_completion(
                session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, now=NOW
            )

        assert len(completion_rows(session_factory)) == 1
        assert load_habit(habit.id).total_completions == 1

    def test_missing_habit(self, session_factory, user):
        with pytest.raises(NotFoundError):
            service.create_completion(
                session_factory, habit_id="missing", user_id=user.id, completion_date=TODAY
            )

    def test_other_users_habit_is_forbidden_and_nothing_is_written(
        self, session_factory, habit_factory, other_user, load_habit
    ):
        habit = habit_factory(current_streak=1, best_streak=1, total_completions=1)

        with pytest.raises(ForbiddenError):
            service.create_completion(
                session_factory,
                habit_id=habit.id,
                user_id=other_user.id,
                completion_date=TODAY,
                now=NOW,
            )

        stored = load_habit(habit.id)
        assert completion_rows(session_factory) == []
        assert (stored.current_streak, stored.total_completions) == (1, 1)
        assert stored.updated_at == habit.updated_at

    def test_ownership_is_checked_before_date(self, session_factory, habit_factory, other_user):
        habit = habit_factory()

        with pytest.raises(ForbiddenError):
            service.create_completion(
                session_factory, habit_id=habit.id, user_id=other_user.id, completion_date="nope"
            )

    def test_malformed_date(self, session_factory, habit_factory, user):
        habit = habit_factory()

        with pytest.raises(InvalidInputError):
            service.create_completion(
                session_factory, habit_id=habit.id, user_id=user.id, completion_date="2024-13-01"
            )

    def test_invalid_count(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory()

        with pytest.raises(InvalidInputError):
            service.create_completion(
                session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, count=0
            )

        assert load_habit(habit.id).total_completions == 0

    def test_habit_vanishing_mid_transaction_aborts(
        self, session_factory, habit_factory, user, monkeypatch
    ):
        habit = habit_factory()
        monkeypatch.setattr(SQLModelHabitRepository, "update_stats", lambda self, h: 0)

        with pytest.raises(NotFoundError):
            service.create_completion(
                session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, now=NOW
            )

        assert completion_rows(session_factory) == []

    def test_database_error_rolls_back_insert(
        self, session_factory, habit_factory, user, load_habit, monkeypatch
    ):
        habit = habit_factory()

        def failing_update(self, h):
            raise OperationalError("UPDATE habit", {}, Exception("disk I/O error"))

        monkeypatch.setattr(SQLModelHabitRepository, "update_stats", failing_update)

        with pytest.raises(PersistenceError):
            service.create_completion(
                session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, now=NOW
            )

        assert completion_rows(session_factory) == []
        assert load_habit(habit.id).total_completions == 0

    def test_expired_deadline_rolls_back(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory()

        with pytest.raises(DeadlineExceededError):
            service.create_completion(
                session_factory,
                habit_id=habit.id,
                user_id=user.id,
                completion_date=TODAY,
                now=NOW,
                deadline=time.monotonic() - 1,
            )

        assert completion_rows(session_factory) == []
        assert load_habit(habit.id).total_completions == 0


class TestUpdateCompletion:
    def test_count_change_shifts_total_by_delta(
        self, session_factory, habit_factory, completion_factory, user, load_habit
    ):
        habit = habit_factory(total_completions=10)
        completion = completion_factory(habit, completion_date=TODAY, count=2)

        updated = service.update_completion(
            session_factory, completion_id=completion.id, user_id=user.id, count=5
        )

        assert updated.count == 5
        assert load_habit(habit.id).total_completions == 13

    def test_lower_count_never_drops_total_below_zero(
        self, session_factory, habit_factory, completion_factory, user, load_habit
    ):
        habit = habit_factory(total_completions=1)
        completion = completion_factory(habit, completion_date=TODAY, count=4)

        service.update_completion(session_factory, completion_id=completion.id, user_id=user.id, count=1)

        assert load_habit(habit.id).total_completions == 0

    def test_notes_only_leaves_totals_and_streak(
        self, session_factory, habit_factory, completion_factory, user, load_habit, load_completion
    ):
        habit = habit_factory(total_completions=3, current_streak=2, best_streak=2)
        completion = completion_factory(habit, completion_date=TODAY, count=3)

        service.update_completion(
            session_factory, completion_id=completion.id, user_id=user.id, notes="  evening run "
        )

        stored = load_habit(habit.id)
        assert load_completion(completion.id).notes == "evening run"
        assert load_completion(completion.id).count == 3
        assert (stored.total_completions, stored.current_streak) == (3, 2)

    def test_empty_notes_clear_them(
        self, session_factory, habit_factory, completion_factory, user, load_completion
    ):
        habit = habit_factory()
        completion = completion_factory(habit, completion_date=TODAY, notes="old")

        service.update_completion(session_factory, completion_id=completion.id, user_id=user.id, notes="")

        assert load_completion(completion.id).notes is None

    def test_invalid_count_writes_nothing(
        self, session_factory, habit_factory, completion_factory, user, load_habit, load_completion
    ):
        habit = habit_factory(total_completions=2)
        completion = completion_factory(habit, completion_date=TODAY, count=2, notes="keep")

        with pytest.raises(InvalidInputError):
            service.update_completion(
                session_factory, completion_id=completion.id, user_id=user.id, count=0, notes="new"
            )

        stored = load_completion(completion.id)
        assert (stored.count, stored.notes) == (2, "keep")
        assert load_habit(habit.id).total_completions == 2

    def test_missing_completion(self, session_factory, user):
        with pytest.raises(NotFoundError):
            service.update_completion(session_factory, completion_id="missing", user_id=user.id, count=2)

    def test_other_user_is_forbidden(
        self, session_factory, habit_factory, completion_factory, other_user, load_completion
    ):
        habit = habit_factory()
        completion = completion_factory(habit, completion_date=TODAY)

        with pytest.raises(ForbiddenError):
            service.update_completion(
                session_factory, completion_id=completion.id, user_id=other_user.id, count=9
            )

        assert load_completion(completion.id).count == 1

    def test_failed_habit_write_keeps_completion(
        self, session_factory, habit_factory, completion_factory, user, load_completion, monkeypatch
    ):
        habit = habit_factory(total_completions=1)
        completion = completion_factory(habit, completion_date=TODAY)
        monkeypatch.setattr(SQLModelHabitRepository, "update_stats", lambda self, h: 0)

        with pytest.raises(NotFoundError):
            service.update_completion(session_factory, completion_id=completion.id, user_id=user.id, count=4)

        assert load_completion(completion.id).count == 1


class TestDeleteCompletion:
    def test_total_drops_by_count(
        self, session_factory, habit_factory, completion_factory, user, load_habit, load_completion
    ):
        habit = habit_factory(total_completions=5)
        completion = completion_factory(habit, completion_date=TODAY, count=3)

        service.delete_completion(session_factory, completion_id=completion.id, user_id=user.id)

        assert load_completion(completion.id) is None
        assert load_habit(habit.id).total_completions == 2

    def test_total_floors_at_zero(
        self, session_factory, habit_factory, completion_factory, user, load_habit
    ):
        habit = habit_factory(total_completions=0)
        completion = completion_factory(habit, completion_date=TODAY, count=3)

        service.delete_completion(session_factory, completion_id=completion.id, user_id=user.id)

        assert load_habit(habit.id).total_completions == 0

    def test_streak_is_not_reversed(self, session_factory, habit_factory, user, load_habit):
        habit = habit_factory()
        completion = service.create_completion(
            session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, now=NOW
        )

        service.delete_completion(session_factory, completion_id=completion.id, user_id=user.id)

        stored = load_habit(habit.id)
        assert stored.total_completions == 0
        assert (stored.current_streak, stored.best_streak) == (1, 1)

    def test_missing_completion(self, session_factory, user):
        with pytest.raises(NotFoundError):
            service.delete_completion(session_factory, completion_id="missing", user_id=user.id)

    def test_other_user_is_forbidden(
        self, session_factory, habit_factory, completion_factory, other_user, load_completion
    ):
        habit = habit_factory()
        completion = completion_factory(habit, completion_date=TODAY)

        with pytest.raises(ForbiddenError):
            service.delete_completion(session_factory, completion_id=completion.id, user_id=other_user.id)

        assert load_completion(completion.id) is not None

    def test_zero_rows_deleted_aborts(
        self, session_factory, habit_factory, completion_factory, user, load_habit, monkeypatch
    ):
        habit = habit_factory(total_completions=2)
        completion = completion_factory(habit, completion_date=TODAY, count=2)
        monkeypatch.setattr(SQLModelCompletionRepository, "delete", lambda self, cid: 0)

        with pytest.raises(NotFoundError):
            service.delete_completion(session_factory, completion_id=completion.id, user_id=user.id)

        assert load_habit(habit.id).total_completions == 2


class TestReads:
    def test_get_completion_checks_owner(
        self, session_factory, habit_factory, completion_factory, user, other_user
    ):
        completion = completion_factory(habit_factory(), completion_date=TODAY)

        assert service.get_completion(
            session_factory, completion_id=completion.id, user_id=user.id
        ).id == completion.id
        with pytest.raises(ForbiddenError):
            service.get_completion(session_factory, completion_id=completion.id, user_id=other_user.id)
        with pytest.raises(NotFoundError):
            service.get_completion(session_factory, completion_id="missing", user_id=user.id)

    def test_list_is_scoped_to_user_and_newest_first(
        self, session_factory, habit_factory, completion_factory, user, other_user
    ):
        mine = habit_factory()
        theirs = habit_factory(owner=other_user)
        for offset in (3, 1, 2):
            completion_factory(mine, completion_date=TODAY - timedelta(days=offset))
        completion_factory(theirs, completion_date=TODAY)

        page = service.list_completions(session_factory, user_id=user.id)

        assert [c.completion_date for c in page.items] == [
            TODAY - timedelta(days=1),
            TODAY - timedelta(days=2),
            TODAY - timedelta(days=3),
        ]
        assert (page.total, page.limit, page.offset) == (3, 50, 0)

    def test_list_filters_and_paginates(
        self, session_factory, habit_factory, completion_factory, user
    ):
        first = habit_factory(name="First")
        second = habit_factory(name="Second")
        for offset in range(5):
            completion_factory(first, completion_date=TODAY - timedelta(days=offset))
        completion_factory(second, completion_date=TODAY)

        page = service.list_completions(
            session_factory,
            user_id=user.id,
            habit_id=first.id,
            start_date=(TODAY - timedelta(days=3)).isoformat(),
            end_date=TODAY - timedelta(days=1),
            limit=2,
            offset=1,
        )

        assert page.total == 3
        assert [c.completion_date for c in page.items] == [
            TODAY - timedelta(days=2),
            TODAY - timedelta(days=3),
        ]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"limit": 0},
            {"limit": 1001},
            {"offset": -1},
            {"start_date": "01-01-2024"},
            {"start_date": "2024-02-01", "end_date": "2024-01-01"},
        ],
    )
    def test_list_rejects_bad_arguments(self, session_factory, user, kwargs):
        with pytest.raises(InvalidInputError):
            service.list_completions(session_factory, user_id=user.id, **kwargs)

    def test_list_habit_completions_checks_owner_first(
        self, session_factory, habit_factory, completion_factory, user, other_user
    ):
        habit = habit_factory()
        completion_factory(habit, completion_date=TODAY)
        completion_factory(habit, completion_date=YESTERDAY)

        page = service.list_habit_completions(session_factory, habit_id=habit.id, user_id=user.id)

        assert page.total == 2
        assert [c.completion_date for c in page.items] == [TODAY, YESTERDAY]
        with pytest.raises(ForbiddenError):
            service.list_habit_completions(session_factory, habit_id=habit.id, user_id=other_user.id)
        with pytest.raises(NotFoundError):
            service.list_habit_completions(session_factory, habit_id="missing", user_id=user.id)


def test_weekly_habit_end_to_end(session_factory, user, load_habit):
    """Create a weekly habit, complete it on Monday, amend the notes, then delete."""

    habit = habit_service.create_habit(
        session_factory,
        user_id=user.id,
        name="Long run",
        color="#00AA55",
        frequency="weekly",
        target_days=["monday", "friday"],
    )
    assert TODAY.weekday() == 0

    completion = service.create_completion(
        session_factory, habit_id=habit.id, user_id=user.id, completion_date=TODAY, count=1, now=NOW
    )
    stored = load_habit(habit.id)
    assert (stored.total_completions, stored.current_streak) == (1, 1)

    service.update_completion(
        session_factory, completion_id=completion.id, user_id=user.id, notes="hilly route"
    )
    assert load_habit(habit.id).total_completions == 1

    service.delete_completion(session_factory, completion_id=completion.id, user_id=user.id)
    assert load_habit(habit.id).total_completions == 0
