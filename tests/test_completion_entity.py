"""Tests for the HabitCompletion entity rules."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from habitline.errors import DomainValidationError
from habitline.models.completion import HabitCompletion


def make_completion(**overrides) -> HabitCompletion:
    fields = dict(
        id="completion-1",
        habit_id="habit-1",
        user_id="user-1",
        completion_date=date(2024, 3, 4),
        count=1,
    )
    fields.update(overrides)
    return HabitCompletion.create(**fields)


def test_create_sets_timestamps():
    completion = make_completion()

    assert completion.completed_at == completion.created_at
    assert completion.notes is None


def test_blank_notes_become_absent():
    assert make_completion(notes="  \t ").notes is None
    assert make_completion(notes=" done early ").notes == "done early"


def test_set_notes_uses_same_trim_rule():
    completion = make_completion(notes="first")

    completion.set_notes("   ")

    assert completion.notes is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": ""},
        {"habit_id": ""},
        {"user_id": ""},
        {"count": 0},
        {"count": -1},
        {"count": False},
        {"completion_date": None},
        {"completion_date": "2024-03-04"},
        {"completion_date": datetime(2024, 3, 4, 12, 0)},
    ],
)
def test_invalid_fields_are_rejected(overrides):
    with pytest.raises(DomainValidationError):
        make_completion(**overrides)


def test_to_dict_uses_iso_dates():
    data = make_completion(count=3).to_dict()

    assert data["completion_date"] == "2024-03-04"
    assert data["count"] == 3
