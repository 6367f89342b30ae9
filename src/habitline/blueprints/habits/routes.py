"""Habit routes."""

from __future__ import annotations

from flask import g, jsonify

from . import bp
from .forms import HabitCreateForm, HabitListQuery, HabitUpdateForm
from ...extensions import get_session_factory, request_deadline
from ...services import habits as habit_service
from ...web import login_required, parse_body, parse_query


@bp.post("")
@login_required
def create_habit():
    form = parse_body(HabitCreateForm)
    habit = habit_service.create_habit(
        get_session_factory(),
        user_id=g.user_id,
        deadline=request_deadline(),
        **form.model_dump(),
    )
    return jsonify({"habit": habit.to_dict()}), 201


@bp.get("")
@login_required
def list_habits():
    query = parse_query(HabitListQuery)
    habits = habit_service.list_habits(
        get_session_factory(), user_id=g.user_id, include_inactive=query.include_inactive
    )
    return jsonify({"habits": [habit.to_dict() for habit in habits]})


@bp.get("/<habit_id>")
@login_required
def get_habit(habit_id: str):
    habit = habit_service.get_habit(get_session_factory(), habit_id=habit_id, user_id=g.user_id)
    return jsonify({"habit": habit.to_dict()})


@bp.patch("/<habit_id>")
@login_required
def update_habit(habit_id: str):
    form = parse_body(HabitUpdateForm)
    habit = habit_service.update_habit(
        get_session_factory(),
        habit_id=habit_id,
        user_id=g.user_id,
        changes=form.changes(),
        deadline=request_deadline(),
    )
    return jsonify({"habit": habit.to_dict()})


@bp.delete("/<habit_id>")
@login_required
def delete_habit(habit_id: str):
    habit_service.delete_habit(
        get_session_factory(), habit_id=habit_id, user_id=g.user_id, deadline=request_deadline()
    )
    return "", 204
