"""Completion routes."""

from __future__ import annotations

from flask import g, jsonify

from . import bp
from .forms import CompletionCreateForm, CompletionListQuery, CompletionUpdateForm
from ...extensions import get_session_factory, request_deadline
from ...services import completions as completion_service
from ...web import login_required, parse_body, parse_query


@bp.post("/habits/<habit_id>/completions")
@login_required
def create_completion(habit_id: str):
    form = parse_body(CompletionCreateForm)
    completion = completion_service.create_completion(
        get_session_factory(),
        habit_id=habit_id,
        user_id=g.user_id,
        completion_date=form.completion_date,
        count=form.count,
        notes=form.notes,
        deadline=request_deadline(),
    )
    return jsonify({"completion": completion.to_dict()}), 201


@bp.get("/habits/<habit_id>/completions")
@login_required
def list_habit_completions(habit_id: str):
    query = parse_query(CompletionListQuery)
    page = completion_service.list_habit_completions(
        get_session_factory(),
        habit_id=habit_id,
        user_id=g.user_id,
        start_date=query.start_date,
        end_date=query.end_date,
        limit=query.limit,
        offset=query.offset,
    )
    return jsonify(page.to_dict())


@bp.get("/completions")
@login_required
def list_completions():
    query = parse_query(CompletionListQuery)
    page = completion_service.list_completions(
        get_session_factory(),
        user_id=g.user_id,
        habit_id=query.habit_id,
        start_date=query.start_date,
        end_date=query.end_date,
        limit=query.limit,
        offset=query.offset,
    )
    return jsonify(page.to_dict())


@bp.get("/completions/<completion_id>")
@login_required
def get_completion(completion_id: str):
    completion = completion_service.get_completion(
        get_session_factory(), completion_id=completion_id, user_id=g.user_id
    )
    return jsonify({"completion": completion.to_dict()})


@bp.patch("/completions/<completion_id>")
@login_required
def update_completion(completion_id: str):
    form = parse_body(CompletionUpdateForm)
    completion = completion_service.update_completion(
        get_session_factory(),
        completion_id=completion_id,
        user_id=g.user_id,
        count=form.count,
        notes=form.notes,
        deadline=request_deadline(),
    )
    return jsonify({"completion": completion.to_dict()})


@bp.delete("/completions/<completion_id>")
@login_required
def delete_completion(completion_id: str):
    completion_service.delete_completion(
        get_session_factory(),
        completion_id=completion_id,
        user_id=g.user_id,
        deadline=request_deadline(),
    )
    return "", 204
