"""Completion request models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ...services.completions import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class CompletionCreateForm(BaseModel):
    """Body of ``POST /api/habits/<id>/completions``.

    ``completion_date`` stays a string here; the service parses it so a bad
    date is reported like any other invalid input.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    completion_date: str = Field(min_length=1)
    count: int = Field(default=1, ge=1)
    notes: Optional[str] = Field(default=None, max_length=1000)


class CompletionUpdateForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    count: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = Field(default=None, max_length=1000)


class CompletionListQuery(BaseModel):
    """Query string of the completion listings."""

    model_config = ConfigDict(extra="ignore")

    habit_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)

    @field_validator("habit_id", "start_date", "end_date", "limit", "offset", mode="before")
    @classmethod
    def blank_means_unset(cls, value, info: ValidationInfo):
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value


__all__ = ["CompletionCreateForm", "CompletionListQuery", "CompletionUpdateForm"]
