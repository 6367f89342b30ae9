"""Habit request models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...domain.schedule import Frequency

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class HabitCreateForm(BaseModel):
    """Body of ``POST /api/habits``."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    motivation: Optional[str] = Field(default=None, max_length=1000)
    color: str = Field(pattern=COLOR_PATTERN)
    category: Optional[str] = Field(default=None, max_length=100)
    frequency: Frequency
    target_count: int = Field(default=1, ge=1)
    target_days: Optional[Any] = None


class HabitUpdateForm(BaseModel):
    """Body of ``PATCH /api/habits/<id>``; only supplied fields change."""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    motivation: Optional[str] = Field(default=None, max_length=1000)
    color: Optional[str] = Field(default=None, pattern=COLOR_PATTERN)
    category: Optional[str] = Field(default=None, max_length=100)
    frequency: Optional[Frequency] = None
    target_count: Optional[int] = Field(default=None, ge=1)
    target_days: Optional[Any] = None
    is_active: Optional[bool] = None

    @field_validator("name", "color", "frequency", "target_count", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        """These fields may be omitted but not cleared."""

        if value is None:
            raise ValueError("Field may not be null.")
        return value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class HabitListQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    include_inactive: bool = True


__all__ = ["HabitCreateForm", "HabitListQuery", "HabitUpdateForm"]
