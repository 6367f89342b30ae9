"""User accounts created through Google sign-in."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlmodel import Field, SQLModel

from .habit import utcnow
from .types import timestamp_column


class User(SQLModel, table=True):
    """Application user identified by their Google account."""

    __tablename__: ClassVar[str] = "user"

    id: str = Field(primary_key=True, max_length=36)
    google_id: str = Field(nullable=False, unique=True, index=True, max_length=64)
    email: str = Field(nullable=False, index=True, max_length=255)
    name: str = Field(default="", max_length=255)
    picture: Optional[str] = Field(default=None, max_length=1024)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
            "created_at": self.created_at.isoformat(),
        }
