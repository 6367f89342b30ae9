"""User repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ...models.user import User


@runtime_checkable
class UserRepository(Protocol):
    """Repository for user accounts."""

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve a user by ID."""
        ...

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        """Retrieve a user by their Google account ID."""
        ...

    def create(self, user: User) -> User:
        """Insert a new user."""
        ...
