"""User lookup and Google sign-in registration."""

from __future__ import annotations

import uuid
from typing import Optional

from ..domain.repositories import UserRepository
from ..errors import NotFoundError
from ..infra.database import SessionFactory, transaction
from ..infra.repositories import SQLModelUserRepository
from ..logging_config import get_logger
from ..models.user import User
from .google_oauth import GoogleUserInfo

logger = get_logger("services.auth")


def login_or_register_google_user(
    session_factory: SessionFactory,
    info: GoogleUserInfo,
    *,
    deadline: Optional[float] = None,
) -> User:
    """Return the user linked to a Google account, creating one on first sign-in."""

    with transaction(session_factory, deadline=deadline) as session:
        repo: UserRepository = SQLModelUserRepository(session)
        user = repo.get_by_google_id(info.id)
        if user is not None:
            return user
        user = repo.create(
            User(
                id=str(uuid.uuid4()),
                google_id=info.id,
                email=info.email,
                name=info.name,
                picture=info.picture,
            )
        )

    logger.info("User registered", extra={"user_id": user.id})
    return user


def get_user(session_factory: SessionFactory, user_id: str) -> User:
    """Fetch a user by id."""
    with session_factory() as session:
        user = SQLModelUserRepository(session).get_by_id(user_id)
    if user is None:
        raise NotFoundError("user not found")
    return user


__all__ = ["get_user", "login_or_register_google_user"]
