"""SQLModel implementation of User repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session, select

from ...models.user import User


class SQLModelUserRepository:
    """SQLModel-based user repository bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: str) -> Optional[User]:
        obj = self.session.get(User, user_id)
        if obj:
            self.session.expunge(obj)
        return obj

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        obj = self.session.exec(select(User).where(User.google_id == google_id)).first()
        if obj:
            self.session.expunge(obj)
        return obj

    def create(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        self.session.expunge(user)
        return user
