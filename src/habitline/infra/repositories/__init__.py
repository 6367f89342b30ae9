"""Concrete repository implementations using SQLModel."""

from .completion import SQLModelCompletionRepository
from .habit import SQLModelHabitRepository
from .user import SQLModelUserRepository

__all__ = [
    "SQLModelCompletionRepository",
    "SQLModelHabitRepository",
    "SQLModelUserRepository",
]
