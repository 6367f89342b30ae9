"""Repository protocol definitions for domain layer."""

from .completion import CompletionRepository
from .habit import HabitRepository
from .user import UserRepository

__all__ = [
    "CompletionRepository",
    "HabitRepository",
    "UserRepository",
]
