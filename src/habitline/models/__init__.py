"""SQLModel table exports."""

from .completion import HabitCompletion
from .habit import Habit
from .user import User

__all__ = [
    "Habit",
    "HabitCompletion",
    "User",
]
