"""Domain value types and persistence contracts."""

from .schedule import Frequency, TargetDaySchedule

__all__ = ["Frequency", "TargetDaySchedule"]
