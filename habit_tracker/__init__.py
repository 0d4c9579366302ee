from .models import Habit, HabitStatus, Result, Stats, UserProfile
from .reminder import ReminderScheduler
from .store import JsonStore
from .tracker import Tracker

__version__ = "0.1.0"

__all__ = [
    "Habit",
    "HabitStatus",
    "JsonStore",
    "ReminderScheduler",
    "Result",
    "Stats",
    "Tracker",
    "UserProfile",
]
