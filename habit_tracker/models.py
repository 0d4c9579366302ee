import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from .dates import format_instant, in_window, is_same_day, parse_instant, start_of_week
from .errors import InvalidInput, parse_frequency

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "User"
DEFAULT_TARGET = 7

HabitId = Union[int, str]


class HabitStatus(Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.astimezone()
    return value


@dataclass
class Habit:
    id: HabitId
    name: str
    target_frequency: int = DEFAULT_TARGET
    completions: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=format_instant)

    def mark_complete(self, now: Optional[datetime] = None) -> bool:
        today = format_instant(now)
        if any(is_same_day(existing, today) for existing in self.completions):
            return False
        self.completions.append(today)
        return True

    def completions_in_window(self, window_start: datetime) -> List[str]:
        return [value for value in self.completions if in_window(value, window_start)]

    def count_in_window(self, window_start: datetime) -> int:
        return len(self.completions_in_window(window_start))

    def done_this_week(self, now: Optional[datetime] = None) -> int:
        return self.count_in_window(start_of_week(now))

    def progress_percent(self, now: Optional[datetime] = None) -> int:
        if self.target_frequency <= 0:
            return 0
        ratio = min(1.0, self.done_this_week(now) / self.target_frequency)
        return round_half_up(ratio * 100)

    def is_satisfied_this_week(self, now: Optional[datetime] = None) -> bool:
        return self.done_this_week(now) >= self.target_frequency

    def status(self, now: Optional[datetime] = None) -> HabitStatus:
        if self.is_satisfied_this_week(now):
            return HabitStatus.COMPLETED
        return HabitStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "targetFrequency": self.target_frequency,
            "completions": list(self.completions),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        try:
            target = parse_frequency(data.get("targetFrequency", DEFAULT_TARGET))
        except InvalidInput:
            logger.warning("Habit %r has an invalid target; using 0.", data.get("id"))
            target = 0
        created_at = data.get("createdAt")
        if parse_instant(created_at) is None:
            created_at = format_instant()
        return cls(
            id=data.get("id"),
            name=str(data.get("name") or "New Habit"),
            target_frequency=target,
            completions=_normalize_completions(data.get("completions")),
            created_at=created_at,
        )


def _normalize_completions(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    kept: List[str] = []
    for value in raw:
        if not isinstance(value, str) or parse_instant(value) is None:
            logger.warning("Dropping malformed completion %r.", value)
            continue
        if any(is_same_day(existing, value) for existing in kept):
            logger.warning("Dropping duplicate completion %s.", value)
            continue
        kept.append(value)
    return kept


@dataclass
class UserProfile:
    name: str = DEFAULT_USER_NAME
    join_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    total_habits: int = 0
    completed_this_week: int = 0

    def recompute(self, habits: Iterable[Habit], now: Optional[datetime] = None) -> None:
        # completed_this_week is a sum of completions, not a count of satisfied habits
        habits = list(habits)
        start = start_of_week(now)
        self.total_habits = len(habits)
        self.completed_this_week = sum(habit.count_in_window(start) for habit in habits)

    def days_since_join(self, now: Optional[datetime] = None) -> int:
        elapsed = _aware(now) - _aware(self.join_date)
        return max(0, math.floor(elapsed.total_seconds() / 86400))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "joinDate": format_instant(self.join_date),
            "totalHabits": self.total_habits,
            "completedThisWeek": self.completed_this_week,
        }

    @classmethod
    def from_dict(
        cls, data: Optional[Dict[str, Any]], default_name: str = DEFAULT_USER_NAME
    ) -> "UserProfile":
        data = data if isinstance(data, dict) else {}
        join_date = parse_instant(data.get("joinDate"))
        profile = cls(name=str(data.get("name") or default_name))
        if join_date is not None:
            profile.join_date = _aware(join_date)
        for key, attr in (("totalHabits", "total_habits"), ("completedThisWeek", "completed_this_week")):
            value = data.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(profile, attr, value)
        return profile


@dataclass
class Result:
    ok: bool
    message: str
    reason: Optional[str] = None
    habit: Optional[Habit] = None


@dataclass
class Stats:
    names: List[str]
    average_progress: int
    top_habit: Optional[Habit]
    top_progress: int
    needs_attention: List[Habit]
