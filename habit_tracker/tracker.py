import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from .dates import format_instant
from .errors import InvalidInput, NotFound, PersistenceFailure, parse_frequency
from .models import (
    DEFAULT_USER_NAME,
    Habit,
    HabitId,
    Result,
    Stats,
    UserProfile,
    round_half_up,
)
from .store import JsonStore

logger = logging.getLogger(__name__)

UNTITLED_HABIT = "Untitled Habit"
ATTENTION_THRESHOLD = 50

DEMO_HABITS = (
    ("Drink 8 glasses of water", 7, (0, 1)),
    ("Read for 30 minutes", 5, (0,)),
)


def _next_id(habits: List[Habit], last_id: int) -> int:
    ids = [h.id for h in habits if isinstance(h.id, int) and not isinstance(h.id, bool)]
    return max(ids + [last_id]) + 1


def _valid_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, str) and value != "")


class Tracker:
    def __init__(
        self,
        store: JsonStore,
        user_name: str = DEFAULT_USER_NAME,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.user_name = user_name
        self.clock = clock
        self.habits: List[Habit] = []
        self.profile = UserProfile(name=user_name)
        self._last_id = 0
        self.load()

    def _now(self, now: Optional[datetime] = None) -> datetime:
        return now if now is not None else self.clock()

    def _reset(self, name: str) -> None:
        self.habits = []
        self.profile = UserProfile(name=name, join_date=self._now().astimezone(timezone.utc))

    def load(self) -> None:
        try:
            document = self.store.load()
        except PersistenceFailure as exc:
            logger.error("Error loading data file, starting empty: %s", exc)
            self._reset(self.user_name)
            return
        if document is None:
            logger.info("No data file at %s, creating one.", self.store.path)
            self._reset(self.user_name)
            self.save()
            return
        self.profile = UserProfile.from_dict(document.get("userProfile"), self.user_name)
        raw_habits = document.get("habits")
        if not isinstance(raw_habits, list):
            raw_habits = []
        self.habits = [Habit.from_dict(item) for item in raw_habits if isinstance(item, dict)]
        self._last_id = _next_id(self.habits, 0) - 1
        self._repair_ids()
        self.profile.recompute(self.habits, self._now())

    def _fresh_id(self) -> int:
        # ids are matched as text by get(), so 5 and "5" count as the same id
        taken = {str(h.id) for h in self.habits}
        new_id = _next_id(self.habits, self._last_id)
        while str(new_id) in taken:
            new_id += 1
        self._last_id = new_id
        return new_id

    def _repair_ids(self) -> None:
        seen = set()
        for habit in self.habits:
            if not _valid_id(habit.id) or str(habit.id) in seen:
                new_id = self._fresh_id()
                logger.warning("Habit %r has a missing or repeated id %r; using %s.", habit.name, habit.id, new_id)
                habit.id = new_id
            seen.add(str(habit.id))

    def to_document(self) -> Dict[str, Any]:
        self.profile.recompute(self.habits, self._now())
        return {
            "userProfile": self.profile.to_dict(),
            "habits": [habit.to_dict() for habit in self.habits],
        }

    def save(self) -> bool:
        try:
            self.store.save(self.to_document())
        except PersistenceFailure as exc:
            logger.error("Error saving data file: %s", exc)
            return False
        return True

    def add_habit(self, name: Optional[str], target_frequency: Any) -> Habit:
        try:
            target = parse_frequency(target_frequency)
        except InvalidInput as exc:
            logger.warning("%s Using 0.", exc)
            target = 0
        habit = Habit(
            id=self._fresh_id(),
            name=(name or "").strip() or UNTITLED_HABIT,
            target_frequency=target,
            completions=[],
            created_at=format_instant(self._now()),
        )
        self.habits.append(habit)
        logger.info("Added habit #%s: %s", habit.id, habit.name)
        self.save()
        return habit

    def get(self, selector: Union[int, str]) -> Habit:
        if isinstance(selector, int) and not isinstance(selector, bool):
            if 1 <= selector <= len(self.habits):
                return self.habits[selector - 1]
            raise NotFound(f"No habit at position {selector}.")
        for habit in self.habits:
            if str(habit.id) == str(selector):
                return habit
        raise NotFound(f"No habit with id {selector!r}.")

    def complete_habit(self, selector: Union[int, HabitId], now: Optional[datetime] = None) -> Result:
        try:
            habit = self.get(selector)
        except NotFound as exc:
            logger.debug("%s", exc)
            return Result(False, "Habit not found", reason="not_found")
        if not habit.mark_complete(self._now(now)):
            return Result(
                False, f'Already marked today: "{habit.name}".', reason="already_marked", habit=habit
            )
        self.save()
        return Result(True, f'Recorded "{habit.name}" for today.', habit=habit)

    def delete_habit(self, position: int) -> Result:
        if isinstance(position, bool) or not isinstance(position, int):
            return Result(False, "Invalid index", reason="invalid_index")
        if position < 1 or position > len(self.habits):
            return Result(False, "Invalid index", reason="invalid_index")
        removed = self.habits.pop(position - 1)
        logger.info("Deleted habit #%s: %s", removed.id, removed.name)
        self.save()
        return Result(True, f'Habit "{removed.name}" deleted.', habit=removed)

    def clear_all(self) -> None:
        self._reset(self.profile.name)
        self.save()

    def list_all(self) -> List[Habit]:
        return list(self.habits)

    def list_active(self, now: Optional[datetime] = None) -> List[Habit]:
        now = self._now(now)
        return [h for h in self.habits if not h.is_satisfied_this_week(now)]

    def list_completed(self, now: Optional[datetime] = None) -> List[Habit]:
        now = self._now(now)
        return [h for h in self.habits if h.is_satisfied_this_week(now)]

    def first_incomplete(self, now: Optional[datetime] = None) -> Optional[Habit]:
        active = self.list_active(now)
        return active[0] if active else None

    def profile_snapshot(self, now: Optional[datetime] = None) -> UserProfile:
        self.profile.recompute(self.habits, self._now(now))
        return self.profile

    def stats(self, now: Optional[datetime] = None) -> Stats:
        now = self._now(now)
        progress = [h.progress_percent(now) for h in self.habits]
        average = round_half_up(sum(progress) / len(progress)) if progress else 0
        top_habit = None
        top_progress = 0
        for habit, percent in zip(self.habits, progress):
            if top_habit is None or percent > top_progress:
                top_habit, top_progress = habit, percent
        return Stats(
            names=[h.name for h in self.habits],
            average_progress=average,
            top_habit=top_habit,
            top_progress=top_progress,
            needs_attention=[h for h, p in zip(self.habits, progress) if p < ATTENTION_THRESHOLD],
        )

    def seed_demo_data(self, now: Optional[datetime] = None) -> bool:
        if self.habits:
            return False
        now = self._now(now)
        for name, target, days_ago in DEMO_HABITS:
            habit = Habit(
                id=self._fresh_id(),
                name=name,
                target_frequency=target,
                created_at=format_instant(now),
            )
            for offset in days_ago:
                habit.mark_complete(now - timedelta(days=offset))
            self.habits.append(habit)
        self.save()
        return True
