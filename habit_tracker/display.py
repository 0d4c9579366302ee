from datetime import datetime
from typing import List, Optional

from .dates import to_local
from .models import Habit, Stats, UserProfile

RULE = "=" * 50
PROGRESS_BAR_LENGTH = 10


def progress_bar(percent: int, length: int = PROGRESS_BAR_LENGTH) -> str:
    percent = max(0, min(100, percent))
    filled = int(percent * length / 100 + 0.5)
    return "█" * filled + "░" * (length - filled)


def section(title: str, lines: List[str]) -> str:
    return "\n".join([RULE, title, RULE] + lines)


def render_profile(profile: UserProfile, now: Optional[datetime] = None) -> str:
    lines = [
        f"Name                : {profile.name}",
        f"Join date           : {to_local(profile.join_date).date().isoformat()}",
        f"Days joined         : {profile.days_since_join(now)} day(s)",
        f"Total habits        : {profile.total_habits}",
        f"Completed this week : {profile.completed_this_week}",
        RULE,
    ]
    return section("PROFILE", lines)


def render_habits(habits: List[Habit], now: Optional[datetime] = None) -> str:
    if not habits:
        return section("ALL HABITS", ["No habits yet. Add one first."])
    lines: List[str] = []
    for position, habit in enumerate(habits, start=1):
        done = habit.done_this_week(now)
        percent = habit.progress_percent(now)
        lines.extend(
            [
                f"{position}. [{habit.status(now).value}] {habit.name}",
                f"   Target: {habit.target_frequency}x/week",
                f"   Progress: {done}/{habit.target_frequency} ({percent}%)",
                f"   {progress_bar(percent)} {percent}%",
                "",
            ]
        )
    return section("ALL HABITS", lines)


def render_active(habits: List[Habit], now: Optional[datetime] = None) -> str:
    if not habits:
        return section("ACTIVE HABITS", ["Every habit hit its target this week!"])
    lines = [
        f"{position}. {h.name} - {h.done_this_week(now)}/{h.target_frequency} ({h.progress_percent(now)}%)"
        for position, h in enumerate(habits, start=1)
    ]
    return section("ACTIVE HABITS", lines)


def render_completed(habits: List[Habit], now: Optional[datetime] = None) -> str:
    if not habits:
        return section("COMPLETED HABITS", ["No habit has reached its target this week."])
    lines = [
        f"{position}. {h.name} - done ({h.done_this_week(now)}/{h.target_frequency})"
        for position, h in enumerate(habits, start=1)
    ]
    return section("COMPLETED HABITS", lines)


def render_stats(stats: Stats) -> str:
    lines = [
        f"Habit names      : {', '.join(stats.names) or '-'}",
        f"Average progress : {stats.average_progress}%",
    ]
    if stats.top_habit is not None:
        lines.append(f"Top habit        : {stats.top_habit.name} ({stats.top_progress}%)")
    needy = ", ".join(h.name for h in stats.needs_attention) or "-"
    lines.extend([f"Needs attention  : {needy}", RULE])
    return section("STATISTICS SUMMARY", lines)


def render_reminder(habit: Habit, now: Optional[datetime] = None) -> str:
    return "\n".join(
        [
            RULE,
            f'REMINDER: don\'t forget "{habit.name}"! '
            f"({habit.done_this_week(now)}/{habit.target_frequency})",
            RULE,
        ]
    )
