import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .models import DEFAULT_USER_NAME
from .reminder import DEFAULT_INTERVAL

logger = logging.getLogger(__name__)

DATA_PATH = "~/.habit-tracker.json"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    data_path: Path
    user_name: str = DEFAULT_USER_NAME
    reminder_interval: float = DEFAULT_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL


def _reminder_interval(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_INTERVAL
    try:
        value = float(raw)
    except ValueError:
        value = 0
    if value <= 0:
        logger.warning("Ignoring HABIT_TRACKER_REMINDER_SECONDS=%r; using %ss.", raw, DEFAULT_INTERVAL)
        return DEFAULT_INTERVAL
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        data_path=Path(env.get("HABIT_TRACKER_DATA") or DATA_PATH).expanduser(),
        user_name=env.get("HABIT_TRACKER_USER") or DEFAULT_USER_NAME,
        reminder_interval=_reminder_interval(env.get("HABIT_TRACKER_REMINDER_SECONDS")),
        log_level=(env.get("HABIT_TRACKER_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
