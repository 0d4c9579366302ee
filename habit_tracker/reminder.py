import asyncio
import logging
from typing import Callable, Optional

from .display import render_reminder

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 10.0

Tick = Callable[[], None]


class ReminderScheduler:
    """Periodic, cancellable reminder timer on the running asyncio loop.

    Ticks run one after another on the loop thread, so a tick never overlaps
    another tick or the code awaiting input.
    """

    def __init__(self):
        self._task: Optional[asyncio.Task] = None
        self.interval: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval: float, tick: Tick) -> bool:
        if self.running:
            return False
        if interval <= 0:
            raise ValueError("Reminder interval must be positive.")
        self.interval = interval
        self._task = asyncio.get_running_loop().create_task(self._run(interval, tick))
        logger.debug("Reminders started every %ss", interval)
        return True

    def stop(self) -> bool:
        if not self.running:
            self._task = None
            return False
        self._task.cancel()
        self._task = None
        logger.debug("Reminders stopped")
        return True

    async def _run(self, interval: float, tick: Tick) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                tick()
            except Exception:
                logger.exception("Reminder tick failed")


def make_reminder_tick(tracker, notify: Callable[[str], None]) -> Tick:
    def tick() -> None:
        habit = tracker.first_incomplete()
        if habit is None:
            return
        notify(render_reminder(habit, tracker.clock()))

    return tick
