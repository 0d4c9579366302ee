import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Dict, List, Optional

from .config import Settings, load_settings
from .console import Console
from .display import (
    RULE,
    render_active,
    render_completed,
    render_habits,
    render_profile,
    render_stats,
)
from .errors import InvalidInput, parse_position
from .models import Result
from .reminder import ReminderScheduler, make_reminder_tick
from .store import JsonStore
from .tracker import Tracker

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ACTION_PAUSE = 0.2


def _report(result: Result) -> int:
    print(result.message)
    return 0 if result.ok else 1


def _position(raw: str) -> Optional[int]:
    try:
        return parse_position(raw)
    except InvalidInput as exc:
        print(exc)
        return None


def cmd_add(args: argparse.Namespace, tracker: Tracker) -> int:
    habit = tracker.add_habit(args.name, args.target)
    print(f"Added habit #{habit.id}: {habit.name} ({habit.target_frequency}x/week)")
    return 0


def cmd_list(args: argparse.Namespace, tracker: Tracker) -> int:
    if args.active:
        print(render_active(tracker.list_active()))
    elif args.completed:
        print(render_completed(tracker.list_completed()))
    else:
        print(render_habits(tracker.list_all()))
    return 0


def cmd_done(args: argparse.Namespace, tracker: Tracker) -> int:
    if args.id:
        return _report(tracker.complete_habit(args.selector))
    position = _position(args.selector)
    if position is None:
        return 1
    return _report(tracker.complete_habit(position))


def cmd_delete(args: argparse.Namespace, tracker: Tracker) -> int:
    return _report(tracker.delete_habit(args.position))


def cmd_profile(_: argparse.Namespace, tracker: Tracker) -> int:
    print(render_profile(tracker.profile_snapshot()))
    return 0


def cmd_stats(_: argparse.Namespace, tracker: Tracker) -> int:
    print(render_stats(tracker.stats()))
    return 0


def cmd_clear(args: argparse.Namespace, tracker: Tracker) -> int:
    if not args.yes:
        print("This deletes every habit. Re-run with --yes to confirm.")
        return 1
    tracker.clear_all()
    print("All habits cleared.")
    return 0


def cmd_seed(_: argparse.Namespace, tracker: Tracker) -> int:
    if not tracker.seed_demo_data():
        print("Demo data is only added when there are no habits.")
        return 1
    print("Demo data added.")
    return 0


# Interactive menu

MenuAction = Callable[[Tracker, Console], Awaitable[None]]


async def _menu_add(tracker: Tracker, console: Console) -> None:
    name = await console.ask("Habit name: ")
    target = await console.ask("Target per week (number): ")
    habit = tracker.add_habit(name, target)
    console.write(f"Habit added: {habit.name} ({habit.target_frequency}x/week)\n")


async def _menu_pick(tracker: Tracker, console: Console, prompt: str) -> Optional[int]:
    console.write(render_habits(tracker.list_all()))
    if not tracker.habits:
        return None
    raw = await console.ask(prompt)
    try:
        return parse_position(raw)
    except InvalidInput as exc:
        console.write(f"{exc}\n")
        return None


async def _menu_complete(tracker: Tracker, console: Console) -> None:
    position = await _menu_pick(tracker, console, "Habit number to mark done today: ")
    if position is not None:
        console.write(tracker.complete_habit(position).message + "\n")


async def _menu_delete(tracker: Tracker, console: Console) -> None:
    position = await _menu_pick(tracker, console, "Habit number to delete: ")
    if position is not None:
        console.write(tracker.delete_habit(position).message + "\n")


def _show(render: Callable[[Tracker], str]) -> MenuAction:
    async def action(tracker: Tracker, console: Console) -> None:
        console.write(render(tracker) + "\n")

    return action


MENU: List[tuple] = [
    ("1", "View profile", _show(lambda t: render_profile(t.profile_snapshot()))),
    ("2", "View all habits", _show(lambda t: render_habits(t.list_all()))),
    ("3", "View active habits", _show(lambda t: render_active(t.list_active()))),
    ("4", "View completed habits", _show(lambda t: render_completed(t.list_completed()))),
    ("5", "Add a habit", _menu_add),
    ("6", "Mark a habit done today", _menu_complete),
    ("7", "Delete a habit", _menu_delete),
    ("8", "View statistics", _show(lambda t: render_stats(t.stats()))),
]
MENU_ACTIONS: Dict[str, MenuAction] = {key: action for key, _, action in MENU}


def menu_banner() -> str:
    lines = [RULE, "HABIT TRACKER - MAIN MENU", RULE]
    lines.extend(f"{key}. {label}" for key, label, _ in MENU)
    lines.extend(["0. Exit", RULE])
    return "\n".join(lines)


async def run_menu(
    tracker: Tracker,
    console: Console,
    scheduler: ReminderScheduler,
    interval: float,
) -> None:
    if not tracker.habits:
        answer = await console.ask("Seed demo data? (y/n): ")
        if answer.lower() == "y":
            tracker.seed_demo_data()
            console.write("Demo data added.\n")
    scheduler.start(interval, make_reminder_tick(tracker, console.notify))
    try:
        while True:
            console.write(menu_banner())
            choice = await console.ask(f"Choose (0-{len(MENU)}): ")
            if choice == "0":
                console.write("Goodbye!")
                return
            action = MENU_ACTIONS.get(choice)
            if action is None:
                console.write(f"Invalid choice. Enter a number from 0 to {len(MENU)}.\n")
            else:
                await action(tracker, console)
            await asyncio.sleep(ACTION_PAUSE)
    finally:
        scheduler.stop()


def cmd_menu(args: argparse.Namespace, tracker: Tracker) -> int:
    interval = args.interval or args.settings.reminder_interval
    print(RULE)
    print("WELCOME TO HABIT TRACKER")
    print(RULE + "\n")
    try:
        asyncio.run(run_menu(tracker, Console(), ReminderScheduler(), interval))
    except (EOFError, KeyboardInterrupt):
        print("\nGoodbye!")
    return 0


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {raw!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Weekly habit tracker for the terminal")
    parser.add_argument("--data", help="Path to the JSON data file")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Logging level")
    sub = parser.add_subparsers(dest="command")

    add = sub.add_parser("add", help="Add a new habit")
    add.add_argument("name", help="Habit name")
    add.add_argument("target", nargs="?", default="7", help="Completions needed per week (default 7)")
    add.set_defaults(func=cmd_add)

    list_cmd = sub.add_parser("list", help="List habits with this week's progress")
    which = list_cmd.add_mutually_exclusive_group()
    which.add_argument("--active", action="store_true", help="Only habits still short of their target")
    which.add_argument("--completed", action="store_true", help="Only habits that hit their target")
    list_cmd.set_defaults(func=cmd_list)

    done = sub.add_parser("done", help="Mark a habit done for today")
    done.add_argument("selector", help="Habit number from `list` (or id with --id)")
    done.add_argument("--id", action="store_true", help="Treat the selector as a habit id")
    done.set_defaults(func=cmd_done)

    delete = sub.add_parser("delete", help="Delete a habit")
    delete.add_argument("position", type=int, help="Habit number from `list`")
    delete.set_defaults(func=cmd_delete)

    profile = sub.add_parser("profile", help="Show the user profile")
    profile.set_defaults(func=cmd_profile)

    stats = sub.add_parser("stats", help="Show a statistics summary")
    stats.set_defaults(func=cmd_stats)

    clear = sub.add_parser("clear", help="Delete every habit and restart the profile")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing all data")
    clear.set_defaults(func=cmd_clear)

    seed = sub.add_parser("seed", help="Add demo habits to an empty tracker")
    seed.set_defaults(func=cmd_seed)

    menu = sub.add_parser("menu", help="Interactive menu with periodic reminders")
    menu.add_argument("--interval", type=_positive_float, help="Seconds between reminders")
    menu.set_defaults(func=cmd_menu)

    return parser


def configure_logging(level: str) -> None:
    if level not in LOG_LEVELS:
        level = "WARNING"
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = settings or load_settings()
    configure_logging(args.log_level or settings.log_level)
    if args.command is None:
        args = parser.parse_args((sys.argv[1:] if argv is None else list(argv)) + ["menu"])
    args.settings = settings
    store = JsonStore(args.data or settings.data_path)
    logger.debug("Using data file %s", store.path)
    tracker = Tracker(store, user_name=settings.user_name)
    return args.func(args, tracker)


if __name__ == "__main__":
    sys.exit(main())
