from typing import Any


class HabitTrackerError(Exception):
    pass


class NotFound(HabitTrackerError):
    pass


class InvalidInput(HabitTrackerError):
    pass


class PersistenceFailure(HabitTrackerError):
    pass


def _parse_int(raw: Any, label: str) -> int:
    if isinstance(raw, bool):
        raise InvalidInput(f"{label} must be a whole number, got {raw!r}.")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidInput(f"{label} must be a whole number, got {raw!r}.")
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            raise InvalidInput(f"{label} must be a whole number, got {raw!r}.") from None
    raise InvalidInput(f"{label} must be a whole number, got {raw!r}.")


def parse_frequency(raw: Any) -> int:
    """Parse a weekly target; raises InvalidInput for non-integers and negatives."""
    value = _parse_int(raw, "Target per week")
    if value < 0:
        raise InvalidInput(f"Target per week must be 0 or more, got {value}.")
    return value


def parse_position(raw: Any) -> int:
    value = _parse_int(raw, "Habit number")
    if value < 1:
        raise InvalidInput(f"Habit number must be at least 1, got {value}.")
    return value
