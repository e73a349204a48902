# instrument_scheduler/slot_grid.py
"""
Fixed partition of a day into 10-minute slots.

Slot ``i`` covers minutes ``[i * 10, (i + 1) * 10)`` after midnight. Times on
the wire are ``"HH:MM"``; ``"24:00"`` names the end of the day and is only
meaningful as a range end.
"""
import re
from dataclasses import dataclass
from typing import Iterable, List

from instrument_scheduler.errors import InvalidRange, NonContiguousSelection, SelectionTooLarge

SLOT_MINUTES = 10
SLOTS_PER_DAY = 144
DAY_MINUTES = SLOT_MINUTES * SLOTS_PER_DAY
MAX_SELECTION_SLOTS = 3
MAX_RESERVATION_MINUTES = SLOT_MINUTES * MAX_SELECTION_SLOTS

_HHMM = re.compile(r"([0-9]{2}):([0-9]{2})")


@dataclass(frozen=True)
class TimeRange:
    """Half-open ``[start, end)`` span in minutes since midnight."""
    start: int
    end: int

    @classmethod
    def parse(cls, start: str, end: str, fields=("startTime", "endTime")) -> "TimeRange":
        return cls(parse_time(start, field=fields[0]), parse_time(end, field=fields[1]))

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and self.end > other.start

    def labels(self):
        return format_time(self.start), format_time(self.end)


def parse_time(value: str, field: str = "time") -> int:
    match = _HHMM.fullmatch(value or "")
    if not match:
        raise InvalidRange(f"Invalid time format '{value}' (HH:MM)", field=field)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise InvalidRange(f"Time '{value}' is outside the day", field=field)
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_start(slot: int) -> int:
    return slot * SLOT_MINUTES


def slot_of(minutes: int) -> int:
    return minutes // SLOT_MINUTES


def slot_labels() -> List[str]:
    """Start labels of every slot in the day, ``"00:00"`` through ``"23:50"``."""
    return [format_time(slot_start(slot)) for slot in range(SLOTS_PER_DAY)]


def validate_range(time_range: TimeRange) -> TimeRange:
    if time_range.start % SLOT_MINUTES or time_range.end % SLOT_MINUTES:
        raise InvalidRange("Times must be in 10-minute increments")
    if time_range.start < 0 or time_range.end > DAY_MINUTES:
        raise InvalidRange("Reservation must stay within a single day")
    if not 0 < time_range.duration <= MAX_RESERVATION_MINUTES:
        raise InvalidRange(
            f"Reservation must be between {SLOT_MINUTES} and {MAX_RESERVATION_MINUTES} minutes"
        )
    return time_range


def slots_for(time_range: TimeRange) -> List[int]:
    return [slot_of(m) for m in range(time_range.start, time_range.end, SLOT_MINUTES)]


def range_from_selection(slots: Iterable[int]) -> TimeRange:
    """
    Returns the range covering a set of slot indices.

    The slots must be contiguous once sorted and there may be at most
    MAX_SELECTION_SLOTS of them.
    """
    ordered = sorted(set(slots))
    if not ordered:
        raise InvalidRange("Select at least one slot")
    if ordered[0] < 0 or ordered[-1] >= SLOTS_PER_DAY:
        raise InvalidRange("Slot is outside the day")
    if len(ordered) > MAX_SELECTION_SLOTS:
        raise SelectionTooLarge(
            f"At most {MAX_SELECTION_SLOTS} consecutive slots ({MAX_RESERVATION_MINUTES} minutes) can be reserved"
        )
    for previous, current in zip(ordered, ordered[1:]):
        if current - previous != 1:
            raise NonContiguousSelection("Only consecutive time slots can be selected")
    return TimeRange(slot_start(ordered[0]), slot_start(ordered[-1] + 1))


def slots_from_labels(labels: Iterable[str]) -> List[int]:
    slots = []
    for label in labels:
        minutes = parse_time(label, field="slots")
        if minutes % SLOT_MINUTES or minutes >= DAY_MINUTES:
            raise InvalidRange(f"'{label}' is not the start of a slot", field="slots")
        slots.append(slot_of(minutes))
    return slots
