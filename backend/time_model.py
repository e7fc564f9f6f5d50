"""
Weekly time model for section meetings.

Raw meeting times arrive as compact "HHMM" strings ("0930", "1415").
They are converted to minutes-since-midnight so blocks can be compared
directly. A Block is one weekday-scoped interval derived from a section's
meeting entry; blocks are rebuilt from the section record whenever needed.
"""

from enum import Enum
from typing import NamedTuple


class Day(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def label(self) -> str:
        return self.value[:3].title()


# Only weekdays are scheduled; weekend flags are carried but ignored.
WEEKDAYS = (Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY, Day.FRIDAY)
DAY_ORDER = {day: i for i, day in enumerate(Day)}

_TRUTHY = {"true", "1", "yes", "y"}


class Block(NamedTuple):
    day: Day
    start: int
    end: int
    title: str
    crn: str
    room: str | None = None
    building: str | None = None
    type: str | None = None
    open: bool = True


def coerce_flag(value) -> bool:
    """Day/open flags may come through as bools, 0/1, or strings."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == value and bool(value)  # NaN -> False
    return str(value).strip().lower() in _TRUTHY


def parse_time(raw) -> int | None:
    """'0930' -> 570. Returns None when absent, too short, or non-numeric."""
    if raw is None:
        return None
    t = str(raw).strip()
    if len(t) < 3:
        return None
    hh, mm = t[:-2], t[-2:]
    if not (hh.isascii() and hh.isdecimal() and mm.isascii() and mm.isdecimal()):
        return None
    return int(hh) * 60 + int(mm)


def format_minutes(minutes) -> str:
    """570 -> '9:30 AM'. Non-integers render as ''."""
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        return ""
    hh, mm = divmod(minutes, 60)
    ampm = "PM" if hh % 24 >= 12 else "AM"
    hh = (hh + 11) % 12 + 1
    return f"{hh}:{mm:02d} {ampm}"


def format_time(raw) -> str:
    """'1330' -> '1:30 PM'. Unparseable strings come back unchanged."""
    if not raw:
        return ""
    minutes = parse_time(raw)
    if minutes is None:
        return str(raw)
    return format_minutes(minutes)


def blocks_for(section: dict) -> list[Block]:
    """
    Expand a section record into its weekday blocks.

    Meeting entries without a parseable begin and end time are skipped.
    Output order is meeting-entry order, then Monday..Friday.
    """
    out: list[Block] = []
    for meeting in section.get("meetingsFaculty") or []:
        mt = meeting.get("meetingTime") if isinstance(meeting, dict) else None
        if not mt:
            continue
        start = parse_time(mt.get("beginTime"))
        end = parse_time(mt.get("endTime"))
        if start is None or end is None:
            continue
        for day in WEEKDAYS:
            if coerce_flag(mt.get(day.value)):
                out.append(Block(
                    day=day,
                    start=start,
                    end=end,
                    title=section.get("courseTitle", ""),
                    crn=str(section.get("courseReferenceNumber", "")),
                    room=mt.get("room"),
                    building=mt.get("buildingDescription"),
                    type=mt.get("meetingScheduleType"),
                    open=coerce_flag(section.get("openSection")),
                ))
    return out


def earliest_start(blocks: list[Block]) -> float:
    """Earliest block start; sections without blocks sort last."""
    if not blocks:
        return float("inf")
    return min(b.start for b in blocks)


def overlap(a: Block, b: Block) -> bool:
    """Half-open intervals on the same day; touching endpoints do not overlap."""
    return a.day == b.day and a.start < b.end and b.start < a.end


def is_compatible(chosen: list[Block], candidate: list[Block]) -> bool:
    for c in candidate:
        for x in chosen:
            if overlap(c, x):
                return False
    return True


def sort_blocks(blocks: list[Block]) -> list[Block]:
    return sorted(blocks, key=lambda b: (DAY_ORDER[b.day], b.start))


def group_blocks_by_day(blocks: list[Block]) -> dict[Day, list[Block]]:
    """Weekly grid: each weekday mapped to its blocks, earliest first."""
    groups: dict[Day, list[Block]] = {day: [] for day in WEEKDAYS}
    for b in sort_blocks(blocks):
        if b.day in groups:
            groups[b.day].append(b)
    return groups


def block_to_dict(block: Block) -> dict:
    return {
        "day": block.day.value,
        "start": format_minutes(block.start),
        "end": format_minutes(block.end),
        "title": block.title,
        "crn": block.crn,
        "room": block.room,
        "building": block.building,
        "type": block.type,
        "open": block.open,
    }
