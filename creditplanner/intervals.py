"""
Weekly time intervals.

A slot is anything with ``day``, ``time_from`` and ``time_to`` (minutes since
midnight). Intervals are half-open:

    overlap  <=>  same day AND a.from < b.to AND b.from < a.to

so a session ending at 10:00 and one starting at 10:00 do not clash.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Tuple

from creditplanner.errors import ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from creditplanner.model import TimeSlot

MINUTES_PER_DAY = 1440


def parse_time(value: Any) -> int:
    """
    Convert 'HH:MM' (or a minute count) to minutes since midnight.
    Raises ValidationError for invalid formats or out-of-range values.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid time value: {value!r}")
    if isinstance(value, (int, float)):
        if int(value) != value:
            raise ValidationError(f"Invalid time value: {value!r}")
        minutes = int(value)
    else:
        text = str(value).strip()
        if text.isdigit():
            minutes = int(text)
        else:
            parts = text.split(":")
            if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
                raise ValidationError(f"Invalid time format: {value!r}")
            h = int(parts[0])
            m = int(parts[1])
            if not (0 <= h <= 24 and 0 <= m <= 59):
                raise ValidationError(f"Invalid time value: {value!r}")
            minutes = h * 60 + m
    if not (0 <= minutes <= MINUTES_PER_DAY):
        raise ValidationError(f"Time out of range: {value!r}")
    return minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def duration(slot: "TimeSlot") -> int:
    """Length in minutes; degenerate slots count as zero."""
    return max(0, slot.time_to - slot.time_from)


def overlap_interval(a: "TimeSlot", b: "TimeSlot") -> Optional[Tuple[int, int]]:
    """
    Return the shared (from, to) of two slots, or None if they do not overlap.
    """
    if a.day != b.day:
        return None
    # zero/negative length slots never overlap anything
    if a.time_from >= a.time_to or b.time_from >= b.time_to:
        return None
    start = max(a.time_from, b.time_from)
    end = min(a.time_to, b.time_to)
    if start < end:
        return start, end
    return None


def overlaps(a: "TimeSlot", b: "TimeSlot") -> bool:
    return overlap_interval(a, b) is not None


def slot_sort_key(slot: "TimeSlot") -> Tuple[int, int, int]:
    """Canonical ordering: weekday, then start, then end."""
    return (slot.day.index, slot.time_from, slot.time_to)
