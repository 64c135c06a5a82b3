"""
Conflict detection.

Given the sessions a student picked, detect overlaps on the same weekday.
Overlap rule (half-open intervals, see intervals.py):
    start < other_end AND end > other_start
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Sequence, TypeVar

from creditplanner.errors import NotFoundError
from creditplanner.intervals import overlap_interval, overlaps
from creditplanner.model import Selection, TimeSlot, TimetableSlot, TimetableTimeConflict

if TYPE_CHECKING:  # pragma: no cover
    from creditplanner.catalog import CatalogSource

logger = logging.getLogger(__name__)

S = TypeVar("S")


def conflicts_with_set(candidate: TimeSlot, chosen: Sequence[S]) -> List[S]:
    """
    Return the members of ``chosen`` overlapping ``candidate`` (in input order).

    Used to test one candidate against an accumulating selection without
    recomputing all pairs.
    """
    return [c for c in chosen if overlaps(candidate, c)]  # type: ignore[arg-type]


def make_conflict(slot: TimetableSlot, other: TimetableSlot) -> TimetableTimeConflict:
    """
    Describe the overlap of ``slot`` with ``other`` from ``slot``'s side.
    Callers must only pass overlapping slots.
    """
    shared = overlap_interval(slot, other)
    if shared is None:
        raise ValueError(f"slots {slot.slot_id} and {other.slot_id} do not overlap")
    return TimetableTimeConflict(
        course_id=slot.course_id,
        course_ident=slot.course_ident,
        slot_id=slot.slot_id,
        day=slot.day,
        time_from=slot.time_from,
        time_to=slot.time_to,
        overlap_from=shared[0],
        overlap_to=shared[1],
        other_course_id=other.course_id,
        other_course_ident=other.course_ident,
        other_slot_id=other.slot_id,
    )


def find_conflicts(slots: Sequence[TimetableSlot]) -> List[TimetableTimeConflict]:
    """
    Find overlapping slot pairs; each unordered pair is reported once (i<j),
    from the perspective of the earlier slot in the input.
    """
    conflicts: List[TimetableTimeConflict] = []

    # O(n^2) is fine for a student's course load
    for i in range(len(slots)):
        a = slots[i]
        for j in range(i + 1, len(slots)):
            b = slots[j]
            if overlaps(a, b):
                conflicts.append(make_conflict(a, b))

    return conflicts


def resolve_selections(selections: Iterable[Selection], catalog: "CatalogSource") -> List[TimetableSlot]:
    """
    Turn raw (course_id, slot_id) references into full timetable slots.

    Repeated selections are resolved once. Selections the catalog does not
    know are skipped, matching how a lookup by id list behaves.
    """
    resolved: List[TimetableSlot] = []
    seen: set = set()
    for sel in selections:
        if sel in seen:
            continue
        seen.add(sel)
        try:
            resolved.append(catalog.resolve_slot(sel.course_id, sel.slot_id))
        except NotFoundError:
            logger.warning("Skipping unknown selection course_id=%s slot_id=%s", sel.course_id, sel.slot_id)
    return resolved


def check_conflicts(selections: Iterable[Selection], catalog: "CatalogSource") -> List[TimetableTimeConflict]:
    """
    Resolve the selections through the catalog and report all overlaps.
    """
    slots = resolve_selections(selections, catalog)
    if not slots:
        return []
    conflicts = find_conflicts(slots)
    logger.debug("Checked %d slots, %d conflicts", len(slots), len(conflicts))
    return conflicts
