"""
Alternative units for one course.

Used when a student's current pick for a course clashes with something else:
list the other groups (units) of that course, conflict-free ones first.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Sequence, Tuple

from creditplanner import config
from creditplanner.conflicts import conflicts_with_set
from creditplanner.model import CourseUnit, TimetableSlot

if TYPE_CHECKING:  # pragma: no cover
    from creditplanner.catalog import CatalogSource

logger = logging.getLogger(__name__)


def count_overlaps(unit: CourseUnit, others: Sequence[TimetableSlot]) -> int:
    """Number of the unit's slots that clash with at least one of ``others``."""
    return sum(1 for slot in unit.slots if conflicts_with_set(slot.time_slot, others))


def rank_alternatives(
    course_id: int,
    units: Sequence[CourseUnit],
    current_slots: Sequence[TimetableSlot],
) -> List[Tuple[CourseUnit, int]]:
    """
    Rank candidate units of ``course_id`` against ``current_slots``.

    Returns (unit, overlapping slot count) pairs: conflict-free units first,
    then fewer overlapping slots, then unit_id ascending.
    """
    own = [s for s in current_slots if s.course_id == course_id]
    others = [s for s in current_slots if s.course_id != course_id]

    current_unit_ids = {s.unit_id for s in own}
    current_types = {u.unit_type for u in units if u.unit_id in current_unit_ids}

    ranked: List[Tuple[CourseUnit, int]] = []
    for unit in units:
        if unit.unit_id in current_unit_ids:
            continue
        # only swap like for like (another lecture for a lecture, ...)
        if current_types and unit.unit_type not in current_types:
            continue
        ranked.append((unit, count_overlaps(unit, others)))

    ranked.sort(key=lambda pair: (pair[1] > 0, pair[1], pair[0].unit_id))
    return ranked


def suggest_alternatives(
    course_id: int,
    current_slots: Sequence[TimetableSlot],
    catalog: "CatalogSource",
    limit: int = config.DEFAULT_ALTERNATIVES_LIMIT,
) -> List[CourseUnit]:
    """
    Return up to ``limit`` other units of the course, conflict-free ones first.

    An empty list is a normal answer (no other groups exist).
    """
    limit = min(limit, config.MAX_ALTERNATIVES_LIMIT)
    if limit <= 0:
        return []

    units = catalog.get_course_units(course_id)
    ranked = rank_alternatives(course_id, units, current_slots)
    logger.debug(
        "Course %s: %d candidate units, %d conflict-free",
        course_id,
        len(ranked),
        sum(1 for _, n in ranked if n == 0),
    )
    return [unit for unit, _ in ranked[:limit]]
