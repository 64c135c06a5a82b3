"""
Unit tests for conflict detection.

Definition used here:
- A conflict exists if two sessions overlap in time on the same weekday.
- Touching endpoints (end == start) is NOT a conflict.
- Each overlapping pair is reported once.
"""

import unittest

from creditplanner.catalog import Catalog
from creditplanner.conflicts import check_conflicts, conflicts_with_set, find_conflicts
from creditplanner.model import (
    Course,
    CourseUnit,
    CourseUnitSlot,
    Day,
    Selection,
    TimeSlot,
    TimetableSlot,
    UnitType,
)


def ts(course_id: int, slot_id: int, day: Day, start: int, end: int) -> TimetableSlot:
    return TimetableSlot(
        course_id=course_id,
        course_ident=f"C{course_id}",
        unit_id=course_id * 10,
        slot_id=slot_id,
        day=day,
        time_from=start,
        time_to=end,
    )


class TestFindConflicts(unittest.TestCase):
    def test_overlap_same_day(self) -> None:
        confs = find_conflicts([ts(1, 11, Day.THU, 600, 660), ts(2, 21, Day.THU, 630, 720)])
        self.assertEqual(len(confs), 1)
        c = confs[0]
        self.assertEqual((c.course_id, c.slot_id), (1, 11))
        self.assertEqual((c.other_course_id, c.other_slot_id), (2, 21))
        self.assertEqual((c.time_from, c.time_to), (600, 660))
        self.assertEqual((c.overlap_from, c.overlap_to), (630, 660))
        self.assertEqual(c.day, Day.THU)

    def test_no_overlap_touching_end(self) -> None:
        confs = find_conflicts([ts(1, 11, Day.THU, 600, 660), ts(2, 21, Day.THU, 660, 720)])
        self.assertEqual(len(confs), 0)

    def test_different_day_no_conflict(self) -> None:
        confs = find_conflicts([ts(1, 11, Day.THU, 600, 660), ts(2, 21, Day.FRI, 630, 720)])
        self.assertEqual(len(confs), 0)

    def test_exactly_one_overlapping_pair(self) -> None:
        slots = [
            ts(1, 11, Day.MON, 480, 570),
            ts(2, 21, Day.MON, 600, 690),
            ts(3, 31, Day.MON, 650, 740),
            ts(4, 41, Day.TUE, 480, 570),
        ]
        confs = find_conflicts(slots)
        self.assertEqual(len(confs), 1)
        self.assertEqual({confs[0].slot_id, confs[0].other_slot_id}, {21, 31})

    def test_empty(self) -> None:
        self.assertEqual(find_conflicts([]), [])


class TestConflictsWithSet(unittest.TestCase):
    def test_returns_overlapping_members_in_order(self) -> None:
        chosen = [ts(1, 11, Day.MON, 480, 570), ts(2, 21, Day.MON, 560, 640), ts(3, 31, Day.TUE, 500, 560)]
        hits = conflicts_with_set(TimeSlot(Day.MON, 500, 600), chosen)
        self.assertEqual([h.slot_id for h in hits], [11, 21])

    def test_no_overlap(self) -> None:
        chosen = [ts(1, 11, Day.MON, 480, 570)]
        self.assertEqual(conflicts_with_set(TimeSlot(Day.MON, 570, 600), chosen), [])


class TestCheckConflicts(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = Catalog(
            [
                Course(1, "A100", units=[CourseUnit(10, 1, UnitType.LECTURE, [CourseUnitSlot(11, Day.MON, 480, 570)])]),
                Course(2, "B200", units=[CourseUnit(20, 2, UnitType.LECTURE, [CourseUnitSlot(21, Day.MON, 540, 630)])]),
                Course(3, "C300", units=[CourseUnit(30, 3, UnitType.LECTURE, [CourseUnitSlot(31, Day.MON, 630, 720)])]),
            ]
        )

    def test_resolves_selections_through_catalog(self) -> None:
        confs = check_conflicts([Selection(1, 11), Selection(2, 21), Selection(3, 31)], self.catalog)
        self.assertEqual(len(confs), 1)
        self.assertEqual(confs[0].course_ident, "A100")
        self.assertEqual(confs[0].other_course_ident, "B200")

    def test_duplicate_selection_is_not_a_conflict(self) -> None:
        self.assertEqual(check_conflicts([Selection(1, 11), Selection(1, 11)], self.catalog), [])

    def test_unknown_selection_is_skipped(self) -> None:
        with self.assertLogs("creditplanner.conflicts", level="WARNING"):
            confs = check_conflicts([Selection(1, 11), Selection(9, 99)], self.catalog)
        self.assertEqual(confs, [])

    def test_empty_selection(self) -> None:
        self.assertEqual(check_conflicts([], self.catalog), [])


if __name__ == "__main__":
    unittest.main()
