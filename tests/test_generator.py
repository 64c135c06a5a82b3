"""
Unit tests for timetable generation.

Scenarios are built on an in-memory catalog so no I/O is involved.
"""

import unittest

from creditplanner.catalog import Catalog
from creditplanner.errors import NotFoundError
from creditplanner.generator import PlanRole, category_role, generate_for_study_plan
from creditplanner.model import (
    Course,
    CourseCategory,
    CourseUnit,
    CourseUnitSlot,
    Day,
    GenerateOptions,
    Semester,
    StudyPlan,
    StudyPlanCourse,
    UnitType,
)

WINTER = GenerateOptions(semester=Semester.WINTER, year=2025)


def unit(
    unit_id: int,
    course_id: int,
    day: Day,
    start: int,
    end: int,
    unit_type: UnitType = UnitType.LECTURE,
    capacity: int = 0,
) -> CourseUnit:
    return CourseUnit(unit_id, course_id, unit_type, [CourseUnitSlot(unit_id * 10, day, start, end)], capacity=capacity)


def course(course_id: int, ident: str, ects: int, *units: CourseUnit) -> Course:
    return Course(course_id, ident, ects=ects, semester=Semester.WINTER, year=2025, units=list(units))


def plan(*entries: tuple) -> StudyPlan:
    return StudyPlan(1, courses=[StudyPlanCourse(1, ident, category) for ident, category in entries])


COMPULSORY = CourseCategory.COMPULSORY
ELECTIVE = CourseCategory.ELECTIVE


class StaleCatalog:
    """Study plan lookups resolve course ids that the units lookup no longer knows."""

    def __init__(self, catalog: Catalog, gone: set) -> None:
        self.catalog = catalog
        self.gone = gone

    def get_course_units(self, course_id: int) -> list:
        if course_id in self.gone:
            raise NotFoundError("course", course_id)
        return self.catalog.get_course_units(course_id)

    def get_study_plan_courses(self, study_plan_id, semester, year) -> list:
        return self.catalog.get_study_plan_courses(study_plan_id, semester, year)

    def resolve_slot(self, course_id: int, slot_id: int):
        return self.catalog.resolve_slot(course_id, slot_id)


class TestGenerateBasics(unittest.TestCase):
    def test_two_compulsory_courses_without_conflict(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                course(2, "B200", 4, unit(21, 2, Day.TUE, 480, 570)),
            ],
            [plan(("A100", COMPULSORY), ("B200", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)

        self.assertEqual([s.course_ident for s in result.slots], ["A100", "B200"])
        self.assertEqual(result.conflicts, [])
        self.assertEqual(result.warnings, [])
        self.assertTrue(result.coverage.compulsory_fulfilled)
        self.assertEqual(result.coverage.missing_compulsory, [])
        self.assertEqual(result.coverage.elective_count, 0)
        self.assertEqual(result.total_ects, 9)
        self.assertEqual(result.total_hours, 3.0)

    def test_one_unit_per_type(self) -> None:
        catalog = Catalog(
            [
                course(
                    1,
                    "A100",
                    6,
                    unit(11, 1, Day.MON, 480, 570),
                    unit(12, 1, Day.TUE, 480, 570, UnitType.EXERCISE),
                    unit(13, 1, Day.WED, 480, 570, UnitType.EXERCISE),
                    unit(14, 1, Day.THU, 480, 570, UnitType.SEMINAR),
                )
            ],
            [plan(("A100", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)
        self.assertEqual([s.unit_id for s in result.slots], [11, 12, 14])
        self.assertEqual(result.total_ects, 6)

    def test_unknown_study_plan_is_a_hard_failure(self) -> None:
        catalog = Catalog([], [plan()])
        with self.assertRaises(NotFoundError):
            generate_for_study_plan(catalog, 42, WINTER)

    def test_deterministic_output(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570), unit(12, 1, Day.MON, 600, 690)),
                course(2, "B200", 4, unit(21, 2, Day.MON, 500, 560)),
                course(3, "C300", 3, unit(31, 3, Day.MON, 480, 690)),
                course(4, "E400", 2, unit(41, 4, Day.FRI, 480, 570)),
            ],
            [plan(("C300", COMPULSORY), ("B200", COMPULSORY), ("A100", COMPULSORY), ("E400", ELECTIVE))],
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True)
        first = generate_for_study_plan(catalog, 1, options).to_dict()
        second = generate_for_study_plan(catalog, 1, options).to_dict()
        self.assertEqual(first, second)


class TestConflictsAndRepair(unittest.TestCase):
    def test_forced_conflict_for_compulsory_course(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                course(2, "B200", 4, unit(21, 2, Day.MON, 500, 560)),
            ],
            [plan(("A100", COMPULSORY), ("B200", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)

        self.assertEqual(sorted(s.course_ident for s in result.slots), ["A100", "B200"])
        self.assertEqual(len(result.conflicts), 1)
        c = result.conflicts[0]
        self.assertEqual((c.course_ident, c.slot_id, c.other_slot_id), ("B200", 210, 110))
        self.assertEqual((c.overlap_from, c.overlap_to), (500, 560))
        self.assertTrue(any("Conflict for compulsory course B200" in w for w in result.warnings))
        self.assertTrue(result.coverage.compulsory_fulfilled)
        self.assertEqual(result.total_ects, 9)

    def test_next_best_conflict_free_unit_is_used(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                course(2, "B200", 4, unit(21, 2, Day.MON, 500, 560, capacity=100), unit(22, 2, Day.TUE, 500, 560)),
            ],
            [plan(("A100", COMPULSORY), ("B200", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)
        self.assertEqual([s.unit_id for s in result.slots], [11, 22])
        self.assertEqual(result.conflicts, [])

    def test_repair_moves_earlier_course(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570, capacity=100), unit(12, 1, Day.WED, 480, 570)),
                course(2, "B200", 4, unit(21, 2, Day.MON, 500, 560)),
            ],
            [plan(("A100", COMPULSORY), ("B200", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)

        self.assertEqual(result.conflicts, [])
        self.assertEqual(result.warnings, [])
        self.assertEqual({s.course_ident: s.unit_id for s in result.slots}, {"A100": 12, "B200": 21})

    def test_elective_is_skipped_instead_of_forced(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                course(5, "E500", 3, unit(51, 5, Day.MON, 480, 570)),
            ],
            [plan(("A100", COMPULSORY), ("E500", ELECTIVE))],
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True)
        result = generate_for_study_plan(catalog, 1, options)

        self.assertEqual([s.course_ident for s in result.slots], ["A100"])
        self.assertEqual(result.conflicts, [])
        self.assertEqual(result.coverage.elective_count, 0)
        self.assertTrue(any("Could not fit elective E500" in w for w in result.warnings))

    def test_elective_is_all_or_nothing(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                course(
                    5,
                    "E500",
                    3,
                    unit(51, 5, Day.TUE, 480, 570),
                    unit(52, 5, Day.MON, 500, 540, UnitType.EXERCISE),
                ),
            ],
            [plan(("A100", COMPULSORY), ("E500", ELECTIVE))],
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True)
        result = generate_for_study_plan(catalog, 1, options)
        self.assertEqual([s.course_ident for s in result.slots], ["A100"])
        self.assertEqual(result.total_ects, 5)


class TestCoverageAndBudget(unittest.TestCase):
    def test_missing_compulsory_course(self) -> None:
        catalog = Catalog(
            [course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570))],
            [plan(("A100", COMPULSORY), ("Z999", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)

        self.assertFalse(result.coverage.compulsory_fulfilled)
        self.assertEqual(result.coverage.missing_compulsory, ["Z999"])
        self.assertTrue(any("Z999 is not offered in ZS 2025" in w for w in result.warnings))
        self.assertEqual([s.course_ident for s in result.slots], ["A100"])

    def test_course_missing_from_units_lookup_is_soft_failure(self) -> None:
        catalog = StaleCatalog(
            Catalog(
                [
                    course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                    course(2, "B200", 4, unit(21, 2, Day.TUE, 480, 570)),
                    course(3, "E300", 3, unit(31, 3, Day.WED, 480, 570)),
                ],
                [plan(("A100", COMPULSORY), ("B200", COMPULSORY), ("E300", ELECTIVE))],
            ),
            gone={2, 3},
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True)
        with self.assertLogs("creditplanner.generator", level="WARNING"):
            result = generate_for_study_plan(catalog, 1, options)

        self.assertIn("Compulsory course B200 was not found in the catalog", result.warnings)
        self.assertIn("Elective course E300 was not found in the catalog", result.warnings)
        self.assertEqual(result.coverage.missing_compulsory, ["B200"])
        self.assertFalse(result.coverage.compulsory_fulfilled)
        self.assertEqual(result.coverage.elective_count, 0)
        self.assertEqual([s.course_ident for s in result.slots], ["A100"])
        self.assertEqual(result.total_ects, 5)

    def test_course_of_other_semester_is_missing(self) -> None:
        catalog = Catalog(
            [course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570))],
            [plan(("A100", COMPULSORY))],
        )
        summer = GenerateOptions(semester=Semester.SUMMER, year=2025)
        result = generate_for_study_plan(catalog, 1, summer)
        self.assertEqual(result.coverage.missing_compulsory, ["A100"])
        self.assertEqual(result.slots, [])

    def test_course_without_sessions_is_missing(self) -> None:
        catalog = Catalog(
            [Course(1, "A100", ects=5, units=[CourseUnit(11, 1, UnitType.LECTURE, [])])],
            [plan(("A100", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)
        self.assertEqual(result.coverage.missing_compulsory, ["A100"])
        self.assertTrue(any("no scheduled sessions" in w for w in result.warnings))

    def test_fulfilled_coverage_means_every_compulsory_course_placed(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 5, unit(11, 1, Day.MON, 480, 570)),
                course(2, "B200", 4, unit(21, 2, Day.MON, 540, 600)),
                course(3, "C300", 4, unit(31, 3, Day.FRI, 540, 600)),
            ],
            [plan(("A100", COMPULSORY), ("B200", COMPULSORY), ("C300", COMPULSORY))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)
        self.assertTrue(result.coverage.compulsory_fulfilled)
        self.assertEqual(result.coverage.missing_compulsory, [])
        self.assertEqual({s.course_ident for s in result.slots}, {"A100", "B200", "C300"})

    def test_electives_respect_ects_budget(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 6, unit(11, 1, Day.MON, 480, 570)),
                course(2, "E1", 3, unit(21, 2, Day.TUE, 480, 570)),
                course(3, "E2", 4, unit(31, 3, Day.WED, 480, 570)),
            ],
            [plan(("A100", COMPULSORY), ("E1", ELECTIVE), ("E2", ELECTIVE))],
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True, max_ects=10)
        result = generate_for_study_plan(catalog, 1, options)

        self.assertEqual(result.total_ects, 9)
        self.assertEqual(result.coverage.elective_count, 1)
        self.assertEqual({s.course_ident for s in result.slots}, {"A100", "E1"})
        self.assertTrue(any("Skipped elective E2" in w for w in result.warnings))

    def test_electives_ignored_unless_requested(self) -> None:
        catalog = Catalog(
            [
                course(1, "A100", 6, unit(11, 1, Day.MON, 480, 570)),
                course(2, "E1", 3, unit(21, 2, Day.TUE, 480, 570)),
            ],
            [plan(("A100", COMPULSORY), ("E1", ELECTIVE))],
        )
        result = generate_for_study_plan(catalog, 1, WINTER)
        self.assertEqual([s.course_ident for s in result.slots], ["A100"])
        self.assertEqual(result.coverage.elective_count, 0)

    def test_compulsory_wins_over_elective_listing(self) -> None:
        catalog = Catalog(
            [course(1, "A100", 6, unit(11, 1, Day.MON, 480, 570))],
            [plan(("A100", ELECTIVE), ("A100", COMPULSORY))],
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True)
        result = generate_for_study_plan(catalog, 1, options)
        self.assertEqual(len(result.slots), 1)
        self.assertEqual(result.total_ects, 6)
        self.assertEqual(result.coverage.elective_count, 0)

    def test_other_categories_are_not_scheduled(self) -> None:
        catalog = Catalog(
            [course(1, "L100", 3, unit(11, 1, Day.MON, 480, 570))],
            [plan(("L100", CourseCategory.LANGUAGE))],
        )
        options = GenerateOptions(semester=Semester.WINTER, year=2025, include_electives=True)
        self.assertEqual(generate_for_study_plan(catalog, 1, options).slots, [])


class TestPreferences(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = Catalog(
            [
                course(
                    1,
                    "A100",
                    5,
                    unit(11, 1, Day.MON, 480, 570, capacity=100),
                    unit(12, 1, Day.WED, 600, 690, capacity=10),
                )
            ],
            [plan(("A100", COMPULSORY))],
        )

    def test_capacity_breaks_ties_without_preferences(self) -> None:
        result = generate_for_study_plan(self.catalog, 1, WINTER)
        self.assertEqual(result.slots[0].unit_id, 11)

    def test_preferred_day(self) -> None:
        options = GenerateOptions(semester=Semester.WINTER, year=2025, preferred_days=(Day.WED,))
        self.assertEqual(generate_for_study_plan(self.catalog, 1, options).slots[0].unit_id, 12)

    def test_preferred_time_window(self) -> None:
        options = GenerateOptions(semester=Semester.WINTER, year=2025, preferred_time_from=540)
        self.assertEqual(generate_for_study_plan(self.catalog, 1, options).slots[0].unit_id, 12)


class TestCategoryRole(unittest.TestCase):
    def test_every_category_has_a_role(self) -> None:
        for category in CourseCategory:
            self.assertIsInstance(category_role(category), PlanRole)
        self.assertIs(category_role(CourseCategory.COMPULSORY), PlanRole.REQUIRED)
        self.assertIs(category_role(CourseCategory.ELECTIVE), PlanRole.OPTIONAL)


if __name__ == "__main__":
    unittest.main()
