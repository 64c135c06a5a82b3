"""
Timetable generation for a study plan.

Greedy selection, compulsory courses first:

1. Load the plan's courses for the requested semester/year.
2. For every course and every unit type it teaches (lecture, exercise,
   seminar) pick exactly one unit. Candidates are ranked by how well their
   slots match the preferred days/times, then by how few slots clash with
   what is already committed, then by capacity, then by unit_id.
3. The best conflict-free candidate wins. If every candidate clashes, try to
   move ONE already committed unit to another free group of its course
   (one-step repair). If that fails too:
   - a compulsory course is committed anyway and its clashes are reported
   - an elective is skipped
4. Electives are only attempted when requested and while the ECTS limit
   allows.

Unsatisfiable constraints never raise; they show up in ``conflicts``,
``warnings`` and ``coverage``. Only an unknown study plan (or a broken
catalog) is an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from creditplanner.alternatives import count_overlaps
from creditplanner.conflicts import conflicts_with_set, make_conflict
from creditplanner.errors import NotFoundError
from creditplanner.intervals import duration, slot_sort_key
from creditplanner.model import (
    CourseCategory,
    CourseUnit,
    CourseUnitSlot,
    Coverage,
    GenerateOptions,
    StudyPlanCourse,
    TimetableGenerated,
    TimetableSlot,
    TimetableTimeConflict,
    UnitType,
)

if TYPE_CHECKING:  # pragma: no cover
    from creditplanner.catalog import CatalogSource

logger = logging.getLogger(__name__)


class PlanRole(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    NOT_SCHEDULED = "not_scheduled"


def category_role(category: CourseCategory) -> PlanRole:
    """How the generator treats a study plan category."""
    if category is CourseCategory.COMPULSORY:
        return PlanRole.REQUIRED
    if category is CourseCategory.ELECTIVE:
        return PlanRole.OPTIONAL
    if category in (
        CourseCategory.LANGUAGE,
        CourseCategory.STATE_EXAM,
        CourseCategory.PROHIBITED,
        CourseCategory.BEYOND_SCOPE,
        CourseCategory.EXCHANGE_PROGRAM,
        CourseCategory.PHYSICAL_EDUCATION,
    ):
        return PlanRole.NOT_SCHEDULED
    raise ValueError(f"Unhandled course category: {category!r}")


@dataclass
class _Placement:
    """One committed unit: the course it belongs to and its sessions."""

    entry: StudyPlanCourse
    unit: CourseUnit
    slots: List[TimetableSlot]
    candidates: List[CourseUnit]
    forced: bool = False


@dataclass
class _Run:
    options: GenerateOptions
    placements: List[_Placement] = field(default_factory=list)
    courses: List[Tuple[StudyPlanCourse, PlanRole]] = field(default_factory=list)
    conflicts: List[TimetableTimeConflict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    missing_compulsory: List[str] = field(default_factory=list)

    @property
    def total_ects(self) -> int:
        return sum(entry.ects for entry, _ in self.courses)

    def committed_slots(self) -> List[TimetableSlot]:
        return [s for p in self.placements for s in p.slots]

    def movable(self, placement: _Placement) -> bool:
        """A unit can be moved unless it was forced or a reported conflict involves it."""
        if placement.forced:
            return False
        keys = {(s.course_id, s.slot_id) for s in placement.slots}
        return not any(
            (c.course_id, c.slot_id) in keys or (c.other_course_id, c.other_slot_id) in keys for c in self.conflicts
        )


def _unit_slots(entry: StudyPlanCourse, unit: CourseUnit) -> List[TimetableSlot]:
    return [TimetableSlot.from_unit(entry.course_ident, unit, s) for s in unit.slots]


def _in_preferences(slot: CourseUnitSlot, options: GenerateOptions) -> bool:
    if options.preferred_days and slot.day not in options.preferred_days:
        return False
    if options.preferred_time_from is not None and slot.time_from < options.preferred_time_from:
        return False
    if options.preferred_time_to is not None and slot.time_to > options.preferred_time_to:
        return False
    return True


def preference_fit(unit: CourseUnit, options: GenerateOptions) -> int:
    """
    2 = every slot matches the preferences, 1 = some do, 0 = none do.
    """
    matching = sum(1 for s in unit.slots if _in_preferences(s, options))
    if matching == len(unit.slots):
        return 2
    return 1 if matching else 0


def _rank(
    units: Sequence[CourseUnit], committed: Sequence[TimetableSlot], options: GenerateOptions
) -> List[Tuple[CourseUnit, int]]:
    """
    Order units best first; returns (unit, overlapping slot count) pairs.
    """
    scored = [(u, count_overlaps(u, committed)) for u in units]
    scored.sort(key=lambda p: (-preference_fit(p[0], options), p[1], -(p[0].capacity or 0), p[0].unit_id))
    return scored


def _group_units(units: Sequence[CourseUnit]) -> List[Tuple[UnitType, List[CourseUnit]]]:
    """
    Group schedulable units by type (canonical type order, unit_id order).
    Units without any slot cannot be placed and are left out.
    """
    groups: Dict[UnitType, List[CourseUnit]] = {}
    for unit in units:
        if unit.slots:
            groups.setdefault(unit.unit_type, []).append(unit)
    return [
        (unit_type, sorted(groups[unit_type], key=lambda u: u.unit_id))
        for unit_type in sorted(groups, key=lambda t: t.index)
    ]


class TimetableGenerator:
    """
    Builds a TimetableGenerated for a study plan from an injected catalog.
    """

    def __init__(self, catalog: "CatalogSource") -> None:
        self.catalog = catalog

    # -- plan loading -------------------------------------------------------

    def _partition(
        self, plan_courses: Sequence[StudyPlanCourse]
    ) -> Tuple[List[StudyPlanCourse], List[StudyPlanCourse]]:
        compulsory: Dict[str, StudyPlanCourse] = {}
        electives: Dict[str, StudyPlanCourse] = {}
        for entry in plan_courses:
            role = category_role(entry.category)
            if role is PlanRole.REQUIRED:
                compulsory.setdefault(entry.course_ident, entry)
            elif role is PlanRole.OPTIONAL:
                electives.setdefault(entry.course_ident, entry)
        for ident in compulsory:
            electives.pop(ident, None)
        return (
            [compulsory[k] for k in sorted(compulsory)],
            [electives[k] for k in sorted(electives)],
        )

    def _load_units(self, run: _Run, entry: StudyPlanCourse, role: PlanRole) -> Optional[List[CourseUnit]]:
        label = "Compulsory course" if role is PlanRole.REQUIRED else "Elective course"
        if entry.course_id is None:
            opts = run.options
            run.warnings.append(
                f"{label} {entry.course_ident} is not offered in {opts.semester.value} {opts.year}"
            )
            return None
        try:
            units = self.catalog.get_course_units(entry.course_id)
        except NotFoundError:
            logger.warning("Course %s (id=%s) not found in catalog", entry.course_ident, entry.course_id)
            run.warnings.append(f"{label} {entry.course_ident} was not found in the catalog")
            return None
        if not any(u.slots for u in units):
            run.warnings.append(f"{label} {entry.course_ident} has no scheduled sessions")
            return None
        return units

    # -- repair -------------------------------------------------------------

    def _try_repair(
        self,
        run: _Run,
        ranked: Sequence[Tuple[CourseUnit, int]],
        staged: Sequence[TimetableSlot],
        entry: StudyPlanCourse,
    ) -> Optional[CourseUnit]:
        """
        Free room for one candidate by moving a single committed unit.

        Tries candidates best first. A candidate qualifies when exactly one
        committed unit blocks it (neither forced nor part of a reported conflict) and that unit's course has
        another group of the same type that fits around everything else.
        Returns the candidate that can now be committed conflict-free.
        """
        for cand, _ in ranked:
            cand_slots = _unit_slots(entry, cand)
            if any(conflicts_with_set(s, staged) for s in cand_slots):
                continue
            blockers = [
                i
                for i, p in enumerate(run.placements)
                if any(conflicts_with_set(s, p.slots) for s in cand_slots)
            ]
            if len(blockers) != 1 or not run.movable(run.placements[blockers[0]]):
                continue

            idx = blockers[0]
            blocker = run.placements[idx]
            rest = [s for i, p in enumerate(run.placements) if i != idx for s in p.slots]
            rest.extend(staged)
            rest.extend(cand_slots)
            others = [u for u in blocker.candidates if u.unit_id != blocker.unit.unit_id]
            for alt, clashes in _rank(others, rest, run.options):
                if clashes:
                    continue
                logger.debug(
                    "Moving %s from unit %s to unit %s to fit %s unit %s",
                    blocker.entry.course_ident,
                    blocker.unit.unit_id,
                    alt.unit_id,
                    entry.course_ident,
                    cand.unit_id,
                )
                run.placements[idx] = _Placement(
                    entry=blocker.entry,
                    unit=alt,
                    slots=_unit_slots(blocker.entry, alt),
                    candidates=blocker.candidates,
                )
                return cand
        return None

    # -- placement ----------------------------------------------------------

    def _place_course(self, run: _Run, entry: StudyPlanCourse, role: PlanRole, units: List[CourseUnit]) -> bool:
        """
        Pick one unit per unit type. Returns False when the course is skipped.

        Electives are all-or-nothing: nothing is committed unless every type
        fits without conflict.
        """
        required = role is PlanRole.REQUIRED
        staged: List[_Placement] = []

        for unit_type, candidates in _group_units(units):
            staged_slots = [s for p in staged for s in p.slots]
            committed = run.committed_slots() + staged_slots
            ranked = _rank(candidates, committed, run.options)

            free = [u for u, clashes in ranked if clashes == 0]
            if free:
                chosen = free[0]
                staged.append(_Placement(entry, chosen, _unit_slots(entry, chosen), candidates))
                continue

            if required:
                repaired = self._try_repair(run, ranked, staged_slots, entry)
                if repaired is not None:
                    staged.append(_Placement(entry, repaired, _unit_slots(entry, repaired), candidates))
                    continue

            if not required:
                run.warnings.append(
                    f"Could not fit elective {entry.course_ident}: "
                    f"all {unit_type.value} units conflict with already selected courses"
                )
                return False

            forced, _ = ranked[0]
            forced_slots = _unit_slots(entry, forced)
            committed = run.committed_slots() + staged_slots
            for slot in forced_slots:
                for other in conflicts_with_set(slot, committed):
                    run.conflicts.append(make_conflict(slot, other))
            run.warnings.append(
                f"Conflict for compulsory course {entry.course_ident}: "
                f"all {unit_type.value} units conflict with already selected courses"
            )
            staged.append(_Placement(entry, forced, forced_slots, candidates, forced=True))

        run.placements.extend(staged)
        run.courses.append((entry, role))
        logger.debug("Committed %s with units %s", entry.course_ident, [p.unit.unit_id for p in staged])
        return True

    # -- entry point --------------------------------------------------------

    def generate(self, study_plan_id: int, options: GenerateOptions) -> TimetableGenerated:
        plan_courses = self.catalog.get_study_plan_courses(study_plan_id, options.semester, options.year)
        compulsory, electives = self._partition(plan_courses)
        logger.debug(
            "Study plan %s: %d compulsory, %d elective courses", study_plan_id, len(compulsory), len(electives)
        )

        run = _Run(options)

        for entry in compulsory:
            units = self._load_units(run, entry, PlanRole.REQUIRED)
            if units is None:
                run.missing_compulsory.append(entry.course_ident)
                continue
            self._place_course(run, entry, PlanRole.REQUIRED, units)

        if options.include_electives:
            for entry in electives:
                if options.max_ects is not None and run.total_ects + entry.ects > options.max_ects:
                    run.warnings.append(
                        f"Skipped elective {entry.course_ident}: {entry.ects} ECTS would exceed "
                        f"the limit of {options.max_ects:g}"
                    )
                    continue
                units = self._load_units(run, entry, PlanRole.OPTIONAL)
                if units is None:
                    continue
                self._place_course(run, entry, PlanRole.OPTIONAL, units)

        return self._result(run)

    def _result(self, run: _Run) -> TimetableGenerated:
        slots = sorted(
            run.committed_slots(),
            key=lambda s: slot_sort_key(s) + (s.course_ident, s.slot_id),
        )
        total_minutes = sum(duration(s) for s in slots)
        return TimetableGenerated(
            slots=slots,
            total_ects=run.total_ects,
            total_hours=round(total_minutes / 60, 1),
            conflicts=list(run.conflicts),
            warnings=list(run.warnings),
            coverage=Coverage(
                compulsory_fulfilled=not run.missing_compulsory,
                missing_compulsory=list(run.missing_compulsory),
                elective_count=sum(1 for _, role in run.courses if role is PlanRole.OPTIONAL),
            ),
        )


def generate_for_study_plan(
    catalog: "CatalogSource", study_plan_id: int, options: GenerateOptions
) -> TimetableGenerated:
    return TimetableGenerator(catalog).generate(study_plan_id, options)
