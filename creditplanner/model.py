"""
Central data model definitions used across the project.

This module defines the canonical structure of catalog records (courses,
units, slots, study plans) and of the engine's results, so that:
- all modules share the same field names
- the catalog loaders, the engine and the service layer agree on one shape
- every result can be turned into the JSON payload the API layer returns

Closed vocabularies (days, unit types, plan categories, semesters) are enums.
Raw catalog/request dicts are validated into these records by
creditplanner.schemas; results go back out with ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from creditplanner.errors import ValidationError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Day(str, Enum):
    """Teaching weekday. Declaration order is the canonical sort order."""

    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"

    @property
    def index(self) -> int:
        return _DAY_ORDER[self]

    @classmethod
    def parse(cls, value: Any) -> "Day":
        """
        Accept English short/long names and the portal's Czech codes/names.
        """
        if isinstance(value, Day):
            return value
        key = str(value or "").strip().lower()
        day = _DAY_ALIASES.get(key)
        if day is None:
            raise ValidationError(f"Unknown day: {value!r}")
        return day


_DAY_ORDER = {d: i for i, d in enumerate(Day)}

_DAY_ALIASES: Dict[str, Day] = {}
for _day, _names in (
    (Day.MON, ("mon", "monday", "po", "pondělí")),
    (Day.TUE, ("tue", "tuesday", "út", "úterý")),
    (Day.WED, ("wed", "wednesday", "st", "středa")),
    (Day.THU, ("thu", "thursday", "čt", "čtvrtek")),
    (Day.FRI, ("fri", "friday", "pá", "pátek")),
):
    for _name in _names:
        _DAY_ALIASES[_name] = _day


class UnitType(str, Enum):
    LECTURE = "lecture"
    EXERCISE = "exercise"
    SEMINAR = "seminar"

    @property
    def index(self) -> int:
        return _UNIT_TYPE_ORDER[self]

    @classmethod
    def parse(cls, value: Any) -> "UnitType":
        if isinstance(value, UnitType):
            return value
        key = str(value or "").strip().lower()
        unit_type = _UNIT_TYPE_ALIASES.get(key)
        if unit_type is None:
            raise ValidationError(f"Unknown unit type: {value!r}")
        return unit_type


_UNIT_TYPE_ORDER = {t: i for i, t in enumerate(UnitType)}

_UNIT_TYPE_ALIASES: Dict[str, UnitType] = {
    "lecture": UnitType.LECTURE,
    "přednáška": UnitType.LECTURE,
    "exercise": UnitType.EXERCISE,
    "cvičení": UnitType.EXERCISE,
    "seminar": UnitType.SEMINAR,
    "seminář": UnitType.SEMINAR,
}


class CourseCategory(str, Enum):
    """Category of a course inside a study plan."""

    COMPULSORY = "compulsory"
    ELECTIVE = "elective"
    LANGUAGE = "language"
    STATE_EXAM = "state_exam"
    PROHIBITED = "prohibited"
    BEYOND_SCOPE = "beyond_scope"
    EXCHANGE_PROGRAM = "exchange_program"
    PHYSICAL_EDUCATION = "physical_education"


class CourseGroup(str, Enum):
    FACULTY_SPECIFIC = "faculty_specific"
    UNIVERSITY_WIDE = "university_wide"
    FIELD_SPECIFIC_BACHELOR = "field_specific_bachelor"
    FIELD_SPECIFIC_MASTER = "field_specific_master"
    MINOR_SPECIALIZATION = "minor_specialization"


class Semester(str, Enum):
    WINTER = "ZS"
    SUMMER = "LS"


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeSlot:
    """One weekly recurring occurrence: day + [time_from, time_to) in minutes."""

    day: Day
    time_from: int
    time_to: int


@dataclass(frozen=True)
class CourseUnitSlot:
    """
    A concrete weekly slot owned by a course unit.
    """

    slot_id: int
    day: Day
    time_from: int
    time_to: int
    location: Optional[str] = None

    @property
    def time_slot(self) -> TimeSlot:
        return TimeSlot(self.day, self.time_from, self.time_to)


@dataclass
class CourseUnit:
    """
    One teaching group of a course (a lecture group, an exercise group, ...).

    Units sharing a unit_type within one course are alternatives: a student
    picks exactly one of them.
    """

    unit_id: int
    course_id: int
    unit_type: UnitType
    slots: List[CourseUnitSlot] = field(default_factory=list)
    lecturer: Optional[str] = None
    capacity: Optional[int] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


@dataclass
class Course:
    """
    Represents one course offering of the catalog (one semester/year).
    """

    course_id: int
    ident: str
    title: Optional[str] = None
    ects: int = 0
    semester: Optional[Semester] = None
    year: Optional[int] = None
    units: List[CourseUnit] = field(default_factory=list)


@dataclass(frozen=True)
class StudyPlanCourse:
    """
    Membership of a course in a study plan.

    course_id is None when the course is not offered in the requested
    semester/year.
    """

    study_plan_id: int
    course_ident: str
    category: CourseCategory
    group: Optional[CourseGroup] = None
    course_id: Optional[int] = None
    ects: int = 0
    title: Optional[str] = None


@dataclass
class StudyPlan:
    study_plan_id: int
    ident: Optional[str] = None
    title: Optional[str] = None
    courses: List[StudyPlanCourse] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Student selections
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Selection:
    """A raw (course_id, slot_id) reference chosen by a student."""

    course_id: int
    slot_id: int


@dataclass(frozen=True)
class TimetableSlot:
    """
    One chosen session of a student's timetable.

    A chosen unit that meets several times a week contributes one
    TimetableSlot per meeting.
    """

    course_id: int
    course_ident: str
    unit_id: int
    slot_id: int
    day: Day
    time_from: int
    time_to: int
    location: Optional[str] = None
    lecturer: Optional[str] = None

    @property
    def time_slot(self) -> TimeSlot:
        return TimeSlot(self.day, self.time_from, self.time_to)

    @classmethod
    def from_unit(cls, course_ident: str, unit: CourseUnit, slot: CourseUnitSlot) -> "TimetableSlot":
        return cls(
            course_id=unit.course_id,
            course_ident=course_ident,
            unit_id=unit.unit_id,
            slot_id=slot.slot_id,
            day=slot.day,
            time_from=slot.time_from,
            time_to=slot.time_to,
            location=slot.location,
            lecturer=unit.lecturer,
        )

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class TimetableTimeConflict:
    """
    One detected overlap, seen from the checked slot (course_id/slot_id).

    time_from/time_to is the checked slot's own interval, overlap_from/
    overlap_to the part it shares with the other slot.
    """

    course_id: int
    course_ident: str
    slot_id: int
    day: Day
    time_from: int
    time_to: int
    overlap_from: int
    overlap_to: int
    other_course_id: int
    other_course_ident: str
    other_slot_id: int

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Analyzer results
# ---------------------------------------------------------------------------


@dataclass
class DayLoad:
    count: int = 0
    hours: float = 0.0


@dataclass(frozen=True)
class Gap:
    day: Day
    time_from: int
    time_to: int

    @property
    def duration(self) -> int:
        return self.time_to - self.time_from

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day.value, "from": self.time_from, "to": self.time_to, "duration": self.duration}


@dataclass
class TimetableAnalysis:
    by_day: Dict[Day, DayLoad]
    gaps: List[Gap] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byDay": {day.value: to_plain(load) for day, load in self.by_day.items()},
            "gaps": [g.to_dict() for g in self.gaps],
            "suggestions": list(self.suggestions),
        }


# ---------------------------------------------------------------------------
# Generator input / output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerateOptions:
    semester: Semester
    year: int
    preferred_days: tuple = ()
    preferred_time_from: Optional[int] = None
    preferred_time_to: Optional[int] = None
    max_ects: Optional[float] = None
    include_electives: bool = False


@dataclass
class Coverage:
    compulsory_fulfilled: bool
    missing_compulsory: List[str] = field(default_factory=list)
    elective_count: int = 0


@dataclass
class TimetableGenerated:
    slots: List[TimetableSlot]
    total_ects: int
    total_hours: float
    conflicts: List[TimetableTimeConflict]
    warnings: List[str]
    coverage: Coverage

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def to_plain(value: Any) -> Any:
    """
    Convert dataclasses/enums/containers into JSON-compatible values.
    """
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {to_plain(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value
