"""
Validation schemas for raw JSON input.

Catalog records (snapshot files, catalog API responses) and the four request
payloads arrive as plain dicts. They are validated here with pydantic and
then turned into the engine's dataclasses via ``to_model()``; the engine
itself never sees an unvalidated dict.

Lenient on representation, strict on meaning:
- numeric strings are accepted for ids, years, ECTS
- times may be minutes or "HH:MM"
- days and unit types accept the portal's Czech names
- a slot must satisfy time_from < time_to
"""

from __future__ import annotations

from typing import Any, List, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from creditplanner import config
from creditplanner.errors import ValidationError
from creditplanner.intervals import parse_time
from creditplanner.model import (
    Course,
    CourseCategory,
    CourseGroup,
    CourseUnit,
    CourseUnitSlot,
    Day,
    GenerateOptions,
    Selection,
    Semester,
    StudyPlan,
    StudyPlanCourse,
    TimetableSlot,
    UnitType,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _describe(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(p) for p in err["loc"])
    msg = err["msg"]
    # errors raised by our own validators arrive as "Value error, <text>"
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{where}: {msg}" if where else msg


def validate(schema: Type[SchemaT], data: Any) -> SchemaT:
    """
    Validate ``data`` against ``schema``.

    Raises creditplanner.errors.ValidationError with the first problem found.
    """
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc)) from None


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)


class _TimedSchema(_Schema):
    """Anything with day + [time_from, time_to)."""

    day: Day
    time_from: int
    time_to: int

    @field_validator("day", mode="before")
    @classmethod
    def _parse_day(cls, value: Any) -> Day:
        return Day.parse(value)

    @field_validator("time_from", "time_to", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> int:
        return parse_time(value)

    @model_validator(mode="after")
    def _check_interval(self) -> "_TimedSchema":
        if self.time_from >= self.time_to:
            raise ValueError(f"time_from must be less than time_to ({self.time_from} >= {self.time_to})")
        return self


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------


class CourseUnitSlotIn(_TimedSchema):
    slot_id: int = Field(validation_alias=AliasChoices("slot_id", "id"))
    location: Optional[str] = None

    def to_model(self) -> CourseUnitSlot:
        return CourseUnitSlot(
            slot_id=self.slot_id,
            day=self.day,
            time_from=self.time_from,
            time_to=self.time_to,
            location=self.location or None,
        )


class CourseUnitIn(_Schema):
    unit_id: int = Field(validation_alias=AliasChoices("unit_id", "id"))
    course_id: Optional[int] = None
    unit_type: UnitType = UnitType.LECTURE
    slots: Optional[List[CourseUnitSlotIn]] = None
    lecturer: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    note: Optional[str] = None

    @field_validator("unit_type", mode="before")
    @classmethod
    def _parse_unit_type(cls, value: Any) -> UnitType:
        return UnitType.parse(value)

    def to_model(self, course_id: Optional[int] = None) -> CourseUnit:
        owner = course_id if course_id is not None else self.course_id
        if owner is None:
            raise ValidationError(f"Unit {self.unit_id} has no course_id")
        return CourseUnit(
            unit_id=self.unit_id,
            course_id=owner,
            unit_type=self.unit_type,
            slots=[s.to_model() for s in self.slots or []],
            lecturer=self.lecturer or None,
            capacity=self.capacity,
            note=self.note or None,
        )


class CourseIn(_Schema):
    course_id: int = Field(validation_alias=AliasChoices("course_id", "id"))
    ident: str = Field(min_length=1)
    title: Optional[str] = None
    ects: Optional[int] = Field(default=None, ge=0)
    semester: Optional[Semester] = None
    year: Optional[int] = None
    units: Optional[List[CourseUnitIn]] = None

    @field_validator("semester", mode="before")
    @classmethod
    def _blank_semester(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_model(self) -> Course:
        return Course(
            course_id=self.course_id,
            ident=self.ident,
            title=self.title or None,
            ects=self.ects or 0,
            semester=self.semester,
            year=self.year,
            units=[u.to_model(self.course_id) for u in self.units or []],
        )


class StudyPlanCourseIn(_Schema):
    course_ident: str = Field(min_length=1)
    category: CourseCategory
    group: Optional[CourseGroup] = None
    course_id: Optional[int] = None
    ects: Optional[int] = Field(default=None, ge=0)
    title: Optional[str] = None

    @field_validator("group", mode="before")
    @classmethod
    def _blank_group(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_model(self, study_plan_id: int) -> StudyPlanCourse:
        return StudyPlanCourse(
            study_plan_id=study_plan_id,
            course_ident=self.course_ident,
            category=self.category,
            group=self.group,
            course_id=self.course_id,
            ects=self.ects or 0,
            title=self.title or None,
        )


class StudyPlanIn(_Schema):
    study_plan_id: int = Field(validation_alias=AliasChoices("study_plan_id", "id"))
    ident: Optional[str] = None
    title: Optional[str] = None
    courses: Optional[List[StudyPlanCourseIn]] = None

    def to_model(self) -> StudyPlan:
        return StudyPlan(
            study_plan_id=self.study_plan_id,
            ident=self.ident or None,
            title=self.title or None,
            courses=[c.to_model(self.study_plan_id) for c in self.courses or []],
        )


class CatalogSnapshot(_Schema):
    """A catalog export: ``{"courses": [...], "study_plans": [...]}``."""

    courses: Optional[List[CourseIn]] = None
    study_plans: Optional[List[StudyPlanIn]] = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SelectionIn(_Schema):
    course_id: int
    slot_id: int

    def to_model(self) -> Selection:
        return Selection(self.course_id, self.slot_id)


class TimetableSlotIn(_TimedSchema):
    course_id: int
    course_ident: str = Field(min_length=1)
    unit_id: int
    slot_id: int
    location: Optional[str] = None
    lecturer: Optional[str] = None

    def to_model(self) -> TimetableSlot:
        return TimetableSlot(
            course_id=self.course_id,
            course_ident=self.course_ident,
            unit_id=self.unit_id,
            slot_id=self.slot_id,
            day=self.day,
            time_from=self.time_from,
            time_to=self.time_to,
            location=self.location or None,
            lecturer=self.lecturer or None,
        )


class ConflictsRequest(_Schema):
    selections: List[SelectionIn] = Field(default_factory=list)


class AnalyzeRequest(_Schema):
    slots: List[TimetableSlotIn] = Field(default_factory=list)


class AlternativesRequest(_Schema):
    course_id: int
    current_slots: List[TimetableSlotIn] = Field(default_factory=list)
    limit: int = Field(default=config.DEFAULT_ALTERNATIVES_LIMIT, ge=1, le=config.MAX_ALTERNATIVES_LIMIT)


class GenerateRequest(_Schema):
    study_plan_id: int
    semester: Semester
    year: int
    preferred_days: List[Day] = Field(default_factory=list)
    preferred_time_from: Optional[int] = None
    preferred_time_to: Optional[int] = None
    max_ects: Optional[float] = Field(default=None, ge=0)
    include_electives: bool = False

    @field_validator("preferred_days", mode="before")
    @classmethod
    def _parse_days(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValueError("preferred_days must be a list")
        return [Day.parse(d) for d in value]

    @field_validator("preferred_time_from", "preferred_time_to", mode="before")
    @classmethod
    def _parse_time(cls, value: Any) -> Optional[int]:
        return None if value is None else parse_time(value)

    @model_validator(mode="after")
    def _check_window(self) -> "GenerateRequest":
        start, end = self.preferred_time_from, self.preferred_time_to
        if start is not None and end is not None and start >= end:
            raise ValueError("preferred_time_from must be less than preferred_time_to")
        return self

    def to_options(self) -> GenerateOptions:
        return GenerateOptions(
            semester=self.semester,
            year=self.year,
            preferred_days=tuple(self.preferred_days),
            preferred_time_from=self.preferred_time_from,
            preferred_time_to=self.preferred_time_to,
            max_ects=self.max_ects,
            include_electives=self.include_electives,
        )
