"""
Catalog data sources.

The engine never talks to storage directly. It asks a catalog for:
- the units (with slots) of a course
- the courses of a study plan for one semester/year
- a single slot, resolved into a TimetableSlot

Two sources are provided:
- Catalog      in-memory indexes, built from a JSON snapshot (load_catalog)
- HttpCatalog  read-only client of a catalog REST API (requests)
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

import requests

from creditplanner import config
from creditplanner.errors import CatalogError, NotFoundError, ValidationError
from creditplanner.model import Course, CourseUnit, CourseUnitSlot, Semester, StudyPlan, StudyPlanCourse, TimetableSlot
from creditplanner.schemas import CatalogSnapshot, CourseUnitIn, StudyPlanCourseIn, TimetableSlotIn, validate

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    def get_course_units(self, course_id: int) -> List[CourseUnit]: ...

    def get_study_plan_courses(
        self, study_plan_id: int, semester: Optional[Semester], year: Optional[int]
    ) -> List[StudyPlanCourse]: ...

    def resolve_slot(self, course_id: int, slot_id: int) -> TimetableSlot: ...


# ---------------------------------------------------------------------------
# In-memory catalog
# ---------------------------------------------------------------------------


class Catalog:
    """
    Catalog over in-memory course and study plan records.

    Indexes are built once so every lookup avoids scanning the full lists.
    """

    def __init__(self, courses: Iterable[Course], study_plans: Iterable[StudyPlan] = ()) -> None:
        self.courses: List[Course] = list(courses)
        self.study_plans: List[StudyPlan] = list(study_plans)

        self._course_by_id: Dict[int, Course] = {}
        self._courses_by_ident: Dict[str, List[Course]] = defaultdict(list)
        self._slot_index: Dict[Tuple[int, int], Tuple[CourseUnit, CourseUnitSlot]] = {}
        for course in self.courses:
            self._course_by_id[course.course_id] = course
            self._courses_by_ident[course.ident.upper()].append(course)
            for unit in course.units:
                for slot in unit.slots:
                    self._slot_index[(course.course_id, slot.slot_id)] = (unit, slot)

        self._plan_by_id: Dict[int, StudyPlan] = {p.study_plan_id: p for p in self.study_plans}

    def get_course(self, course_id: int) -> Course:
        course = self._course_by_id.get(course_id)
        if course is None:
            raise NotFoundError("course", course_id)
        return course

    def find_course(self, ident: str, semester: Optional[Semester], year: Optional[int]) -> Optional[Course]:
        """
        Return the offering of ``ident`` in the given semester/year.

        Courses without semester/year information match any request.
        Several matches resolve to the lowest course_id.
        """
        matches = [
            c
            for c in self._courses_by_ident.get(ident.strip().upper(), [])
            if (semester is None or c.semester is None or c.semester == semester)
            and (year is None or c.year is None or c.year == year)
        ]
        if not matches:
            return None
        return min(matches, key=lambda c: c.course_id)

    def get_course_units(self, course_id: int) -> List[CourseUnit]:
        return list(self.get_course(course_id).units)

    def get_study_plan_courses(
        self, study_plan_id: int, semester: Optional[Semester], year: Optional[int]
    ) -> List[StudyPlanCourse]:
        plan = self._plan_by_id.get(study_plan_id)
        if plan is None:
            raise NotFoundError("study plan", study_plan_id)

        out: List[StudyPlanCourse] = []
        for entry in plan.courses:
            course = self.find_course(entry.course_ident, semester, year)
            if course is None:
                out.append(replace(entry, course_id=None))
                continue
            out.append(
                replace(
                    entry,
                    course_id=course.course_id,
                    ects=course.ects or entry.ects,
                    title=course.title or entry.title,
                )
            )
        return out

    def resolve_slot(self, course_id: int, slot_id: int) -> TimetableSlot:
        hit = self._slot_index.get((course_id, slot_id))
        if hit is None:
            raise NotFoundError("slot", (course_id, slot_id))
        unit, slot = hit
        return TimetableSlot.from_unit(self._course_by_id[course_id].ident, unit, slot)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        """
        Build from a snapshot ``{"courses": [...], "study_plans": [...]}``.
        """
        try:
            snapshot = validate(CatalogSnapshot, data)
        except ValidationError as exc:
            raise CatalogError(f"Invalid catalog snapshot: {exc}") from exc
        return cls(
            [c.to_model() for c in snapshot.courses or []],
            [p.to_model() for p in snapshot.study_plans or []],
        )


def load_catalog(path: str | Path | None = None) -> Catalog:
    """
    Load a catalog snapshot from JSON.

    Unlike the selection store, a missing or broken catalog is an error:
    there is nothing meaningful to compute without it.
    """
    catalog_path = Path(path) if path is not None else config.default_catalog_path()
    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CatalogError(f"Catalog file not found: {catalog_path}") from exc
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CatalogError(f"Cannot read catalog {catalog_path}: {exc}") from exc

    catalog = Catalog.from_dict(data)
    logger.debug(
        "Loaded catalog %s: %d courses, %d study plans",
        catalog_path,
        len(catalog.courses),
        len(catalog.study_plans),
    )
    return catalog


# ---------------------------------------------------------------------------
# HTTP catalog
# ---------------------------------------------------------------------------


class HttpCatalog:
    """
    Read-only client of a catalog API.

    Endpoints:
        GET {base}/courses/{course_id}/units
        GET {base}/study-plans/{study_plan_id}/courses?semester=..&year=..
        GET {base}/courses/{course_id}/slots/{slot_id}

    Every request carries a timeout. There are no retries: failures are
    raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else config.http_timeout()
        self.session = session if session is not None else requests.Session()

    def _get(self, path: str, what: str, key: object, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CatalogError(f"GET {url} failed: {exc}") from exc

        if resp.status_code == 404:
            raise NotFoundError(what, key)
        try:
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as exc:
            raise CatalogError(f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"GET {url} returned invalid JSON") from exc

    @staticmethod
    def _items(payload: Any, key: str) -> List[Dict[str, Any]]:
        # accept both a bare list and {"<key>": [...]}
        if isinstance(payload, dict):
            payload = payload.get(key)
        if not isinstance(payload, list):
            raise CatalogError(f"Expected a list of {key}")
        return payload

    def get_course_units(self, course_id: int) -> List[CourseUnit]:
        payload = self._get(f"/courses/{course_id}/units", "course", course_id)
        try:
            return [validate(CourseUnitIn, u).to_model(course_id) for u in self._items(payload, "units")]
        except ValidationError as exc:
            raise CatalogError(f"Invalid units for course {course_id}: {exc}") from exc

    def get_study_plan_courses(
        self, study_plan_id: int, semester: Optional[Semester], year: Optional[int]
    ) -> List[StudyPlanCourse]:
        params: Dict[str, Any] = {}
        if semester is not None:
            params["semester"] = semester.value
        if year is not None:
            params["year"] = year
        payload = self._get(f"/study-plans/{study_plan_id}/courses", "study plan", study_plan_id, params)
        try:
            return [validate(StudyPlanCourseIn, c).to_model(study_plan_id) for c in self._items(payload, "courses")]
        except ValidationError as exc:
            raise CatalogError(f"Invalid courses for study plan {study_plan_id}: {exc}") from exc

    def resolve_slot(self, course_id: int, slot_id: int) -> TimetableSlot:
        payload = self._get(f"/courses/{course_id}/slots/{slot_id}", "slot", (course_id, slot_id))
        if not isinstance(payload, dict):
            raise CatalogError("Expected a slot object")
        data = dict(payload)
        data.setdefault("course_id", course_id)
        data.setdefault("slot_id", slot_id)
        try:
            return validate(TimetableSlotIn, data).to_model()
        except ValidationError as exc:
            raise CatalogError(f"Invalid slot {slot_id} of course {course_id}: {exc}") from exc
