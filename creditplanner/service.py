"""
Request/response operations.

These are the four operations the API layer calls. Each takes the decoded
JSON body (a dict) and returns a JSON-ready dict:

    conflicts     {"selections": [...]}           -> {"has_conflicts", "conflicts"}
    analyze       {"slots": [...]}                -> {"byDay", "gaps", "suggestions"}
    alternatives  {"course_id", "current_slots"}  -> {"course_id", "alternatives"}
    generate      {"study_plan_id", ...}          -> {"timetable"}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict

from creditplanner.alternatives import suggest_alternatives
from creditplanner.analyze import DEFAULT_SETTINGS, AnalyzerSettings, analyze_timetable
from creditplanner.conflicts import check_conflicts
from creditplanner.generator import TimetableGenerator
from creditplanner.schemas import AlternativesRequest, AnalyzeRequest, ConflictsRequest, GenerateRequest, validate

if TYPE_CHECKING:  # pragma: no cover
    from creditplanner.catalog import CatalogSource

logger = logging.getLogger(__name__)


class TimetableService:
    def __init__(self, catalog: "CatalogSource", analyzer_settings: AnalyzerSettings = DEFAULT_SETTINGS) -> None:
        self.catalog = catalog
        self.analyzer_settings = analyzer_settings

    def conflicts(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        request = validate(ConflictsRequest, payload)
        selections = [s.to_model() for s in request.selections]
        conflicts = check_conflicts(selections, self.catalog)
        logger.info("conflicts: %d selections, %d conflicts", len(selections), len(conflicts))
        return {
            "has_conflicts": bool(conflicts),
            "conflicts": [c.to_dict() for c in conflicts],
        }

    def analyze(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        slots = [s.to_model() for s in validate(AnalyzeRequest, payload).slots]
        return analyze_timetable(slots, self.analyzer_settings).to_dict()

    def alternatives(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        request = validate(AlternativesRequest, payload)
        course_id = request.course_id
        current = [s.to_model() for s in request.current_slots]

        units = suggest_alternatives(course_id, current, self.catalog, limit=request.limit)
        logger.info("alternatives: course_id=%s, %d found", course_id, len(units))
        return {"course_id": course_id, "alternatives": [u.to_dict() for u in units]}

    def generate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        request = validate(GenerateRequest, payload)
        study_plan_id = request.study_plan_id
        options = request.to_options()

        timetable = TimetableGenerator(self.catalog).generate(study_plan_id, options)
        logger.info(
            "generate: study_plan_id=%s, %d slots, %s ECTS, %d conflicts",
            study_plan_id,
            len(timetable.slots),
            timetable.total_ects,
            len(timetable.conflicts),
        )
        return {"timetable": timetable.to_dict()}
