"""
Schedule analysis.

Read-only report over a list of chosen sessions:
- load per weekday (session count, hours)
- free gaps between sessions of the same day
- short human-readable suggestions
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence

from creditplanner.intervals import duration, format_minutes
from creditplanner.model import Day, DayLoad, Gap, TimetableAnalysis, TimetableSlot


@dataclass(frozen=True)
class AnalyzerSettings:
    """
    Thresholds used for suggestions.

    heavy_day_hours       a day with at least this many hours is "heavy"
    large_gap_minutes     a gap at least this long is worth rescheduling
    unbalanced_hours      busiest minus lightest (non-empty) day above this
    early_start           sessions starting before this minute are "early"
    max_early_slots       more early sessions than this triggers a notice
    late_end              sessions ending after this minute are "late"
    max_late_slots        more late sessions than this triggers a notice
    """

    heavy_day_hours: float = 6.0
    large_gap_minutes: int = 120
    unbalanced_hours: float = 4.0
    early_start: int = 9 * 60
    max_early_slots: int = 3
    late_end: int = 18 * 60
    max_late_slots: int = 2


DEFAULT_SETTINGS = AnalyzerSettings()


def _day_sort_key(slot: TimetableSlot) -> tuple:
    return (slot.time_from, slot.time_to, slot.course_ident)


def _find_gaps(day: Day, sorted_slots: Sequence[TimetableSlot]) -> List[Gap]:
    gaps: List[Gap] = []
    for prev, nxt in zip(sorted_slots, sorted_slots[1:]):
        if nxt.time_from - prev.time_to > 0:
            gaps.append(Gap(day=day, time_from=prev.time_to, time_to=nxt.time_from))
    return gaps


def _suggestions(
    by_day: Dict[Day, DayLoad],
    gaps: List[Gap],
    slots: Sequence[TimetableSlot],
    settings: AnalyzerSettings,
) -> List[str]:
    out: List[str] = []

    for day, load in by_day.items():
        if load.hours >= settings.heavy_day_hours:
            out.append(f"{day.value} is a heavy day ({load.hours:g} h) - consider moving a session elsewhere")

    for gap in gaps:
        if gap.duration >= settings.large_gap_minutes:
            out.append(
                f"{gap.day.value} has a {gap.duration} min gap "
                f"({format_minutes(gap.time_from)}-{format_minutes(gap.time_to)}) - consider rescheduling"
            )

    busy = [load.hours for load in by_day.values() if load.count > 0]
    if busy and max(busy) - min(busy) > settings.unbalanced_hours:
        out.append("The timetable is unbalanced - try moving sessions to less busy days")

    early = [s for s in slots if s.time_from < settings.early_start]
    if len(early) > settings.max_early_slots:
        out.append(f"You have {len(early)} early sessions - consider later alternatives")

    late = [s for s in slots if s.time_to > settings.late_end]
    if len(late) > settings.max_late_slots:
        out.append(f"You have {len(late)} late sessions - consider earlier alternatives")

    return out


def analyze_timetable(
    slots: Sequence[TimetableSlot],
    settings: AnalyzerSettings = DEFAULT_SETTINGS,
) -> TimetableAnalysis:
    """
    Compute per-day load, between-session gaps and suggestions.

    All five weekdays are present in ``by_day`` (canonical order), also the
    empty ones. Gaps before the first and after the last session of a day
    are not reported.
    """
    grouped: Dict[Day, List[TimetableSlot]] = defaultdict(list)
    for slot in slots:
        grouped[slot.day].append(slot)

    by_day: Dict[Day, DayLoad] = {}
    gaps: List[Gap] = []
    for day in Day:
        day_slots = sorted(grouped.get(day, []), key=_day_sort_key)
        minutes = sum(duration(s) for s in day_slots)
        by_day[day] = DayLoad(count=len(day_slots), hours=round(minutes / 60, 2))
        gaps.extend(_find_gaps(day, day_slots))

    return TimetableAnalysis(
        by_day=by_day,
        gaps=gaps,
        suggestions=_suggestions(by_day, gaps, slots, settings),
    )
