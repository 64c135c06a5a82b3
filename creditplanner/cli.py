"""
CLI (Command Line Interface).

Terminal front-end over the timetable engine, e.g.:

    creditplanner select add <course_id> <slot_id>
    creditplanner conflicts
    creditplanner analyze
    creditplanner alternatives <course_id> --limit 3
    creditplanner generate <study_plan_id> --semester ZS --year 2025 --electives

Course data comes from a catalog snapshot (--catalog, default
data/catalog.json) or from a catalog API (--api-url). Results are printed as
rich tables, or as the raw API payload with --json.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, List

from rich import box
from rich.console import Console
from rich.table import Table

from creditplanner import config
from creditplanner.catalog import CatalogSource, HttpCatalog, load_catalog
from creditplanner.conflicts import resolve_selections
from creditplanner.errors import CatalogError, CreditPlannerError, NotFoundError
from creditplanner.intervals import format_minutes
from creditplanner.model import Selection
from creditplanner.service import TimetableService
from creditplanner.storage import load_selected_slots, save_selected_slots

console = Console()
err_console = Console(stderr=True)


def _open_catalog(args: argparse.Namespace) -> CatalogSource:
    url = args.api_url or config.api_url()
    if url:
        return HttpCatalog(url)
    return load_catalog(args.catalog)


def _emit_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _time_range(item: Dict[str, Any], start: str = "time_from", end: str = "time_to") -> str:
    return f"{format_minutes(item[start])}-{format_minutes(item[end])}"


def _current_slots(args: argparse.Namespace, catalog: CatalogSource) -> List[Dict[str, Any]]:
    selections = load_selected_slots(args.selection)
    return [s.to_dict() for s in resolve_selections(selections, catalog)]


# ---------------------------------------------------------------------------
# select
# ---------------------------------------------------------------------------


def _cmd_select(args: argparse.Namespace) -> int:
    """
    Manage the persistent selection (selected_slots.json).
    """
    selected = set(load_selected_slots(args.selection))

    if args.action == "list":
        if not selected:
            console.print("No slots selected.")
            return 0
        for sel in sorted(selected):
            console.print(f"course {sel.course_id} | slot {sel.slot_id}")
        return 0

    if args.action == "clear":
        save_selected_slots([], args.selection)
        console.print("Selection cleared.")
        return 0

    sel = Selection(args.course_id, args.slot_id)

    if args.action == "add":
        if sel in selected:
            console.print(f"Already selected: course {sel.course_id} slot {sel.slot_id}")
            return 0
        # optional validation: allow adding unknown slots, but warn
        try:
            _open_catalog(args).resolve_slot(sel.course_id, sel.slot_id)
        except NotFoundError:
            console.print(f"Warning: slot {sel.slot_id} of course {sel.course_id} not in catalog (adding anyway).")
        except CatalogError as exc:
            console.print(f"Warning: catalog unavailable, selection not validated ({exc}).")
        selected.add(sel)
        save_selected_slots(selected, args.selection)
        console.print(f"Added: course {sel.course_id} slot {sel.slot_id} (selected: {len(selected)})")
        return 0

    if sel not in selected:
        console.print(f"Not selected: course {sel.course_id} slot {sel.slot_id}")
        return 0
    selected.remove(sel)
    save_selected_slots(selected, args.selection)
    console.print(f"Removed: course {sel.course_id} slot {sel.slot_id} (selected: {len(selected)})")
    return 0


# ---------------------------------------------------------------------------
# engine commands
# ---------------------------------------------------------------------------


def _conflict_table(conflicts: List[Dict[str, Any]], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Day")
    table.add_column("Course")
    table.add_column("Time")
    table.add_column("Clashes with")
    table.add_column("Overlap")
    for c in conflicts:
        table.add_row(
            c["day"],
            f"{c['course_ident']} (slot {c['slot_id']})",
            _time_range(c),
            f"{c['other_course_ident']} (slot {c['other_slot_id']})",
            _time_range(c, "overlap_from", "overlap_to"),
        )
    return table


def _cmd_conflicts(args: argparse.Namespace) -> int:
    """
    Print all detected conflicts among the selected slots.
    """
    selections = load_selected_slots(args.selection)
    payload = {"selections": [{"course_id": s.course_id, "slot_id": s.slot_id} for s in selections]}
    result = TimetableService(_open_catalog(args)).conflicts(payload)

    if args.json:
        _emit_json(result)
        return 0
    if not result["has_conflicts"]:
        console.print("No conflicts found.")
        return 0
    console.print(_conflict_table(result["conflicts"], f"Conflicts found: {len(result['conflicts'])}"))
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    catalog = _open_catalog(args)
    result = TimetableService(catalog).analyze({"slots": _current_slots(args, catalog)})

    if args.json:
        _emit_json(result)
        return 0

    table = Table(title="Load by day", box=box.SIMPLE)
    table.add_column("Day")
    table.add_column("Sessions", justify="right")
    table.add_column("Hours", justify="right")
    for day, load in result["byDay"].items():
        table.add_row(day, str(load["count"]), f"{load['hours']:g}")
    console.print(table)

    for gap in result["gaps"]:
        console.print(f"Gap: {gap['day']} {_time_range(gap, 'from', 'to')} ({gap['duration']} min)")
    for text in result["suggestions"]:
        console.print(f"[yellow]- {text}[/yellow]")
    return 0


def _cmd_alternatives(args: argparse.Namespace) -> int:
    catalog = _open_catalog(args)
    current = _current_slots(args, catalog)
    payload = {"course_id": args.course_id, "current_slots": current, "limit": args.limit}
    result = TimetableService(catalog).alternatives(payload)

    if args.json:
        _emit_json(result)
        return 0
    if not result["alternatives"]:
        console.print(f"No alternatives for course {args.course_id}.")
        return 0

    table = Table(title=f"Alternatives for course {args.course_id}", box=box.SIMPLE)
    table.add_column("Unit", justify="right")
    table.add_column("Type")
    table.add_column("Lecturer")
    table.add_column("Sessions")
    table.add_column("Note")
    for unit in result["alternatives"]:
        sessions = "; ".join(
            f"{s['day']} {_time_range(s)}" + (f" @ {s['location']}" if s.get("location") else "")
            for s in unit["slots"]
        )
        table.add_row(
            str(unit["unit_id"]), unit["unit_type"], unit.get("lecturer") or "", sessions, unit.get("note") or ""
        )
    console.print(table)
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    payload: Dict[str, Any] = {
        "study_plan_id": args.study_plan_id,
        "semester": args.semester,
        "year": args.year,
        "include_electives": args.electives,
    }
    if args.day:
        payload["preferred_days"] = args.day
    if args.time_from is not None:
        payload["preferred_time_from"] = args.time_from
    if args.time_to is not None:
        payload["preferred_time_to"] = args.time_to
    if args.max_ects is not None:
        payload["max_ects"] = args.max_ects

    result = TimetableService(_open_catalog(args)).generate(payload)
    if args.json:
        _emit_json(result)
        return 0

    timetable = result["timetable"]
    table = Table(title=f"Timetable for study plan {args.study_plan_id}", box=box.SIMPLE)
    table.add_column("Day")
    table.add_column("Time")
    table.add_column("Course")
    table.add_column("Unit", justify="right")
    table.add_column("Location")
    for s in timetable["slots"]:
        table.add_row(s["day"], _time_range(s), s["course_ident"], str(s["unit_id"]), s.get("location") or "")
    console.print(table)

    coverage = timetable["coverage"]
    console.print(
        f"ECTS: {timetable['total_ects']} | hours/week: {timetable['total_hours']:g} | "
        f"electives: {coverage['elective_count']} | "
        f"compulsory fulfilled: {'yes' if coverage['compulsory_fulfilled'] else 'no'}"
    )
    if coverage["missing_compulsory"]:
        console.print(f"Missing compulsory: {', '.join(coverage['missing_compulsory'])}")
    if timetable["conflicts"]:
        console.print(_conflict_table(timetable["conflicts"], "Unresolved conflicts"))
    for text in timetable["warnings"]:
        console.print(f"[yellow]- {text}[/yellow]")
    return 0


# ---------------------------------------------------------------------------
# parser / entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="creditplanner", description="Timetable planner CLI")
    parser.add_argument("--catalog", type=str, default=None, help="Catalog snapshot JSON (default: data/catalog.json)")
    parser.add_argument("--api-url", type=str, default=None, help="Read the catalog from this API instead")
    parser.add_argument("--selection", type=str, default=None, help="Selection file (default: data/selected_slots.json)")
    parser.add_argument("--json", action="store_true", help="Print raw JSON results")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_select = sub.add_parser("select", help="Manage selected slots")
    select_sub = p_select.add_subparsers(dest="action", required=True)
    for action, help_text in (("add", "Select a slot"), ("remove", "Unselect a slot")):
        p = select_sub.add_parser(action, help=help_text)
        p.add_argument("course_id", type=int, help="Course ID")
        p.add_argument("slot_id", type=int, help="Slot ID")
    select_sub.add_parser("list", help="List selected slots")
    select_sub.add_parser("clear", help="Clear the selection")

    sub.add_parser("conflicts", help="Show conflicts among selected slots")
    sub.add_parser("analyze", help="Analyze load and gaps of the selection")

    p_alt = sub.add_parser("alternatives", help="Suggest other units of a course")
    p_alt.add_argument("course_id", type=int, help="Course ID")
    p_alt.add_argument("--limit", type=int, default=config.DEFAULT_ALTERNATIVES_LIMIT, help="Max results (1-20)")

    p_gen = sub.add_parser("generate", help="Generate a timetable for a study plan")
    p_gen.add_argument("study_plan_id", type=int, help="Study plan ID")
    p_gen.add_argument("--semester", "-s", type=str, required=True, help="Semester code (ZS, LS)")
    p_gen.add_argument("--year", "-y", type=int, required=True, help="Academic year (e.g. 2025)")
    p_gen.add_argument("--day", action="append", help="Preferred day (repeatable, e.g. --day Mon --day Tue)")
    p_gen.add_argument("--from", dest="time_from", type=str, default=None, help="Preferred earliest start (HH:MM)")
    p_gen.add_argument("--to", dest="time_to", type=str, default=None, help="Preferred latest end (HH:MM)")
    p_gen.add_argument("--max-ects", type=float, default=None, help="ECTS limit for adding electives")
    p_gen.add_argument("--electives", action="store_true", help="Also place elective courses")

    return parser


COMMANDS = {
    "select": _cmd_select,
    "conflicts": _cmd_conflicts,
    "analyze": _cmd_analyze,
    "alternatives": _cmd_alternatives,
    "generate": _cmd_generate,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        code = COMMANDS[args.command](args)
    except CreditPlannerError as exc:
        err_console.print(f"Error: {exc}", markup=False)
        raise SystemExit(1)
    raise SystemExit(code)
