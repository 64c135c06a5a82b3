"""
Persistent storage for the user's slot selection.

This module manages the file (see config.default_selection_path):

    data/selected_slots.json

The catalog snapshot holds the complete course data, the selection file only
the user's personal (course_id, slot_id) choices, so refreshing the catalog
never loses what the user picked.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

from creditplanner import config
from creditplanner.errors import ValidationError
from creditplanner.model import Selection
from creditplanner.schemas import SelectionIn, validate


def load_selected_slots(path: str | Path | None = None) -> List[Selection]:
    """
    Load the selection from selected_slots.json.

    Returns an empty list if the file does not exist or is invalid;
    malformed entries are ignored.
    """
    selected_path = Path(path) if path is not None else config.default_selection_path()

    # First run: nothing selected yet
    if not selected_path.exists():
        return []

    try:
        data = json.loads(selected_path.read_text(encoding="utf-8"))
        items = data.get("selected_slots", [])
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        return []
    if not isinstance(items, list):
        return []

    out: set = set()
    for item in items:
        try:
            out.add(validate(SelectionIn, item).to_model())
        except ValidationError:
            continue
    return sorted(out)


def save_selected_slots(selections: Iterable[Selection], path: str | Path | None = None) -> None:
    """
    Save the selection to selected_slots.json (de-duplicated, sorted).

    Creates parent directories if needed.
    """
    selected_path = Path(path) if path is not None else config.default_selection_path()
    selected_path.parent.mkdir(parents=True, exist_ok=True)

    norm = sorted(set(selections))
    payload = {"selected_slots": [{"course_id": s.course_id, "slot_id": s.slot_id} for s in norm]}

    selected_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
