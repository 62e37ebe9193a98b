import json
import os
from typing import Iterator, List, Optional

from part_arrays import encode_part_array

DATA_DIR = "./data"

_ARRAY_FIELDS = ("points_earned", "disabled_parts")


def _ensure_data_dir():
    os.makedirs(DATA_DIR, exist_ok=True)


def _load(filename: str, default):
    path = os.path.join(DATA_DIR, filename)
    if not os.path.exists(path):
        return default
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _save(filename: str, data):
    _ensure_data_dir()
    with open(os.path.join(DATA_DIR, filename), "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def _next_id(records: dict) -> int:
    return max((int(k) for k in records), default=0) + 1


# ── Activities ────────────────────────────────────────────────────────────────

def load_activities() -> dict:
    """Return { activity_id (str): activity dict }"""
    return _load("activities.json", {})


def load_activity(activity_id: int) -> Optional[dict]:
    return load_activities().get(str(activity_id))


def save_activity(activity: dict) -> dict:
    activities = load_activities()
    if activity.get("id") is None:
        activity = {**activity, "id": _next_id(activities)}
    activities[str(activity["id"])] = activity
    _save("activities.json", activities)
    return activity


# ── Corrections ───────────────────────────────────────────────────────────────

def load_corrections() -> dict:
    """Return { correction_id (str): raw correction dict }

    Per-part arrays come back in their stored (textual) form.
    """
    return _load("corrections.json", {})


def load_correction(correction_id: int) -> Optional[dict]:
    return load_corrections().get(str(correction_id))


def load_corrections_for_activity(activity_id: int) -> List[dict]:
    return [
        c for c in load_corrections().values()
        if c.get("activity_id") == activity_id
    ]


def save_correction(correction: dict) -> dict:
    corrections = load_corrections()
    if correction.get("id") is None:
        correction = {**correction, "id": _next_id(corrections)}
    record = dict(correction)
    for field in _ARRAY_FIELDS:
        if isinstance(record.get(field), list):
            record[field] = encode_part_array(record[field])
    corrections[str(record["id"])] = record
    _save("corrections.json", corrections)
    return record


def delete_correction(correction_id: int) -> bool:
    corrections = load_corrections()
    if corrections.pop(str(correction_id), None) is None:
        return False
    _save("corrections.json", corrections)
    return True


def iter_correction_pages(page_size: int = 100,
                          start_after: Optional[int] = None) -> Iterator[List[dict]]:
    """Yield raw corrections in id order, *page_size* at a time.

    Each page is read fresh, so writes made between pages are visible and a
    caller can stop and later resume from the last id it handled.
    """
    cursor = start_after
    while True:
        ids = sorted(int(k) for k in load_corrections())
        if cursor is not None:
            ids = [i for i in ids if i > cursor]
        page_ids = ids[:page_size]
        if not page_ids:
            return
        corrections = load_corrections()
        page = [corrections[str(i)] for i in page_ids if str(i) in corrections]
        if page:
            yield page
        cursor = page_ids[-1]


# ── Grading policy ────────────────────────────────────────────────────────────

def save_grading_policy(policy: dict):
    _save("grading_policy.json", policy)


def load_grading_policy() -> Optional[dict]:
    return _load("grading_policy.json", None)
