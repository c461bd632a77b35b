"""
Form projection: merges assistant patches into the editable trip form and
finalizes the form into a persisted trip record.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..utils.dates import normalize_date_only
from .state import (
    DAY_TYPE_LABELS,
    DEFAULT_DAY_TYPE,
    DayPatch,
    FormActivity,
    FormDay,
    ItinerarySnapshot,
    Trip,
    TripDay,
    TripForm,
    is_day_type,
)

UNTITLED_DESTINATION = "Untitled trip"


class IncompleteTripError(ValueError):
    """Raised when a form cannot be finalized into a trip."""

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _details(value: Any) -> Dict[str, str]:
    # Unknown or cross-type keys are kept as they are
    if not isinstance(value, dict):
        return {}
    return {str(k): v if isinstance(v, str) else str(v) for k, v in value.items() if v is not None}


def empty_activity() -> FormActivity:
    return {"id": _new_id("temp-activity"), "title": "", "time": "", "location": ""}


def empty_day() -> FormDay:
    return {
        "id": _new_id("temp-day"),
        "date": "",
        "type": DEFAULT_DAY_TYPE,
        "title": "",
        "time": "",
        "location": "",
        "notes": "",
        "details": {},
        "activities": [empty_activity()],
        "checklistText": "",
        "attachments": [],
    }


def empty_form() -> TripForm:
    return {"destination": "", "startDate": "", "endDate": "", "days": [empty_day()]}


def _patch_activities(day: DayPatch) -> List[FormActivity]:
    raw = day.get("activities")
    activities: List[FormActivity] = []
    if isinstance(raw, list):
        for item in raw:
            if not isinstance(item, dict):
                continue
            activities.append({
                "id": _new_id("temp-activity"),
                "title": _text(item.get("title")),
                "time": _text(item.get("time")),
                "location": _text(item.get("location")),
            })
    if not activities:
        title, time, location = _text(day.get("title")), _text(day.get("time")), _text(day.get("location"))
        if title.strip() or time.strip() or location.strip():
            activities = [{"id": _new_id("temp-activity"), "title": title, "time": time, "location": location}]
    return activities


def _checklist_items(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _day_from_patch(day: DayPatch, prior: Optional[FormDay]) -> FormDay:
    """Full overwrite of the structured fields; only id and attachments survive."""
    activities = _patch_activities(day)
    day_type = day.get("type")
    if not is_day_type(day_type):
        if day_type is not None:
            logging.warning(f"Unknown day type '{day_type}', using '{DEFAULT_DAY_TYPE}'.")
        day_type = DEFAULT_DAY_TYPE
    return {
        "id": prior["id"] if prior else _new_id("temp-day"),
        "date": normalize_date_only(day.get("date")),
        "type": day_type,
        "title": _text(day.get("title")),
        "time": _text(day.get("time")),
        "location": _text(day.get("location")),
        "notes": _text(day.get("notes")),
        "details": _details(day.get("details")),
        "activities": activities or [empty_activity()],
        "checklistText": ", ".join(_checklist_items(day.get("checklistItems"))),
        "attachments": list(prior["attachments"]) if prior else [],
    }


def apply_agent_updates(form: TripForm, updates: Optional[ItinerarySnapshot]) -> TripForm:
    """
    Returns a new form with ``updates`` merged in.

    Scalar fields are overwritten only when present. A non-empty ``days`` list
    replaces the days positionally: day i keeps the prior day i identity and
    attachments, everything else comes from the patch. Extra patch days are
    appended as new days. A malformed entry leaves the prior day at its index
    untouched.
    """
    next_form: TripForm = {
        "destination": form["destination"],
        "startDate": form["startDate"],
        "endDate": form["endDate"],
        "days": list(form["days"]),
    }
    if not isinstance(updates, dict):
        return next_form

    if updates.get("destination") is not None:
        next_form["destination"] = _text(updates["destination"])
    if updates.get("startDate") is not None:
        next_form["startDate"] = normalize_date_only(updates["startDate"])
    if updates.get("endDate") is not None:
        next_form["endDate"] = normalize_date_only(updates["endDate"])

    days = updates.get("days")
    if isinstance(days, list) and days:
        patched = []
        for i, day in enumerate(days):
            prior = form["days"][i] if i < len(form["days"]) else None
            if not isinstance(day, dict):
                logging.warning(f"Skipping day {i} of unexpected type: {type(day)}")
                if prior is not None:
                    patched.append(prior)
                continue
            patched.append(_day_from_patch(day, prior))
        next_form["days"] = patched or [empty_day()]
    return next_form


def form_from_trip(trip: Trip) -> TripForm:
    """Seeds a form from a saved trip, for edit flows."""
    return {
        "destination": trip.get("destination", ""),
        "startDate": trip.get("startDate", ""),
        "endDate": trip.get("endDate", ""),
        "days": [
            {
                "id": day["id"],
                "date": day.get("date", ""),
                "type": day.get("type", DEFAULT_DAY_TYPE),
                "title": day.get("title", ""),
                "time": day.get("time", ""),
                "location": day.get("location", ""),
                "notes": day.get("notes", ""),
                "details": dict(day.get("details") or {}),
                "activities": list(day.get("activities") or []) or [empty_activity()],
                "checklistText": ", ".join(day.get("checklistItems") or []),
                "attachments": list(day.get("attachments") or []),
            }
            for day in trip.get("days", [])
        ] or [empty_day()],
    }


def form_to_snapshot(form: TripForm) -> ItinerarySnapshot:
    """Snapshot handed back to the assistant; empty strings become absent fields."""
    snapshot: ItinerarySnapshot = {}
    for key in ("destination", "startDate", "endDate"):
        if form[key]:
            snapshot[key] = form[key]

    days: List[DayPatch] = []
    for day in form["days"]:
        if not (day["date"].strip() or day["title"].strip()):
            continue
        patch: DayPatch = {"date": day["date"], "type": day["type"]}
        for key in ("title", "time", "location", "notes"):
            if day[key]:
                patch[key] = day[key]
        if day["details"]:
            patch["details"] = dict(day["details"])
        patch["activities"] = [
            {k: a[k] for k in ("title", "time", "location") if a.get(k)}
            for a in day["activities"]
        ]
        checklist = _split_checklist(day["checklistText"])
        if checklist:
            patch["checklistItems"] = checklist
        days.append(patch)
    snapshot["days"] = days
    return snapshot


def _split_checklist(text: str) -> List[str]:
    return [item.strip() for item in text.split(",") if item.strip()]


def _clean_activities(activities: List[FormActivity]) -> List[FormActivity]:
    cleaned = []
    for activity in activities:
        item: FormActivity = {
            "id": activity.get("id") or _new_id("temp-activity"),
            "title": _text(activity.get("title")).strip(),
            "time": _text(activity.get("time")).strip(),
            "location": _text(activity.get("location")).strip(),
        }
        if item["title"] or item["time"] or item["location"]:
            cleaned.append(item)
    return cleaned


def _is_filled(day: TripDay) -> bool:
    return bool(
        day["title"].strip()
        or day["date"].strip()
        or day["time"].strip()
        or day["location"].strip()
        or day["notes"].strip()
        or day["activities"]
        or day["checklistItems"]
        or day["attachments"]
    )


def _require_dates(days: List[TripDay]) -> None:
    without_date = [day for day in days if not day["date"]]
    if without_date:
        names = [
            day["title"] or (day["activities"][0]["title"] if day["activities"] else "") or "Untitled day"
            for day in without_date
        ]
        raise IncompleteTripError(
            f"Missing date for these days: {', '.join(names)}. "
            f"Fill in the date or ask the assistant: \"What is the date of {names[0]}?\"",
            names,
        )


def _ordered_trip(trip_id: str, destination: str, start_date: str, end_date: str,
                  days: List[TripDay], created_at: Optional[str]) -> Trip:
    ordered = sorted(days, key=lambda d: d["date"])
    now = _now_iso()
    return {
        "id": trip_id,
        "destination": destination,
        "startDate": normalize_date_only(start_date or (ordered[0]["date"] if ordered else "")),
        "endDate": normalize_date_only(end_date or (ordered[-1]["date"] if ordered else "")),
        "days": ordered,
        "createdAt": created_at or now,
        "updatedAt": now,
    }


def finalize_trip(form: TripForm, trip_id: Optional[str] = None,
                  created_at: Optional[str] = None) -> Trip:
    """
    Copies the form out as a persisted trip.

    Raises IncompleteTripError when the destination is missing, no day carries
    information, or a filled day has no date. Dates are never invented.
    """
    parsed: List[TripDay] = []
    for day in form["days"]:
        title = day["title"].strip()
        parsed.append({
            "id": day["id"],
            "date": normalize_date_only(day["date"]),
            "type": day["type"] if is_day_type(day["type"]) else DEFAULT_DAY_TYPE,
            "title": title,
            "time": day["time"],
            "location": day["location"],
            "notes": day["notes"],
            "details": dict(day["details"]),
            "activities": _clean_activities(day["activities"]),
            "checklistItems": _split_checklist(day["checklistText"]),
            "attachments": list(day["attachments"]),
        })
    filled = [day for day in parsed if _is_filled(day)]

    if not form["destination"].strip():
        raise IncompleteTripError("Fill in the trip destination.", ["destination"])
    if not filled:
        raise IncompleteTripError("Add at least one day with information.", ["days"])

    _require_dates(filled)

    for day in filled:
        if not day["title"]:
            day["title"] = DAY_TYPE_LABELS[day["type"]]

    return _ordered_trip(trip_id or uuid.uuid4().hex, form["destination"],
                         form["startDate"], form["endDate"], filled, created_at)


def build_trip_from_snapshot(snapshot: ItinerarySnapshot, trip_id: Optional[str] = None) -> Trip:
    """
    Builds a trip straight from a snapshot, as the one-shot attachment import does.

    Raises IncompleteTripError when the snapshot has no usable day or a day has
    no date.
    """
    days = snapshot.get("days") if isinstance(snapshot, dict) else None
    if not isinstance(days, list) or not days:
        raise IncompleteTripError("The assistant could not build any day from the attachments.", ["days"])

    trip_days: List[TripDay] = []
    for day in days:
        if not isinstance(day, dict):
            continue
        form_day = _day_from_patch(day, None)
        raw_activities = day.get("activities") if isinstance(day.get("activities"), list) else []
        trip_days.append({
            "id": _new_id("ai-day"),
            "date": form_day["date"],
            "type": form_day["type"],
            "title": form_day["title"].strip() or DAY_TYPE_LABELS[form_day["type"]],
            "time": form_day["time"],
            "location": form_day["location"],
            "notes": form_day["notes"],
            "details": form_day["details"],
            "activities": _clean_activities(form_day["activities"]) if raw_activities else [],
            "checklistItems": _checklist_items(day.get("checklistItems")),
            "attachments": [],
        })
    if not trip_days:
        raise IncompleteTripError("The assistant could not build any day from the attachments.", ["days"])
    _require_dates(trip_days)

    return _ordered_trip(trip_id or uuid.uuid4().hex,
                         _text(snapshot.get("destination")) or UNTITLED_DESTINATION,
                         _text(snapshot.get("startDate")), _text(snapshot.get("endDate")),
                         trip_days, None)
