from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

from config import settings
from services.health_records import BiomarkerValue, LabResultRecord, MedicationRecord, Number, UserProfileRecord
from services.record_store import EventQuery
from tools.base import (
    LimitBounds,
    ToolContext,
    ToolResult,
    flag,
    optional_date,
    optional_string,
    string_list,
)
from tools.registry import ToolRegistry
from utils.biomarker_matching import SubstringBiomarkerMatcher
from utils.event_formatting import format_biomarker, format_event, iso_date
from utils.trends import classify_trend

logger = logging.getLogger(__name__)


SEARCH_EVENTS_LIMITS = LimitBounds(
    default=settings.SEARCH_EVENTS_DEFAULT_LIMIT,
    maximum=settings.SEARCH_EVENTS_MAX_LIMIT,
)
RECENT_LABS_LIMITS = LimitBounds(
    default=settings.RECENT_LABS_DEFAULT_LIMIT,
    maximum=settings.RECENT_LABS_MAX_LIMIT,
)

EVENT_NOT_FOUND = "Event not found"
NO_PROFILE_MESSAGE = "No profile found for this user"

# Wildcards and escape characters carry meaning in LIKE patterns.
_SEARCH_STRIP_RE = re.compile(r"[%_*\\]")


def sanitize_search_text(raw: str | None) -> str | None:
    if not raw:
        return None
    cleaned = " ".join(_SEARCH_STRIP_RE.sub("", raw).split())
    return cleaned or None


def _date_range_label(start: date | None, end: date | None) -> str:
    if start is None and end is None:
        return "all time"
    return f"{iso_date(start) or 'any'} to {iso_date(end) or 'any'}"


# ---------------------------------------------------------------------------
# search_events
# ---------------------------------------------------------------------------

def _tool_search_events(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    limit = SEARCH_EVENTS_LIMITS.clamp(args.get("limit"))
    event_types = string_list(args, "event_types")
    start = optional_date(args, "start_date")
    end = optional_date(args, "end_date")
    query_text = optional_string(args, "query")

    records = ctx.store.list_events(
        EventQuery(
            user_id=ctx.user_id,
            event_types=event_types,
            start_date=start,
            end_date=end,
            text=sanitize_search_text(query_text),
            limit=limit,
        )
    )
    events = [format_event(r) for r in records]
    return ToolResult.ok(
        {
            "events": events,
            "count": len(events),
            "query": query_text,
            "filters": {
                "types": list(event_types) if event_types else "all",
                "dateRange": _date_range_label(start, end),
            },
        }
    )


# ---------------------------------------------------------------------------
# get_biomarker_history
# ---------------------------------------------------------------------------

def _measurement(lab: LabResultRecord, b: BiomarkerValue) -> dict[str, Any]:
    return {
        "date": iso_date(lab.date),
        "labName": lab.lab_name,
        "name": b.name,
        "value": b.value,
        "unit": b.unit,
        "flag": b.flag,
        "refMin": b.ref_min,
        "refMax": b.ref_max,
    }


def _tool_get_biomarker_history(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    raw_name = str(args.get("biomarker_name"))
    start = optional_date(args, "start_date")
    end = optional_date(args, "end_date")

    matcher = SubstringBiomarkerMatcher(ctx.store.list_biomarker_standards())
    terms = matcher.resolve(raw_name)

    labs = ctx.store.list_events(
        EventQuery(
            user_id=ctx.user_id,
            event_types=("lab_result",),
            start_date=start,
            end_date=end,
            require_biomarkers=True,
            newest_first=False,
        )
    )

    measurements: list[dict[str, Any]] = []
    for lab in labs:
        if not isinstance(lab, LabResultRecord) or not lab.biomarkers:
            continue
        for b in lab.biomarkers:
            if matcher.matches(b.name, terms):
                measurements.append(_measurement(lab, b))

    series = [m["value"] for m in measurements if m["value"] is not None]
    trend = classify_trend(series, settings.BIOMARKER_TREND_STABLE_PCT)
    logger.debug("Biomarker history resolved %d terms, %d measurements", len(terms), len(measurements))

    return ToolResult.ok(
        {
            "biomarker": args.get("biomarker_name"),
            "measurements": measurements,
            "count": len(measurements),
            "trend": trend,
            "dateRange": (
                f"{measurements[0]['date']} to {measurements[-1]['date']}" if measurements else "no data"
            ),
        }
    )


# ---------------------------------------------------------------------------
# get_profile
# ---------------------------------------------------------------------------

def age_on(date_of_birth: date | None, today: date) -> int | None:
    if date_of_birth is None:
        return None
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def body_mass_index(height_cm: Number | None, weight_kg: Number | None) -> float | None:
    if not height_cm or not weight_kg or height_cm <= 0:
        return None
    height_m = height_cm / 100.0
    return round(weight_kg / (height_m ** 2), 1)


def _profile_payload(profile: UserProfileRecord, sections: set[str], today: date) -> dict[str, Any]:
    wants_all = not sections or "all" in sections

    def wants(section: str) -> bool:
        return wants_all or section in sections

    result: dict[str, Any] = {}
    if wants("demographics"):
        result["demographics"] = {
            "displayName": profile.display_name,
            "age": age_on(profile.date_of_birth, today),
            "gender": profile.gender,
            "dateOfBirth": iso_date(profile.date_of_birth),
            "heightCm": profile.height_cm,
            "weightKg": profile.weight_kg,
            "bmi": body_mass_index(profile.height_cm, profile.weight_kg),
        }
    if wants("medical_history"):
        result["medicalHistory"] = {
            "conditions": list(profile.medical_conditions),
            "surgicalHistory": list(profile.surgical_history),
        }
    if wants("medications"):
        result["currentMedications"] = list(profile.current_medications)
    if wants("allergies"):
        result["allergies"] = list(profile.allergies)
    if wants("family_history"):
        result["familyHistory"] = {k: list(v) for k, v in profile.family_history.items()}
    if wants("lifestyle"):
        result["lifestyle"] = {
            "smokingStatus": profile.smoking_status,
            "alcoholFrequency": profile.alcohol_frequency,
            "exerciseFrequency": profile.exercise_frequency,
        }
    return result


def _tool_get_profile(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    profile = ctx.store.get_profile(ctx.user_id)
    if profile is None:
        return ToolResult.ok({"profile": None, "message": NO_PROFILE_MESSAGE})
    sections = set(string_list(args, "sections"))
    return ToolResult.ok({"profile": _profile_payload(profile, sections, ctx.now().date())})


# ---------------------------------------------------------------------------
# get_recent_labs
# ---------------------------------------------------------------------------

def _tool_get_recent_labs(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    limit = RECENT_LABS_LIMITS.clamp(args.get("limit"))
    records = ctx.store.list_events(
        EventQuery(user_id=ctx.user_id, event_types=("lab_result",), limit=limit)
    )
    labs = [
        {
            "id": lab.id,
            "date": iso_date(lab.date),
            "title": lab.title,
            "labName": lab.lab_name,
            "orderingDoctor": lab.ordering_doctor,
            "biomarkers": [format_biomarker(b) for b in lab.biomarkers or ()],
            "notes": lab.notes,
        }
        for lab in records
        if isinstance(lab, LabResultRecord)
    ]
    return ToolResult.ok({"labs": labs, "count": len(labs)})


# ---------------------------------------------------------------------------
# get_medications
# ---------------------------------------------------------------------------

def _tool_get_medications(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    active_only = flag(args, "active_only", default=True)
    records = ctx.store.list_events(
        EventQuery(user_id=ctx.user_id, event_types=("medication",), active_only=active_only)
    )
    medications = [
        {
            "id": med.id,
            "name": med.medication_name or med.title,
            "dosage": med.dosage,
            "frequency": med.frequency,
            "prescriber": med.prescriber,
            "reason": med.reason,
            "startDate": iso_date(med.start_date or med.date),
            "endDate": iso_date(med.end_date),
            "isActive": med.is_active,
            "sideEffects": list(med.side_effects),
            "notes": med.notes,
        }
        for med in records
        if isinstance(med, MedicationRecord)
    ]
    return ToolResult.ok({"medications": medications, "count": len(medications), "activeOnly": active_only})


# ---------------------------------------------------------------------------
# get_event_details
# ---------------------------------------------------------------------------

def _tool_get_event_details(args: dict[str, Any], ctx: ToolContext) -> ToolResult:
    event_id = str(args.get("event_id")).strip()
    record = ctx.store.get_event(event_id, ctx.user_id)
    if record is None:
        return ToolResult.fail(EVENT_NOT_FOUND)
    return ToolResult.ok({"event": format_event(record)})


def register_health_record_tools(registry: ToolRegistry) -> None:
    registry.register("search_events", _tool_search_events)
    registry.register("get_biomarker_history", _tool_get_biomarker_history)
    registry.register("get_profile", _tool_get_profile)
    registry.register("get_recent_labs", _tool_get_recent_labs)
    registry.register("get_medications", _tool_get_medications)
    registry.register("get_event_details", _tool_get_event_details)
