"""Typed health records decoded from database rows.

The ``events`` table stores every timeline entry in one wide row with
type-specific nullable columns.  Rows are converted exactly once, here, into
one frozen dataclass per event type so handlers and formatters never deal
with columns that do not belong to the record's type.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Union

from db.models import BiomarkerStandard, HealthEvent, UserProfile


Number = Union[int, float]


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BiomarkerValue:
    name: str
    value: Number | None
    unit: str | None = None
    flag: str | None = None
    ref_min: Number | None = None
    ref_max: Number | None = None


@dataclass(frozen=True, kw_only=True)
class EventRecord:
    """Fields shared by every event type.  Also used for unrecognized types."""
    id: str
    type: str
    date: date
    title: str
    notes: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class LabResultRecord(EventRecord):
    lab_name: str | None = None
    ordering_doctor: str | None = None
    biomarkers: tuple[BiomarkerValue, ...] | None = None


@dataclass(frozen=True, kw_only=True)
class DoctorVisitRecord(EventRecord):
    doctor_name: str | None = None
    specialty: str | None = None
    facility: str | None = None
    diagnosis: tuple[str, ...] = ()
    follow_up: str | None = None


@dataclass(frozen=True, kw_only=True)
class MedicationRecord(EventRecord):
    medication_name: str | None = None
    dosage: str | None = None
    frequency: str | None = None
    prescriber: str | None = None
    reason: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None
    side_effects: tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True)
class InterventionRecord(EventRecord):
    intervention_name: str | None = None
    category: str | None = None
    protocol: str | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(frozen=True, kw_only=True)
class MetricRecord(EventRecord):
    metric_name: str | None = None
    value: Number | None = None
    unit: str | None = None
    source: str | None = None


@dataclass(frozen=True, kw_only=True)
class ViceRecord(EventRecord):
    category: str | None = None
    quantity: Number | None = None
    unit: str | None = None
    context: str | None = None
    trigger: str | None = None


HealthEventRecord = Union[
    LabResultRecord,
    DoctorVisitRecord,
    MedicationRecord,
    InterventionRecord,
    MetricRecord,
    ViceRecord,
    EventRecord,
]


@dataclass(frozen=True)
class BiomarkerStandardRecord:
    code: str
    name: str
    aliases: tuple[str, ...] = ()
    category: str | None = None
    standard_unit: str | None = None


@dataclass(frozen=True)
class UserProfileRecord:
    user_id: str
    display_name: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None
    height_cm: Number | None = None
    weight_kg: Number | None = None
    medical_conditions: tuple[str, ...] = ()
    current_medications: tuple[str, ...] = ()
    allergies: tuple[str, ...] = ()
    surgical_history: tuple[str, ...] = ()
    family_history: dict[str, list[str]] = field(default_factory=dict)
    smoking_status: str | None = None
    alcohol_frequency: str | None = None
    exercise_frequency: str | None = None


# ---------------------------------------------------------------------------
# Column decoding
# ---------------------------------------------------------------------------

def _json_value(raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return None


def _json_str_list(raw: str | None) -> tuple[str, ...]:
    parsed = _json_value(raw)
    if not isinstance(parsed, list):
        return ()
    return tuple(str(x).strip() for x in parsed if x is not None and str(x).strip())


def _json_family_history(raw: str | None) -> dict[str, list[str]]:
    parsed = _json_value(raw)
    if not isinstance(parsed, dict):
        return {}
    out: dict[str, list[str]] = {}
    for condition, relatives in parsed.items():
        if isinstance(relatives, list):
            out[str(condition)] = [str(r) for r in relatives if r is not None]
        elif relatives:
            out[str(condition)] = [str(relatives)]
    return out


def coerce_number(raw: Any) -> Number | None:
    """Return ``raw`` as an int/float, parsing numeric strings.  Booleans and non-finite values are rejected."""
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        return raw if math.isfinite(raw) else None
    if isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
        return value if math.isfinite(value) else None
    return None


def _optional_text(raw: Any) -> str | None:
    if raw is None:
        return None
    text = str(raw)
    return text


def _biomarker_from_item(item: dict[str, Any]) -> BiomarkerValue:
    return BiomarkerValue(
        name=str(item.get("name") or ""),
        value=coerce_number(item.get("value")),
        unit=_optional_text(item.get("unit")),
        flag=_optional_text(item.get("flag")) or None,
        ref_min=coerce_number(item.get("refMin", item.get("ref_min"))),
        ref_max=coerce_number(item.get("refMax", item.get("ref_max"))),
    )


def _biomarker_list(raw: str | None) -> tuple[BiomarkerValue, ...] | None:
    parsed = _json_value(raw)
    if not isinstance(parsed, list):
        return None
    return tuple(_biomarker_from_item(item) for item in parsed if isinstance(item, dict))


# ---------------------------------------------------------------------------
# Row -> record
# ---------------------------------------------------------------------------

def _base_fields(row: HealthEvent) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "type": row.type,
        "date": row.date,
        "title": row.title,
        "notes": row.notes,
        "tags": _json_str_list(row.tags),
    }


def _lab_result(row: HealthEvent) -> LabResultRecord:
    return LabResultRecord(
        **_base_fields(row),
        lab_name=row.lab_name,
        ordering_doctor=row.ordering_doctor,
        biomarkers=_biomarker_list(row.biomarkers),
    )


def _doctor_visit(row: HealthEvent) -> DoctorVisitRecord:
    return DoctorVisitRecord(
        **_base_fields(row),
        doctor_name=row.doctor_name,
        specialty=row.specialty,
        facility=row.facility,
        diagnosis=_json_str_list(row.diagnosis),
        follow_up=row.follow_up,
    )


def _medication(row: HealthEvent) -> MedicationRecord:
    return MedicationRecord(
        **_base_fields(row),
        medication_name=row.medication_name,
        dosage=row.dosage,
        frequency=row.frequency,
        prescriber=row.prescriber,
        reason=row.reason,
        start_date=row.start_date,
        end_date=row.end_date,
        is_active=row.is_active,
        side_effects=_json_str_list(row.side_effects),
    )


def _intervention(row: HealthEvent) -> InterventionRecord:
    return InterventionRecord(
        **_base_fields(row),
        intervention_name=row.intervention_name,
        category=row.category,
        protocol=row.protocol,
        start_date=row.start_date,
        end_date=row.end_date,
    )


def _metric(row: HealthEvent) -> MetricRecord:
    return MetricRecord(
        **_base_fields(row),
        metric_name=row.metric_name,
        value=coerce_number(row.value),
        unit=row.unit,
        source=row.source,
    )


def _vice(row: HealthEvent) -> ViceRecord:
    return ViceRecord(
        **_base_fields(row),
        category=row.vice_category,
        quantity=coerce_number(row.vice_quantity),
        unit=row.vice_unit,
        context=row.vice_context,
        trigger=row.vice_trigger,
    )


_ROW_CONVERTERS: dict[str, Callable[[HealthEvent], HealthEventRecord]] = {
    "lab_result": _lab_result,
    "doctor_visit": _doctor_visit,
    "medication": _medication,
    "intervention": _intervention,
    "metric": _metric,
    "vice": _vice,
}


def event_from_row(row: HealthEvent) -> HealthEventRecord:
    converter = _ROW_CONVERTERS.get(row.type)
    if converter is None:
        return EventRecord(**_base_fields(row))
    return converter(row)


def standard_from_row(row: BiomarkerStandard) -> BiomarkerStandardRecord:
    return BiomarkerStandardRecord(
        code=row.code or "",
        name=row.name or "",
        aliases=_json_str_list(row.aliases),
        category=row.category,
        standard_unit=row.standard_unit,
    )


def profile_from_row(row: UserProfile) -> UserProfileRecord:
    return UserProfileRecord(
        user_id=row.user_id,
        display_name=row.display_name,
        gender=row.gender,
        date_of_birth=row.date_of_birth,
        height_cm=coerce_number(row.height_cm),
        weight_kg=coerce_number(row.weight_kg),
        medical_conditions=_json_str_list(row.medical_conditions),
        current_medications=_json_str_list(row.current_medications),
        allergies=_json_str_list(row.allergies),
        surgical_history=_json_str_list(row.surgical_history),
        family_history=_json_family_history(row.family_history),
        smoking_status=row.smoking_status,
        alcohol_frequency=row.alcohol_frequency,
        exercise_frequency=row.exercise_frequency,
    )
