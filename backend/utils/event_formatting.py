from __future__ import annotations

from datetime import date
from typing import Any, Callable

from services.health_records import (
    BiomarkerValue,
    DoctorVisitRecord,
    EventRecord,
    HealthEventRecord,
    InterventionRecord,
    LabResultRecord,
    MedicationRecord,
    MetricRecord,
    Number,
    ViceRecord,
)


def iso_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _plain_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def reference_range(b: BiomarkerValue) -> str | None:
    if b.ref_min is None or b.ref_max is None:
        return None
    return f"{_plain_number(b.ref_min)}-{_plain_number(b.ref_max)}"


def format_biomarker(b: BiomarkerValue) -> dict[str, Any]:
    return {
        "name": b.name,
        "value": b.value,
        "unit": b.unit,
        "flag": b.flag or "normal",
        "referenceRange": reference_range(b),
    }


def _base(record: EventRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "type": record.type,
        "date": iso_date(record.date),
        "title": record.title,
        "notes": record.notes or None,
        "tags": list(record.tags),
    }


def _lab_result(record: LabResultRecord) -> dict[str, Any]:
    return {
        "labName": record.lab_name,
        "orderingDoctor": record.ordering_doctor,
        "biomarkers": [format_biomarker(b) for b in record.biomarkers or ()],
    }


def _doctor_visit(record: DoctorVisitRecord) -> dict[str, Any]:
    return {
        "doctorName": record.doctor_name,
        "specialty": record.specialty,
        "facility": record.facility,
        "diagnosis": list(record.diagnosis),
        "followUp": record.follow_up,
    }


def _medication(record: MedicationRecord) -> dict[str, Any]:
    return {
        "medicationName": record.medication_name,
        "dosage": record.dosage,
        "frequency": record.frequency,
        "prescriber": record.prescriber,
        "reason": record.reason,
        "startDate": iso_date(record.start_date),
        "endDate": iso_date(record.end_date),
        "isActive": record.is_active,
        "sideEffects": list(record.side_effects),
    }


def _intervention(record: InterventionRecord) -> dict[str, Any]:
    return {
        "interventionName": record.intervention_name,
        "category": record.category,
        "protocol": record.protocol,
        "startDate": iso_date(record.start_date),
        "endDate": iso_date(record.end_date),
    }


def _metric(record: MetricRecord) -> dict[str, Any]:
    return {
        "metricName": record.metric_name,
        "value": record.value,
        "unit": record.unit,
        "source": record.source,
    }


def _vice(record: ViceRecord) -> dict[str, Any]:
    return {
        "category": record.category,
        "amount": record.quantity,
        "unit": record.unit,
        "context": record.context,
        "trigger": record.trigger,
    }


_VARIANT_FIELDS: dict[type, Callable[[Any], dict[str, Any]]] = {
    LabResultRecord: _lab_result,
    DoctorVisitRecord: _doctor_visit,
    MedicationRecord: _medication,
    InterventionRecord: _intervention,
    MetricRecord: _metric,
    ViceRecord: _vice,
}


def format_event(record: HealthEventRecord) -> dict[str, Any]:
    """Render a typed event as the stable dict handed back to the model.

    Base fields are always present; the record's variant adds its own.
    Plain ``EventRecord`` instances (unrecognized types) get base fields only.
    """
    payload = _base(record)
    variant = _VARIANT_FIELDS.get(type(record))
    if variant is not None:
        payload.update(variant(record))
    return payload
