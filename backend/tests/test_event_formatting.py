from __future__ import annotations

import sys
from datetime import date
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.health_records import (  # noqa: E402
    BiomarkerValue,
    DoctorVisitRecord,
    EventRecord,
    InterventionRecord,
    LabResultRecord,
    MedicationRecord,
    MetricRecord,
    ViceRecord,
)
from utils.event_formatting import format_biomarker, format_event  # noqa: E402


BASE_KEYS = {"id", "type", "date", "title", "notes", "tags"}


def test_lab_result_adds_lab_fields_and_mapped_biomarkers():
    record = LabResultRecord(
        id="lab-1",
        type="lab_result",
        date=date(2025, 3, 4),
        title="Annual panel",
        tags=("annual",),
        lab_name="Quest",
        ordering_doctor="Dr. Patel",
        biomarkers=(
            BiomarkerValue(name="Glucose", value=92, unit="mg/dL", ref_min=70, ref_max=99),
            BiomarkerValue(name="LDL", value=141, unit="mg/dL", flag="high", ref_max=100),
        ),
    )

    payload = format_event(record)

    assert set(payload) == BASE_KEYS | {"labName", "orderingDoctor", "biomarkers"}
    assert payload["date"] == "2025-03-04"
    assert payload["notes"] is None
    assert payload["tags"] == ["annual"]
    assert payload["biomarkers"] == [
        {"name": "Glucose", "value": 92, "unit": "mg/dL", "flag": "normal", "referenceRange": "70-99"},
        {"name": "LDL", "value": 141, "unit": "mg/dL", "flag": "high", "referenceRange": None},
    ]


def test_reference_range_renders_whole_floats_without_decimals():
    b = BiomarkerValue(name="TSH", value=2.1, unit="mIU/L", ref_min=0.4, ref_max=4.0)
    assert format_biomarker(b)["referenceRange"] == "0.4-4"


def test_doctor_visit_fields():
    record = DoctorVisitRecord(
        id="v-1",
        type="doctor_visit",
        date=date(2025, 1, 2),
        title="Cardiology follow-up",
        doctor_name="Dr. Kim",
        specialty="Cardiology",
        diagnosis=("Hypertension",),
    )
    payload = format_event(record)
    assert payload["doctorName"] == "Dr. Kim"
    assert payload["diagnosis"] == ["Hypertension"]
    assert payload["followUp"] is None
    assert set(payload) == BASE_KEYS | {"doctorName", "specialty", "facility", "diagnosis", "followUp"}


def test_medication_fields():
    record = MedicationRecord(
        id="m-1",
        type="medication",
        date=date(2024, 6, 1),
        title="Statin",
        medication_name="Atorvastatin",
        dosage="10mg",
        start_date=date(2024, 6, 1),
        is_active=True,
        side_effects=("myalgia",),
    )
    payload = format_event(record)
    assert payload["medicationName"] == "Atorvastatin"
    assert payload["startDate"] == "2024-06-01"
    assert payload["endDate"] is None
    assert payload["isActive"] is True
    assert payload["sideEffects"] == ["myalgia"]


def test_intervention_metric_and_vice_fields():
    intervention = format_event(
        InterventionRecord(
            id="i-1",
            type="intervention",
            date=date(2025, 2, 1),
            title="Zone 2",
            intervention_name="Zone 2 cardio",
            category="exercise",
            protocol="3x45min",
        )
    )
    metric = format_event(
        MetricRecord(
            id="mt-1",
            type="metric",
            date=date(2025, 2, 2),
            title="HRV",
            metric_name="hrv",
            value=54,
            unit="ms",
            source="oura",
        )
    )
    vice = format_event(
        ViceRecord(
            id="vc-1",
            type="vice",
            date=date(2025, 2, 3),
            title="Drinks",
            category="alcohol",
            quantity=2,
            unit="drinks",
            context="social",
        )
    )
    assert intervention["interventionName"] == "Zone 2 cardio"
    assert intervention["protocol"] == "3x45min"
    assert metric["metricName"] == "hrv"
    assert metric["value"] == 54
    assert vice["category"] == "alcohol"
    assert vice["amount"] == 2
    assert vice["trigger"] is None


def test_unrecognized_type_gets_base_fields_only():
    record = EventRecord(id="n-1", type="journal", date=date(2025, 5, 5), title="Note", notes="felt fine")
    assert format_event(record) == {
        "id": "n-1",
        "type": "journal",
        "date": "2025-05-05",
        "title": "Note",
        "notes": "felt fine",
        "tags": [],
    }


def test_formatting_is_deterministic():
    record = MetricRecord(id="mt-2", type="metric", date=date(2025, 1, 1), title="Weight", value=80.5)
    assert format_event(record) == format_event(record)
    assert format_event(record) is not format_event(record)
