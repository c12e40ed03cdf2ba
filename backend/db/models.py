import uuid
from datetime import datetime
from sqlalchemy import (
    Column, Integer, Text, Float, Boolean, Date, Index,
    DateTime,
)
from db.database import Base


def _new_event_id() -> str:
    return str(uuid.uuid4())


class HealthEvent(Base):
    """Single-table row for every timeline event; columns are type-specific."""

    __tablename__ = "events"

    id = Column(Text, primary_key=True, default=_new_event_id)
    user_id = Column(Text, nullable=False)
    type = Column(Text, nullable=False)  # lab_result | doctor_visit | medication | intervention | metric | vice
    date = Column(Date, nullable=False)
    title = Column(Text, nullable=False)
    notes = Column(Text)
    tags = Column(Text)  # JSON array
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Lab result
    lab_name = Column(Text)
    ordering_doctor = Column(Text)
    biomarkers = Column(Text)  # JSON array of {name, value, unit, flag, refMin, refMax}

    # Doctor visit
    doctor_name = Column(Text)
    specialty = Column(Text)
    facility = Column(Text)
    diagnosis = Column(Text)  # JSON array
    follow_up = Column(Text)

    # Medication
    medication_name = Column(Text)
    dosage = Column(Text)
    frequency = Column(Text)
    prescriber = Column(Text)
    reason = Column(Text)
    start_date = Column(Date)
    end_date = Column(Date)
    is_active = Column(Boolean, default=True)
    side_effects = Column(Text)  # JSON array

    # Intervention
    intervention_name = Column(Text)
    category = Column(Text)  # diet | exercise | supplement | sleep | stress | other
    protocol = Column(Text)

    # Metric
    source = Column(Text)  # whoop | oura | apple_health | garmin | manual
    metric_name = Column(Text)
    value = Column(Float)
    unit = Column(Text)

    # Vice
    vice_category = Column(Text)  # alcohol | pornography | smoking | drugs
    vice_quantity = Column(Float)
    vice_unit = Column(Text)
    vice_context = Column(Text)
    vice_trigger = Column(Text)

    __table_args__ = (
        Index("idx_events_user_date", "user_id", "date"),
        Index("idx_events_user_type", "user_id", "type"),
    )


class BiomarkerStandard(Base):
    __tablename__ = "biomarker_standards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    aliases = Column(Text)  # JSON array
    category = Column(Text, nullable=False)
    standard_unit = Column(Text)
    display_order = Column(Integer, default=1000)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, unique=True, nullable=False)
    display_name = Column(Text)
    gender = Column(Text)  # male | female | other
    date_of_birth = Column(Date)
    height_cm = Column(Float)
    weight_kg = Column(Float)
    medical_conditions = Column(Text)  # JSON array
    current_medications = Column(Text)  # JSON array
    allergies = Column(Text)  # JSON array
    surgical_history = Column(Text)  # JSON array
    family_history = Column(Text)  # JSON object: condition -> [relatives]
    smoking_status = Column(Text)  # never | former | current
    alcohol_frequency = Column(Text)  # never | occasional | moderate | heavy
    exercise_frequency = Column(Text)  # sedentary | light | moderate | active | very_active
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
