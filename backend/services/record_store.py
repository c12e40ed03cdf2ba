"""Owner-scoped, read-only access to health events, profiles and biomarker standards.

Tool handlers only ever see a ``HealthRecordStore``.  The SQLAlchemy
implementation below is the production one; tests may pass any object that
satisfies the protocol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol, runtime_checkable

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import BiomarkerStandard, HealthEvent, UserProfile
from services.health_records import (
    BiomarkerStandardRecord,
    HealthEventRecord,
    UserProfileRecord,
    event_from_row,
    profile_from_row,
    standard_from_row,
)

logger = logging.getLogger(__name__)

# Columns matched by free-text search, OR-combined.
SEARCHABLE_TEXT_FIELDS: tuple[str, ...] = (
    "title",
    "notes",
    "doctor_name",
    "medication_name",
    "lab_name",
)


class RecordStoreError(Exception):
    """Raised when the underlying data store fails.  The message is safe to surface."""


@dataclass(frozen=True)
class EventQuery:
    user_id: str
    event_types: tuple[str, ...] = ()
    start_date: date | None = None
    end_date: date | None = None
    text: str | None = None
    text_fields: tuple[str, ...] = SEARCHABLE_TEXT_FIELDS
    require_biomarkers: bool = False
    active_only: bool = False
    newest_first: bool = True
    limit: int | None = None


@runtime_checkable
class HealthRecordStore(Protocol):
    def list_events(self, query: EventQuery) -> list[HealthEventRecord]:
        ...

    def list_biomarker_standards(self) -> list[BiomarkerStandardRecord]:
        ...

    def get_event(self, event_id: str, user_id: str) -> HealthEventRecord | None:
        ...

    def get_profile(self, user_id: str) -> UserProfileRecord | None:
        ...


def _store_error_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    text = str(orig) if orig is not None else str(exc)
    first_line = text.strip().splitlines()[0] if text.strip() else ""
    return first_line or "Record store request failed"


class SqlAlchemyHealthRecordStore:
    """``HealthRecordStore`` backed by a request-scoped SQLAlchemy session."""

    def __init__(self, db: Session):
        self._db = db

    def list_events(self, query: EventQuery) -> list[HealthEventRecord]:
        q = self._db.query(HealthEvent).filter(HealthEvent.user_id == query.user_id)

        if query.event_types:
            q = q.filter(HealthEvent.type.in_(list(query.event_types)))
        if query.start_date is not None:
            q = q.filter(HealthEvent.date >= query.start_date)
        if query.end_date is not None:
            q = q.filter(HealthEvent.date <= query.end_date)
        if query.text:
            clauses = [
                getattr(HealthEvent, name).icontains(query.text, autoescape=True)
                for name in query.text_fields
            ]
            q = q.filter(or_(*clauses))
        if query.require_biomarkers:
            q = q.filter(HealthEvent.biomarkers.isnot(None))
        if query.active_only:
            q = q.filter(HealthEvent.is_active.is_(True))

        if query.newest_first:
            q = q.order_by(HealthEvent.date.desc(), HealthEvent.id.asc())
        else:
            q = q.order_by(HealthEvent.date.asc(), HealthEvent.id.asc())
        if query.limit is not None:
            q = q.limit(query.limit)

        try:
            rows = q.all()
        except SQLAlchemyError as exc:
            logger.warning("Event query failed: %s", type(exc).__name__)
            raise RecordStoreError(_store_error_message(exc)) from exc
        return [event_from_row(row) for row in rows]

    def list_biomarker_standards(self) -> list[BiomarkerStandardRecord]:
        try:
            rows = (
                self._db.query(BiomarkerStandard)
                .order_by(BiomarkerStandard.display_order.asc(), BiomarkerStandard.code.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            logger.warning("Biomarker standards query failed: %s", type(exc).__name__)
            raise RecordStoreError(_store_error_message(exc)) from exc
        return [standard_from_row(row) for row in rows]

    def get_event(self, event_id: str, user_id: str) -> HealthEventRecord | None:
        try:
            row = (
                self._db.query(HealthEvent)
                .filter(HealthEvent.id == event_id, HealthEvent.user_id == user_id)
                .first()
            )
        except SQLAlchemyError as exc:
            logger.warning("Event lookup failed: %s", type(exc).__name__)
            raise RecordStoreError(_store_error_message(exc)) from exc
        return event_from_row(row) if row else None

    def get_profile(self, user_id: str) -> UserProfileRecord | None:
        try:
            row = self._db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
        except SQLAlchemyError as exc:
            logger.warning("Profile lookup failed: %s", type(exc).__name__)
            raise RecordStoreError(_store_error_message(exc)) from exc
        return profile_from_row(row) if row else None
