from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable

from services.record_store import HealthRecordStore


class ToolExecutionError(Exception):
    """Base class for failures raised inside the tool layer."""


class ToolArgumentError(ToolExecutionError):
    """A model-supplied argument is malformed.  Reported back as a validation result."""


@dataclass(frozen=True)
class ToolResult:
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success and (self.data is None or self.error is not None):
            raise ValueError("A successful ToolResult carries data and no error")
        if not self.success and (self.data is not None or not self.error):
            raise ValueError("A failed ToolResult carries an error and no data")

    @classmethod
    def ok(cls, data: dict[str, Any]) -> ToolResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ToolResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}


@dataclass
class ToolContext:
    store: HealthRecordStore
    user_id: str
    reference_utc: datetime | None = None

    def now(self) -> datetime:
        return self.reference_utc or datetime.now(timezone.utc)


ToolHandler = Callable[[dict[str, Any], ToolContext], ToolResult]


@dataclass(frozen=True)
class LimitBounds:
    default: int
    maximum: int
    minimum: int = 1

    def clamp(self, raw: Any) -> int:
        value = _coerce_number(raw)
        if value is None or value <= 0:
            return self.default
        # Positive fractions round down but never below the minimum.
        return max(self.minimum, min(int(value), self.maximum))


def _coerce_number(raw: Any) -> int | float | None:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else None
    if isinstance(raw, str):
        try:
            parsed = float(raw.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def is_blank(value: Any) -> bool:
    """True unless ``value`` is non-empty text or a non-zero number.

    Booleans, containers and other payload shapes never count as a value.
    """
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return True
    return not value


def optional_string(args: dict[str, Any], key: str) -> str | None:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def optional_date(args: dict[str, Any], key: str) -> date | None:
    value = args.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        raise ToolArgumentError(f"`{key}` must be a date in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise ToolArgumentError(f"`{key}` must be a date in YYYY-MM-DD format") from exc


def string_list(args: dict[str, Any], key: str) -> tuple[str, ...]:
    value = args.get(key)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item).strip() for item in value if item is not None and str(item).strip())


def flag(args: dict[str, Any], key: str, default: bool) -> bool:
    value = args.get(key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    return default
