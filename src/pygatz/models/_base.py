"""Base model for Gatz API payloads.

Every Gatz wire model inherits from :class:`GatzBaseModel` which
provides:

* frozen instances, so entities held by the store are never mutated in
  place by callers (updates go through the store's upserts).
* a ``model_validator(mode="before")`` that drops explicit ``null``
  values so the field default is used.  The API sends ``null`` for
  absent optional lists (``dismissed_by``, ``members``) and the store
  relies on those being lists.
* ``extra="ignore"`` by default; CRDT documents opt into
  ``extra="allow"`` so unknown server fields survive a round trip.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_gatz_timestamp(value: Any) -> datetime | None:
    """Coerce an API date (ISO string or epoch seconds/ms) to an aware datetime.

    Naive datetimes are assumed to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return value


GatzTimestamp = Annotated[datetime, BeforeValidator(parse_gatz_timestamp)]
"""Annotated type that coerces API dates to timezone-aware datetimes."""


class GatzBaseModel(BaseModel):
    """Base for Gatz API models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {key: value for key, value in values.items() if value is not None}
