"""
campus_wallet.logs.models

Typed view over audit-log records returned by the backend.

Responsibilities:
- Parse one event record leniently (unknown fields kept, bad timestamps tolerated).
- Expose the fields visibility predicates and feed queries look at.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventRecord(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )

    event_type: str | None = Field(default=None, alias="eventType")
    # Older records carry the category under `type` instead of `eventType`.
    legacy_type: str | None = Field(default=None, alias="type")
    metadata: dict[str, Any] = Field(default_factory=dict)
    target_entity: str | None = Field(default=None, alias="targetEntity")
    department: str | None = None

    # Foreign keys may arrive as ids or as populated objects; only presence matters.
    driver_id: Any = Field(default=None, alias="driverId")
    shuttle_id: Any = Field(default=None, alias="shuttleId")
    route_id: Any = Field(default=None, alias="routeId")
    trip_id: Any = Field(default=None, alias="tripId")
    merchant_id: Any = Field(default=None, alias="merchantId")
    user_id: Any = Field(default=None, alias="userId")
    transaction_id: Any = Field(default=None, alias="transactionId")

    timestamp: datetime | None = None
    title: str | None = None
    description: str | None = None
    message: str | None = None
    admin_name: str | None = Field(default=None, alias="adminName")
    admin_id: str | None = Field(default=None, alias="adminId")
    driver_name: str | None = Field(default=None, alias="driverName")
    status: str | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("timestamp", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> Any:
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def admin_role(self) -> str | None:
        role = self.metadata.get("adminRole")
        return role if isinstance(role, str) else None

    @property
    def category(self) -> str:
        # Type shown to people and used by the type filter.
        return self.event_type or self.legacy_type or ""

    @property
    def actor_name(self) -> str:
        return self.admin_name or self.driver_name or ""


# --- Module Notes -----------------------------------------------------------
# Timestamps without an offset are read as UTC; unparseable ones become None so a single
# bad record does not hide the rest of the feed.
