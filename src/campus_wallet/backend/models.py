"""
campus_wallet.backend.models

Typed views over backend response bodies.

Responsibilities:
- Parse the credential-verification response (success, activation-required).
- Parse the maintenance status probe.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    token: str | None = None
    role: str | None = None
    account_type: str | None = Field(default=None, alias="accountType")
    requires_activation: bool = Field(default=False, alias="requiresActivation")
    account_id: str | None = Field(default=None, alias="accountId")
    email: str | None = None
    full_name: str | None = Field(default=None, alias="fullName")

    def principal_data(self) -> dict[str, Any]:
        # Everything the backend sent except the token, in the backend's own field names.
        data = self.model_dump(by_alias=True, exclude_none=True, exclude={"token"})
        data.pop("requiresActivation", None)
        return data


class MaintenanceStatus(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    maintenance_mode: bool = Field(default=False, alias="maintenanceMode")
    message: str | None = None
