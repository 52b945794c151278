"""
API response models for the IdP Configs REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclass in realms/models.py, which
owns the internal domain representation. Route handlers map between the two.

Request bodies are not modelled here: create and update read the raw body and
hand it to realms/payload.py so empty and malformed bodies get the same
400 treatment as missing fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from realms.models import AuthRealm


class AuthRealmResponse(BaseModel):
    """One auth realm as returned by every read and write endpoint."""

    model_config = ConfigDict(frozen=True)

    id: int
    account: str
    name: str
    custom_resource: dict[str, Any]
    created_at: str
    updated_at: str

    @classmethod
    def from_realm(cls, realm: AuthRealm) -> "AuthRealmResponse":
        """Build the response from a stored AuthRealm."""
        return cls(
            id=realm.id,
            account=realm.account,
            name=realm.name,
            custom_resource=realm.custom_resource or {},
            created_at=realm.created_at,
            updated_at=realm.updated_at,
        )


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
