"""
realms/payload.py -- Request body parsing for create and update.

The body is parsed here rather than by FastAPI so that an empty body, a
malformed body, and a missing field all reach the caller as the same
BadRequest with a readable message, and so the service can be driven with
raw bytes in tests.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from realms.errors import BadRequest


class AuthRealmPayload(BaseModel):
    """Candidate record from a create or update body.

    Presence of name and custom_resource is checked by the service, not here,
    because create and update word the error differently. Unknown keys such
    as id or created_at are dropped so they can never reach the store.
    """

    model_config = ConfigDict(extra="ignore")

    account: Optional[str] = None
    name: str = ""
    custom_resource: Optional[dict[str, Any]] = None


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    if loc:
        return f"invalid request body: {loc}: {first['msg']}"
    return f"invalid request body: {first['msg']}"


def parse_payload(raw: bytes) -> AuthRealmPayload:
    """Parse a JSON request body into an AuthRealmPayload.

    Raises BadRequest for an empty body, invalid JSON, a non-object body, or
    fields of the wrong JSON type.
    """
    if not raw or not raw.strip():
        raise BadRequest("request body must not be empty")
    try:
        return AuthRealmPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise BadRequest(_describe(exc)) from exc
