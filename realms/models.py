"""
realms/models.py -- Domain dataclass for auth realm records.

Pure data container with zero logic. Validation and authorization live in
realms/service.py; persistence lives in realms/store.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AuthRealm:
    """A named identity-provider configuration owned by one account.

    custom_resource is an opaque JSON object. It is stored as serialized
    text and never inspected beyond a presence check.

    id is None before the record is written to the database. deleted_at is
    None for live records; a timestamp marks the record soft-deleted.
    """

    account: str
    name: str
    custom_resource: dict[str, Any] | None = None
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on every write
    deleted_at: str | None = None
