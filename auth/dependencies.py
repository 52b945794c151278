"""
auth/dependencies.py -- FastAPI Depends() helper for the caller's account.

get_account() reads the identity header named by Settings.identity_header and
returns the account number. Any failure is a 400: the account is required by
every auth realm operation, and a request without one is malformed rather
than unauthenticated.

Layer rule: no imports from api/ or realms/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.identity import IdentityError, account_from_identity
from core.config import get_settings


def get_account(request: Request) -> str:
    """Resolve the caller's account or raise HTTP 400.

    Use as a FastAPI dependency:
        @router.get("/auth-realms")
        def route(account: str = Depends(get_account)): ...
    """
    header = get_settings().identity_header
    value = request.headers.get(header, "")
    if not value:
        raise HTTPException(status_code=400, detail=f"missing {header} header")
    try:
        return account_from_identity(value)
    except IdentityError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
