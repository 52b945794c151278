"""
api/routes/v1/auth_realms.py -- Auth realm routes for the IdP Configs REST API.

Routes:
  GET    /auth-realms              -- list the caller's auth realms
  POST   /auth-realms              -- create an auth realm
  GET    /auth-realms/{realm_id}   -- fetch one auth realm
  PUT    /auth-realms/{realm_id}   -- replace name and custom_resource
  DELETE /auth-realms/{realm_id}   -- soft-delete an auth realm

Every route resolves the caller's account through auth.dependencies.get_account
and passes it to AuthRealmService explicitly. Handlers never inspect records
or catch service errors: realms.errors.AuthRealmError is rendered by the
exception handler in api/main.py.

Create and update read the raw request body so that realms/payload.py owns
all body validation. The service call runs in the threadpool because the
store is synchronous.

Route decorators sit above @limiter.limit so the router registers the
rate-limited wrapper rather than the bare function.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from api.limiter import READ_LIMIT, WRITE_LIMIT, limiter
from api.models import AuthRealmResponse
from auth.dependencies import get_account
from realms.payload import AuthRealmPayload
from realms.service import AuthRealmService

router = APIRouter()

# Documents the JSON body that create and update parse by hand.
_BODY_SCHEMA = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": AuthRealmPayload.model_json_schema()}},
    }
}


def _service(request: Request) -> AuthRealmService:
    return request.app.state.realms


# ---------------------------------------------------------------------------
# GET /auth-realms -- list the caller's records
# ---------------------------------------------------------------------------


@router.get("/auth-realms", response_model=list[AuthRealmResponse])
@limiter.limit(READ_LIMIT)
def list_auth_realms(request: Request, account: str = Depends(get_account)) -> list[AuthRealmResponse]:
    """Return every live auth realm owned by the caller's account."""
    realms = _service(request).list(account)
    return [AuthRealmResponse.from_realm(r) for r in realms]


# ---------------------------------------------------------------------------
# POST /auth-realms -- create
# ---------------------------------------------------------------------------


@router.post("/auth-realms", response_model=AuthRealmResponse, openapi_extra=_BODY_SCHEMA)
@limiter.limit(WRITE_LIMIT)
async def create_auth_realm(request: Request, account: str = Depends(get_account)) -> AuthRealmResponse:
    """Create an auth realm owned by the caller's account.

    The body must carry name and custom_resource. An account in the body is
    accepted only if it matches the caller's.
    """
    body = await request.body()
    created = await run_in_threadpool(_service(request).create, account, body)
    return AuthRealmResponse.from_realm(created)


# ---------------------------------------------------------------------------
# GET /auth-realms/{realm_id} -- fetch
# ---------------------------------------------------------------------------


@router.get("/auth-realms/{realm_id}", response_model=AuthRealmResponse)
@limiter.limit(READ_LIMIT)
def get_auth_realm(request: Request, realm_id: int, account: str = Depends(get_account)) -> AuthRealmResponse:
    """Return one auth realm. 403 if another account owns it."""
    return AuthRealmResponse.from_realm(_service(request).fetch(account, realm_id))


# ---------------------------------------------------------------------------
# PUT /auth-realms/{realm_id} -- update
# ---------------------------------------------------------------------------


@router.put("/auth-realms/{realm_id}", response_model=AuthRealmResponse, openapi_extra=_BODY_SCHEMA)
@limiter.limit(WRITE_LIMIT)
async def update_auth_realm(
    request: Request,
    realm_id: int,
    account: str = Depends(get_account),
) -> AuthRealmResponse:
    """Replace the name and custom_resource of an auth realm.

    id, account, and created_at are kept from the stored record.
    """
    body = await request.body()
    updated = await run_in_threadpool(_service(request).update, account, realm_id, body)
    return AuthRealmResponse.from_realm(updated)


# ---------------------------------------------------------------------------
# DELETE /auth-realms/{realm_id} -- soft delete
# ---------------------------------------------------------------------------


@router.delete("/auth-realms/{realm_id}", response_class=PlainTextResponse)
@limiter.limit(WRITE_LIMIT)
def delete_auth_realm(request: Request, realm_id: int, account: str = Depends(get_account)) -> PlainTextResponse:
    """Soft-delete an auth realm and confirm with a text message."""
    message = _service(request).delete(account, realm_id)
    return PlainTextResponse(message)
