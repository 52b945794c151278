"""
realms/service.py -- Account-scoped CRUD operations on auth realms.

AuthRealmService is the only component with decision logic. Every operation
takes the caller's account explicitly; nothing is read from request state.
Errors are raised as realms.errors.AuthRealmError subclasses at the point they
are detected, carrying the message the client will see.

Ownership: fetch, update, and delete all go through fetch(), which runs
_authorize() on the stored record. That is the single place a cross-account
access turns into Forbidden.

Store errors: IntegrityError whose message mentions a unique constraint is a
Conflict (the wording differs between SQLite and PostgreSQL, but both contain
"unique constraint"). Any other SQLAlchemyError is an InternalError.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from realms.errors import BadRequest, Conflict, Forbidden, InternalError, NotFound
from realms.models import AuthRealm
from realms.payload import parse_payload
from realms.store import AuthRealmStore

logger = logging.getLogger("idpconfigs.realms")


def _is_unique_violation(exc: SQLAlchemyError) -> bool:
    return isinstance(exc, IntegrityError) and "unique constraint" in str(exc.orig).lower()


def _require_account(account: str) -> None:
    if not account:
        raise BadRequest("unable to resolve account for the request")


def _authorize(realm: AuthRealm, account: str) -> None:
    """Raise Forbidden unless account owns realm.

    Records with no stored account are not owned by anyone and pass.
    """
    if realm.account and realm.account != account:
        raise Forbidden("Requestor's account does not match the Auth Realm account")


class AuthRealmService:
    """CRUD operations on one AuthRealmStore, scoped by caller account.

    Usage:
        service = AuthRealmService(store)
        realm = service.create("6089719", b'{"name": "corp", "custom_resource": {}}')
        service.fetch("6089719", realm.id)
    """

    def __init__(self, store: AuthRealmStore) -> None:
        self.store = store

    def list(self, account: str) -> list[AuthRealm]:
        """Return the account's live records in store order."""
        _require_account(account)
        try:
            return self.store.list_for_account(account)
        except SQLAlchemyError as exc:
            logger.error("Listing auth realms for account %s failed: %s", account, exc)
            raise InternalError(str(exc)) from exc

    def create(self, account: str, body: bytes) -> AuthRealm:
        """Validate body and insert it as a new record owned by account."""
        _require_account(account)
        incoming = parse_payload(body)

        if not incoming.name or incoming.custom_resource is None:
            raise BadRequest("The request body must contain 'name' and 'custom_resource'")

        # A body may name its account, but only the caller's own.
        if incoming.account and incoming.account != account:
            raise BadRequest("Account in the request body does not match account for the authenticated user")

        realm = AuthRealm(account=account, name=incoming.name, custom_resource=incoming.custom_resource)
        try:
            created = self.store.create(realm)
        except SQLAlchemyError as exc:
            message = f"Error creating record in the DB: {exc}"
            if _is_unique_violation(exc):
                raise Conflict(message) from exc
            logger.error("Creating auth realm %r for account %s failed: %s", incoming.name, account, exc)
            raise InternalError(message) from exc

        logger.info("Created auth realm %d (%s) for account %s", created.id, created.name, account)
        return created

    def fetch(self, account: str, realm_id: int) -> AuthRealm:
        """Look up a live record and check that account owns it."""
        _require_account(account)
        try:
            realm = self.store.get(realm_id)
        except SQLAlchemyError as exc:
            logger.error("Fetching auth realm %d failed: %s", realm_id, exc)
            raise InternalError(str(exc)) from exc
        if realm is None:
            raise NotFound("record not found")
        _authorize(realm, account)
        return realm

    def update(self, account: str, realm_id: int, body: bytes) -> AuthRealm:
        """Replace name and custom_resource of an owned record.

        id, account, and created_at always come from the stored record,
        whatever the body says.
        """
        existing = self.fetch(account, realm_id)
        incoming = parse_payload(body)

        if incoming.account and incoming.account != existing.account:
            raise BadRequest("Account number in request body does not match the auth realm account")

        if not incoming.name or incoming.custom_resource is None:
            raise BadRequest("The request body must contain 'name' and 'custom_resource' for update")

        realm = AuthRealm(
            id=existing.id,
            account=existing.account,
            created_at=existing.created_at,
            name=incoming.name,
            custom_resource=incoming.custom_resource,
        )
        try:
            saved = self.store.save(realm)
        except SQLAlchemyError as exc:
            message = f"Error updating record in the DB: {exc}"
            if _is_unique_violation(exc):
                raise Conflict(message) from exc
            logger.error("Updating auth realm %d failed: %s", realm_id, exc)
            raise InternalError(message) from exc

        logger.info("Updated auth realm %d for account %s", saved.id, account)
        return saved

    def delete(self, account: str, realm_id: int) -> str:
        """Soft-delete an owned record and return a confirmation message."""
        realm = self.fetch(account, realm_id)
        try:
            deleted = self.store.soft_delete(realm.id)
        except SQLAlchemyError as exc:
            logger.error("Deleting auth realm %d failed: %s", realm.id, exc)
            raise InternalError(str(exc)) from exc
        if not deleted:
            # Deleted by someone else after fetch().
            raise NotFound("record not found")

        logger.info("Soft-deleted auth realm %d for account %s", realm.id, account)
        return f"Auth realm with ID {realm.id} was successfully deleted"
