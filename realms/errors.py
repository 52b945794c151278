"""
realms/errors.py -- Error taxonomy for auth realm operations.

Each error carries the HTTP status it maps to, so the API layer can render
any of them with one exception handler. The message is the response body.
"""


class AuthRealmError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(AuthRealmError):
    """Malformed or missing input, or an account mismatch in the body."""

    status_code = 400


class Forbidden(AuthRealmError):
    """The caller's account does not own the target record."""

    status_code = 403


class NotFound(AuthRealmError):
    status_code = 404


class Conflict(AuthRealmError):
    """An active record with the same (account, name) already exists."""

    status_code = 409


class InternalError(AuthRealmError):
    status_code = 500
