"""
auth/identity.py -- Decoding of the gateway identity header.

The header value is base64-encoded JSON of the form:

    {"identity": {"account_number": "6089719", ...}}

Only account_number is read. Signature and entitlement checks are the
gateway's job and are not repeated here.
"""

from __future__ import annotations

import base64
import binascii
import json


class IdentityError(ValueError):
    """Raised when an identity header cannot be turned into an account."""


def decode_identity(header_value: str) -> dict:
    """Decode a base64 JSON identity header into a dict."""
    try:
        raw = base64.b64decode(header_value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise IdentityError("identity header is not valid base64") from exc
    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise IdentityError("identity header is not valid JSON") from exc
    if not isinstance(document, dict):
        raise IdentityError("identity header must decode to a JSON object")
    return document


def account_from_identity(header_value: str) -> str:
    """Return the account number carried by an identity header.

    Raises IdentityError if the header is malformed or has no account number.
    """
    identity = decode_identity(header_value).get("identity")
    if not isinstance(identity, dict):
        raise IdentityError("identity header has no 'identity' object")
    account = identity.get("account_number")
    if not isinstance(account, str) or not account:
        raise IdentityError("identity header has no account number")
    return account


def encode_identity(account: str) -> str:
    """Build an identity header value for account. Used by the CLI and tests."""
    document = {"identity": {"account_number": account}}
    return base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")
