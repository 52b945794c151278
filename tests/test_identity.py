"""Unit tests for auth/identity.py -- identity header decoding.

Covers:
- account_from_identity() on a well-formed header
- Rejection of bad base64, bad JSON, non-object JSON, and missing account
"""

import base64
import json

import pytest

from auth.identity import IdentityError, account_from_identity, decode_identity, encode_identity


def _b64(value) -> str:
    return base64.b64encode(json.dumps(value).encode("utf-8")).decode("ascii")


def test_account_from_encoded_identity():
    assert account_from_identity(encode_identity("6089719")) == "6089719"


def test_extra_identity_fields_are_ignored():
    header = _b64({"identity": {"account_number": "540155", "type": "User", "user": {"username": "jdoe"}}})
    assert account_from_identity(header) == "540155"


def test_decode_identity_returns_document():
    assert decode_identity(encode_identity("1")) == {"identity": {"account_number": "1"}}


@pytest.mark.parametrize(
    "header, fragment",
    [
        ("not*base64", "base64"),
        (base64.b64encode(b"{oops").decode("ascii"), "JSON"),
        (_b64(["identity"]), "JSON object"),
        (_b64({"user": {}}), "'identity'"),
        (_b64({"identity": {}}), "account number"),
        (_b64({"identity": {"account_number": ""}}), "account number"),
        (_b64({"identity": {"account_number": 6089719}}), "account number"),
    ],
)
def test_rejects_bad_headers(header, fragment):
    with pytest.raises(IdentityError, match=fragment):
        account_from_identity(header)
