"""
Tests access token encoding and decoding.
"""

from datetime import timedelta

import pytest

from groupadmin.core.auth import decode_access_token
from groupadmin.core.tokens import (
    KeyDecodeError,
    KeyExpiredError,
    build_access_token_payload,
    reconstruct_payload,
    sign_payload,
)

SECRET = "a-secret-only-used-for-these-tests"


def make_token(validity: timedelta = timedelta(minutes=5), secret: str = SECRET):
    payload = build_access_token_payload(
        user_id="user-1",
        organization_id="org-1",
        user_type="Admin",
        claims={"Group.Read", "Group.Create"},
        validity=validity,
    )

    return sign_payload(secret=secret, algorithm="HS256", payload=payload)


def test_round_trip():
    token = make_token()

    payload = reconstruct_payload(webtoken=token, secret=SECRET, algorithm="HS256")

    assert payload["user_id"] == "user-1"
    assert payload["claims"] == ["Group.Create", "Group.Read"]
    assert len(payload["uuid"]) == 32

    caller = decode_access_token(
        encoded_access_token=token, secret=SECRET, algorithm="HS256"
    )

    assert caller.organization_id == "org-1"
    assert caller.user_type == "Admin"
    assert caller.has_claim("Group.Read")
    assert not caller.has_claim("Group.Delete")


def test_expired():
    token = make_token(validity=timedelta(minutes=-5))

    with pytest.raises(KeyExpiredError):
        reconstruct_payload(webtoken=token, secret=SECRET, algorithm="HS256")


def test_wrong_secret():
    token = make_token(secret="somebody-elses-secret-entirely-different")

    with pytest.raises(KeyDecodeError):
        reconstruct_payload(webtoken=token, secret=SECRET, algorithm="HS256")

    with pytest.raises(KeyDecodeError):
        reconstruct_payload(webtoken="not-a-token", secret=SECRET, algorithm="HS256")


def test_missing_fields():
    token = sign_payload(
        secret=SECRET, algorithm="HS256", payload={"user_id": "user-1"}
    )

    with pytest.raises(KeyDecodeError):
        decode_access_token(
            encoded_access_token=token, secret=SECRET, algorithm="HS256"
        )
