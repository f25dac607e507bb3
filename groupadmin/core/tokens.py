"""
Tools for encoding, building, and decoding the access tokens that
authenticate callers of the API.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from uuid_extensions import uuid7


class KeyDecodeError(Exception):
    pass


class KeyExpiredError(Exception):
    pass


def filter_payload_item_for_serialization(p) -> Any:
    match p:
        case set() | frozenset() | tuple():
            return sorted(p)
        case _:
            return p


def sign_payload(secret: str, algorithm: str, payload: dict[str, Any]) -> str:
    """
    Sign a JWT payload with the shared secret.

    Parameters
    ----------
    secret
        The signing secret shared with the token issuer.
    algorithm
        The PyJWT algorithm name (e.g. HS256).
    payload
        The payload for the JWT to sign.
    """
    return jwt.encode(
        payload={
            x: filter_payload_item_for_serialization(p) for x, p in payload.items()
        },
        key=secret,
        algorithm=algorithm,
    )


def reconstruct_payload(
    webtoken: str | bytes, secret: str, algorithm: str
) -> dict[str, Any]:
    """
    Verify and decode a JWT payload.

    Raises
    ------
    KeyExpiredError
        When the token has expired.
    KeyDecodeError
        When the token cannot be verified or decoded.
    """
    try:
        payload = jwt.decode(
            jwt=webtoken,
            key=secret,
            algorithms=[algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise KeyExpiredError("Content of the payload has expired")
    except jwt.InvalidTokenError:
        raise KeyDecodeError("Unable to deserialize content")

    return payload


def build_access_token_payload(
    user_id: str,
    organization_id: str,
    user_type: str,
    claims: set[str],
    validity: timedelta,
) -> dict[str, Any]:
    """
    Builds the payload for an access token. Claims are the permission names
    the caller holds, e.g. `Group.Read`.
    """
    current_time = datetime.now(timezone.utc)

    return {
        "exp": current_time + validity,
        "nbf": current_time,
        "iat": current_time,
        "uuid": uuid7().hex,
        "user_id": user_id,
        "organization_id": organization_id,
        "user_type": user_type,
        "claims": claims,
    }
