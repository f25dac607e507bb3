"""
One-stop functionality for decoding access tokens
"""

from cachetools import TTLCache, cached
from pydantic import BaseModel, Field, ValidationError

from .tokens import KeyDecodeError, reconstruct_payload


class CallerData(BaseModel):
    """
    The authenticated caller of an API endpoint.
    """

    user_id: str
    organization_id: str
    user_type: str = "User"
    claims: set[str] = Field(default_factory=set)

    def has_claim(self, claim: str) -> bool:
        return claim in self.claims


@cached(cache=TTLCache(maxsize=256, ttl=600))
def decode_access_token(
    encoded_access_token: str, secret: str, algorithm: str
) -> CallerData:
    """
    Raises
    ------
    KeyDecodeError
        When there is a problem decoding the key
    KeyExpiredError
        When the key has expired
    """

    payload = reconstruct_payload(
        webtoken=encoded_access_token, secret=secret, algorithm=algorithm
    )

    try:
        return CallerData.model_validate(payload)
    except ValidationError:
        raise KeyDecodeError("Error reconstructing the caller model")
