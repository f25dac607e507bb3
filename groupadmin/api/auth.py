"""
Bearer-token authentication and claim checks for the API.

Every endpoint needs a caller. Add `CallerDependency` to an endpoint to get
the decoded caller, or use `require_claim` to also check that the caller
holds a given claim:

```
GroupReader = Annotated[CallerData, Depends(require_claim(claims.Group.READ))]

@router.post("/list")
async def list_groups(caller: GroupReader):
    ...
```

Call `add_exception_handlers` on the app at startup so that bad tokens
become 401s rather than 500s.
"""

from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from groupadmin.core import messages
from groupadmin.core.auth import CallerData, decode_access_token
from groupadmin.core.messages import get_message
from groupadmin.core.models import ResponseModel
from groupadmin.core.tokens import KeyDecodeError, KeyExpiredError

from .dependencies import LoggerDependency, SettingsDependency


def key_decode_handler(request: Request, exc: KeyDecodeError) -> JSONResponse:
    get_logger().debug("api.auth.no_decode", url=str(request.url))
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Invalid access token"},
        headers={"WWW-Authenticate": "Bearer"},
    )


def key_expired_handler(request: Request, exc: KeyExpiredError) -> JSONResponse:
    get_logger().debug("api.auth.expired", url=str(request.url))
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Access token has expired"},
        headers={"WWW-Authenticate": "Bearer"},
    )


def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Malformed request bodies are reported in the usual envelope, with one
    entry in `error_message` per problem.
    """
    errors = []

    for error in exc.errors():
        location = ".".join(str(x) for x in error["loc"] if x != "body")
        errors.append(f"{location or 'request'}: {error['msg']}")

    get_logger().debug("api.request.invalid", url=str(request.url), errors=errors)

    response = ResponseModel.failure(
        message=get_message(messages.INVALID_REQUEST), errors=errors
    )

    return JSONResponse(status_code=status.HTTP_200_OK, content=response.model_dump())


def add_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(KeyDecodeError, key_decode_handler)
    app.add_exception_handler(KeyExpiredError, key_expired_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app


async def handle_caller(request: Request, settings: SettingsDependency) -> CallerData:
    """
    Decode the caller from the `Authorization: Bearer <token>` header.

    Raises
    ------
    HTTPException
        401 if there is no token at all.
    KeyDecodeError
        If the header or the token is malformed.
    KeyExpiredError
        If the token has expired.
    """
    log = get_logger().bind(client=request.client)

    if "Authorization" not in request.headers:
        log.debug("api.auth.no_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Log in first",
            headers={"WWW-Authenticate": "Bearer"},
        )

    contents = request.headers["Authorization"].split(" ")

    if len(contents) != 2 or contents[0] != "Bearer":
        raise KeyDecodeError("Expected a Bearer token")

    caller = decode_access_token(
        encoded_access_token=contents[1],
        secret=settings.token_secret,
        algorithm=settings.token_algorithm,
    )

    log.debug("api.auth.success", user_id=caller.user_id)

    return caller


CallerDependency = Annotated[CallerData, Depends(handle_caller)]


def require_claim(claim: str):
    """
    Build a dependency that returns the caller, raising a 403 if they do not
    hold `claim`.
    """

    async def check_claim(caller: CallerDependency, log: LoggerDependency):
        if not caller.has_claim(claim):
            await log.awarning(
                "api.auth.missing_claim", claim=claim, user_id=caller.user_id
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing required permission {claim}",
            )

        return caller

    return check_claim
