"""Session authenticator and its FastAPI dependency.

Learn: `authenticate()` is the whole gate and knows nothing about
FastAPI. It takes the raw Authorization header value and either returns
a CurrentIdentity or raises Unauthenticated. `get_current_user` is the
thin Depends() wrapper that feeds it the header and the app's
TokenService. It never touches the database: turning the username into a
numeric user id happens later, inside the repository queries.

Every rejection produces the same 401 body. Which check failed (missing
header, wrong scheme, bad signature, expired) only goes to the log.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from tasklist.auth.tokens import TokenError, TokenService
from tasklist.errors import Unauthenticated

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated caller. All downstream queries scope by username."""

    username: str


def authenticate(
    authorization: Optional[str], tokens: TokenService
) -> CurrentIdentity:
    """Resolve an Authorization header value into an identity.

    The scheme must be the literal, case-sensitive "Bearer " prefix; the
    remainder is whitespace-trimmed before verification.
    """
    if authorization is None:
        logger.debug("auth.rejected", reason="missing_header")
        raise Unauthenticated()
    if not authorization.startswith(BEARER_PREFIX):
        logger.debug("auth.rejected", reason="wrong_scheme")
        raise Unauthenticated()

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        logger.debug("auth.rejected", reason="empty_token")
        raise Unauthenticated()

    try:
        claims = tokens.verify(token)
    except TokenError as e:
        logger.info("auth.rejected", reason=e.reason)
        raise Unauthenticated()

    return CurrentIdentity(username=claims.subject)


def get_token_service(request: Request) -> TokenService:
    """FastAPI dependency: the TokenService built in create_app()."""
    return request.app.state.tokens


async def get_current_user(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> CurrentIdentity:
    """Extract current identity (required, 401 if no valid token)."""
    return authenticate(authorization, tokens)
