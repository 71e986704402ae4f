"""Auth API: registration and login.

Learn: Routes for the credential lifecycle:
- POST /register → create a new account, returns {id, username}
- POST /login → username/password → {token}

Both are open routes; everything else requires the bearer token that
/login hands out.
"""

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasklist.auth.dependencies import get_token_service
from tasklist.auth.tokens import TokenService
from tasklist.db.engine import get_db
from tasklist.schemas.user import Credentials, TokenResponse, UserRead
from tasklist.services.credential_store import CredentialStore

logger = structlog.get_logger()

router = APIRouter()


def _store(request: Request, db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


@router.post("/register", response_model=UserRead)
async def register(body: Credentials, store: CredentialStore = Depends(_store)):
    """Create a new user account."""
    return await store.register(body.username, body.password)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: Credentials,
    store: CredentialStore = Depends(_store),
    tokens: TokenService = Depends(get_token_service),
):
    """Login with username and password → signed token."""
    user = await store.authenticate(body.username, body.password)
    logger.info("auth.login", user_id=user.id)
    return TokenResponse(token=tokens.issue(user.username))
