"""Credential store: registration, lookup and password checks.

Learn: The only code that ever sees a password hash. Registration checks
for an existing username first (cheap, gives a clean 409), and still
catches IntegrityError from the UNIQUE constraint, because two concurrent
registrations can both pass the check before either commits.

bcrypt is slow on purpose (~100ms at cost 12), so hashing and verifying
run on the threadpool instead of blocking the event loop.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasklist.auth.password import (
    BCRYPT_ROUNDS,
    hash_password_async,
    verify_password_async,
)
from tasklist.db.models import User
from tasklist.errors import Conflict, NotFound, Unauthenticated

logger = structlog.get_logger()

# Checked against on the unknown-user path so both login failures cost one
# bcrypt verify. One hash per cost factor, built on first use.
_dummy_hashes: dict[int, str] = {}


class DuplicateUsername(Conflict):
    detail = "Username already taken"


class UserNotFound(NotFound):
    detail = "User not found"


class InvalidCredentials(Unauthenticated):
    """Unknown username or wrong password; deliberately the same error."""

    detail = "Invalid credentials"


class CredentialStore:
    """Persistence of usernames and salted password hashes."""

    def __init__(self, db: AsyncSession, bcrypt_rounds: int = BCRYPT_ROUNDS):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    async def register(self, username: str, password: str) -> User:
        """Create a new user. Raises DuplicateUsername if the name is taken."""
        if await self._lookup(username) is not None:
            logger.info("user.register_conflict", username=username)
            raise DuplicateUsername()

        user = User(
            username=username,
            password_hash=await hash_password_async(password, self.bcrypt_rounds),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("user.register_conflict", username=username, race=True)
            raise DuplicateUsername()

        logger.info("user.registered", user_id=user.id, username=username)
        return user

    async def find_by_username(self, username: str) -> User:
        user = await self._lookup(username)
        if user is None:
            raise UserNotFound()
        return user

    async def verify_password(self, password: str, password_hash: str) -> bool:
        return await verify_password_async(password, password_hash)

    async def authenticate(self, username: str, password: str) -> User:
        """Check a username/password pair. Used by login."""
        user = await self._lookup(username)
        if user is None:
            await self.verify_password(password, await self._dummy_hash())
            logger.info("auth.login_failed", username=username, reason="unknown_user")
            raise InvalidCredentials()
        if not await self.verify_password(password, user.password_hash):
            logger.info("auth.login_failed", username=username, reason="bad_password")
            raise InvalidCredentials()
        return user

    async def _dummy_hash(self) -> str:
        cached = _dummy_hashes.get(self.bcrypt_rounds)
        if cached is None:
            cached = await hash_password_async("tasklist-no-such-user", self.bcrypt_rounds)
            _dummy_hashes[self.bcrypt_rounds] = cached
        return cached

    async def _lookup(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalars().first()
