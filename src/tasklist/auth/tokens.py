"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
A token is `{sub: username, exp: now + 60min, iat}` signed with HS256.
There is no refresh token, no revocation list and no key rotation: a
leaked token stays valid until it expires.

Verification failures come in three flavours (malformed, bad signature,
expired). They are distinct exception types so they can be logged, but
callers are expected to collapse them into one "unauthenticated" answer
for the client.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from tasklist.config import Settings


class TokenError(Exception):
    """Raised when token verification fails."""

    reason = "invalid"


class MalformedToken(TokenError):
    reason = "malformed"


class BadSignature(TokenError):
    reason = "bad_signature"


class TokenExpired(TokenError):
    reason = "expired"


@dataclass(frozen=True)
class Claims:
    subject: str
    expires_at: datetime


class TokenService:
    """Issues and verifies identity tokens with the server-held secret."""

    def __init__(self, settings: Settings):
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._ttl = timedelta(minutes=settings.access_token_expire_minutes)

    def issue(self, subject: str, now: Optional[datetime] = None) -> str:
        """Create a signed access token for `subject`."""
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "exp": now + self._ttl,
            "iat": now,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Claims:
        """Verify and decode a token.

        Returns the claims on success. Raises a TokenError subclass on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token has expired")
        except jwt.InvalidSignatureError:
            raise BadSignature("Token signature mismatch")
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Invalid token: {e}")

        subject = payload["sub"]
        if not isinstance(subject, str) or not subject:
            raise MalformedToken("Invalid token: empty subject")
        return Claims(
            subject=subject,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
