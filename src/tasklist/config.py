"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TASKLIST_ prefix
(and an optional .env file for local development).

Learn: The signing secret and the database URL have NO defaults. If either
is missing, Settings() raises a ValidationError and the process refuses to
start. The Settings object is built once in create_app() and handed to the
pieces that need it (token service, engine), rather than imported as a
global from everywhere.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """All app configuration. Set via TASKLIST_* env vars."""

    # Required, no defaults
    jwt_secret: str
    database_url: str

    # Auth
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12

    # Connection pool: small and fixed, caps concurrent DB work
    db_pool_size: int = 5
    db_max_overflow: int = 0

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 3000

    # CORS (the Next.js frontend runs on :3000 / :3001 in dev)
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    model_config = SettingsConfigDict(
        env_prefix="TASKLIST_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_secret(self):
        """Reject empty secrets everywhere and short ones outside development."""
        if not self.jwt_secret.strip():
            raise ValueError("TASKLIST_JWT_SECRET must not be empty")
        if (
            self.environment != "development"
            and len(self.jwt_secret) < MIN_SECRET_LENGTH
        ):
            raise ValueError(
                f"TASKLIST_JWT_SECRET must be at least {MIN_SECRET_LENGTH} "
                "characters in non-development environments. Generate one with: "
                "tasklist gen-secret"
            )
        return self
