"""Application configuration using Pydantic Settings."""

import base64
import json
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Web3 Dashboard API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/dashboard",
        description="PostgreSQL connection URL with asyncpg driver",
    )
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    rls_role: str = Field(
        default="authenticated",
        description="Postgres role assumed per transaction so RLS policies apply (empty disables)",
    )

    # Supabase
    supabase_url: str = Field(
        default="",
        description="Supabase project URL (e.g. https://xyzabc.supabase.co)",
    )
    supabase_jwt_secret: str = Field(
        default="",
        description="Secret used to sign per-request claims for RLS (plain string, JWK or JWKS)",
    )
    supabase_claims_expire_minutes: int = Field(default=15)

    # Session tokens
    session_secret: str = Field(
        default="",
        description="Secret for session tokens and the wallet challenge cookie",
    )
    session_algorithm: str = Field(default="HS256")
    session_expire_minutes: int = Field(default=30)

    # Wallet challenge
    challenge_cookie_name: str = Field(default="wallet_challenge")
    challenge_ttl_seconds: int = Field(default=600)
    siwe_chain_id: int = Field(default=1)
    dashboard_name: str = Field(
        default="Web3 Dashboard",
        description="Product name shown in personal_sign messages",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Supabase and most providers supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Key rate limits on X-Forwarded-For (only behind a trusted proxy)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def challenge_secret(self) -> str:
        """Secret for the challenge cookie MAC: session secret first, Supabase secret second."""
        raw = (self.session_secret or self.supabase_jwt_secret).strip()
        if not raw:
            raise ConfigurationError(
                "HMAC secret required. Set SESSION_SECRET or SUPABASE_JWT_SECRET"
            )
        return raw

    def claims_secret(self) -> str | bytes:
        """Secret for per-request RLS claims: Supabase secret first, session secret second."""
        raw = (self.supabase_jwt_secret or self.session_secret).strip()
        if not raw:
            raise ConfigurationError(
                "JWT secret required. Set SUPABASE_JWT_SECRET or SESSION_SECRET"
            )
        if raw.startswith("{") or raw.startswith("["):
            return _oct_key_from_jwk(raw)
        return raw


def _oct_key_from_jwk(raw: str) -> bytes:
    """Extract the symmetric key from a JWK or JWKS document."""
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid JWK/JWKS in secret: {exc}") from exc

    if isinstance(parsed, list):
        candidates = parsed
    elif isinstance(parsed, dict) and "keys" in parsed:
        candidates = parsed["keys"]
    else:
        candidates = [parsed]
    if not isinstance(candidates, list):
        raise ConfigurationError("Invalid JWK/JWKS in secret: keys must be a list")

    for key in candidates:
        if isinstance(key, dict) and key.get("kty") == "oct" and isinstance(key.get("k"), str):
            encoded = key["k"]
            return base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))

    raise ConfigurationError("Invalid JWK/JWKS in secret: no oct key found")


def secrets_are_shared(config: Settings) -> bool:
    """Resolve both secrets (raising if neither is set) and report whether they coincide."""
    challenge = config.challenge_secret()
    claims = config.claims_secret()
    if isinstance(claims, bytes):
        return claims == challenge.encode()
    return claims == challenge


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
