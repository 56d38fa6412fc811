"""
Configuration module for the OpenAI Key Wrapper.

This module uses Pydantic Settings to load environment variables for the
upstream gateway, the dummy/real credential pair, and server settings.

The three credential values are deliberately optional at load time: a missing
value is not a startup failure but a per-request error that the proxy reports
to the caller with a specific error code.

Environment variables are loaded from .env file or system environment.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # =========================================================================
    # Upstream Gateway & Credentials
    # =========================================================================

    AI_GATEWAY_ENDPOINT_URL: Optional[str] = Field(
        None,
        description="Base URL of the upstream AI gateway (e.g., https://gateway.ai.cloudflare.com/v1/<account>/<gateway>/openai)",
    )

    DUMMY_WRAPPER_KEY: Optional[str] = Field(
        None,
        description="Substitute key clients must present in the Authorization header",
    )

    REAL_OPENAI_KEY: Optional[str] = Field(
        None,
        description="Real OpenAI key forwarded upstream (never returned to clients)",
    )

    UPSTREAM_TIMEOUT_SECONDS: Optional[float] = Field(
        default=600.0,
        description="Timeout for upstream requests in seconds (0 or unset disables it)",
        ge=0,
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    WRAPPER_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the wrapper server",
    )

    WRAPPER_PORT: int = Field(
        default=8787,
        description="Port to bind the wrapper server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    ALLOWED_ORIGINS: Optional[str] = Field(
        None,
        description="Comma-separated list of allowed CORS origins (leave empty for no CORS)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins_list(self) -> List[str]:
        """
        Parse and return ALLOWED_ORIGINS as a list.

        Returns:
            List of allowed origin URLs, or empty list if not configured.
        """
        if not self.ALLOWED_ORIGINS:
            return []

        return [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

    @property
    def upstream_timeout(self) -> Optional[float]:
        """Upstream timeout for httpx, or None when disabled."""
        return self.UPSTREAM_TIMEOUT_SECONDS or None

    @property
    def credentials(self) -> "WrapperCredentials":
        """Snapshot of the values the proxy validates on every request."""
        return WrapperCredentials(
            gateway_url=self.AI_GATEWAY_ENDPOINT_URL or "",
            dummy_key=self.DUMMY_WRAPPER_KEY or "",
            real_key=self.REAL_OPENAI_KEY or "",
        )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is not recognised
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.strip().upper()

        if level not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}, got: {v}")

        return level


@dataclass(frozen=True)
class WrapperCredentials:
    """
    Immutable configuration bundle handed to the proxy for one request.

    Empty strings stand for values missing from the environment.
    """

    gateway_url: str
    dummy_key: str
    real_key: str


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Used as a FastAPI dependency, so tests can swap it through
    ``app.dependency_overrides``.
    """
    return Settings()


def validate_configuration(settings: Settings) -> dict:
    """
    Check the loaded configuration and return a status report.

    Missing values are reported as errors here but the service still starts;
    each request then fails with the matching wrapper error code.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    if not settings.AI_GATEWAY_ENDPOINT_URL:
        errors.append("AI_GATEWAY_ENDPOINT_URL is not set")
    elif not settings.AI_GATEWAY_ENDPOINT_URL.startswith(("http://", "https://")):
        warnings.append("AI_GATEWAY_ENDPOINT_URL is not an http(s) URL")

    if not settings.DUMMY_WRAPPER_KEY:
        errors.append("DUMMY_WRAPPER_KEY is not set")

    if not settings.REAL_OPENAI_KEY:
        errors.append("REAL_OPENAI_KEY is not set")
    elif settings.REAL_OPENAI_KEY == settings.DUMMY_WRAPPER_KEY:
        errors.append("DUMMY_WRAPPER_KEY must differ from REAL_OPENAI_KEY")

    if settings.upstream_timeout is None:
        warnings.append("Upstream timeout is disabled")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }
