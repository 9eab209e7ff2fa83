"""Deployment configuration loaded from environment variables.

All identity-provider identifiers and cookie/CORS policy values are
supplied by the deployment (see ``infra/stacks/rest_api_stack.py``).
Nothing here is hard-coded beyond defaults for local development.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping
from typing import Optional

from restapi.exceptions import ConfigurationError

CORS_MODES = ("open", "credentials")
SAME_SITE_VALUES = ("Lax", "Strict", "None")
PRODUCTION_ENVIRONMENTS = ("prod", "production")


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings for one process."""

    cognito_region: str
    cognito_client_id: str
    environment: str = "dev"
    cookie_secure: bool = False
    cookie_same_site: str = "Lax"
    cookie_domain: Optional[str] = None
    cors_mode: str = "open"
    cors_allowed_origins: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.cors_mode not in CORS_MODES:
            raise ConfigurationError(
                "CORS_MODE",
                f"CORS_MODE must be one of: {', '.join(CORS_MODES)}",
            )
        if self.cors_mode == "credentials" and not self.cors_allowed_origins:
            raise ConfigurationError("CORS_ALLOWED_ORIGINS")
        if self.cookie_same_site not in SAME_SITE_VALUES:
            raise ConfigurationError(
                "COOKIE_SAMESITE",
                f"COOKIE_SAMESITE must be one of: {', '.join(SAME_SITE_VALUES)}",
            )
        if self.cookie_same_site == "None" and not self.cookie_secure:
            raise ConfigurationError(
                "COOKIE_SECURE",
                "COOKIE_SAMESITE=None requires secure cookies",
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Validated settings.

        Raises:
            ConfigurationError: If a required value is missing or invalid.
        """
        env = os.environ if environ is None else environ

        region = env.get("COGNITO_REGION") or env.get("AWS_REGION") or ""
        if not region:
            raise ConfigurationError("COGNITO_REGION")
        client_id = env.get("COGNITO_CLIENT_ID", "")
        if not client_id:
            raise ConfigurationError("COGNITO_CLIENT_ID")

        environment = env.get("ENVIRONMENT", "dev")
        secure_raw = env.get("COOKIE_SECURE", "")
        if secure_raw:
            cookie_secure = _parse_bool(secure_raw, "COOKIE_SECURE")
        else:
            cookie_secure = environment.lower() in PRODUCTION_ENVIRONMENTS

        origins = tuple(
            origin.strip()
            for origin in env.get("CORS_ALLOWED_ORIGINS", "").split(",")
            if origin.strip()
        )

        return cls(
            cognito_region=region,
            cognito_client_id=client_id,
            environment=environment,
            cookie_secure=cookie_secure,
            cookie_same_site=env.get("COOKIE_SAMESITE", "Lax"),
            cookie_domain=env.get("COOKIE_DOMAIN") or None,
            cors_mode=env.get("CORS_MODE", "open").lower(),
            cors_allowed_origins=origins,
        )


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(name, f"{name} must be true or false")


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return process-wide settings, loading them on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def clear_settings_cache() -> None:
    """Forget cached settings (useful in tests)."""
    global _SETTINGS
    _SETTINGS = None
