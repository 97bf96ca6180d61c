"""Runtime settings injected into the application at startup."""

import logging
import os

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEVELOPMENT_PASSWORD = "zequi-admin-dev"

ENV_OVERRIDES = (
    ("business_name", "BUSINESS_NAME"),
    ("app_name", "APP_NAME"),
    ("app_short_name", "APP_SHORT_NAME"),
    ("app_description", "APP_DESCRIPTION"),
    ("whatsapp_country_code", "WHATSAPP_COUNTRY_CODE"),
    ("cache_name", "OFFLINE_CACHE_NAME"),
)


class StorefrontSettings(BaseModel):
    """Values the entry points read from the environment.

    Services never read the environment themselves; they receive this model
    through ``create_app``.
    """

    admin_passwords: list[str] = Field(..., description="Accepted admin panel passwords")
    business_name: str = Field(default="Zequi Smash Burgers", description="Shown in messages")
    app_name: str = Field(default="ZEQUI SMASH BURGERS", description="Installable app name")
    app_short_name: str = Field(default="ZEQUI", description="Installable app short name")
    app_description: str = Field(
        default="Las mejores smash burgers artesanales. Haz tu pedido ahora.",
        description="Installable app description",
    )
    whatsapp_country_code: str = Field(default="593", description="Prefix for local numbers")
    cache_name: str = Field(default="zequi-smash-v1", description="Offline cache version")
    static_assets: list[str] = Field(
        default_factory=lambda: [
            "/",
            "/index.html",
            "/manifest.webmanifest",
            "/apple-touch-icon.png",
        ],
        description="Paths pre-cached by the offline worker",
    )


def parse_admin_passwords(raw: str) -> list[str]:
    """Split a comma-separated ADMIN_PASSWORD value."""
    return [password.strip() for password in raw.split(",") if password.strip()]


def load_settings() -> StorefrontSettings:
    """Build settings from environment variables.

    Returns:
        StorefrontSettings for the application
    """
    passwords = parse_admin_passwords(os.getenv("ADMIN_PASSWORD", ""))
    if not passwords:
        logger.warning("No ADMIN_PASSWORD configured - using development password")
        passwords = [DEVELOPMENT_PASSWORD]

    overrides = {field: os.environ[name] for field, name in ENV_OVERRIDES if os.getenv(name)}
    return StorefrontSettings(admin_passwords=passwords, **overrides)
