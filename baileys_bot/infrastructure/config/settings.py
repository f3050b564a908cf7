"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses for safety and clarity
- Single source of truth for all configurable values

EXTENSIBILITY:
- To change the credential location: set AUTH_FOLDER
- To pin the WhatsApp Web version source: set WA_VERSION_URL
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache
from typing import Tuple

from dotenv import load_dotenv

# Load .env file if present (development convenience)
load_dotenv()


# Baileys publishes the WhatsApp Web version it was last tested against here
BAILEYS_VERSION_URL = (
    "https://raw.githubusercontent.com/WhiskeySockets/Baileys/master/"
    "src/Defaults/baileys-version.json"
)


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server settings."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass(frozen=True)
class WhatsAppSettings:
    """Connection and reconnection settings."""

    # Multi-file credential store, created on first start
    auth_folder: Path = field(
        default_factory=lambda: Path(os.getenv("AUTH_FOLDER", "./auth_info_baileys"))
    )

    # Shown under "Linked Devices" on the phone
    browser: Tuple[str, str] = ("Baileys Bot", "Chrome")

    # Fixed delays (seconds). There is no backoff growth.
    reconnect_delay: float = 3.0
    bootstrap_retry_delay: float = 5.0

    version_url: str = field(
        default_factory=lambda: os.getenv("WA_VERSION_URL", BAILEYS_VERSION_URL)
    )
    version_timeout_seconds: int = 10

    # Used when the published version cannot be fetched
    default_version: Tuple[int, int, int] = (2, 3000, 1023223821)


@dataclass(frozen=True)
class MediaSettings:
    """Media download settings for images, stickers and invoices."""

    download_timeout: int = field(
        default_factory=lambda: int(os.getenv("MEDIA_DOWNLOAD_TIMEOUT", "30"))
    )

    # Sources for the !image and !sticker replies
    test_image_url: str = "https://picsum.photos/400/300"
    test_sticker_url: str = "https://picsum.photos/512/512"


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from baileys_bot.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.server.port)
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    whatsapp: WhatsAppSettings = field(default_factory=WhatsAppSettings)
    media: MediaSettings = field(default_factory=MediaSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings/errors.
        Returns empty list if all settings are valid.
        """
        issues = []

        if not 0 < self.server.port < 65536:
            issues.append(f"WARNING: PORT {self.server.port} is outside 1-65535.")

        if self.whatsapp.auth_folder.exists() and not self.whatsapp.auth_folder.is_dir():
            issues.append(
                f"WARNING: AUTH_FOLDER {self.whatsapp.auth_folder} exists but is not a directory."
            )

        if not self.whatsapp.auth_folder.exists():
            issues.append(
                f"INFO: Auth folder not found: {self.whatsapp.auth_folder}. "
                "It will be created and a QR code will be requested."
            )

        if self.media.download_timeout <= 0:
            issues.append("WARNING: MEDIA_DOWNLOAD_TIMEOUT must be positive.")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
