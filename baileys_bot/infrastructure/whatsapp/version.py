"""
WhatsApp Web Version Lookup
===========================

WhatsApp rejects clients that announce a stale Web version. Baileys
publishes the version it was last verified against as a small JSON file:

    {"version": [2, 3000, 1023223821]}

This module fetches it and falls back to the bundled default when the file
cannot be reached, so a network hiccup never blocks startup.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import requests

from ..config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WAVersion:
    version: Tuple[int, ...]
    is_latest: bool

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.version)


def fetch_latest_version(url: Optional[str] = None, timeout: Optional[int] = None) -> WAVersion:
    """Return the published version, or the default with is_latest=False."""
    settings = get_settings().whatsapp
    url = url or settings.version_url
    timeout = timeout or settings.version_timeout_seconds

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        version = tuple(int(part) for part in response.json()["version"])
        return WAVersion(version=version, is_latest=True)
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Could not fetch latest WhatsApp Web version, using default: {e}")
        return WAVersion(version=settings.default_version, is_latest=False)
