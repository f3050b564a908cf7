from .settings import (
    Settings,
    ServerSettings,
    WhatsAppSettings,
    MediaSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "ServerSettings",
    "WhatsAppSettings",
    "MediaSettings",
    "get_settings",
]
