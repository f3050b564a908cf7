"""
Baileys Bot - Server Entry Point
================================

Starts the HTTP API and the WhatsApp session together:
    python main.py

On first start a QR code payload is logged; pair it from
WhatsApp > Linked Devices > Link a Device. Credentials are kept in
AUTH_FOLDER (default ./auth_info_baileys).
"""

import uvicorn

from baileys_bot.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings().server

    uvicorn.run(
        "baileys_bot.web.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
