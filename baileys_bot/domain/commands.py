"""
Keyword Commands - Literal-Match Auto Replies
=============================================

Incoming text is lower-cased and compared for exact equality against a fixed
set of keywords. There is no prefix parsing and no partial matching: "!ping "
or "!ping now" do not match. The first match in COMMAND_ORDER wins, so at most
one reply is produced per message.
"""

from enum import Enum
from typing import Optional


class Command(Enum):
    GREETING = "greeting"
    PING = "ping"
    HELP = "help"
    INFO = "info"
    IMAGE = "image"
    STICKER = "sticker"


# Checked in this order; each keyword maps to exactly one command
COMMAND_ORDER: list[tuple[Command, frozenset[str]]] = [
    (Command.GREETING, frozenset({"hi", "hello"})),
    (Command.PING, frozenset({"!ping"})),
    (Command.HELP, frozenset({"!help"})),
    (Command.INFO, frozenset({"!info"})),
    (Command.IMAGE, frozenset({"!image"})),
    (Command.STICKER, frozenset({"!sticker"})),
]

# ── Reply Templates ────────────────────────────────────────────
GREETING_TEXT = "👋 Hello! I am a Baileys WhatsApp bot. How can I help you?"
PONG_TEXT = "🏓 Pong! Bot is active."
HELP_TEXT = (
    "*Available Commands:*\n\n"
    "• hi/hello - Get a greeting\n"
    "• !ping - Check if bot is active\n"
    "• !help - Show this help message\n"
    "• !info - Get bot information\n"
    "• !image - Get a test image\n"
    "• !sticker - Get a test sticker"
)
INFO_TEMPLATE = (
    "*Bot Information*\n\n"
    "📱 Bot Number: {user_id}\n"
    "🤖 Library: pyaileys\n"
    "⚡ Status: Active\n"
    "🔗 Multi-device: Yes"
)
IMAGE_CAPTION = "📸 Here is a random test image!"


def match_command(text: str) -> Optional[Command]:
    """Return the command for an exact (case-insensitive) keyword, else None."""
    normalized = text.lower()
    for command, keywords in COMMAND_ORDER:
        if normalized in keywords:
            return command
    return None


def info_text(user_id: Optional[str]) -> str:
    return INFO_TEMPLATE.format(user_id=user_id or "unknown")
