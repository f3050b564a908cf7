# Domain Layer
# ============
# Pure logic with no I/O:
# - jid:      phone number -> chat identifier
# - commands: keyword matching and canned reply texts
# - messages: outgoing content and inbound message models
# - errors:   exception hierarchy shared by all layers

from .commands import Command, match_command
from .errors import (
    WhatsAppBotError,
    SessionNotReadyError,
    MediaError,
    MediaNotFoundError,
    MediaDownloadError,
)
from .jid import phone_to_jid, is_group_jid
from .messages import (
    TextContent,
    ImageContent,
    DocumentContent,
    StickerContent,
    MessageContent,
    InboundMessage,
)

__all__ = [
    "Command",
    "match_command",
    "WhatsAppBotError",
    "SessionNotReadyError",
    "MediaError",
    "MediaNotFoundError",
    "MediaDownloadError",
    "phone_to_jid",
    "is_group_jid",
    "TextContent",
    "ImageContent",
    "DocumentContent",
    "StickerContent",
    "MessageContent",
    "InboundMessage",
]
