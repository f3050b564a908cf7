"""
Message Models - Outgoing Content and Inbound Messages
=======================================================

Outgoing content is a small closed set of dataclasses handed to
``MessagingSocket.send_message``. Media content always carries raw bytes;
turning URLs, data URLs or paths into bytes is the media loader's job.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .jid import is_group_jid


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class ImageContent:
    data: bytes
    mimetype: str = "image/jpeg"
    caption: Optional[str] = None


@dataclass(frozen=True)
class DocumentContent:
    data: bytes
    mimetype: str = "application/pdf"
    file_name: str = "document.pdf"
    caption: Optional[str] = None


@dataclass(frozen=True)
class StickerContent:
    data: bytes
    mimetype: str = "image/webp"


MessageContent = Union[TextContent, ImageContent, DocumentContent, StickerContent]


@dataclass(frozen=True)
class InboundMessage:
    """A single received chat message, as far as the bot cares about it."""

    remote_jid: str
    conversation: Optional[str] = None
    extended_text: Optional[str] = None
    has_content: bool = True

    @property
    def text(self) -> str:
        """Plain text body: conversation first, then extended text."""
        return self.conversation or self.extended_text or ""

    @property
    def is_group(self) -> bool:
        return is_group_jid(self.remote_jid)
