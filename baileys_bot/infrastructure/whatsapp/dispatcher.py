"""
Inbound Message Dispatcher
==========================

Turns a live message batch into at most one canned reply:

    notify batch -> first message -> text -> keyword -> reply content -> send

History-sync batches, empty messages, group chats and unknown text are
ignored. Media replies are downloaded in a worker thread before sending.
"""

import asyncio
import logging
from typing import Optional

from .events import MessagesUpsert
from .messaging_provider import MessagingSocket
from ..config import get_settings
from ..media import MediaLoader
from ...domain.commands import (
    Command,
    GREETING_TEXT,
    HELP_TEXT,
    IMAGE_CAPTION,
    PONG_TEXT,
    info_text,
    match_command,
)
from ...domain.messages import ImageContent, MessageContent, StickerContent, TextContent

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """Literal keyword auto-replies."""

    def __init__(self, media_loader: Optional[MediaLoader] = None):
        self._media = media_loader or MediaLoader()
        self._settings = get_settings().media

    async def handle_upsert(self, upsert: MessagesUpsert) -> Optional[Command]:
        """Reply to the first message of a live batch. Returns the command answered."""
        if not upsert.is_notification or not upsert.messages:
            return None

        msg = upsert.messages[0]
        if not msg.has_content:
            return None

        text = msg.text
        origin = "Group" if msg.is_group else "User"
        logger.info(f"Message from {origin} {msg.remote_jid}: {text}")

        if msg.is_group:
            return None

        command = match_command(text)
        if command is None:
            return None

        content = await self.build_reply(command, upsert.socket)
        await upsert.socket.send_message(msg.remote_jid, content)
        return command

    async def build_reply(self, command: Command, socket: MessagingSocket) -> MessageContent:
        if command is Command.GREETING:
            return TextContent(GREETING_TEXT)
        if command is Command.PING:
            return TextContent(PONG_TEXT)
        if command is Command.HELP:
            return TextContent(HELP_TEXT)
        if command is Command.INFO:
            return TextContent(info_text(socket.user_id))
        if command is Command.IMAGE:
            media = await asyncio.to_thread(self._media.download, self._settings.test_image_url)
            return ImageContent(data=media.data, mimetype=media.mimetype, caption=IMAGE_CAPTION)
        if command is Command.STICKER:
            media = await asyncio.to_thread(self._media.download, self._settings.test_sticker_url)
            return StickerContent(data=media.data)
        raise ValueError(f"No reply for command {command}")
