"""
Messaging Provider - Abstraction Layer for WhatsApp Messaging
==============================================================

Provides a unified interface over the multi-device WhatsApp library.
Currently backed by pyaileys (a Python port of Baileys). The rest of the
bot only sees MessagingSocket, so tests and alternative backends plug in
without touching the session or HTTP code.

USAGE:
    channels = EventChannels()
    socket = await open_pyaileys_socket(
        auth_folder=Path("./auth_info_baileys"),
        version=fetch_latest_version(),
        browser=("Baileys Bot", "Chrome"),
        channels=channels,
    )
    await socket.send_message("923001234567@s.whatsapp.net", TextContent("Hello!"))
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Tuple

from .events import (
    ConnectionUpdate,
    CredentialsUpdate,
    DisconnectReason,
    EventChannels,
    MessagesUpsert,
)
from .version import WAVersion
from ...domain.messages import (
    DocumentContent,
    ImageContent,
    InboundMessage,
    MessageContent,
    StickerContent,
    TextContent,
)

logger = logging.getLogger(__name__)

# pyaileys turns a <stream:error> stanza into
# TransportError("WhatsApp stream error <code>: <text>")
_STREAM_ERROR = re.compile(r"stream error (\d+)")

# Stream errors after which the stored credentials are no longer usable
_LOGGED_OUT_MARKERS = ("not-authorized", "device_removed", "conflict")


class MessagingSocket(ABC):
    """
    Abstract base class for a live connection.
    Implement this interface to add new messaging backends.
    """

    @property
    @abstractmethod
    def user_id(self) -> Optional[str]:
        """JID of the logged-in account, once known."""
        ...

    @abstractmethod
    async def send_message(self, jid: str, content: MessageContent) -> str:
        """Send one message. Returns the message id. Raises on failure."""
        ...

    @abstractmethod
    async def save_credentials(self) -> None:
        """Persist the current credential state to disk."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources."""
        ...


def disconnect_status_code(error: Optional[BaseException]) -> Optional[int]:
    """
    Status code for the error a connection closed with.

    A numeric stream error keeps its code, except that the not-authorized,
    device_removed and conflict errors count as a logout. Transport drops
    without a stream error have no code.
    """
    if error is None:
        return None

    text = str(error)
    if any(marker in text for marker in _LOGGED_OUT_MARKERS):
        return int(DisconnectReason.LOGGED_OUT)

    match = _STREAM_ERROR.search(text)
    return int(match.group(1)) if match else None


class PyaileysSocket(MessagingSocket):
    """
    MessagingSocket backed by a pyaileys WhatsAppClient.

    Library callbacks are translated into event dataclasses and published on
    the given channels; nothing else happens inside a callback.
    """

    def __init__(self, client: Any, auth_state: Any, channels: EventChannels):
        self._client = client
        self._auth_state = auth_state
        self._channels = channels

        client.on("connection.update", self._on_connection_update)
        client.on("creds.update", self._on_creds_update)
        client.on("message.decrypted", self._on_message)

    @property
    def user_id(self) -> Optional[str]:
        me = self._client.socket.auth.creds.me
        return me.id if me else None

    async def send_message(self, jid: str, content: MessageContent) -> str:
        if isinstance(content, TextContent):
            return await self._client.send_text(jid, content.text)
        if isinstance(content, ImageContent):
            return await self._client.send_image(
                jid, content.data, mimetype=content.mimetype, caption=content.caption
            )
        if isinstance(content, DocumentContent):
            return await self._client.send_document(
                jid,
                content.data,
                mimetype=content.mimetype,
                filename=content.file_name,
                caption=content.caption,
            )
        if isinstance(content, StickerContent):
            return await self._client.send_sticker(jid, content.data, mimetype=content.mimetype)
        raise TypeError(f"Unsupported message content: {type(content).__name__}")

    async def save_credentials(self) -> None:
        await self._auth_state.save_creds()

    async def close(self) -> None:
        await self._client.disconnect()

    # ── Library callbacks ──────────────────────────────────────

    async def _on_connection_update(self, update: Any) -> None:
        """`update` is a pyaileys.socket.ConnectionUpdate."""
        error = update.last_disconnect
        self._channels.publish_connection(
            ConnectionUpdate(
                socket=self,
                connection=update.connection,
                qr=update.qr,
                status_code=disconnect_status_code(error),
                reason=str(error) if error is not None else None,
            )
        )

    async def _on_creds_update(self, _creds: Any) -> None:
        self._channels.publish_connection(CredentialsUpdate(socket=self))

    async def _on_message(self, event: dict) -> None:
        self._channels.publish_message(
            MessagesUpsert(socket=self, type="notify", messages=[inbound_from_event(event)])
        )


def inbound_from_event(event: dict) -> InboundMessage:
    """Build an InboundMessage from a pyaileys "message.decrypted" payload."""
    message = event.get("message")
    conversation = None
    extended_text = None
    if message is not None:
        conversation = getattr(message, "conversation", None) or None
        if message.HasField("extendedTextMessage"):
            extended_text = message.extendedTextMessage.text or None

    return InboundMessage(
        remote_jid=event.get("chat_jid") or "",
        conversation=conversation,
        extended_text=extended_text,
        has_content=message is not None,
    )


async def open_pyaileys_socket(
    auth_folder: Path,
    version: WAVersion,
    browser: Tuple[str, str],
    channels: EventChannels,
) -> PyaileysSocket:
    """
    Load the multi-file auth state, create a client and connect it.

    The library's own reconnect loop is switched off; SessionManager decides
    when to reconnect.
    """
    from pyaileys.client import WhatsAppClient
    from pyaileys.socket_config import SocketConfig

    client, auth_state = await WhatsAppClient.from_auth_folder(
        str(auth_folder),
        socket=SocketConfig(
            version=tuple(version.version),
            browser=browser,
            auto_reconnect=False,
        ),
    )
    socket = PyaileysSocket(client, auth_state, channels)
    try:
        await client.connect()
    except Exception:
        try:
            await client.disconnect()
        except Exception as e:
            logger.warning(f"Error disconnecting failed client: {e}")
        raise
    return socket
