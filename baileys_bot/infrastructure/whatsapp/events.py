"""
Session Events and Channels
===========================

The messaging library reports everything through callbacks. Those callbacks
only translate the library's payloads into the dataclasses below and put
them on one of two queues:

- connection channel:  ConnectionUpdate, CredentialsUpdate
- message channel:     MessagesUpsert

Each queue is drained by a dedicated task in SessionManager. Every event
carries the socket that produced it so a late event from a replaced socket
can be told apart from the current one.
"""

import asyncio
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Union

from ...domain.messages import InboundMessage

if TYPE_CHECKING:
    from .messaging_provider import MessagingSocket


class DisconnectReason(IntEnum):
    """Status codes attached to a closed connection (same values as Baileys)."""

    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    CONNECTION_REPLACED = 440
    LOGGED_OUT = 401
    BAD_SESSION = 500
    RESTART_REQUIRED = 515
    MULTIDEVICE_MISMATCH = 411
    FORBIDDEN = 403
    UNAVAILABLE_SERVICE = 503


class ConnectionState:
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSE = "close"


@dataclass
class ConnectionUpdate:
    socket: "MessagingSocket"
    connection: Optional[str] = None
    qr: Optional[str] = None
    status_code: Optional[int] = None
    reason: Optional[str] = None

    @property
    def is_logged_out(self) -> bool:
        return self.status_code == DisconnectReason.LOGGED_OUT


@dataclass
class CredentialsUpdate:
    socket: "MessagingSocket"


@dataclass
class MessagesUpsert:
    socket: "MessagingSocket"
    type: str
    messages: list[InboundMessage] = field(default_factory=list)

    @property
    def is_notification(self) -> bool:
        """Live delivery, as opposed to history sync ("append")."""
        return self.type == "notify"


ConnectionEvent = Union[ConnectionUpdate, CredentialsUpdate]
MessageEvent = MessagesUpsert


class EventChannels:
    """The two queues a socket publishes into."""

    def __init__(self):
        self.connection: "asyncio.Queue[ConnectionEvent]" = asyncio.Queue()
        self.messages: "asyncio.Queue[MessageEvent]" = asyncio.Queue()

    def publish_connection(self, event: ConnectionEvent) -> None:
        self.connection.put_nowait(event)

    def publish_message(self, event: MessageEvent) -> None:
        self.messages.put_nowait(event)
