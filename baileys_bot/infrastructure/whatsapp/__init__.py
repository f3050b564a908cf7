from .messaging_provider import MessagingSocket, PyaileysSocket, open_pyaileys_socket
from .events import (
    ConnectionUpdate,
    CredentialsUpdate,
    DisconnectReason,
    EventChannels,
    MessagesUpsert,
)
from .dispatcher import MessageDispatcher
from .session import SessionHolder, SessionManager
from .version import WAVersion, fetch_latest_version

__all__ = [
    "MessagingSocket",
    "PyaileysSocket",
    "open_pyaileys_socket",
    "ConnectionUpdate",
    "CredentialsUpdate",
    "DisconnectReason",
    "EventChannels",
    "MessagesUpsert",
    "MessageDispatcher",
    "SessionHolder",
    "SessionManager",
    "WAVersion",
    "fetch_latest_version",
]
