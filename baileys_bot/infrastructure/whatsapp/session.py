"""
Session Management - Bootstrap, Event Relay and the Active Session
===================================================================

ARCHITECTURAL DECISION:
- One SessionHolder per process holds the socket that last reported "open".
  It is cleared on "close", so the HTTP layer sees None between a drop and
  the next successful open and answers 503.
- SessionManager owns the bootstrap loop and the two relay tasks that drain
  the event channels.
- Delays are fixed: 5s after a failed bootstrap, 3s after a closed
  connection. A "logged out" close stops reconnecting for good; the auth
  folder must then be deleted by hand and the process restarted.
- Only the most recently opened socket counts. Opening a new one closes the
  previous socket, and close or open events from a replaced socket are
  ignored.

USAGE:
    holder = SessionHolder()
    manager = SessionManager(holder=holder)
    await manager.start()
    ...
    socket = holder.require()
    await manager.stop()
"""

import asyncio
import logging
import weakref
from pathlib import Path
from typing import Awaitable, Callable, Coroutine, Optional, Set, Tuple

from .dispatcher import MessageDispatcher
from .events import (
    ConnectionEvent,
    ConnectionState,
    ConnectionUpdate,
    CredentialsUpdate,
    EventChannels,
    MessageEvent,
    MessagesUpsert,
)
from .messaging_provider import MessagingSocket, open_pyaileys_socket
from .version import WAVersion, fetch_latest_version
from ..config import WhatsAppSettings, get_settings
from ...domain.errors import SessionNotReadyError

logger = logging.getLogger(__name__)

SocketFactory = Callable[
    [Path, WAVersion, Tuple[str, str], EventChannels], Awaitable[MessagingSocket]
]
VersionFetcher = Callable[[], WAVersion]
Sleep = Callable[[float], Awaitable[None]]


class SessionHolder:
    """Swappable reference to the connected socket."""

    def __init__(self):
        self._socket: Optional[MessagingSocket] = None

    def get(self) -> Optional[MessagingSocket]:
        return self._socket

    def set(self, socket: MessagingSocket) -> None:
        self._socket = socket

    def clear(self, socket: Optional[MessagingSocket] = None) -> None:
        """Drop the session; with a socket given, only if it is the current one."""
        if socket is None or self._socket is socket:
            self._socket = None

    def require(self) -> MessagingSocket:
        if self._socket is None:
            raise SessionNotReadyError("WhatsApp is not connected")
        return self._socket

    @property
    def connected(self) -> bool:
        return self._socket is not None


class SessionManager:
    """
    Keeps a WhatsApp connection alive.

    Library events arrive on EventChannels and are consumed by two relay
    tasks. Replies and reconnects run as background tasks so a slow send
    never holds up connection handling.
    """

    def __init__(
        self,
        holder: Optional[SessionHolder] = None,
        socket_factory: SocketFactory = open_pyaileys_socket,
        version_fetcher: VersionFetcher = fetch_latest_version,
        dispatcher: Optional[MessageDispatcher] = None,
        settings: Optional[WhatsAppSettings] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.holder = holder or SessionHolder()
        self.channels = EventChannels()
        self._socket_factory = socket_factory
        self._version_fetcher = version_fetcher
        self._dispatcher = dispatcher or MessageDispatcher()
        self._settings = settings or get_settings().whatsapp
        self._sleep = sleep

        self._socket: Optional[MessagingSocket] = None
        self._retired: "weakref.WeakSet[MessagingSocket]" = weakref.WeakSet()
        self._relays: list[asyncio.Task] = []
        self._tasks: Set[asyncio.Task] = set()
        self._stopped = False
        self.logged_out = False

    # ── Lifecycle ──────────────────────────────────────────────

    async def start(self) -> None:
        logger.info("Starting Baileys WhatsApp Bot...")
        self._relays = [
            asyncio.create_task(self._relay(self.channels.connection, self.handle_connection_event)),
            asyncio.create_task(self._relay(self.channels.messages, self.handle_message_event)),
        ]
        self._spawn(self.bootstrap())

    async def stop(self) -> None:
        logger.info("Bot shutting down gracefully...")
        self._stopped = True
        pending = self._relays + list(self._tasks)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._relays = []

        self.holder.clear()
        await self._close_current()

    async def join(self) -> None:
        """Wait until no background reply or reconnect task is left."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Bootstrap ──────────────────────────────────────────────

    async def bootstrap(self) -> Optional[MessagingSocket]:
        """
        Open a new connection, retrying forever on failure.
        Returns the new socket, or None if the manager was stopped.
        """
        while not self._stopped:
            try:
                self._ensure_auth_folder()
                version = await asyncio.to_thread(self._version_fetcher)
                logger.info(f"Using WA v{version}, isLatest: {version.is_latest}")

                await self._close_current()
                self._socket = await self._socket_factory(
                    self._settings.auth_folder,
                    version,
                    self._settings.browser,
                    self.channels,
                )
                return self._socket
            except Exception as e:
                logger.exception(f"Error starting bot: {e}")
                await self._sleep(self._settings.bootstrap_retry_delay)
        return None

    async def _close_current(self) -> None:
        previous, self._socket = self._socket, None
        if previous is None:
            return
        self._retired.add(previous)
        self.holder.clear(previous)
        try:
            await previous.close()
        except Exception as e:
            logger.warning(f"Error closing previous socket: {e}")

    def _ensure_auth_folder(self) -> None:
        self._settings.auth_folder.mkdir(parents=True, exist_ok=True)

    async def _reconnect_later(self) -> None:
        await self._sleep(self._settings.reconnect_delay)
        await self.bootstrap()

    # ── Connection relay ───────────────────────────────────────

    async def handle_connection_event(self, event: ConnectionEvent) -> None:
        if isinstance(event, CredentialsUpdate):
            await event.socket.save_credentials()
            return

        if event.qr:
            logger.info(f"Scan this QR code with WhatsApp:\n{event.qr}")
            logger.info("Open WhatsApp > Linked Devices > Link a Device")

        if event.socket in self._retired:
            logger.debug(f"Ignoring connection={event.connection} from a replaced socket")
            return

        if event.connection == ConnectionState.CLOSE:
            self._on_close(event)
        elif event.connection == ConnectionState.OPEN:
            self.holder.set(event.socket)
            logger.info("Connected to WhatsApp successfully!")
            logger.info(f"Bot Number: {event.socket.user_id}")

    def _on_close(self, event: ConnectionUpdate) -> None:
        self.holder.clear(event.socket)
        should_reconnect = not event.is_logged_out
        logger.info(f"Connection closed ({event.reason or 'no error'}). Reconnecting: {should_reconnect}")

        if should_reconnect:
            self._spawn(self._reconnect_later())
        else:
            self.logged_out = True
            logger.error(
                f"Logged out. Delete {self._settings.auth_folder} and restart to login again."
            )

    # ── Message relay ──────────────────────────────────────────

    async def handle_message_event(self, event: MessageEvent) -> None:
        if isinstance(event, MessagesUpsert):
            self._spawn(self._dispatch(event))

    async def _dispatch(self, upsert: MessagesUpsert) -> None:
        try:
            await self._dispatcher.handle_upsert(upsert)
        except Exception as e:
            logger.exception(f"Failed to reply to incoming message: {e}")

    # ── Helpers ────────────────────────────────────────────────

    async def _relay(self, queue: asyncio.Queue, handler: Callable[..., Awaitable[None]]) -> None:
        while True:
            event = await queue.get()
            try:
                await handler(event)
            except Exception as e:
                logger.exception(f"Error handling {type(event).__name__}: {e}")
            finally:
                queue.task_done()

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
