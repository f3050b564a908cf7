"""Session bootstrap and connection relay tests."""

from unittest.mock import MagicMock

import pytest

from baileys_bot.domain.commands import PONG_TEXT
from baileys_bot.domain.errors import SessionNotReadyError
from baileys_bot.domain.messages import InboundMessage, TextContent
from baileys_bot.infrastructure.config import WhatsAppSettings
from baileys_bot.infrastructure.whatsapp.dispatcher import MessageDispatcher
from baileys_bot.infrastructure.whatsapp.events import (
    ConnectionUpdate,
    CredentialsUpdate,
    DisconnectReason,
    MessagesUpsert,
)
from baileys_bot.infrastructure.whatsapp.session import SessionHolder, SessionManager
from baileys_bot.infrastructure.whatsapp.version import WAVersion

from .helpers import FakeSocket

VERSION = WAVersion(version=(2, 3000, 1), is_latest=True)


class SocketFactory:
    """Records bootstrap attempts; raises the queued errors first."""

    def __init__(self, errors=()):
        self.errors = list(errors)
        self.calls = []
        self.sockets = []

    async def __call__(self, auth_folder, version, browser, channels):
        self.calls.append((auth_folder, version, browser))
        if self.errors:
            raise self.errors.pop(0)
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket


@pytest.fixture
def settings(tmp_path):
    return WhatsAppSettings(auth_folder=tmp_path / "auth_info_baileys")


@pytest.fixture
def factory():
    return SocketFactory()


@pytest.fixture
def manager(settings, factory, sleep_recorder):
    return SessionManager(
        holder=SessionHolder(),
        socket_factory=factory,
        version_fetcher=lambda: VERSION,
        dispatcher=MessageDispatcher(media_loader=MagicMock()),
        settings=settings,
        sleep=sleep_recorder,
    )


class TestSessionHolder:

    def test_empty_holder_is_not_connected(self):
        holder = SessionHolder()
        assert holder.get() is None
        assert not holder.connected
        with pytest.raises(SessionNotReadyError):
            holder.require()

    def test_set_and_clear(self, fake_socket):
        holder = SessionHolder()
        holder.set(fake_socket)
        assert holder.require() is fake_socket

        holder.clear()
        assert holder.get() is None

    def test_clear_ignores_stale_socket(self, fake_socket):
        holder = SessionHolder()
        holder.set(fake_socket)

        holder.clear(FakeSocket())

        assert holder.get() is fake_socket


class TestBootstrap:

    @pytest.mark.asyncio
    async def test_creates_auth_folder_and_opens_socket(self, manager, factory, settings):
        assert not settings.auth_folder.exists()

        socket = await manager.bootstrap()

        assert settings.auth_folder.is_dir()
        assert socket is factory.sockets[0]
        assert factory.calls == [(settings.auth_folder, VERSION, settings.browser)]

    @pytest.mark.asyncio
    async def test_bootstrap_does_not_publish_session_before_open(self, manager):
        await manager.bootstrap()
        assert manager.holder.get() is None

    @pytest.mark.asyncio
    async def test_failure_retries_after_fixed_delay(self, settings, sleep_recorder):
        factory = SocketFactory(errors=[ConnectionError("no network"), RuntimeError("boom")])
        manager = SessionManager(
            socket_factory=factory,
            version_fetcher=lambda: VERSION,
            dispatcher=MessageDispatcher(media_loader=MagicMock()),
            settings=settings,
            sleep=sleep_recorder,
        )

        socket = await manager.bootstrap()

        assert socket is factory.sockets[0]
        assert len(factory.calls) == 3
        assert sleep_recorder.delays == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_version_fetch_failure_is_retried(self, settings, factory, sleep_recorder):
        attempts = []

        def flaky_version():
            attempts.append(1)
            if len(attempts) == 1:
                raise OSError("dns failure")
            return VERSION

        manager = SessionManager(
            socket_factory=factory,
            version_fetcher=flaky_version,
            dispatcher=MessageDispatcher(media_loader=MagicMock()),
            settings=settings,
            sleep=sleep_recorder,
        )

        await manager.bootstrap()

        assert len(attempts) == 2
        assert sleep_recorder.delays == [5.0]
        assert len(factory.calls) == 1


class TestConnectionRelay:

    @pytest.mark.asyncio
    async def test_open_publishes_session(self, manager, fake_socket):
        await manager.handle_connection_event(ConnectionUpdate(socket=fake_socket, connection="open"))
        assert manager.holder.get() is fake_socket

    @pytest.mark.asyncio
    async def test_close_reconnects_once_after_fixed_delay(self, manager, factory, fake_socket, sleep_recorder):
        manager.holder.set(fake_socket)

        await manager.handle_connection_event(
            ConnectionUpdate(
                socket=fake_socket,
                connection="close",
                status_code=DisconnectReason.CONNECTION_LOST,
            )
        )
        assert manager.holder.get() is None

        await manager.join()

        assert len(factory.calls) == 1
        assert sleep_recorder.delays == [3.0]
        assert not manager.logged_out

    @pytest.mark.asyncio
    async def test_each_close_of_live_socket_schedules_one_reconnect(self, manager, factory, sleep_recorder):
        first = await manager.bootstrap()

        await manager.handle_connection_event(ConnectionUpdate(socket=first, connection="close"))
        await manager.join()
        second = factory.sockets[1]

        await manager.handle_connection_event(ConnectionUpdate(socket=second, connection="close"))
        await manager.join()

        assert len(factory.calls) == 3
        assert sleep_recorder.delays == [3.0, 3.0]

    @pytest.mark.asyncio
    async def test_reconnect_closes_previous_socket(self, manager, factory):
        first = await manager.bootstrap()
        await manager.handle_connection_event(ConnectionUpdate(socket=first, connection="open"))

        await manager.handle_connection_event(
            ConnectionUpdate(
                socket=first,
                connection="close",
                status_code=DisconnectReason.CONNECTION_CLOSED,
            )
        )
        await manager.join()

        second = factory.sockets[1]
        assert first.closed
        assert not second.closed
        assert manager.holder.get() is None

    @pytest.mark.asyncio
    async def test_error_closing_previous_socket_does_not_block_reconnect(self, manager, factory):
        first = await manager.bootstrap()

        async def broken_close():
            raise RuntimeError("already gone")

        first.close = broken_close

        await manager.handle_connection_event(ConnectionUpdate(socket=first, connection="close"))
        await manager.join()

        assert len(factory.sockets) == 2

    @pytest.mark.asyncio
    async def test_logged_out_stops_reconnecting(self, manager, factory, fake_socket, sleep_recorder):
        manager.holder.set(fake_socket)

        await manager.handle_connection_event(
            ConnectionUpdate(
                socket=fake_socket,
                connection="close",
                status_code=DisconnectReason.LOGGED_OUT,
            )
        )
        await manager.join()

        assert manager.logged_out
        assert manager.holder.get() is None
        assert factory.calls == []
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_close_from_replaced_socket_is_ignored(self, manager, factory, sleep_recorder):
        first = await manager.bootstrap()
        await manager.handle_connection_event(ConnectionUpdate(socket=first, connection="close"))
        await manager.join()
        second = factory.sockets[1]
        await manager.handle_connection_event(ConnectionUpdate(socket=second, connection="open"))

        await manager.handle_connection_event(
            ConnectionUpdate(socket=first, connection="close", status_code=428)
        )
        await manager.join()

        assert manager.holder.get() is second
        assert len(factory.calls) == 2
        assert sleep_recorder.delays == [3.0]

    @pytest.mark.asyncio
    async def test_open_from_replaced_socket_is_ignored(self, manager, factory):
        first = await manager.bootstrap()
        await manager.handle_connection_event(ConnectionUpdate(socket=first, connection="close"))
        await manager.join()

        await manager.handle_connection_event(ConnectionUpdate(socket=first, connection="open"))

        assert manager.holder.get() is None

    @pytest.mark.asyncio
    async def test_open_before_factory_returns_is_accepted(self, manager, settings, fake_socket):
        async def connecting_factory(auth_folder, version, browser, channels):
            await manager.handle_connection_event(ConnectionUpdate(socket=fake_socket, connection="open"))
            return fake_socket

        manager._socket_factory = connecting_factory

        await manager.bootstrap()

        assert manager.holder.get() is fake_socket


    @pytest.mark.asyncio
    async def test_qr_only_update_changes_nothing(self, manager, factory, fake_socket):
        await manager.handle_connection_event(
            ConnectionUpdate(socket=fake_socket, qr="2@abc,def,ghi")
        )
        await manager.join()

        assert manager.holder.get() is None
        assert factory.calls == []

    @pytest.mark.asyncio
    async def test_credentials_update_saves_creds(self, manager, fake_socket):
        await manager.handle_connection_event(CredentialsUpdate(socket=fake_socket))
        assert fake_socket.saved == 1


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_start_relays_events_and_stop_closes_socket(self, manager, factory):
        await manager.start()
        await manager.join()
        socket = factory.sockets[0]

        manager.channels.publish_connection(ConnectionUpdate(socket=socket, connection="open"))
        await manager.channels.connection.join()
        assert manager.holder.get() is socket

        manager.channels.publish_message(
            MessagesUpsert(
                socket=socket,
                type="notify",
                messages=[InboundMessage(remote_jid="15557654321@s.whatsapp.net", conversation="!ping")],
            )
        )
        await manager.channels.messages.join()
        await manager.join()

        assert socket.sent == [("15557654321@s.whatsapp.net", TextContent(PONG_TEXT))]

        await manager.stop()

        assert socket.closed
        assert manager.holder.get() is None

    @pytest.mark.asyncio
    async def test_failed_reply_does_not_stop_relay(self, manager, factory):
        await manager.start()
        await manager.join()
        socket = factory.sockets[0]
        socket.fail_with = RuntimeError("send failed")

        for _ in range(2):
            manager.channels.publish_message(
                MessagesUpsert(
                    socket=socket,
                    type="notify",
                    messages=[InboundMessage(remote_jid="15557654321@s.whatsapp.net", conversation="hi")],
                )
            )
        await manager.channels.messages.join()
        await manager.join()

        socket.fail_with = None
        manager.channels.publish_connection(ConnectionUpdate(socket=socket, connection="open"))
        await manager.channels.connection.join()
        assert manager.holder.get() is socket

        await manager.stop()
