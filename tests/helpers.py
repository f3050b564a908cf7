"""Test doubles shared by conftest.py and the test modules."""

from typing import Optional

from baileys_bot.infrastructure.whatsapp.messaging_provider import MessagingSocket

BOT_JID = "15550001111:7@s.whatsapp.net"


class FakeSocket(MessagingSocket):
    """In-memory MessagingSocket that records what it was asked to do."""

    def __init__(self, user_id: Optional[str] = BOT_JID, fail_with: Optional[Exception] = None):
        self._user_id = user_id
        self.fail_with = fail_with
        self.sent: list[tuple] = []
        self.saved = 0
        self.closed = False

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    async def send_message(self, jid, content) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((jid, content))
        return f"MSG{len(self.sent)}"

    async def save_credentials(self) -> None:
        self.saved += 1

    async def close(self) -> None:
        self.closed = True


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
