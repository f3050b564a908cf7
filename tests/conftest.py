"""Shared pytest fixtures for the bot tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from .helpers import FakeSocket, SleepRecorder  # noqa: E402


@pytest.fixture
def fake_socket():
    return FakeSocket()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()
