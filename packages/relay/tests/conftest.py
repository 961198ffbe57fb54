"""
Shared fixtures for relay tests.

Socket.IO room operations are replaced with AsyncMocks so handlers can be
driven directly without a network connection.
"""

from unittest.mock import AsyncMock

import pytest

from taskhub_relay.config import RelayConfig
from taskhub_relay.server import RelayServer


@pytest.fixture
def config():
    return RelayConfig()


@pytest.fixture
def relay(config):
    server = RelayServer(config)
    sessions = {}

    async def save_session(sid, session):
        sessions[sid] = session

    async def get_session(sid):
        return sessions.get(sid, {})

    server.sio.enter_room = AsyncMock()
    server.sio.leave_room = AsyncMock()
    server.sio.emit = AsyncMock()
    server.sio.save_session = AsyncMock(side_effect=save_session)
    server.sio.get_session = AsyncMock(side_effect=get_session)
    return server
