"""Tests for ClientRegistry and ClientSession."""

import pytest
from websockets.protocol import State

from serial2ws.exceptions import ClientSendError
from serial2ws.registry import ACK_FRAME, ClientRegistry, ClientSession, SessionState

from conftest import FakeTransport


def test_register_and_unregister():
    registry = ClientRegistry()
    session = ClientSession(FakeTransport())
    registry.register(session)
    assert session in registry
    assert len(registry) == 1
    registry.unregister(session)
    assert session not in registry
    assert len(registry) == 0


def test_unregister_absent_session_is_noop():
    registry = ClientRegistry()
    session = ClientSession(FakeTransport())
    registry.unregister(session)
    registry.register(session)
    registry.unregister(session)
    registry.unregister(session)
    assert len(registry) == 0


def test_register_twice_keeps_one_entry():
    registry = ClientRegistry()
    session = ClientSession(FakeTransport())
    registry.register(session)
    registry.register(session)
    assert len(registry) == 1


def test_sessions_compare_by_identity():
    transport = FakeTransport()
    registry = ClientRegistry()
    registry.register(ClientSession(transport))
    registry.register(ClientSession(transport))
    assert len(registry) == 2


def test_snapshot_is_detached_from_registry():
    registry = ClientRegistry()
    sessions = [ClientSession(FakeTransport(peer=("10.0.0.1", i))) for i in range(3)]
    for session in sessions:
        registry.register(session)
    snapshot = registry.snapshot()
    for session in snapshot:
        registry.unregister(session)
    assert len(snapshot) == 3
    assert len(registry) == 0


@pytest.mark.parametrize(
    "state, expected",
    [
        (State.CONNECTING, SessionState.OPEN),
        (State.OPEN, SessionState.OPEN),
        (State.CLOSING, SessionState.CLOSING),
        (State.CLOSED, SessionState.CLOSED),
    ],
)
def test_session_state_follows_transport(state, expected):
    transport = FakeTransport()
    transport.state = state
    assert ClientSession(transport).state is expected


@pytest.mark.asyncio
async def test_send_on_closed_session_raises_without_sending():
    transport = FakeTransport()
    transport.state = State.CLOSED
    with pytest.raises(ClientSendError):
        await ClientSession(transport).send("x")
    assert transport.sent == []


@pytest.mark.asyncio
async def test_send_wraps_transport_errors():
    with pytest.raises(ClientSendError):
        await ClientSession(FakeTransport(fail=True)).send("x")


@pytest.mark.asyncio
async def test_admit_registers_and_sends_confirmation():
    registry = ClientRegistry()
    transport = FakeTransport()
    session = ClientSession(transport)
    assert await registry.admit(session) is True
    assert session in registry
    assert transport.sent == [ACK_FRAME]


@pytest.mark.asyncio
async def test_failed_confirmation_keeps_registration():
    registry = ClientRegistry()
    session = ClientSession(FakeTransport(fail=True))
    assert await registry.admit(session) is False
    assert session in registry


@pytest.mark.asyncio
async def test_acknowledge_targets_single_session():
    registry = ClientRegistry()
    first, second = FakeTransport(), FakeTransport()
    await registry.admit(ClientSession(first))
    await registry.admit(ClientSession(second))
    assert first.sent == ["connected"]
    assert second.sent == ["connected"]
