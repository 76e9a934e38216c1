"""Unit tests for the websocket relay client against a scripted socket."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from websockets.exceptions import ConnectionClosed

from nwc_client.crypto.events import (
    Envelope,
    build_wallet_request,
    build_wallet_response,
    response_filter,
)
from nwc_client.domain.errors import (
    PublishFailedError,
    SubscriptionClosedError,
    TransportUnavailableError,
)
from nwc_client.infrastructure.relay import relay_client
from nwc_client.infrastructure.relay.relay_client import RelayClient


class ScriptedSocket:
    """Stands in for a websocket connection; frames are queued by the test."""

    def __init__(self) -> None:
        self.sent: list[list[Any]] = []
        self.incoming: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def push(self, frame: Any) -> None:
        self.incoming.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosed(None, None)
        self.sent.append(json.loads(message))

    async def recv(self) -> str:
        item = await self.incoming.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def socket(monkeypatch: pytest.MonkeyPatch) -> ScriptedSocket:
    scripted = ScriptedSocket()

    async def fake_connect(url: str, **kwargs: Any) -> ScriptedSocket:
        return scripted

    monkeypatch.setattr(relay_client, "connect", fake_connect)
    return scripted


@pytest.fixture
def request_envelope(client_secret_key: str, wallet_public_key: str) -> Envelope:
    return build_wallet_request(client_secret_key, wallet_public_key, "ciphertext")


@pytest.mark.asyncio
async def test_connect_failure_raises_transport_unavailable(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def refuse(url: str, **kwargs: Any) -> None:
        raise OSError("connection refused")

    monkeypatch.setattr(relay_client, "connect", refuse)
    client = RelayClient("wss://relay.example")
    with pytest.raises(TransportUnavailableError):
        await client.connect()


@pytest.mark.asyncio
async def test_publish_waits_for_ok(
    socket: ScriptedSocket, request_envelope: Envelope
) -> None:
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        socket.push(["NOTICE", "hello"])
        socket.push(["OK", request_envelope.id, True, ""])
        await client.publish(request_envelope)

    assert socket.sent[0] == ["EVENT", request_envelope.model_dump()]
    assert socket.closed


@pytest.mark.asyncio
async def test_publish_rejected_raises(
    socket: ScriptedSocket, request_envelope: Envelope
) -> None:
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        socket.push(["OK", request_envelope.id, False, "blocked: not allowed"])
        with pytest.raises(PublishFailedError, match="blocked"):
            await client.publish(request_envelope)


@pytest.mark.asyncio
async def test_publish_without_ack_raises(
    socket: ScriptedSocket, request_envelope: Envelope
) -> None:
    async with RelayClient("wss://relay.example", publish_timeout=0.05) as client:
        await client.connect()
        with pytest.raises(PublishFailedError):
            await client.publish(request_envelope)


@pytest.mark.asyncio
async def test_connection_drop_while_publishing_raises(
    socket: ScriptedSocket, request_envelope: Envelope
) -> None:
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        socket.incoming.put_nowait(ConnectionClosed(None, None))
        with pytest.raises(PublishFailedError):
            await client.publish(request_envelope)


@pytest.mark.asyncio
async def test_events_received_during_publish_are_buffered(
    socket: ScriptedSocket,
    request_envelope: Envelope,
    wallet_secret_key: str,
    wallet_public_key: str,
    client_public_key: str,
) -> None:
    response = build_wallet_response(
        wallet_secret_key, client_public_key, request_envelope.id, "reply"
    )
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        responses = await client.subscribe(
            response_filter(wallet_public_key, request_envelope.id)
        )
        subscription_id = socket.sent[0][1]
        assert socket.sent[0] == [
            "REQ",
            subscription_id,
            response_filter(wallet_public_key, request_envelope.id).to_wire(),
        ]

        socket.push(["EVENT", subscription_id, response.model_dump()])
        socket.push(["OK", request_envelope.id, True, ""])
        await client.publish(request_envelope)

        received = await responses.__anext__()
        assert received == response


@pytest.mark.asyncio
async def test_malformed_frames_are_skipped(
    socket: ScriptedSocket,
    request_envelope: Envelope,
    wallet_secret_key: str,
    wallet_public_key: str,
    client_public_key: str,
) -> None:
    response = build_wallet_response(
        wallet_secret_key, client_public_key, request_envelope.id, "reply"
    )
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        responses = await client.subscribe(
            response_filter(wallet_public_key, request_envelope.id)
        )
        subscription_id = socket.sent[0][1]
        socket.push("not json")
        socket.push({"not": "a list"})
        socket.push(["EVENT", subscription_id, {"id": "missing fields"}])
        socket.push(["EVENT", "other-subscription", response.model_dump()])
        socket.push(["EVENT", ["x"], {}])
        socket.push(["CLOSED", {}])
        socket.push(["OK", ["y"], True, ""])
        socket.push(["EVENT"])
        socket.push(["EOSE", subscription_id])
        socket.push(["EVENT", subscription_id, response.model_dump()])

        assert await responses.__anext__() == response


@pytest.mark.asyncio
async def test_closed_subscription_raises(
    socket: ScriptedSocket, request_envelope: Envelope, wallet_public_key: str
) -> None:
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        responses = await client.subscribe(
            response_filter(wallet_public_key, request_envelope.id)
        )
        socket.push(["CLOSED", socket.sent[0][1], "auth-required: sign in"])
        with pytest.raises(SubscriptionClosedError, match="auth-required"):
            await responses.__anext__()


@pytest.mark.asyncio
async def test_close_ends_open_subscriptions(
    socket: ScriptedSocket, request_envelope: Envelope, wallet_public_key: str
) -> None:
    async with RelayClient("wss://relay.example") as client:
        await client.connect()
        await client.subscribe(response_filter(wallet_public_key, request_envelope.id))
        subscription_id = socket.sent[0][1]

    assert socket.sent[-1] == ["CLOSE", subscription_id]
    assert socket.closed


@pytest.mark.asyncio
async def test_publish_before_connect_raises(request_envelope: Envelope) -> None:
    client = RelayClient("wss://relay.example")
    with pytest.raises(PublishFailedError, match="Not connected"):
        await client.publish(request_envelope)
