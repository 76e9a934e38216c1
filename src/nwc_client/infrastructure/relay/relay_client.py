from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Optional, Type
from types import TracebackType
from uuid import uuid4

from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from ...crypto.events import Envelope, SubscriptionFilter
from ...domain.errors import (
    PublishFailedError,
    SubscriptionClosedError,
    TransportUnavailableError,
)

logger = logging.getLogger(__name__)

MAX_MESSAGE_BYTES = 1 << 20


@dataclass
class _SubscriptionState:
    backlog: deque[Envelope] = field(default_factory=deque)
    closed_reason: Optional[str] = None


class RelayClient:
    """Asynchronous connection to a single relay over websockets.

    - Speaks the relay wire protocol (``EVENT``/``REQ``/``OK``/``EOSE``/``CLOSED``).
    - Reads frames only while a caller is waiting on ``publish`` or iterating a
      subscription; frames meant for a subscription are buffered until read.
    - Translates websocket failures into the domain transport errors.
    """

    def __init__(
        self,
        url: str,
        *,
        open_timeout: float = 10.0,
        publish_timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._open_timeout = open_timeout
        self._publish_timeout = publish_timeout
        self._ws: Optional[ClientConnection] = None
        self._subscriptions: dict[str, _SubscriptionState] = {}
        self._acks: dict[str, tuple[bool, str]] = {}

    @property
    def url(self) -> str:
        return self._url

    async def connect(self) -> None:
        if self._ws is not None:
            return
        logger.debug("Connecting to relay %s", self._url)
        try:
            self._ws = await connect(
                self._url,
                open_timeout=self._open_timeout,
                max_size=MAX_MESSAGE_BYTES,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            raise TransportUnavailableError(
                f"Could not connect to relay {self._url}: {e}"
            ) from e

    async def publish(self, envelope: Envelope) -> None:
        try:
            await self._send(["EVENT", envelope.model_dump()])
            async with asyncio.timeout(self._publish_timeout):
                while envelope.id not in self._acks:
                    await self._receive_one()
        except TimeoutError as e:
            raise PublishFailedError(
                f"Relay {self._url} did not acknowledge envelope {envelope.id}"
            ) from e
        except TransportUnavailableError as e:
            raise PublishFailedError(
                f"Connection lost while publishing envelope {envelope.id}: {e}"
            ) from e

        accepted, message = self._acks.pop(envelope.id)
        if not accepted:
            raise PublishFailedError(
                f"Relay {self._url} rejected envelope {envelope.id}: {message}"
            )
        logger.debug("Relay %s accepted envelope %s", self._url, envelope.id)

    async def subscribe(
        self, subscription_filter: SubscriptionFilter
    ) -> AsyncGenerator[Envelope, None]:
        subscription_id = uuid4().hex
        self._subscriptions[subscription_id] = _SubscriptionState()
        await self._send(["REQ", subscription_id, subscription_filter.to_wire()])
        logger.debug("Opened subscription %s on %s", subscription_id, self._url)
        return self._iterate(subscription_id)

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        subscription_ids = list(self._subscriptions)
        self._subscriptions.clear()
        self._acks.clear()
        if ws is None:
            return
        try:
            for subscription_id in subscription_ids:
                await ws.send(json.dumps(["CLOSE", subscription_id]))
        except ConnectionClosed:
            logger.debug("Relay %s went away before subscriptions closed", self._url)
        await ws.close()
        logger.debug("Closed connection to relay %s", self._url)

    async def _iterate(self, subscription_id: str) -> AsyncGenerator[Envelope, None]:
        state = self._subscriptions[subscription_id]
        while True:
            while state.backlog:
                yield state.backlog.popleft()
            if state.closed_reason is not None:
                raise SubscriptionClosedError(
                    f"Relay {self._url} closed subscription: {state.closed_reason}"
                )
            await self._receive_one()

    def _require_connection(self) -> ClientConnection:
        if self._ws is None:
            raise TransportUnavailableError(f"Not connected to relay {self._url}")
        return self._ws

    async def _send(self, frame: list[Any]) -> None:
        ws = self._require_connection()
        try:
            await ws.send(json.dumps(frame, separators=(",", ":"), ensure_ascii=False))
        except ConnectionClosed as e:
            raise TransportUnavailableError(
                f"Connection to relay {self._url} closed: {e}"
            ) from e

    async def _receive_one(self) -> None:
        ws = self._require_connection()
        try:
            raw = await ws.recv()
        except ConnectionClosed as e:
            raise TransportUnavailableError(
                f"Connection to relay {self._url} closed: {e}"
            ) from e
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON frame from relay %s", self._url)
            return
        if not isinstance(frame, list) or not frame:
            logger.warning("Ignoring malformed frame from relay %s", self._url)
            return
        self._route(frame)

    def _route(self, frame: list[Any]) -> None:
        label = frame[0]
        if label in ("EVENT", "OK", "CLOSED") and (
            len(frame) < 2 or not isinstance(frame[1], str)
        ):
            logger.warning(
                "Ignoring %s frame without a string id from relay %s", label, self._url
            )
            return
        if label == "EVENT" and len(frame) >= 3:
            state = self._subscriptions.get(frame[1])
            if state is None:
                logger.debug("Dropping event for unknown subscription %s", frame[1])
                return
            try:
                state.backlog.append(Envelope.model_validate(frame[2]))
            except ValidationError:
                logger.warning("Ignoring malformed event from relay %s", self._url)
        elif label == "OK" and len(frame) >= 3:
            message = str(frame[3]) if len(frame) > 3 else ""
            self._acks[frame[1]] = (frame[2] is True, message)
        elif label == "CLOSED" and len(frame) >= 2:
            state = self._subscriptions.get(frame[1])
            if state is not None:
                state.closed_reason = str(frame[2]) if len(frame) > 2 else ""
        elif label == "EOSE":
            logger.debug("End of stored events for subscription %s", frame[1:2])
        elif label == "NOTICE":
            logger.info("Relay %s notice: %s", self._url, frame[1:2])
        else:
            logger.debug("Ignoring %s frame from relay %s", label, self._url)

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.close()
