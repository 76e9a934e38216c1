"""Request/response round trip with a remote wallet over a relay."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from typing import Any, AsyncGenerator, Mapping, Optional

from ...crypto.events import (
    WALLET_RESPONSE_KIND,
    Envelope,
    build_wallet_request,
    response_filter,
    verify_envelope,
)
from ...domain.entities import ClientIdentity
from ...domain.errors import (
    ResponseTimeoutError,
    SubscriptionClosedError,
    WalletClientError,
)
from ...domain.shared import RelayTransportFactory
from ..dtos import WalletResponseDTO
from ..shared.codec import WalletCodec

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_RESPONSE_LIMIT = 1


class RequestState(str, enum.Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    PUBLISHED = "published"
    AWAITING_RESPONSE = "awaiting_response"
    DECRYPTED = "decrypted"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class WalletRequestService:
    """Sends one encrypted command to the wallet and waits for its reply.

    Every call opens its own relay connection and subscription and closes them
    before returning, so concurrent calls share nothing but the immutable
    identity and codec.
    """

    def __init__(
        self,
        identity: ClientIdentity,
        codec: WalletCodec,
        transport_factory: RelayTransportFactory,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        response_limit: int = DEFAULT_RESPONSE_LIMIT,
    ) -> None:
        self.identity = identity
        self.codec = codec
        self.transport_factory = transport_factory
        self.request_timeout = request_timeout
        self.response_limit = response_limit

    async def send(
        self, method: str, params: Optional[Mapping[str, Any]] = None
    ) -> WalletResponseDTO:
        """Run one round trip and return the decrypted reply document.

        Raises:
            TransportUnavailableError: the relay cannot be reached.
            PublishFailedError: the relay refused the request.
            SubscriptionClosedError: the relay ended the response subscription.
            ResponseTimeoutError: no matching reply before ``request_timeout``.
            DecryptionFailureError, EncodingFailureError: the reply cannot be read.
        """
        content = self.codec.encode_request(method, params)
        request = build_wallet_request(
            self.identity.local_secret_key,
            self.identity.remote_public_key,
            content,
        )
        state = RequestState.IDLE
        try:
            async with self.transport_factory(
                self.identity.transport_endpoint
            ) as transport:
                await transport.connect()
                state = self._advance(request, state, RequestState.CONNECTED)

                # Responses are ephemeral events, so the subscription must exist
                # before the request reaches the wallet.
                responses = await transport.subscribe(
                    response_filter(
                        self.identity.remote_public_key,
                        request.id,
                        limit=self.response_limit,
                    )
                )
                await transport.publish(request)
                state = self._advance(request, state, RequestState.PUBLISHED)

                state = self._advance(request, state, RequestState.AWAITING_RESPONSE)
                try:
                    async with asyncio.timeout(self.request_timeout):
                        response = await self._first_match(request, responses)
                except TimeoutError as e:
                    raise ResponseTimeoutError(
                        f"No response to {method} within {self.request_timeout}s"
                    ) from e

            document = self.codec.decode_response(response.content)
        except ResponseTimeoutError:
            self._advance(request, state, RequestState.TIMED_OUT)
            raise
        except WalletClientError:
            self._advance(request, state, RequestState.FAILED)
            raise
        self._advance(request, state, RequestState.DECRYPTED)
        return document

    async def _first_match(
        self, request: Envelope, responses: AsyncGenerator[Envelope, None]
    ) -> Envelope:
        async with contextlib.aclosing(responses):
            async for envelope in responses:
                if self.is_response_to(request, envelope):
                    return envelope
                logger.warning(
                    "Ignoring envelope %s that does not answer request %s",
                    envelope.id,
                    request.id,
                )
        raise SubscriptionClosedError(
            f"Subscription ended before a response to {request.id} arrived"
        )

    def is_response_to(self, request: Envelope, envelope: Envelope) -> bool:
        """Local re-check of what the subscription filter asked the relay for."""
        return (
            envelope.kind == WALLET_RESPONSE_KIND
            and envelope.pubkey == self.identity.remote_public_key
            and envelope.reference_id == request.id
            and verify_envelope(envelope)
        )

    @staticmethod
    def _advance(
        request: Envelope, current: RequestState, new: RequestState
    ) -> RequestState:
        logger.debug("Request %s: %s -> %s", request.id, current.value, new.value)
        return new
