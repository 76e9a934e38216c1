"""Protocol interface for relay transport implementations.

The request session only needs four capabilities from the pub/sub network:
connect, publish an envelope, subscribe with a filter, and close. Keeping the
contract this narrow lets the session run against an in-memory relay in tests.
"""

from __future__ import annotations

from typing import AsyncGenerator, Callable, Optional, Protocol, Type, TYPE_CHECKING
from types import TracebackType

if TYPE_CHECKING:
    from ...crypto.events import Envelope, SubscriptionFilter


class RelayTransportProtocol(Protocol):
    """Protocol defining one connection to a relay.

    Implementations raise the transport errors from ``domain.errors``:
    ``TransportUnavailableError`` when the relay cannot be reached or drops the
    connection, ``PublishFailedError`` when it refuses an envelope, and
    ``SubscriptionClosedError`` when it ends a subscription.
    """

    async def connect(self) -> None:
        """Open the connection to the relay."""
        ...

    async def publish(self, envelope: "Envelope") -> None:
        """Publish a signed envelope and wait for the relay to accept it."""
        ...

    async def subscribe(
        self, subscription_filter: "SubscriptionFilter"
    ) -> AsyncGenerator["Envelope", None]:
        """Open a subscription.

        Returns:
            Lazy sequence of envelopes delivered for the filter. Envelopes sent
            by the relay before iteration starts are buffered, not dropped.
        """
        ...

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        ...

    async def __aenter__(self: "RelayTransportProtocol") -> "RelayTransportProtocol":
        ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        ...


# Builds an unconnected transport for a relay URL
RelayTransportFactory = Callable[[str], RelayTransportProtocol]
