from __future__ import annotations

import asyncio
import functools
import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .application.dtos import (
    BalanceDTO,
    InvoiceDetails,
    LookupInvoiceParamsDTO,
    MakeInvoiceParamsDTO,
    PayInvoiceParamsDTO,
    PayKeysendParamsDTO,
    PaymentResultDTO,
    TransactionDetails,
    TransactionListDTO,
    WalletInfoDTO,
)
from .application.shared.codec import WalletCodec
from .application.use_cases.wallet_request import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RESPONSE_LIMIT,
    WalletRequestService,
)
from .domain.entities import ClientIdentity
from .domain.errors import EncodingFailureError, RemoteError
from .domain.shared import RelayTransportFactory
from .envs.client_env import RequestPolicy, Settings, get_settings
from .infrastructure.relay.relay_client import RelayClient

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)


class AsyncWalletClient:
    """Asynchronous client for a remote wallet reachable through a relay.

    Every operation is one encrypted request/response round trip; see
    ``WalletRequestService``. The identity and shared secret are derived once,
    here, from the connection string.
    """

    def __init__(
        self,
        connection_uri: str,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        response_limit: int = DEFAULT_RESPONSE_LIMIT,
        connect_timeout: float = 10.0,
        publish_timeout: float = 10.0,
        transport_factory: Optional[RelayTransportFactory] = None,
    ) -> None:
        # Same bounds as the environment settings; raises ValidationError
        policy = RequestPolicy(
            request_timeout=request_timeout,
            response_limit=response_limit,
            connect_timeout=connect_timeout,
            publish_timeout=publish_timeout,
        )
        self.identity = ClientIdentity.from_connection_uri(connection_uri)
        if transport_factory is None:
            transport_factory = functools.partial(
                RelayClient,
                open_timeout=policy.connect_timeout,
                publish_timeout=policy.publish_timeout,
            )
        self._requests = WalletRequestService(
            identity=self.identity,
            codec=WalletCodec.for_peer(
                self.identity.remote_public_key, self.identity.local_secret_key
            ),
            transport_factory=transport_factory,
            request_timeout=policy.request_timeout,
            response_limit=policy.response_limit,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport_factory: Optional[RelayTransportFactory] = None,
    ) -> "AsyncWalletClient":
        """Build a client from ``Settings`` (read from the environment by default)."""
        settings = settings or get_settings()
        return cls(
            settings.connection_uri,
            request_timeout=settings.request_timeout,
            response_limit=settings.response_limit,
            connect_timeout=settings.connect_timeout,
            publish_timeout=settings.publish_timeout,
            transport_factory=transport_factory,
        )

    async def _call(
        self,
        method: str,
        params: Optional[BaseModel],
        result_model: Type[ResultT],
    ) -> ResultT:
        """Send ``method`` and validate the ``result`` field as ``result_model``."""
        logger.debug("Calling wallet method %s", method)
        response = await self._requests.send(
            method, params.model_dump() if params is not None else {}
        )
        if response.error is not None:
            raise RemoteError(response.error.code, response.error.message)
        if response.result is None:
            raise EncodingFailureError(
                f"{method} response carries neither result nor error"
            )
        try:
            return result_model.model_validate(response.result)
        except ValidationError as e:
            raise EncodingFailureError(f"Unexpected {method} result: {e}") from e

    async def get_balance(self) -> BalanceDTO:
        return await self._call("get_balance", None, BalanceDTO)

    async def make_invoice(self, amount: int, description: str) -> str:
        """Create an invoice and return its encoded string."""
        details = await self._call(
            "make_invoice",
            MakeInvoiceParamsDTO(amount=amount, description=description),
            InvoiceDetails,
        )
        if not details.invoice:
            raise EncodingFailureError("make_invoice result has no invoice")
        return details.invoice

    async def pay_invoice(self, invoice: str) -> PaymentResultDTO:
        return await self._call(
            "pay_invoice", PayInvoiceParamsDTO(invoice=invoice), PaymentResultDTO
        )

    async def pay_keysend(self, pubkey: str, amount: int) -> PaymentResultDTO:
        """Pay ``amount`` straight to a node identified by ``pubkey``."""
        return await self._call(
            "pay_keysend",
            PayKeysendParamsDTO(amount=amount, pubkey=pubkey),
            PaymentResultDTO,
        )

    async def lookup_invoice(self, invoice: str) -> InvoiceDetails:
        return await self._call(
            "lookup_invoice", LookupInvoiceParamsDTO(invoice=invoice), InvoiceDetails
        )

    async def list_transactions(self) -> list[TransactionDetails]:
        result = await self._call("list_transactions", None, TransactionListDTO)
        return result.transactions

    async def get_info(self) -> WalletInfoDTO:
        return await self._call("get_info", None, WalletInfoDTO)


class WalletClient:
    """Synchronous client for a remote wallet.

    Mirrors ``AsyncWalletClient``; each call runs its round trip on a fresh
    event loop, so it must not be used from inside a running loop.
    """

    def __init__(
        self,
        connection_uri: str,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        response_limit: int = DEFAULT_RESPONSE_LIMIT,
        connect_timeout: float = 10.0,
        publish_timeout: float = 10.0,
        transport_factory: Optional[RelayTransportFactory] = None,
    ) -> None:
        self._client = AsyncWalletClient(
            connection_uri,
            request_timeout=request_timeout,
            response_limit=response_limit,
            connect_timeout=connect_timeout,
            publish_timeout=publish_timeout,
            transport_factory=transport_factory,
        )

    @property
    def identity(self) -> ClientIdentity:
        return self._client.identity

    def get_balance(self) -> BalanceDTO:
        return asyncio.run(self._client.get_balance())

    def make_invoice(self, amount: int, description: str) -> str:
        return asyncio.run(self._client.make_invoice(amount, description))

    def pay_invoice(self, invoice: str) -> PaymentResultDTO:
        return asyncio.run(self._client.pay_invoice(invoice))

    def pay_keysend(self, pubkey: str, amount: int) -> PaymentResultDTO:
        return asyncio.run(self._client.pay_keysend(pubkey, amount))

    def lookup_invoice(self, invoice: str) -> InvoiceDetails:
        return asyncio.run(self._client.lookup_invoice(invoice))

    def list_transactions(self) -> list[TransactionDetails]:
        return asyncio.run(self._client.list_transactions())

    def get_info(self) -> WalletInfoDTO:
        return asyncio.run(self._client.get_info())
