"""Client for wallets reachable over a relay with encrypted request/response."""

from .application.dtos import (
    BalanceDTO,
    InvoiceDetails,
    PaymentResultDTO,
    TransactionDetails,
    WalletInfoDTO,
)
from .client import AsyncWalletClient, WalletClient
from .connection_uri import ConnectionParameters, parse_connection_uri
from .domain.entities import ClientIdentity
from .domain.errors import (
    CodecError,
    ConnectionUriError,
    DecryptionFailureError,
    EncodingFailureError,
    InvalidPublicKeyError,
    InvalidSecretKeyError,
    MissingSecretError,
    MissingTransportEndpointError,
    PublishFailedError,
    RemoteError,
    ResponseTimeoutError,
    SubscriptionClosedError,
    TransportError,
    TransportUnavailableError,
    WalletClientError,
)

__all__ = [
    "AsyncWalletClient",
    "BalanceDTO",
    "ClientIdentity",
    "CodecError",
    "ConnectionParameters",
    "ConnectionUriError",
    "DecryptionFailureError",
    "EncodingFailureError",
    "InvalidPublicKeyError",
    "InvalidSecretKeyError",
    "InvoiceDetails",
    "MissingSecretError",
    "MissingTransportEndpointError",
    "PaymentResultDTO",
    "PublishFailedError",
    "RemoteError",
    "ResponseTimeoutError",
    "SubscriptionClosedError",
    "TransactionDetails",
    "TransportError",
    "TransportUnavailableError",
    "WalletClient",
    "WalletClientError",
    "WalletInfoDTO",
    "parse_connection_uri",
]
