"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Optional


class WalletClientError(Exception):
    """Base class for every failure surfaced by the wallet client."""


class ConnectionUriError(WalletClientError, ValueError):
    """Raised when a connection string cannot be parsed."""


class MissingTransportEndpointError(ConnectionUriError):
    """Raised when the `relay` query parameter is absent, empty or undecodable."""


class MissingSecretError(ConnectionUriError):
    """Raised when the `secret` query parameter is absent or empty."""


class InvalidSecretKeyError(WalletClientError, ValueError):
    """Raised when the local secret is not a well-formed secp256k1 key."""


class InvalidPublicKeyError(WalletClientError, ValueError):
    """Raised when a public key is not a valid x-only secp256k1 point."""


class TransportError(WalletClientError):
    """Base class for relay transport failures."""


class TransportUnavailableError(TransportError):
    """Raised when the relay cannot be reached or the connection drops."""


class PublishFailedError(TransportError):
    """Raised when the relay does not accept a published envelope."""


class SubscriptionClosedError(TransportError):
    """Raised when the relay ends a subscription before a response arrived."""


class ResponseTimeoutError(WalletClientError, TimeoutError):
    """Raised when no matching response arrives before the deadline."""


class CodecError(WalletClientError):
    """Base class for payload encoding and encryption failures."""


class EncodingFailureError(CodecError):
    """Raised when a payload cannot be serialized or deserialized."""


class DecryptionFailureError(CodecError):
    """Raised when ciphertext cannot be decrypted with the shared secret."""


class RemoteError(WalletClientError):
    """Raised when the wallet answered with an application-level error."""

    def __init__(self, code: str, message: Optional[str] = None) -> None:
        self.code = code
        self.message = message or ""
        super().__init__(f"{code}: {self.message}" if self.message else code)
