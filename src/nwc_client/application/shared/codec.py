"""Envelope codec: request/response documents to and from encrypted content."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ...crypto import nip04
from ...crypto.key_utils import compute_shared_secret
from ...domain.errors import EncodingFailureError
from ..dtos import WalletRequestDTO, WalletResponseDTO
from .serialization import payload_to_text


class WalletCodec:
    """Encrypts requests and decrypts replies under one shared secret.

    The secret is derived once, so the value used to encrypt a request is the
    value used to decrypt its reply.
    """

    def __init__(self, shared_secret: bytes) -> None:
        self._shared_secret = shared_secret

    @classmethod
    def for_peer(cls, remote_public_key: str, local_secret_key: str) -> "WalletCodec":
        return cls(compute_shared_secret(remote_public_key, local_secret_key))

    def encode_request(
        self, method: str, params: Optional[Mapping[str, Any]] = None
    ) -> str:
        try:
            request = WalletRequestDTO(method=method, params=dict(params or {}))
            plaintext = payload_to_text(request)
        except (TypeError, ValueError) as e:
            raise EncodingFailureError(f"Cannot serialize {method} request: {e}") from e
        return nip04.encrypt(plaintext, self._shared_secret)

    def decode_response(self, content: str) -> WalletResponseDTO:
        """Decrypt a reply. DecryptionFailureError propagates unchanged."""
        try:
            return WalletResponseDTO.model_validate(self._decrypt_document(content))
        except ValidationError as e:
            raise EncodingFailureError(f"Malformed wallet response: {e}") from e

    def _decrypt_document(self, content: str) -> dict[str, Any]:
        plaintext = nip04.decrypt(content, self._shared_secret)
        try:
            document = json.loads(plaintext)
        except ValueError as e:
            raise EncodingFailureError(f"Decrypted payload is not JSON: {e}") from e
        if not isinstance(document, dict):
            raise EncodingFailureError("Decrypted payload is not a JSON object")
        return document

