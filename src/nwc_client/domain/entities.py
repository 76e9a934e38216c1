"""Client domain entities: ClientIdentity."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..connection_uri import parse_connection_uri
from ..crypto.key_utils import derive_public_key


class ClientIdentity(BaseModel):
    """Transport endpoint and key material owned by one client instance.

    ``local_public_key`` is derived from ``local_secret_key`` when the
    identity is built and the model is frozen afterwards.
    """

    model_config = ConfigDict(frozen=True)

    transport_endpoint: str
    remote_public_key: str
    local_secret_key: str = Field(..., repr=False)
    local_public_key: str

    @classmethod
    def from_connection_uri(cls, uri: str) -> "ClientIdentity":
        """Parse a connection string and derive the caller's public key."""
        params = parse_connection_uri(uri)
        return cls(
            transport_endpoint=params.transport_endpoint,
            remote_public_key=params.remote_public_key,
            local_secret_key=params.local_secret_key,
            local_public_key=derive_public_key(params.local_secret_key),
        )
