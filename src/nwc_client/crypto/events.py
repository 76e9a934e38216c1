from __future__ import annotations

import hashlib
import json
import time
from typing import Any, NewType, Optional

from coincurve.keys import PrivateKey, PublicKeyXOnly
from pydantic import BaseModel, ConfigDict, Field

from .key_utils import derive_public_key, load_private_key_from_hex

EventId = NewType("EventId", str)
SignatureHex = NewType("SignatureHex", str)

# Reserved kinds for wallet requests and responses
WALLET_REQUEST_KIND = 23194
WALLET_RESPONSE_KIND = 23195

RECIPIENT_TAG = "p"
REFERENCE_TAG = "e"


class Envelope(BaseModel):
    """Signed, addressed, timestamped container carrying encrypted content.

    Field names follow the relay wire format so ``model_dump()`` can be sent
    as-is.
    """

    id: EventId
    pubkey: str
    created_at: int
    kind: int
    tags: list[list[str]] = Field(default_factory=list)
    content: str
    sig: SignatureHex

    def first_tag_value(self, name: str) -> Optional[str]:
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] == name:
                return tag[1]
        return None

    @property
    def recipient(self) -> Optional[str]:
        return self.first_tag_value(RECIPIENT_TAG)

    @property
    def reference_id(self) -> Optional[str]:
        """Id of the request envelope this one answers (responses only)."""
        return self.first_tag_value(REFERENCE_TAG)


class SubscriptionFilter(BaseModel):
    """Relay subscription filter; ``#e`` restricts on the reference tag."""

    model_config = ConfigDict(populate_by_name=True)

    kinds: Optional[list[int]] = None
    authors: Optional[list[str]] = None
    reference_ids: Optional[list[str]] = Field(None, alias="#e")
    limit: Optional[int] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def serialize_for_id(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str
) -> bytes:
    """Serialize event fields the way the id is computed over (NIP-01)."""
    return json.dumps(
        [0, pubkey, created_at, kind, tags, content],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def compute_event_id(
    pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str
) -> EventId:
    digest = hashlib.sha256(serialize_for_id(pubkey, created_at, kind, tags, content))
    return EventId(digest.hexdigest())


def sign_event_id(secret_key_hex: str, event_id: str) -> SignatureHex:
    """BIP-340 Schnorr signature over the 32-byte event id."""
    # Validates range and format before handing the bytes to libsecp256k1
    load_private_key_from_hex(secret_key_hex)
    signature = PrivateKey(bytes.fromhex(secret_key_hex)).sign_schnorr(
        bytes.fromhex(event_id)
    )
    return SignatureHex(signature.hex())


def generate_envelope(
    secret_key_hex: str,
    kind: int,
    content: str,
    tags: Optional[list[list[str]]] = None,
    created_at: Optional[int] = None,
) -> Envelope:
    """Build and sign an envelope authored by the owner of ``secret_key_hex``."""
    pubkey = derive_public_key(secret_key_hex)
    tags = tags or []
    created_at = int(time.time()) if created_at is None else created_at
    event_id = compute_event_id(pubkey, created_at, kind, tags, content)
    return Envelope(
        id=event_id,
        pubkey=pubkey,
        created_at=created_at,
        kind=kind,
        tags=tags,
        content=content,
        sig=sign_event_id(secret_key_hex, event_id),
    )


def verify_envelope(envelope: Envelope) -> bool:
    """Check that the id matches the content and the signature matches the author."""
    expected_id = compute_event_id(
        envelope.pubkey,
        envelope.created_at,
        envelope.kind,
        envelope.tags,
        envelope.content,
    )
    if expected_id != envelope.id:
        return False
    try:
        public_key = PublicKeyXOnly(bytes.fromhex(envelope.pubkey))
        return public_key.verify(bytes.fromhex(envelope.sig), bytes.fromhex(envelope.id))
    except ValueError:
        return False


def build_wallet_request(
    secret_key_hex: str, wallet_public_key: str, content: str
) -> Envelope:
    """Signed wallet request addressed to ``wallet_public_key``."""
    return generate_envelope(
        secret_key_hex,
        WALLET_REQUEST_KIND,
        content,
        tags=[[RECIPIENT_TAG, wallet_public_key]],
    )


def build_wallet_response(
    secret_key_hex: str,
    client_public_key: str,
    request_id: str,
    content: str,
) -> Envelope:
    """Signed wallet response referencing ``request_id``."""
    return generate_envelope(
        secret_key_hex,
        WALLET_RESPONSE_KIND,
        content,
        tags=[[RECIPIENT_TAG, client_public_key], [REFERENCE_TAG, request_id]],
    )


def response_filter(
    wallet_public_key: str, request_id: str, limit: int = 1
) -> SubscriptionFilter:
    """Filter selecting wallet responses to one request."""
    return SubscriptionFilter(
        kinds=[WALLET_RESPONSE_KIND],
        authors=[wallet_public_key],
        reference_ids=[request_id],
        limit=limit,
    )
