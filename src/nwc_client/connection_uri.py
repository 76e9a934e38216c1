"""Parsing of wallet connection strings.

A connection string looks like::

    nostr+walletconnect://<wallet-pubkey>?relay=<url-encoded-relay>&secret=<hex>

The wallet key may also appear as the first path segment
(``nostr+walletconnect:<wallet-pubkey>?...``). Keys are not validated here;
a malformed key surfaces when the identity is derived.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

from .domain.errors import (
    ConnectionUriError,
    MissingSecretError,
    MissingTransportEndpointError,
)


@dataclass(frozen=True)
class ConnectionParameters:
    transport_endpoint: str
    remote_public_key: str
    local_secret_key: str


# A "%" that does not start a two-digit hex escape
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _has_bad_escape(raw_query: str, name: str) -> bool:
    for pair in raw_query.split("&"):
        key, _, value = pair.partition("=")
        if key == name and _BAD_ESCAPE.search(value):
            return True
    return False


def _first(query: dict[str, list[str]], name: str) -> str:
    values = query.get(name)
    return values[0] if values else ""


def parse_connection_uri(uri: str) -> ConnectionParameters:
    """Split a connection string into (relay, wallet public key, client secret).

    Raises:
        MissingTransportEndpointError: ``relay`` is absent, empty, carries a
            malformed percent-escape or is not valid UTF-8 once decoded.
        MissingSecretError: ``secret`` is absent or empty.
        ConnectionUriError: the string is not a URI at all.
    """
    try:
        parsed = urlsplit(uri)
    except ValueError as e:
        raise ConnectionUriError(f"Invalid connection string: {e}") from e

    remote_public_key = parsed.netloc
    if not remote_public_key:
        path = parsed.path
        remote_public_key = path[1:] if path.startswith("/") else path

    # surrogateescape keeps undecodable bytes visible so only `relay` is rejected
    query = parse_qs(parsed.query, keep_blank_values=True, errors="surrogateescape")

    transport_endpoint = _first(query, "relay")
    if _has_bad_escape(parsed.query, "relay"):
        transport_endpoint = ""
    try:
        transport_endpoint.encode("utf-8")
    except UnicodeEncodeError:
        transport_endpoint = ""
    if not transport_endpoint:
        raise MissingTransportEndpointError(
            "relay parameter is missing or cannot be decoded"
        )

    local_secret_key = _first(query, "secret")
    if not local_secret_key:
        raise MissingSecretError("secret parameter is missing")

    return ConnectionParameters(
        transport_endpoint=transport_endpoint,
        remote_public_key=remote_public_key,
        local_secret_key=local_secret_key,
    )
