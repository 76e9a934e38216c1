"""Pytest fixtures for use case tests."""

from __future__ import annotations

import pytest

from nwc_client.application.shared.codec import WalletCodec
from nwc_client.application.use_cases.wallet_request import WalletRequestService
from nwc_client.client import AsyncWalletClient
from nwc_client.domain.entities import ClientIdentity
from tests.fixtures import FakeRelay

# Short enough to keep timeout tests fast, long enough for in-memory replies
TEST_REQUEST_TIMEOUT = 0.2


@pytest.fixture
def identity(connection_uri: str) -> ClientIdentity:
    return ClientIdentity.from_connection_uri(connection_uri)


@pytest.fixture
def request_service(identity: ClientIdentity, relay: FakeRelay) -> WalletRequestService:
    """Request session wired to the in-memory relay."""
    return WalletRequestService(
        identity=identity,
        codec=WalletCodec.for_peer(
            identity.remote_public_key, identity.local_secret_key
        ),
        transport_factory=relay.factory,
        request_timeout=TEST_REQUEST_TIMEOUT,
    )


@pytest.fixture
def wallet_client(connection_uri: str, relay: FakeRelay) -> AsyncWalletClient:
    return AsyncWalletClient(
        connection_uri,
        request_timeout=TEST_REQUEST_TIMEOUT,
        transport_factory=relay.factory,
    )
