"""Shared pytest fixtures for wallet client tests."""

from __future__ import annotations

from urllib.parse import quote

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from nwc_client.crypto.key_utils import derive_public_key
from tests.fixtures import FakeRelay, FakeWallet

RELAY_URL = "wss://relay.example"


def generate_secret_key_hex() -> str:
    """Generate a random secp256k1 secret key as hex."""
    private_key = ec.generate_private_key(ec.SECP256K1())
    return private_key.private_numbers().private_value.to_bytes(32, "big").hex()


@pytest.fixture
def client_secret_key() -> str:
    return generate_secret_key_hex()


@pytest.fixture
def client_public_key(client_secret_key: str) -> str:
    return derive_public_key(client_secret_key)


@pytest.fixture
def wallet_secret_key() -> str:
    return generate_secret_key_hex()


@pytest.fixture
def wallet_public_key(wallet_secret_key: str) -> str:
    return derive_public_key(wallet_secret_key)


@pytest.fixture
def connection_uri(wallet_public_key: str, client_secret_key: str) -> str:
    """Connection string pointing the client at the test wallet."""
    return (
        f"nostr+walletconnect://{wallet_public_key}"
        f"?relay={quote(RELAY_URL, safe='')}&secret={client_secret_key}"
    )


@pytest.fixture
def wallet(wallet_secret_key: str, client_public_key: str) -> FakeWallet:
    return FakeWallet(wallet_secret_key, client_public_key)


@pytest.fixture
def relay(wallet: FakeWallet) -> FakeRelay:
    return FakeRelay(wallet)
