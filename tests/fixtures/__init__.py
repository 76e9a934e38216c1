"""Test fixtures for in-memory implementations."""

from .fake_relay import FakeRelay, FakeRelayTransport, FakeWallet

__all__ = [
    "FakeRelay",
    "FakeRelayTransport",
    "FakeWallet",
]
