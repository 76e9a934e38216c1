"""Shared domain utilities.

This package is domain-accessible and should not depend on infrastructure code.
"""

from .relay_transport_protocol import RelayTransportProtocol, RelayTransportFactory

__all__ = ["RelayTransportProtocol", "RelayTransportFactory"]
