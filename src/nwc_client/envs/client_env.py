from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

from ..connection_uri import parse_connection_uri


class RequestPolicy(BaseModel):
    """Timeouts and limits applied to every round trip."""

    # Round-trip policy
    request_timeout: float = Field(30.0, gt=0)
    response_limit: int = Field(1, ge=1)

    # Transport settings
    connect_timeout: float = Field(10.0, gt=0)
    publish_timeout: float = Field(10.0, gt=0)


class Settings(RequestPolicy):
    """Typed client settings built from environment variables."""

    connection_uri: str = Field(..., repr=False)

    @field_validator("connection_uri")
    @classmethod
    def validate_connection_uri(cls, v: str) -> str:
        """Validate that the connection string carries a relay and a secret."""
        if not v:
            raise ValueError("Connection URI cannot be empty")
        parse_connection_uri(v)
        return v


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    connection_uri = os.environ.get("NWC_CONNECTION_URI")
    if not connection_uri:
        raise ValueError("NWC_CONNECTION_URI is required")
    return Settings(
        connection_uri=connection_uri,
        request_timeout=float(os.environ.get("NWC_REQUEST_TIMEOUT", "30")),
        response_limit=int(os.environ.get("NWC_RESPONSE_LIMIT", "1")),
        connect_timeout=float(os.environ.get("NWC_CONNECT_TIMEOUT", "10")),
        publish_timeout=float(os.environ.get("NWC_PUBLISH_TIMEOUT", "10")),
    )
