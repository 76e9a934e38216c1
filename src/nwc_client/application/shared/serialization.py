from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel


def json_to_text(data: Any) -> str:
    """Serialize to canonical compact JSON text (sorted keys)."""
    return json.dumps(data, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def payload_to_text(payload: BaseModel) -> str:
    """Canonical text for encrypting Pydantic payloads.

    Centralizes the "model_dump() -> json text" convention so every request is
    serialized the same way before encryption.
    """

    return json_to_text(payload.model_dump())
