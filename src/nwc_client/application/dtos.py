"""Data Transfer Objects for wallet requests and responses."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Request payloads
class WalletRequestDTO(BaseModel):
    """Plaintext command sent to the wallet inside an encrypted envelope."""

    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class MakeInvoiceParamsDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: int
    description: str


class PayInvoiceParamsDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    invoice: str


class PayKeysendParamsDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: int
    pubkey: str


class LookupInvoiceParamsDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    invoice: str


# Response documents
class WalletErrorDTO(BaseModel):
    """Application-level error reported by the wallet."""

    code: str
    message: Optional[str] = None


class WalletResponseDTO(BaseModel):
    """Decrypted reply: a ``result`` mapping, or an ``error``."""

    result_type: Optional[str] = None
    result: Optional[dict[str, Any]] = None
    error: Optional[WalletErrorDTO] = None


class BalanceDTO(BaseModel):
    balance: int


class InvoiceDetails(BaseModel):
    """Invoice record as reported by the wallet.

    Transactions use the same record, see ``TransactionDetails``.
    """

    type: Optional[str] = None
    invoice: Optional[str] = None
    description: Optional[str] = None
    description_hash: Optional[str] = None
    preimage: Optional[str] = None
    payment_hash: Optional[str] = None
    amount: Optional[int] = None
    fees_paid: Optional[int] = None
    created_at: Optional[int] = None
    expires_at: Optional[int] = None
    settled_at: Optional[int] = None
    metadata: Optional[dict[str, Any]] = None


TransactionDetails = InvoiceDetails


class PaymentResultDTO(BaseModel):
    """Result of ``pay_invoice`` and ``pay_keysend``."""

    preimage: str
    fees_paid: Optional[int] = None


class TransactionListDTO(BaseModel):
    transactions: list[TransactionDetails] = Field(default_factory=list)


class WalletInfoDTO(BaseModel):
    """Capabilities and node details returned by ``get_info``."""

    alias: Optional[str] = None
    pubkey: Optional[str] = None
    network: Optional[str] = None
    methods: list[str] = Field(default_factory=list)
    color: Optional[str] = None
    block_height: Optional[int] = None
    block_hash: Optional[str] = None
    notifications: list[str] = Field(default_factory=list)
