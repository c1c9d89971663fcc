"""
Domain: Orders (settled payments).

Rules implemented here:
- An Order references exactly one product; the reference never changes.
- buyer_wallet is normalized to lowercase before it is stored.
- amount_usdc must equal the product price at purchase time (no partial payments).
- status: pending -> completed | failed. A completed order always carries a
  tx_hash and a payment_confirmed_at timestamp.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp

_WALLET_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
_TX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def normalize_wallet(address: str) -> str:
    """Validate an EVM address and return it lowercased."""

    candidate = (address or "").strip()
    if not _WALLET_PATTERN.match(candidate):
        raise ValueError(f"Invalid wallet address: {address!r}")
    return candidate.lower()


def normalize_tx_hash(tx_hash: str) -> str:
    candidate = (tx_hash or "").strip()
    if not _TX_HASH_PATTERN.match(candidate):
        raise ValueError(f"Invalid transaction hash: {tx_hash!r}")
    return candidate.lower()


def validate_payment_amount(product_price: Decimal, amount: Decimal) -> None:
    """Payments must cover the full price exactly."""

    if amount != product_price:
        raise ValueError(
            f"Payment amount {amount} does not match product price {product_price}"
        )


@dataclass(frozen=True, slots=True)
class Order:
    """
    Immutable record of a buyer's payment for a product.

    Financial fields (product_id, amount_usdc) are never rewritten after insert.
    """

    order_id: UUID
    product_id: UUID
    buyer_wallet: str
    amount_usdc: Decimal
    status: OrderStatus
    blockchain_link_id: Optional[int] = None
    tx_hash: Optional[str] = None
    payment_confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "buyer_wallet", normalize_wallet(self.buyer_wallet))

        if self.amount_usdc <= 0:
            raise ValueError("amount_usdc must be positive")
        if self.status is OrderStatus.COMPLETED:
            if not self.tx_hash:
                raise ValueError("completed orders require tx_hash")
            if self.payment_confirmed_at is None:
                raise ValueError("completed orders require payment_confirmed_at")
        if self.payment_confirmed_at is not None:
            require_utc_timestamp("payment_confirmed_at", self.payment_confirmed_at)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def is_completed(self) -> bool:
        return self.status is OrderStatus.COMPLETED


__all__ = [
    "Order",
    "OrderStatus",
    "normalize_tx_hash",
    "normalize_wallet",
    "validate_payment_amount",
]
