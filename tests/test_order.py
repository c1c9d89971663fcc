"""
Tests for `domain/order.py`.

Covers contract rules:
- Wallet addresses and transaction hashes are validated and lowercased.
- Payment amount must equal the product price exactly.
- Completed orders carry a tx_hash and a UTC payment_confirmed_at.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from domain.order import (
    Order,
    OrderStatus,
    normalize_tx_hash,
    normalize_wallet,
    validate_payment_amount,
)

ORDER_ID = UUID("00000000-0000-0000-0000-000000000101")
PRODUCT_ID = UUID("00000000-0000-0000-0000-000000000201")
CONFIRMED = datetime(2025, 1, 2, 12, 0, 0, tzinfo=timezone.utc)


def test_normalize_wallet_lowercases_valid_addresses() -> None:
    assert normalize_wallet("0xABCDEFabcdef0123456789ABCDEFabcdef012345") == (
        "0xabcdefabcdef0123456789abcdefabcdef012345"
    )


@pytest.mark.parametrize(
    "value",
    ["", "0x123", "abcdefabcdef0123456789abcdefabcdef012345", "0x" + "g" * 40],
)
def test_normalize_wallet_rejects_malformed_addresses(value: str) -> None:
    with pytest.raises(ValueError):
        normalize_wallet(value)


def test_normalize_tx_hash() -> None:
    assert normalize_tx_hash("0x" + "AB" * 32) == "0x" + "ab" * 32

    with pytest.raises(ValueError):
        normalize_tx_hash("0x" + "ab" * 31)


def test_validate_payment_amount_requires_exact_match() -> None:
    """Verify partial and over-payments are rejected; equal decimals pass."""

    validate_payment_amount(Decimal("10.00"), Decimal("10"))

    with pytest.raises(ValueError):
        validate_payment_amount(Decimal("10.00"), Decimal("9.99"))

    with pytest.raises(ValueError):
        validate_payment_amount(Decimal("10.00"), Decimal("10.01"))


def test_order_normalizes_buyer_wallet() -> None:
    order = Order(
        order_id=ORDER_ID,
        product_id=PRODUCT_ID,
        buyer_wallet="0x" + "AB" * 20,
        amount_usdc=Decimal("5"),
        status=OrderStatus.PENDING,
    )

    assert order.buyer_wallet == "0x" + "ab" * 20
    assert order.is_completed is False


def test_completed_order_requires_tx_hash_and_confirmation() -> None:
    """Verify completed orders need both tx_hash and payment_confirmed_at."""

    base = dict(
        order_id=ORDER_ID,
        product_id=PRODUCT_ID,
        buyer_wallet="0x" + "ab" * 20,
        amount_usdc=Decimal("5"),
        status=OrderStatus.COMPLETED,
    )

    with pytest.raises(ValueError):
        Order(**base, payment_confirmed_at=CONFIRMED)

    with pytest.raises(ValueError):
        Order(**base, tx_hash="0x" + "cd" * 32)

    order = Order(**base, tx_hash="0x" + "cd" * 32, payment_confirmed_at=CONFIRMED)
    assert order.is_completed is True


def test_order_timestamps_must_be_utc() -> None:
    with pytest.raises(ValueError):
        Order(
            order_id=ORDER_ID,
            product_id=PRODUCT_ID,
            buyer_wallet="0x" + "ab" * 20,
            amount_usdc=Decimal("5"),
            status=OrderStatus.COMPLETED,
            tx_hash="0x" + "cd" * 32,
            payment_confirmed_at=datetime(2025, 1, 2, tzinfo=timezone(timedelta(hours=-5))),
        )


def test_order_amount_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Order(
            order_id=ORDER_ID,
            product_id=PRODUCT_ID,
            buyer_wallet="0x" + "ab" * 20,
            amount_usdc=Decimal("0"),
            status=OrderStatus.PENDING,
        )
