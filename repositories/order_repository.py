"""
Order repository (persistence).

This module provides *only* persistence operations for the Order domain
entity. Orders are insert-only: there is no function that rewrites an
order's product or amount.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence
from uuid import UUID, uuid4

from supabase import Client  # type: ignore[import-not-found]

from domain.order import Order, OrderStatus
from domain.time import parse_optional_utc_timestamp, to_iso_utc
from repositories.client import check_response

# Supabase table name for orders.
# Keep this aligned with your database schema.
_ORDERS_TABLE: str = "orders"


def _row_to_order(row: Mapping[str, Any]) -> Order:
    """Convert a Supabase row into an Order."""

    link_id = row.get("blockchain_link_id")
    return Order(
        order_id=UUID(str(row["id"])),
        product_id=UUID(str(row["product_id"])),
        buyer_wallet=str(row["buyer_wallet"]),
        amount_usdc=Decimal(str(row["amount_usdc"])),
        status=OrderStatus(str(row["status"])),
        blockchain_link_id=int(link_id) if link_id is not None else None,
        tx_hash=row.get("tx_hash"),
        payment_confirmed_at=parse_optional_utc_timestamp(row.get("payment_confirmed_at")),
        created_at=parse_optional_utc_timestamp(row.get("created_at")),
    )


def insert_completed_order(
    client: Client,
    product_id: UUID,
    blockchain_link_id: Optional[int],
    buyer_wallet: str,
    amount_usdc: Decimal,
    tx_hash: str,
    confirmed_at: datetime,
) -> Order:
    """
    Insert a completed order for a confirmed on-chain payment.

    Args:
        product_id: Product that was purchased
        blockchain_link_id: Payment link the buyer paid through
        buyer_wallet: Buyer address (normalized by the Order entity)
        amount_usdc: Amount paid
        tx_hash: Confirmed payment transaction hash
        confirmed_at: Server-assigned confirmation timestamp (UTC)

    Returns:
        Order domain model with the recorded order
    """

    # Build through the entity first so invalid input never reaches the database.
    order = Order(
        order_id=uuid4(),
        product_id=product_id,
        buyer_wallet=buyer_wallet,
        amount_usdc=amount_usdc,
        status=OrderStatus.COMPLETED,
        blockchain_link_id=blockchain_link_id,
        tx_hash=tx_hash,
        payment_confirmed_at=confirmed_at,
    )

    payload: dict[str, Any] = {
        "id": str(order.order_id),
        "product_id": str(order.product_id),
        "blockchain_link_id": order.blockchain_link_id,
        "buyer_wallet": order.buyer_wallet,
        "amount_usdc": str(order.amount_usdc),
        "tx_hash": order.tx_hash,
        "status": order.status.value,
        "payment_confirmed_at": to_iso_utc(confirmed_at, name="confirmed_at"),
    }

    response = client.table(_ORDERS_TABLE).insert(payload).execute()
    rows = check_response(response, "record order")

    if not rows:
        return order
    return _row_to_order(rows[0])


def get_order_by_id(client: Client, order_id: UUID) -> Optional[Order]:
    """
    Retrieve a single order by its ID.

    Returns:
        Order or None if not found
    """

    response = (
        client.table(_ORDERS_TABLE)
        .select("*")
        .eq("id", str(order_id))
        .limit(1)
        .execute()
    )
    rows = check_response(response, "get order")

    if not rows:
        return None
    return _row_to_order(rows[0])


def get_order_by_tx_hash(client: Client, tx_hash: str) -> Optional[Order]:
    response = (
        client.table(_ORDERS_TABLE)
        .select("*")
        .eq("tx_hash", tx_hash)
        .limit(1)
        .execute()
    )
    rows = check_response(response, "get order by transaction")

    if not rows:
        return None
    return _row_to_order(rows[0])


def list_orders_by_product(client: Client, product_id: UUID) -> List[Order]:
    """All orders for one product, newest first."""

    response = (
        client.table(_ORDERS_TABLE)
        .select("*")
        .eq("product_id", str(product_id))
        .order("created_at", desc=True)
        .execute()
    )
    rows = check_response(response, "list product orders")
    return [_row_to_order(row) for row in rows]


def list_orders_for_products(client: Client, product_ids: Sequence[UUID]) -> List[Order]:
    """Orders for any of the given products (seller dashboard)."""

    if not product_ids:
        return []

    response = (
        client.table(_ORDERS_TABLE)
        .select("*")
        .in_("product_id", [str(pid) for pid in product_ids])
        .order("created_at", desc=True)
        .execute()
    )
    rows = check_response(response, "list seller orders")
    return [_row_to_order(row) for row in rows]


__all__ = [
    "get_order_by_id",
    "get_order_by_tx_hash",
    "insert_completed_order",
    "list_orders_by_product",
    "list_orders_for_products",
]
