"""
Settlement service for confirmed on-chain payments.

Handles:
- Verifying the buyer's payLink receipt (PaymentReceived for this link and buyer)
- Recording exactly one completed order per confirmed payment transaction
- Resolving the buyer's delivery artifact at settlement time
- The order status view polled by buyers and agents

Signed download links are minted when they are requested, never stored, so
they cannot be harvested before payment. If signing fails the stored
reference is returned instead and settlement still succeeds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from postgrest.exceptions import APIError  # type: ignore[import-not-found]
from supabase import Client  # type: ignore[import-not-found]

from domain.chain import extract_payment, extract_payments, to_base_units
from domain.errors import NotFoundError, PreconditionError, TransactionPendingError
from domain.order import Order, normalize_tx_hash, normalize_wallet, validate_payment_amount
from domain.product import DeliveryMethod, Product
from domain.time import utc_now
from repositories.order_repository import (
    get_order_by_id,
    get_order_by_tx_hash,
    insert_completed_order,
)
from repositories.product_repository import get_product_by_id
from repositories.storage_repository import (
    SIGNED_URL_TTL_SECONDS,
    create_signed_url,
    object_path_from_url,
)
from services.activation_service import ReceiptSource

logger = logging.getLogger(__name__)

# Postgres unique_violation; orders.tx_hash carries a unique index.
_UNIQUE_VIOLATION = "23505"


@dataclass(frozen=True, slots=True)
class Settlement:
    order: Order
    download_url: Optional[str]


@dataclass(frozen=True, slots=True)
class OrderStatusView:
    """Read model returned to buyers and agents polling an order."""
    order_id: UUID
    status: str
    tx_hash: Optional[str]
    payment_confirmed_at: Optional[datetime]
    product_name: Optional[str]
    download_url: Optional[str] = None


def resolve_download_url(client: Client, product: Product, bucket: str) -> Optional[str]:
    """
    Resolve the delivery artifact for a paid product.

    File deliveries get a freshly minted signed URL (1 hour); if minting fails
    the raw stored reference is returned. Other methods return the stored
    reference unchanged.
    """

    if not product.download_url:
        return None

    if product.delivery_method is not DeliveryMethod.FILE:
        return product.download_url

    try:
        object_path = object_path_from_url(product.download_url)
        return create_signed_url(client, bucket, object_path, SIGNED_URL_TTL_SECONDS)
    except Exception as e:
        logger.warning(
            "Signed URL generation failed; returning stored download reference",
            extra={"product_id": str(product.product_id), "error": str(e)},
        )
        return product.download_url


def verify_payment_receipt(
    chain: ReceiptSource,
    product: Product,
    buyer_wallet: str,
    tx_hash: str,
    contract_address: Optional[str] = None,
) -> None:
    """
    Check that tx_hash paid this product's link from buyer_wallet.

    Raises:
        TransactionPendingError: no receipt yet
        PreconditionError: reverted, no matching PaymentReceived event, or the
            paid amount differs from the product price
    """

    receipt = chain.get_transaction_receipt(tx_hash)
    if receipt is None:
        raise TransactionPendingError(f"Transaction {tx_hash} is not yet confirmed")

    if not receipt.succeeded:
        raise PreconditionError(f"Transaction {tx_hash} reverted")

    event = extract_payment(
        receipt.logs,
        contract_address,
        link_id=product.blockchain_link_id,
        buyer=buyer_wallet,
    )
    if event is None:
        logger.warning(
            "No matching PaymentReceived event in receipt",
            extra={
                "tx_hash": tx_hash,
                "product_id": str(product.product_id),
                "blockchain_link_id": product.blockchain_link_id,
                "payment_events": len(extract_payments(receipt.logs, contract_address)),
            },
        )
        raise PreconditionError(
            f"Transaction {tx_hash} is not a payment for this product by {buyer_wallet}"
        )

    if event.amount_base_units != to_base_units(product.price_usdc):
        raise PreconditionError("Paid amount does not match the product price")


def settle_payment(
    client: Client,
    chain: ReceiptSource,
    product_id: UUID,
    buyer_wallet: str,
    tx_hash: str,
    amount_usdc: Decimal,
    *,
    bucket: str,
    contract_address: Optional[str] = None,
) -> Settlement:
    """
    Record a confirmed payment as a completed order.

    The receipt must succeed and carry a PaymentReceived event from
    contract_address for the product's link id, paid by buyer_wallet, for
    exactly the product price.

    Raises:
        ValueError: malformed wallet/hash or amount not equal to price
        NotFoundError: unknown product
        TransactionPendingError: no receipt yet
        PreconditionError: product not listed, transaction already settled,
            reverted, or not a matching payment
    """

    wallet = normalize_wallet(buyer_wallet)
    tx = normalize_tx_hash(tx_hash)

    product = get_product_by_id(client, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)

    if not product.is_listed:
        raise PreconditionError(f"Product {product_id} is not available for purchase")

    validate_payment_amount(product.price_usdc, amount_usdc)

    if get_order_by_tx_hash(client, tx) is not None:
        raise PreconditionError(f"Transaction {tx} has already been settled")

    verify_payment_receipt(chain, product, wallet, tx, contract_address)

    try:
        order = insert_completed_order(
            client,
            product_id=product.product_id,
            blockchain_link_id=product.blockchain_link_id,
            buyer_wallet=wallet,
            amount_usdc=amount_usdc,
            tx_hash=tx,
            confirmed_at=utc_now(),
        )
    except APIError as e:
        # a concurrent settlement of the same transaction won the insert
        if getattr(e, "code", None) == _UNIQUE_VIOLATION:
            raise PreconditionError(f"Transaction {tx} has already been settled") from e
        raise

    logger.info(
        "Order settled",
        extra={"order_id": str(order.order_id), "product_id": str(product_id), "tx_hash": tx},
    )

    return Settlement(order=order, download_url=resolve_download_url(client, product, bucket))


def get_order_status(client: Client, order_id: UUID, *, bucket: str) -> OrderStatusView:
    """
    Order status for polling.

    download_url is only populated for completed orders.

    Raises:
        NotFoundError: unknown order
    """

    order = get_order_by_id(client, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)

    product = get_product_by_id(client, order.product_id)

    download_url = None
    if order.is_completed and product is not None:
        download_url = resolve_download_url(client, product, bucket)

    return OrderStatusView(
        order_id=order.order_id,
        status=order.status.value,
        tx_hash=order.tx_hash,
        payment_confirmed_at=order.payment_confirmed_at,
        product_name=product.name if product else None,
        download_url=download_url,
    )


__all__ = [
    "OrderStatusView",
    "Settlement",
    "get_order_status",
    "resolve_download_url",
    "settle_payment",
    "verify_payment_receipt",
]
