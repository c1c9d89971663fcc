"""
Activation service for moving products from draft to active.

Process:
1. The seller's wallet calls `createPaymentLink(amount, productName)` on the
   AaaSPaymentLink contract (in the browser).
2. Once the transaction is confirmed, the receipt's logs are scanned for
   PaymentLinkCreated and the linkId is read.
3. The hashtag is derived from the product id and
   {blockchain_link_id, activation_tx_hash, hashtag, status=active} is
   written in one conditional update.

An unconfirmed transaction leaves the product in draft; the caller simply
retries later. Nothing here retries on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.chain import LinkIdResolution, TransactionReceipt, extract_link_id, to_base_units
from domain.errors import NotFoundError, PreconditionError, TransactionPendingError
from domain.order import normalize_tx_hash, normalize_wallet
from domain.product import Product
from repositories.product_repository import get_product_by_id, mark_product_activated

logger = logging.getLogger(__name__)


class ReceiptSource(Protocol):
    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        ...


@dataclass(frozen=True, slots=True)
class ActivationResult:
    """
    Result of a successful activation.

    used_fallback is True when the receipt had no PaymentLinkCreated event and
    the default link id was stored instead.
    """
    product: Product
    link_id: int
    used_fallback: bool


def resolve_link_id(
    receipt: TransactionReceipt,
    contract_address: Optional[str],
    *,
    strict: bool = False,
) -> LinkIdResolution:
    """
    Read the link id from a confirmed receipt.

    The missing-event branch is logged. With strict=True it raises instead of
    returning the default id.
    """

    resolution = extract_link_id(receipt.logs, contract_address)

    if resolution.used_fallback:
        logger.warning(
            "PaymentLinkCreated event not found in receipt; using default link id",
            extra={
                "tx_hash": receipt.tx_hash,
                "log_count": len(receipt.logs),
                "fallback_link_id": resolution.link_id,
            },
        )
        if strict:
            raise PreconditionError(
                f"Transaction {receipt.tx_hash} did not emit PaymentLinkCreated"
            )

    return resolution


def activate_product(
    client: Client,
    chain: ReceiptSource,
    product_id: UUID,
    tx_hash: str,
    *,
    seller_wallet: str,
    contract_address: Optional[str] = None,
    strict_link_event: bool = False,
) -> ActivationResult:
    """
    Activate a draft product from its confirmed payment-link transaction.

    Args:
        client: Supabase client
        chain: Source of transaction receipts (ChainClient)
        product_id: Product being activated
        tx_hash: createPaymentLink transaction hash
        seller_wallet: Wallet requesting activation; must own the product
        contract_address: Only logs from this contract are considered
        strict_link_event: Reject receipts without PaymentLinkCreated

    Raises:
        ValueError: malformed wallet or transaction hash
        NotFoundError: unknown product
        TransactionPendingError: no receipt yet
        PreconditionError: wrong owner, already active, reverted transaction,
            or (strict mode) missing creation event
    """

    wallet = normalize_wallet(seller_wallet)
    tx = normalize_tx_hash(tx_hash)

    product = get_product_by_id(client, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)

    if product.seller_wallet.lower() != wallet:
        raise PreconditionError("Only the product's seller can activate it")

    if product.is_activated:
        raise PreconditionError(
            f"Product {product_id} is already activated (link id {product.blockchain_link_id})"
        )

    receipt = chain.get_transaction_receipt(tx)
    if receipt is None:
        raise TransactionPendingError(f"Transaction {tx} is not yet confirmed")

    if not receipt.succeeded:
        raise PreconditionError(f"Transaction {tx} reverted")

    if receipt.from_address and receipt.from_address != wallet:
        raise PreconditionError("Activation transaction was not sent by the product's seller")

    resolution = resolve_link_id(receipt, contract_address, strict=strict_link_event)

    if (
        resolution.amount_base_units is not None
        and resolution.amount_base_units != to_base_units(product.price_usdc)
    ):
        raise PreconditionError(
            "Payment link amount does not match the product price"
        )

    activated = product.activated(resolution.link_id, tx)

    stored = mark_product_activated(client, activated)
    if stored is None:
        raise PreconditionError(f"Product {product_id} was activated concurrently")

    logger.info(
        "Product activated",
        extra={
            "product_id": str(product_id),
            "blockchain_link_id": resolution.link_id,
            "hashtag": stored.hashtag,
            "used_fallback": resolution.used_fallback,
        },
    )

    return ActivationResult(
        product=stored,
        link_id=resolution.link_id,
        used_fallback=resolution.used_fallback,
    )


__all__ = [
    "ActivationResult",
    "ReceiptSource",
    "activate_product",
    "resolve_link_id",
]
