"""
Product catalog service.

Handles:
- Creating draft products from seller input (validation + slug generation)
- The public marketplace listing
- Seller dashboard summaries
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import uuid4

from supabase import Client  # type: ignore[import-not-found]

from domain.order import Order, normalize_wallet
from domain.product import (
    Category,
    DeliveryMethod,
    FAQBlock,
    MarketingTemplate,
    Product,
    ProductStatus,
    generate_slug,
)
from repositories.order_repository import list_orders_for_products
from repositories.product_repository import (
    MarketplaceFilters,
    insert_product,
    list_marketplace_products,
    list_products_by_seller,
)


@dataclass(frozen=True, slots=True)
class ProductDraft:
    """
    Seller input for a new product.
    """
    name: str
    price_usdc: Decimal
    one_liner: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    delivery_method: Optional[DeliveryMethod] = None
    download_url: Optional[str] = None
    file_name: Optional[str] = None
    image_url: Optional[str] = None
    marketing_templates: Tuple[MarketingTemplate, ...] = field(default_factory=tuple)
    faq_blocks: Tuple[FAQBlock, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class SellerDashboard:
    """
    Seller overview.

    total_revenue: sum of completed order amounts
    total_sales: sum of sales_count over active products
    average_hype_score: mean hype score of active products (0 when none)
    """
    seller_wallet: str
    product_count: int
    active_count: int
    draft_count: int
    completed_orders: int
    total_revenue: Decimal
    total_sales: int
    average_hype_score: float


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_draft(draft: ProductDraft) -> None:
    if draft.delivery_method is not None and not _clean_optional(draft.download_url):
        raise ValueError(
            f"delivery method '{draft.delivery_method.value}' requires a download reference"
        )
    if len(set(draft.tags)) != len(draft.tags):
        raise ValueError("tags must be unique")
    for template in draft.marketing_templates:
        if not template.content.strip():
            raise ValueError("marketing templates must have content")
    for faq in draft.faq_blocks:
        if not faq.question.strip() or not faq.answer.strip():
            raise ValueError("FAQ entries need both a question and an answer")


def create_draft_product(client: Client, seller_wallet: str, draft: ProductDraft) -> Product:
    """
    Validate seller input and insert a new draft product.

    Raises:
        ValueError: invalid input (nothing is written)
    """

    _validate_draft(draft)

    product = Product(
        product_id=uuid4(),
        seller_wallet=normalize_wallet(seller_wallet),
        name=draft.name.strip(),
        slug=generate_slug(draft.name),
        price_usdc=draft.price_usdc,
        status=ProductStatus.DRAFT,
        one_liner=_clean_optional(draft.one_liner),
        description=_clean_optional(draft.description),
        category=draft.category,
        tags=tuple(draft.tags),
        delivery_method=draft.delivery_method,
        download_url=_clean_optional(draft.download_url),
        file_name=_clean_optional(draft.file_name),
        image_url=_clean_optional(draft.image_url),
        marketing_templates=tuple(draft.marketing_templates),
        faq_blocks=tuple(draft.faq_blocks),
    )

    return insert_product(client, product)


def list_marketplace(
    client: Client,
    filters: MarketplaceFilters,
    limit: int = 100,
) -> List[Product]:
    """Listed products only (active with a blockchain link id)."""

    products = list_marketplace_products(client, filters, limit=limit)
    return [p for p in products if p.is_listed]


def summarize_seller(seller_wallet: str, products: Sequence[Product], orders: Sequence[Order]) -> SellerDashboard:
    active = [p for p in products if p.status is ProductStatus.ACTIVE]
    drafts = [p for p in products if p.status is ProductStatus.DRAFT]
    completed = [o for o in orders if o.is_completed]

    total_revenue = sum((o.amount_usdc for o in completed), Decimal("0"))
    average_hype = (
        sum(p.hype_score for p in active) / len(active) if active else 0.0
    )

    return SellerDashboard(
        seller_wallet=seller_wallet,
        product_count=len(products),
        active_count=len(active),
        draft_count=len(drafts),
        completed_orders=len(completed),
        total_revenue=total_revenue,
        total_sales=sum(p.sales_count for p in active),
        average_hype_score=float(average_hype),
    )


def get_seller_dashboard(client: Client, seller_wallet: str) -> SellerDashboard:
    wallet = normalize_wallet(seller_wallet)
    products = list_products_by_seller(client, wallet)
    orders = list_orders_for_products(client, [p.product_id for p in products])
    return summarize_seller(wallet, products, orders)


def list_seller_products(client: Client, seller_wallet: str) -> List[Product]:
    return list_products_by_seller(client, normalize_wallet(seller_wallet))


__all__ = [
    "ProductDraft",
    "SellerDashboard",
    "create_draft_product",
    "get_seller_dashboard",
    "list_marketplace",
    "list_seller_products",
    "summarize_seller",
]
