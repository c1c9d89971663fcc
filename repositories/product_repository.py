"""
Product repository (persistence).

This module provides *only* persistence operations for the Product domain
entity. Lifecycle rules live on the entity and in the services; the one rule
enforced here is that the activation update only applies while
blockchain_link_id is still NULL, so a link id is written exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.hype import HypeBadge, HypeSnapshot
from domain.product import (
    Category,
    DeliveryMethod,
    FAQBlock,
    MarketingTemplate,
    Product,
    ProductStatus,
    SKILL_VERSION,
    TemplateKind,
)
from domain.time import parse_optional_utc_timestamp
from repositories.client import check_response

# Supabase table name for products.
# Keep this aligned with your database schema.
_PRODUCTS_TABLE: str = "products"


class MarketplaceSort(str, Enum):
    HYPE = "hype"
    NEWEST = "newest"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    SALES = "sales"


# (column, descending)
_SORT_COLUMNS = {
    MarketplaceSort.HYPE: ("hype_score", True),
    MarketplaceSort.NEWEST: ("created_at", True),
    MarketplaceSort.PRICE_LOW: ("price_usdc", False),
    MarketplaceSort.PRICE_HIGH: ("price_usdc", True),
    MarketplaceSort.SALES: ("sales_count", True),
}


@dataclass(frozen=True, slots=True)
class MarketplaceFilters:
    """Filter criteria for the public marketplace listing."""
    category: Optional[Category] = None
    tags: Optional[List[str]] = None  # matches products sharing any of these tags
    search: Optional[str] = None  # case-insensitive substring of the name
    sort: MarketplaceSort = MarketplaceSort.HYPE


def _row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a Supabase row into a Product."""

    templates = tuple(
        MarketingTemplate(
            template_id=str(t.get("id", "")),
            kind=TemplateKind(str(t["type"])),
            content=str(t.get("content", "")),
        )
        for t in row.get("marketing_templates") or []
    )
    faqs = tuple(
        FAQBlock(question=str(f["question"]), answer=str(f["answer"]))
        for f in row.get("faq_blocks") or []
    )

    link_id = row.get("blockchain_link_id")
    badge = row.get("hype_badge")
    category = row.get("category_id")
    delivery = row.get("delivery_method")

    return Product(
        product_id=UUID(str(row["id"])),
        seller_wallet=str(row["seller_wallet"]),
        name=str(row["name"]),
        slug=str(row["slug"]),
        price_usdc=Decimal(str(row["price_usdc"])),
        status=ProductStatus(str(row.get("status") or ProductStatus.DRAFT.value)),
        one_liner=row.get("one_liner"),
        description=row.get("description"),
        category=Category(str(category)) if category else None,
        tags=tuple(row.get("tags") or ()),
        delivery_method=DeliveryMethod(str(delivery)) if delivery else None,
        download_url=row.get("download_url"),
        file_name=row.get("file_name"),
        image_url=row.get("image_url"),
        marketing_templates=templates,
        faq_blocks=faqs,
        blockchain_link_id=int(link_id) if link_id is not None else None,
        activation_tx_hash=row.get("activation_tx_hash"),
        hashtag=row.get("hashtag"),
        sales_count=int(row.get("sales_count") or 0),
        moltbook_post_count=int(row.get("moltbook_post_count") or 0),
        moltbook_engagement=int(row.get("moltbook_engagement") or 0),
        hype_score=int(row.get("hype_score") or 0),
        hype_badge=HypeBadge(str(badge)) if badge else None,
        skill_version=str(row.get("skill_version") or SKILL_VERSION),
        created_at=parse_optional_utc_timestamp(row.get("created_at")),
        updated_at=parse_optional_utc_timestamp(row.get("updated_at")),
    )


def _product_to_payload(product: Product) -> dict[str, Any]:
    return {
        "id": str(product.product_id),
        "seller_wallet": product.seller_wallet,
        "name": product.name,
        "slug": product.slug,
        "one_liner": product.one_liner,
        "description": product.description,
        "price_usdc": str(product.price_usdc),
        "category_id": product.category.value if product.category else None,
        "tags": list(product.tags),
        "delivery_method": product.delivery_method.value if product.delivery_method else None,
        "download_url": product.download_url,
        "file_name": product.file_name,
        "image_url": product.image_url,
        "marketing_templates": [
            {"id": t.template_id, "type": t.kind.value, "content": t.content}
            for t in product.marketing_templates
        ],
        "faq_blocks": [
            {"question": f.question, "answer": f.answer} for f in product.faq_blocks
        ],
        "status": product.status.value,
        "skill_version": product.skill_version,
    }


def insert_product(client: Client, product: Product) -> Product:
    """
    Insert a new product row.

    Returns:
        The stored Product (including database defaults such as created_at)
    """

    response = client.table(_PRODUCTS_TABLE).insert(_product_to_payload(product)).execute()
    rows = check_response(response, "insert product")

    if not rows:
        return product
    return _row_to_product(rows[0])


def get_product_by_id(client: Client, product_id: UUID) -> Optional[Product]:
    """
    Retrieve a single product by its ID.

    Returns:
        Product or None if not found
    """

    response = (
        client.table(_PRODUCTS_TABLE)
        .select("*")
        .eq("id", str(product_id))
        .limit(1)
        .execute()
    )
    rows = check_response(response, "get product")

    if not rows:
        return None

    return _row_to_product(rows[0])


def list_products_by_seller(client: Client, seller_wallet: str) -> List[Product]:
    """All products owned by a seller, newest first."""

    response = (
        client.table(_PRODUCTS_TABLE)
        .select("*")
        .eq("seller_wallet", seller_wallet)
        .order("created_at", desc=True)
        .execute()
    )
    rows = check_response(response, "list seller products")
    return [_row_to_product(row) for row in rows]


def list_marketplace_products(
    client: Client,
    filters: MarketplaceFilters,
    limit: int = 100,
) -> List[Product]:
    """
    Query listed products (active with a blockchain link id).

    Args:
        filters: Category/tag/search filters and sort order
        limit: Maximum number of results

    Returns:
        List of Product matching filters
    """

    query = (
        client.table(_PRODUCTS_TABLE)
        .select("*")
        .eq("status", ProductStatus.ACTIVE.value)
        .not_.is_("blockchain_link_id", "null")
    )

    if filters.category:
        query = query.eq("category_id", filters.category.value)

    if filters.tags:
        query = query.ov("tags", list(filters.tags))

    if filters.search:
        query = query.ilike("name", f"%{filters.search}%")

    column, descending = _SORT_COLUMNS[filters.sort]
    response = query.order(column, desc=descending).limit(limit).execute()

    rows = check_response(response, "list marketplace products")
    return [_row_to_product(row) for row in rows]


def list_syncable_products(client: Client) -> List[Product]:
    """Active products that carry a hashtag (candidates for engagement sync)."""

    response = (
        client.table(_PRODUCTS_TABLE)
        .select("*")
        .eq("status", ProductStatus.ACTIVE.value)
        .not_.is_("hashtag", "null")
        .execute()
    )
    rows = check_response(response, "list syncable products")
    return [_row_to_product(row) for row in rows]


def mark_product_activated(client: Client, product: Product) -> Optional[Product]:
    """
    Persist activation fields in a single update.

    The update is conditional on blockchain_link_id IS NULL. Returns None when
    no row matched, i.e. the product was activated concurrently.
    """

    if not product.is_activated:
        raise ValueError("mark_product_activated requires an activated Product")

    payload: dict[str, Any] = {
        "blockchain_link_id": product.blockchain_link_id,
        "activation_tx_hash": product.activation_tx_hash,
        "hashtag": product.hashtag,
        "status": product.status.value,
    }

    response = (
        client.table(_PRODUCTS_TABLE)
        .update(payload)
        .eq("id", str(product.product_id))
        .is_("blockchain_link_id", "null")
        .execute()
    )
    rows = check_response(response, "activate product")

    if not rows:
        return None
    return _row_to_product(rows[0])


def update_hype_metrics(client: Client, product_id: UUID, snapshot: HypeSnapshot) -> None:
    """Write the (post_count, engagement, hype_score, hype_badge) tuple."""

    payload: dict[str, Any] = {
        "moltbook_post_count": snapshot.post_count,
        "moltbook_engagement": snapshot.engagement,
        "hype_score": snapshot.hype_score,
        "hype_badge": snapshot.hype_badge.value if snapshot.hype_badge else None,
    }

    response = (
        client.table(_PRODUCTS_TABLE)
        .update(payload)
        .eq("id", str(product_id))
        .execute()
    )
    check_response(response, "update hype metrics")


__all__ = [
    "MarketplaceFilters",
    "MarketplaceSort",
    "get_product_by_id",
    "insert_product",
    "list_marketplace_products",
    "list_products_by_seller",
    "list_syncable_products",
    "mark_product_activated",
    "update_hype_metrics",
]
