"""
Moltbook engagement sync.

For every active product with a hashtag:
1. Search Moltbook for recent posts carrying the hashtag
2. Aggregate engagement and compute the hype score / badge
3. Persist (moltbook_post_count, moltbook_engagement, hype_score, hype_badge)
4. Record each post once in moltbook_activity (upsert, ignore duplicates)

Products are processed sequentially. A failure on one product is recorded in
the report and the batch moves on; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Protocol, Tuple
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.hype import HypeSnapshot, compute_hype
from domain.product import Product
from repositories.activity_repository import record_posts
from repositories.product_repository import list_syncable_products, update_hype_metrics
from services.moltbook_client import PostSearchResult

logger = logging.getLogger(__name__)

SYNC_SEARCH_LIMIT: int = 100


class PostSearcher(Protocol):
    def search_posts_by_hashtag(self, hashtag: str, *, limit: int = ...) -> PostSearchResult:
        ...


@dataclass(slots=True)
class SyncReport:
    """
    Partial-result aggregation for a sync batch.

    succeeded: product ids whose metrics were written
    failed: (product id, reason) for every product that could not be synced
    """
    succeeded: List[UUID] = field(default_factory=list)
    failed: List[Tuple[UUID, str]] = field(default_factory=list)

    @property
    def synced(self) -> int:
        return len(self.succeeded)

    @property
    def error_messages(self) -> List[str]:
        return [f"Product {product_id}: {reason}" for product_id, reason in self.failed]


def sync_product_hype(
    client: Client,
    moltbook: PostSearcher,
    product: Product,
    *,
    limit: int = SYNC_SEARCH_LIMIT,
) -> HypeSnapshot:
    """
    Sync one product. Raises on any failure; the batch caller isolates it.

    Activity rows are written before the product metrics, so a failed sync
    leaves the stored hype unchanged. Re-recording posts is idempotent.
    """

    if not product.hashtag:
        raise ValueError(f"Product {product.product_id} has no hashtag")

    result = moltbook.search_posts_by_hashtag(product.hashtag, limit=limit)
    snapshot = compute_hype(product.sales_count, result.posts)

    record_posts(client, product.product_id, product.hashtag, result.posts)
    update_hype_metrics(client, product.product_id, snapshot)

    return snapshot


def sync_all_products(
    client: Client,
    moltbook: PostSearcher,
    *,
    limit: int = SYNC_SEARCH_LIMIT,
) -> SyncReport:
    """
    Run the engagement sync over every syncable product.

    Raises only if the product list itself cannot be loaded.
    """

    report = SyncReport()
    products = list_syncable_products(client)

    for product in products:
        try:
            snapshot = sync_product_hype(client, moltbook, product, limit=limit)
        except Exception as e:
            logger.warning(
                "Moltbook sync failed for product",
                extra={"product_id": str(product.product_id), "error": str(e)},
            )
            report.failed.append((product.product_id, str(e)))
            continue

        logger.debug(
            "Product hype synced",
            extra={
                "product_id": str(product.product_id),
                "hype_score": snapshot.hype_score,
                "hype_badge": snapshot.hype_badge.value if snapshot.hype_badge else None,
            },
        )
        report.succeeded.append(product.product_id)

    logger.info(
        "Moltbook sync finished",
        extra={"synced": report.synced, "failed": len(report.failed), "total": len(products)},
    )
    return report


__all__ = ["SyncReport", "sync_all_products", "sync_product_hype"]
