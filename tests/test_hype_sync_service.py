"""
Tests for `services/hype_sync_service.py`.

Covers contract rules:
- Each synced product gets (post_count, engagement, hype_score, hype_badge) written.
- Observed posts are recorded once per post id, across repeated syncs.
- A failing product is reported and does not stop the rest of the batch.
- A product whose activity rows cannot be written keeps its previous metrics.
"""

from __future__ import annotations

from uuid import UUID

from conftest import make_active_product, make_post, make_product, store_product
from domain.hype import HypeBadge
from repositories.activity_repository import list_post_ids_for_product
from repositories.product_repository import get_product_by_id
from services.hype_sync_service import sync_all_products

OTHER_ID = UUID("abcdef01-0000-4000-8000-000000000000")


def test_sync_writes_hype_metrics(supabase, moltbook) -> None:
    product = store_product(supabase, make_active_product(sales_count=5))
    moltbook.posts[product.hashtag] = [
        make_post("p1", likes=5),
        make_post("p2", likes=3, comments=3),
        make_post("p3", comments=3),
    ]

    report = sync_all_products(supabase, moltbook)

    assert report.synced == 1
    assert report.failed == []

    stored = get_product_by_id(supabase, product.product_id)
    assert stored.moltbook_post_count == 3
    assert stored.moltbook_engagement == 20
    assert stored.hype_score == 85
    assert stored.hype_badge is HypeBadge.HOT


def test_sync_skips_draft_products(supabase, moltbook) -> None:
    store_product(supabase, make_product())

    report = sync_all_products(supabase, moltbook)

    assert report.synced == 0
    assert moltbook.searched == []


def test_activity_is_recorded_once_per_post(supabase, moltbook) -> None:
    """Repeated syncs that observe the same posts store one row per post id."""

    product = store_product(supabase, make_active_product())
    moltbook.posts[product.hashtag] = [make_post("p1", likes=1), make_post("p2")]

    sync_all_products(supabase, moltbook)
    moltbook.posts[product.hashtag].append(make_post("p3"))
    sync_all_products(supabase, moltbook)

    post_ids = list_post_ids_for_product(supabase, product.product_id)
    assert sorted(post_ids) == ["p1", "p2", "p3"]
    assert len(supabase.rows("moltbook_activity")) == 3


def test_failing_product_does_not_stop_batch(supabase, moltbook) -> None:
    """A Moltbook error on one product is reported; the other product still syncs."""

    broken = store_product(supabase, make_active_product())
    healthy = store_product(supabase, make_active_product(product_id=OTHER_ID, slug="other-abc123"))
    moltbook.failing.add(broken.hashtag)
    moltbook.posts[healthy.hashtag] = [make_post("h1", reposts=20)]

    report = sync_all_products(supabase, moltbook)

    assert report.succeeded == [healthy.product_id]
    assert [pid for pid, _ in report.failed] == [broken.product_id]
    assert report.error_messages[0].startswith(f"Product {broken.product_id}: ")

    assert get_product_by_id(supabase, healthy.product_id).hype_score == 65
    assert get_product_by_id(supabase, broken.product_id).hype_score == 0


def test_database_failure_is_isolated_per_product(supabase, moltbook) -> None:
    broken = store_product(supabase, make_active_product())
    healthy = store_product(supabase, make_active_product(product_id=OTHER_ID, slug="other-abc123"))
    supabase.fail_when("products", "update", id=str(broken.product_id))

    report = sync_all_products(supabase, moltbook)

    assert report.synced == 1
    assert report.succeeded == [healthy.product_id]
    assert "injected update failure" in report.failed[0][1]


def test_activity_write_failure_leaves_metrics_untouched(supabase, moltbook) -> None:
    broken = store_product(supabase, make_active_product())
    moltbook.posts[broken.hashtag] = [make_post("b1", likes=40)]
    supabase.fail_when("moltbook_activity", "upsert", product_id=str(broken.product_id))

    report = sync_all_products(supabase, moltbook)

    assert report.synced == 0
    assert [pid for pid, _ in report.failed] == [broken.product_id]

    stored = get_product_by_id(supabase, broken.product_id)
    assert stored.moltbook_post_count == 0
    assert stored.hype_score == 0
    assert ("products", "update") not in supabase.calls
