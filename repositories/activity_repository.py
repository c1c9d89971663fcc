"""
Moltbook activity repository (persistence).

One row per observed Moltbook post, unique on post_id. Writes are
upsert-with-ignore-duplicates, so a post seen by several sync cycles is
recorded once.
"""

from __future__ import annotations

from typing import Any, List, Sequence
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from domain.hype import SocialPost
from domain.time import to_iso_utc
from repositories.client import check_response

_ACTIVITY_TABLE: str = "moltbook_activity"

# Stored content is truncated to keep rows small.
MAX_CONTENT_LENGTH: int = 500


def _post_to_payload(product_id: UUID, hashtag: str, post: SocialPost) -> dict[str, Any]:
    return {
        "product_id": str(product_id),
        "hashtag": hashtag,
        "post_id": post.post_id,
        "author": post.author,
        "content": post.content[:MAX_CONTENT_LENGTH],
        "likes_count": post.likes,
        "comments_count": post.comments,
        "reposts_count": post.reposts,
        "posted_at": to_iso_utc(post.created_at, name="posted_at"),
    }


def record_posts(
    client: Client,
    product_id: UUID,
    hashtag: str,
    posts: Sequence[SocialPost],
) -> None:
    """Record posts for a product, ignoring post_ids that already exist."""

    if not posts:
        return

    payload = [_post_to_payload(product_id, hashtag, post) for post in posts]

    response = (
        client.table(_ACTIVITY_TABLE)
        .upsert(payload, on_conflict="post_id", ignore_duplicates=True)
        .execute()
    )
    check_response(response, "record moltbook activity")


def list_post_ids_for_product(client: Client, product_id: UUID) -> List[str]:
    response = (
        client.table(_ACTIVITY_TABLE)
        .select("post_id")
        .eq("product_id", str(product_id))
        .execute()
    )
    rows = check_response(response, "list moltbook activity")
    return [str(row["post_id"]) for row in rows]


__all__ = ["MAX_CONTENT_LENGTH", "list_post_ids_for_product", "record_posts"]
