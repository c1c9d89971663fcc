"""
Domain: Social engagement and hype scoring.

Rules implemented here:
- Engagement is weighted by distribution value:
  total_engagement = likes * 1 + comments * 2 + reposts * 3
- Hype score favours conversions over reach:
  hype_score = sales_count * 10 + post_count * 5 + engagement
- Badges are a step function over the final score, evaluated top-down:
  - viral:    score >= 500
  - trending: score >= 200
  - hot:      score >= 50
  - no badge below 50 (None, not an enum member)

Thresholds and weights are fixed platform policy; they are not configurable
per product.

This module is pure: no I/O, no clock, no randomness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .time import require_utc_timestamp

# Engagement weights
LIKE_WEIGHT: int = 1
COMMENT_WEIGHT: int = 2
REPOST_WEIGHT: int = 3

# Hype score weights
SALE_WEIGHT: int = 10
POST_WEIGHT: int = 5
ENGAGEMENT_WEIGHT: int = 1

# Badge thresholds (inclusive lower bounds)
HOT_THRESHOLD: int = 50
TRENDING_THRESHOLD: int = 200
VIRAL_THRESHOLD: int = 500


class HypeBadge(str, Enum):
    HOT = "hot"
    TRENDING = "trending"
    VIRAL = "viral"


# Ordered highest first so the first match wins.
_BADGE_STEPS: Tuple[Tuple[int, HypeBadge], ...] = (
    (VIRAL_THRESHOLD, HypeBadge.VIRAL),
    (TRENDING_THRESHOLD, HypeBadge.TRENDING),
    (HOT_THRESHOLD, HypeBadge.HOT),
)


@dataclass(frozen=True, slots=True)
class SocialPost:
    """
    A single Moltbook post carrying a product hashtag.

    post_id is the platform-assigned identifier and is the idempotency key
    for activity tracking.
    """

    post_id: str
    author: str
    content: str
    created_at: datetime
    likes: int = 0
    comments: int = 0
    reposts: int = 0
    hashtags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if not self.post_id:
            raise ValueError("post_id must be non-empty")
        for name in ("likes", "comments", "reposts"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


@dataclass(frozen=True, slots=True)
class EngagementTotals:
    post_count: int
    total_likes: int
    total_comments: int
    total_reposts: int
    total_engagement: int

    @staticmethod
    def zero() -> "EngagementTotals":
        return EngagementTotals(0, 0, 0, 0, 0)


@dataclass(frozen=True, slots=True)
class HypeSnapshot:
    """The tuple persisted on a product after each sync."""

    post_count: int
    engagement: int
    hype_score: int
    hype_badge: Optional[HypeBadge]


def aggregate_engagement(posts: Iterable[SocialPost]) -> EngagementTotals:
    """Reduce posts into engagement totals. Empty input yields all zeros."""

    post_count = 0
    likes = 0
    comments = 0
    reposts = 0

    for post in posts:
        post_count += 1
        likes += post.likes
        comments += post.comments
        reposts += post.reposts

    return EngagementTotals(
        post_count=post_count,
        total_likes=likes,
        total_comments=comments,
        total_reposts=reposts,
        total_engagement=(
            likes * LIKE_WEIGHT + comments * COMMENT_WEIGHT + reposts * REPOST_WEIGHT
        ),
    )


def calculate_hype_score(sales_count: int, post_count: int, engagement_score: int) -> int:
    """
    Compute the hype score.

    hype_score = sales_count * 10 + post_count * 5 + engagement_score
    """

    if sales_count < 0 or post_count < 0 or engagement_score < 0:
        raise ValueError("hype score inputs must be >= 0")

    return (
        sales_count * SALE_WEIGHT
        + post_count * POST_WEIGHT
        + engagement_score * ENGAGEMENT_WEIGHT
    )


def hype_badge_for_score(hype_score: int) -> Optional[HypeBadge]:
    """Resolve the badge for a score, or None when below the lowest tier."""

    for threshold, badge in _BADGE_STEPS:
        if hype_score >= threshold:
            return badge
    return None


def compute_hype(sales_count: int, posts: List[SocialPost]) -> HypeSnapshot:
    totals = aggregate_engagement(posts)
    score = calculate_hype_score(sales_count, totals.post_count, totals.total_engagement)
    return HypeSnapshot(
        post_count=totals.post_count,
        engagement=totals.total_engagement,
        hype_score=score,
        hype_badge=hype_badge_for_score(score),
    )


__all__ = [
    "COMMENT_WEIGHT",
    "ENGAGEMENT_WEIGHT",
    "EngagementTotals",
    "HOT_THRESHOLD",
    "HypeBadge",
    "HypeSnapshot",
    "LIKE_WEIGHT",
    "POST_WEIGHT",
    "REPOST_WEIGHT",
    "SALE_WEIGHT",
    "SocialPost",
    "TRENDING_THRESHOLD",
    "VIRAL_THRESHOLD",
    "aggregate_engagement",
    "calculate_hype_score",
    "compute_hype",
    "hype_badge_for_score",
]
