"""
Moltbook API client.

Searches Moltbook posts by hashtag so product engagement can be tracked.
Without an API key the client serves deterministic mock results (seeded by
the hashtag) for local development, and logs a warning.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Optional

import httpx

from domain.errors import UpstreamError
from domain.hype import SocialPost
from domain.time import parse_utc_timestamp

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT: int = 50
REQUEST_TIMEOUT_SECONDS: float = 15.0

# Fixed reference point for mock timestamps.
_MOCK_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class PostSearchResult:
    posts: List[SocialPost]
    total: int
    next_cursor: Optional[str] = None


def _parse_post(raw: Mapping[str, Any]) -> SocialPost:
    return SocialPost(
        post_id=str(raw["id"]),
        author=str(raw.get("author") or ""),
        content=str(raw.get("content") or ""),
        created_at=parse_utc_timestamp(raw["created_at"]),
        likes=int(raw.get("likes_count") or 0),
        comments=int(raw.get("comments_count") or 0),
        reposts=int(raw.get("reposts_count") or 0),
        hashtags=tuple(raw.get("hashtags") or ()),
    )


def mock_search_results(hashtag: str) -> PostSearchResult:
    """Repeatable fake activity for a hashtag."""

    rng = random.Random(hashtag)
    post_count = rng.randrange(10)
    posts = [
        SocialPost(
            post_id=f"mock-{hashtag}-{i}",
            author=f"agent_{rng.randrange(1000)}",
            content=f"Check out this awesome product! #{hashtag}",
            created_at=_MOCK_EPOCH - timedelta(minutes=rng.randrange(7 * 24 * 60)),
            likes=rng.randrange(50),
            comments=rng.randrange(10),
            reposts=rng.randrange(5),
            hashtags=(hashtag,),
        )
        for i in range(post_count)
    ]
    return PostSearchResult(posts=posts, total=post_count)


class MoltbookClient:
    """
    Thin HTTP client for the Moltbook search API.

    Owns an httpx.Client; call `close()` (or use as a context manager) on
    shutdown.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        *,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self._http = http_client or httpx.Client(
            base_url=base_url,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    @property
    def is_mock(self) -> bool:
        return not self.api_key

    def search_posts_by_hashtag(
        self,
        hashtag: str,
        *,
        since: Optional[datetime] = None,
        cursor: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> PostSearchResult:
        """
        Search for posts containing a hashtag.

        Raises:
            UpstreamError: on transport failures or non-2xx responses
        """

        tag = hashtag.lstrip("#")

        if self.is_mock:
            logger.warning(
                "Moltbook API key not configured, using mock data",
                extra={"hashtag": tag},
            )
            return mock_search_results(tag)

        params: dict[str, Any] = {"hashtag": tag, "limit": limit}
        if since is not None:
            params["since"] = since.isoformat()
        if cursor:
            params["cursor"] = cursor

        try:
            response = self._http.get(
                "/v1/search/posts",
                params=params,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Moltbook request failed: {e}") from e

        if response.status_code >= 400:
            raise UpstreamError(
                f"Moltbook API error: {response.status_code} {response.reason_phrase}"
            )

        body = response.json()
        posts = [_parse_post(raw) for raw in body.get("posts") or []]
        return PostSearchResult(
            posts=posts,
            total=int(body.get("total", len(posts))),
            next_cursor=body.get("next_cursor"),
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MoltbookClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["MoltbookClient", "PostSearchResult", "mock_search_results"]
