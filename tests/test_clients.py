"""
Tests for `services/moltbook_client.py` and `services/chain_client.py`.

HTTP is served by httpx.MockTransport; no network access.
"""

from __future__ import annotations

import json

import httpx
import pytest

from conftest import CONTRACT, SELLER
from domain.chain import PAYMENT_LINK_CREATED_TOPIC
from domain.errors import UpstreamError
from services.chain_client import ChainClient
from services.moltbook_client import MoltbookClient, mock_search_results


def _moltbook(handler, api_key="mb-key") -> MoltbookClient:
    http = httpx.Client(base_url="https://moltbook.test", transport=httpx.MockTransport(handler))
    return MoltbookClient("https://moltbook.test", api_key, http_client=http)


def _chain(handler) -> ChainClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return ChainClient("https://rpc.test", http_client=http)


def test_moltbook_search_parses_posts() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={
                "posts": [
                    {
                        "id": "post-1",
                        "author": "agent_1",
                        "content": "Launching #aaas_123e4567",
                        "created_at": "2025-01-01T10:00:00Z",
                        "likes_count": 4,
                        "comments_count": 2,
                        "reposts_count": 1,
                    }
                ],
                "total": 1,
                "next_cursor": "c2",
            },
        )

    with _moltbook(handler) as client:
        result = client.search_posts_by_hashtag("#aaas_123e4567", limit=25)

    assert seen["path"] == "/v1/search/posts"
    assert seen["params"] == {"hashtag": "aaas_123e4567", "limit": "25"}
    assert seen["auth"] == "Bearer mb-key"
    assert result.total == 1
    assert result.next_cursor == "c2"
    post = result.posts[0]
    assert (post.post_id, post.likes, post.comments, post.reposts) == ("post-1", 4, 2, 1)
    assert post.created_at.utcoffset().total_seconds() == 0


def test_moltbook_error_status_raises_upstream_error() -> None:
    client = _moltbook(lambda request: httpx.Response(503))

    with pytest.raises(UpstreamError):
        client.search_posts_by_hashtag("aaas_123e4567")


def test_moltbook_without_key_serves_repeatable_mock_data() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no HTTP request expected in mock mode")

    client = _moltbook(handler, api_key=None)

    first = client.search_posts_by_hashtag("aaas_123e4567")
    second = client.search_posts_by_hashtag("aaas_123e4567")

    assert client.is_mock is True
    assert first == second == mock_search_results("aaas_123e4567")
    assert all(p.post_id.startswith("mock-aaas_123e4567-") for p in first.posts)


def test_chain_receipt_is_parsed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["method"] == "eth_getTransactionReceipt"
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": body["id"],
                "result": {
                    "transactionHash": body["params"][0],
                    "status": "0x1",
                    "from": SELLER,
                    "to": CONTRACT,
                    "blockNumber": "0x2a",
                    "logs": [
                        {
                            "address": CONTRACT,
                            "topics": [PAYMENT_LINK_CREATED_TOPIC, "0x" + format(11, "064x"), "0x" + "0" * 64],
                            "data": "0x" + format(10_000_000, "064x"),
                        }
                    ],
                },
            },
        )

    with _chain(handler) as chain:
        receipt = chain.get_transaction_receipt("0x" + "ab" * 32)

    assert receipt is not None
    assert receipt.succeeded is True
    assert receipt.block_number == 42
    assert receipt.logs[0].topics[1] == "0x" + format(11, "064x")


def test_chain_pending_transaction_returns_none() -> None:
    chain = _chain(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None}))

    assert chain.get_transaction_receipt("0x" + "ab" * 32) is None


def test_chain_rpc_error_raises_upstream_error() -> None:
    chain = _chain(
        lambda request: httpx.Response(
            200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "boom"}}
        )
    )

    with pytest.raises(UpstreamError):
        chain.get_transaction_receipt("0x" + "ab" * 32)
