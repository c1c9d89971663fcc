"""
Pytest configuration and shared fixtures.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories, services and api modules.

It also provides an in-memory stand-in for the Supabase client that supports
the subset of the postgrest query builder the repositories use, plus fakes
for the chain node and Moltbook.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

import pytest

# Add the project directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.chain import (  # noqa: E402
    PAYMENT_LINK_CREATED_TOPIC,
    PAYMENT_RECEIVED_TOPIC,
    LogEntry,
    TransactionReceipt,
)
from domain.errors import UpstreamError  # noqa: E402
from domain.hype import SocialPost  # noqa: E402
from domain.product import DeliveryMethod, Product  # noqa: E402
from repositories.product_repository import _product_to_payload  # noqa: E402
from services.moltbook_client import PostSearchResult  # noqa: E402

SELLER = "0x1111111111111111111111111111111111111111"
BUYER = "0x2222222222222222222222222222222222222222"
CONTRACT = "0x448d913f861e574872de20af60190acfa201d5e3"
ACTIVATION_TX = "0x" + "ab" * 32
PAYMENT_TX = "0x" + "cd" * 32
PRODUCT_ID = UUID("123e4567-e89b-12d3-a456-426614174000")

_BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# In-memory Supabase
# ============================================================================

def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is None:
        return (2, "")
    try:
        return (0, Decimal(str(value)))
    except InvalidOperation:
        return (1, str(value))


def _like_to_regex(pattern: str) -> re.Pattern:
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Callable[[Dict[str, Any]], bool]] = []
        self._negate_next = False
        self._order: Optional[Tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._on_conflict: Optional[str] = None
        self._ignore_duplicates = False

    # operations

    def select(self, *columns: str) -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self._op = "update"
        self._payload = payload
        return self

    def upsert(self, payload: Any, on_conflict: str = "", ignore_duplicates: bool = False) -> "FakeQuery":
        self._op = "upsert"
        self._payload = payload
        self._on_conflict = on_conflict or None
        self._ignore_duplicates = ignore_duplicates
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    # filters

    def _add(self, predicate: Callable[[Dict[str, Any]], bool]) -> "FakeQuery":
        if self._negate_next:
            self._negate_next = False
            self._filters.append(lambda row: not predicate(row))
        else:
            self._filters.append(predicate)
        return self

    @property
    def not_(self) -> "FakeQuery":
        self._negate_next = True
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: row.get(column) != value)

    def is_(self, column: str, value: Any) -> "FakeQuery":
        expected = None if value in (None, "null") else value
        return self._add(lambda row: row.get(column) is expected or row.get(column) == expected)

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        allowed = list(values)
        return self._add(lambda row: row.get(column) in allowed)

    def ov(self, column: str, values: List[Any]) -> "FakeQuery":
        wanted = set(values)
        return self._add(lambda row: bool(wanted & set(row.get(column) or ())))

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = _like_to_regex(pattern)
        return self._add(lambda row: bool(regex.match(str(row.get(column) or ""))))

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    # execution

    def _matching(self) -> List[Dict[str, Any]]:
        rows = self._db.tables.setdefault(self._table, [])
        return [row for row in rows if all(f(row) for f in self._filters)]

    def execute(self) -> SimpleNamespace:
        self._db.calls.append((self._table, self._op))
        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "select":
            result = self._matching()
            if self._order:
                column, desc = self._order
                result = sorted(result, key=lambda r: _sort_key(r.get(column)), reverse=desc)
            if self._limit is not None:
                result = result[: self._limit]
            affected = result
        elif self._op == "insert":
            affected = [self._db.with_defaults(self._table, p) for p in _as_list(self._payload)]
        elif self._op == "upsert":
            affected = []
            for item in _as_list(self._payload):
                existing = None
                if self._on_conflict:
                    existing = next(
                        (r for r in rows if r.get(self._on_conflict) == item.get(self._on_conflict)),
                        None,
                    )
                if existing is None:
                    affected.append(self._db.with_defaults(self._table, item))
                elif not self._ignore_duplicates:
                    affected.append({**existing, **item})
        elif self._op == "update":
            affected = [{**row, **self._payload} for row in self._matching()]
        else:
            affected = self._matching()

        error = self._db.injected_error(self._table, self._op, affected)
        if error:
            return SimpleNamespace(data=None, error=error)

        if self._op in ("insert", "upsert"):
            if self._op == "upsert" and self._on_conflict:
                keys = {r.get(self._on_conflict) for r in affected}
                rows[:] = [r for r in rows if r.get(self._on_conflict) not in keys]
            rows.extend(affected)
        elif self._op == "update":
            for row in self._matching():
                row.update(self._payload)
        elif self._op == "delete":
            rows[:] = [r for r in rows if r not in affected]

        return SimpleNamespace(data=[dict(r) for r in affected], error=None)


def _as_list(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return [dict(p) for p in payload]
    return [dict(payload)]


class FakeBucket:
    def __init__(self, storage: "FakeStorage", bucket: str) -> None:
        self._storage = storage
        self._bucket = bucket

    def create_signed_url(self, path: str, expires_in: int) -> Dict[str, str]:
        self._storage.signed.append((self._bucket, path, expires_in))
        if self._storage.fail:
            raise RuntimeError("storage unavailable")
        return {"signedURL": f"https://storage.test/{self._bucket}/{path}?token=signed&expires={expires_in}"}


class FakeStorage:
    def __init__(self) -> None:
        self.fail = False
        self.signed: List[Tuple[str, str, int]] = []

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabase:
    """Minimal in-memory Supabase client."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.storage = FakeStorage()
        self.calls: List[Tuple[str, str]] = []
        self._failures: List[Tuple[str, str, Dict[str, Any], Optional[Exception]]] = []
        self._clock = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def fail_when(self, table: str, op: str, *, raises: Optional[Exception] = None, **match: Any) -> None:
        """Make matching operations return an error response (or raise `raises`)."""
        self._failures.append((table, op, match, raises))

    def injected_error(self, table: str, op: str, affected: List[Dict[str, Any]]) -> Optional[str]:
        for f_table, f_op, match, raises in self._failures:
            if f_table != table or f_op != op:
                continue
            if not match or any(all(r.get(k) == v for k, v in match.items()) for r in affected):
                if raises is not None:
                    raise raises
                return f"injected {op} failure on {table}"
        return None

    def with_defaults(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        self._clock += 1
        stamp = (_BASE_TIME + timedelta(seconds=self._clock)).isoformat()
        stored = {"created_at": stamp, **row}
        if table != "users":
            stored.setdefault("id", str(uuid4()))
        return stored


# ============================================================================
# Chain / Moltbook fakes
# ============================================================================

class FakeChain:
    def __init__(self) -> None:
        self.receipts: Dict[str, TransactionReceipt] = {}
        self.requested: List[str] = []

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        self.requested.append(tx_hash)
        return self.receipts.get(tx_hash)


@dataclass
class FakeMoltbook:
    posts: Dict[str, List[SocialPost]] = field(default_factory=dict)
    failing: set = field(default_factory=set)
    searched: List[str] = field(default_factory=list)

    def search_posts_by_hashtag(self, hashtag: str, *, limit: int = 50) -> PostSearchResult:
        self.searched.append(hashtag)
        if hashtag in self.failing:
            raise UpstreamError("Moltbook API error: 503 Service Unavailable")
        posts = self.posts.get(hashtag, [])
        return PostSearchResult(posts=list(posts), total=len(posts))


# ============================================================================
# Builders
# ============================================================================

def make_product(**overrides: Any) -> Product:
    values: Dict[str, Any] = dict(
        product_id=PRODUCT_ID,
        seller_wallet=SELLER,
        name="Lo-Fi Beat Pack",
        slug="lo-fi-beat-pack-abc123",
        price_usdc=Decimal("10.00"),
        one_liner="20 royalty-free lo-fi loops",
        delivery_method=DeliveryMethod.FILE,
        download_url="https://xyz.supabase.co/storage/v1/object/public/digital-products/abc/pack.zip",
        file_name="pack.zip",
    )
    values.update(overrides)
    return Product(**values)


def make_active_product(**overrides: Any) -> Product:
    product = make_product(**overrides)
    return product.activated(7, ACTIVATION_TX)


def product_row(product: Product) -> Dict[str, Any]:
    row = _product_to_payload(product)
    row.update(
        blockchain_link_id=product.blockchain_link_id,
        activation_tx_hash=product.activation_tx_hash,
        hashtag=product.hashtag,
        sales_count=product.sales_count,
        moltbook_post_count=product.moltbook_post_count,
        moltbook_engagement=product.moltbook_engagement,
        hype_score=product.hype_score,
        hype_badge=product.hype_badge.value if product.hype_badge else None,
    )
    if product.created_at is not None:
        row["created_at"] = product.created_at.isoformat()
    return row


def store_product(client: FakeSupabase, product: Product) -> Product:
    client.rows("products").append(product_row(product))
    return product


def creation_receipt(
    link_id: int = 7,
    amount_base_units: int = 10_000_000,
    *,
    tx_hash: str = ACTIVATION_TX,
    sender: str = SELLER,
    succeeded: bool = True,
    with_event: bool = True,
) -> TransactionReceipt:
    logs: Tuple[LogEntry, ...] = ()
    if with_event:
        logs = (
            LogEntry(
                address=CONTRACT,
                topics=(
                    PAYMENT_LINK_CREATED_TOPIC,
                    "0x" + format(link_id, "064x"),
                    "0x" + "0" * 24 + sender[2:].lower(),
                ),
                data="0x" + format(amount_base_units, "064x") + "0" * 128,
            ),
        )
    return TransactionReceipt(
        tx_hash=tx_hash,
        succeeded=succeeded,
        from_address=sender,
        to_address=CONTRACT,
        block_number=100,
        logs=logs,
    )


def payment_receipt(
    link_id: int = 7,
    amount_base_units: int = 10_000_000,
    *,
    tx_hash: str = PAYMENT_TX,
    buyer: str = BUYER,
    seller: str = SELLER,
    succeeded: bool = True,
    with_event: bool = True,
    contract: str = CONTRACT,
) -> TransactionReceipt:
    logs: Tuple[LogEntry, ...] = ()
    if with_event:
        fee = amount_base_units // 100
        logs = (
            LogEntry(
                address=contract,
                topics=(
                    PAYMENT_RECEIVED_TOPIC,
                    "0x" + format(link_id, "064x"),
                    "0x" + "0" * 24 + buyer[2:].lower(),
                    "0x" + "0" * 24 + seller[2:].lower(),
                ),
                data="0x" + format(amount_base_units, "064x") + format(fee, "064x"),
            ),
        )
    return TransactionReceipt(
        tx_hash=tx_hash,
        succeeded=succeeded,
        from_address=buyer,
        to_address=CONTRACT,
        block_number=200,
        logs=logs,
    )


def make_post(post_id: str, likes: int = 0, comments: int = 0, reposts: int = 0) -> SocialPost:
    return SocialPost(
        post_id=post_id,
        author="agent_1",
        content="Check this out",
        created_at=_BASE_TIME,
        likes=likes,
        comments=comments,
        reposts=reposts,
    )


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def moltbook() -> FakeMoltbook:
    return FakeMoltbook()


@pytest.fixture
def settings():
    from config.settings import Settings

    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_key="test-key",
        app_url="https://aaas.test",
        contract_address=CONTRACT,
        cron_secret="s3cret",
    )


@pytest.fixture
def api_client(supabase, chain, moltbook, settings):
    """TestClient wired to the fakes (the lifespan is not run)."""
    from fastapi.testclient import TestClient

    from api.dependencies import get_chain_client, get_moltbook_client, get_settings, get_supabase
    from api.main import create_app

    app = create_app(settings)
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_chain_client] = lambda: chain
    app.dependency_overrides[get_moltbook_client] = lambda: moltbook
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)
