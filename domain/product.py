"""
Domain: Product entity and activation lifecycle.

Rules implemented here:
- A Product is identified by product_id (UUID) and a globally unique slug
  derived from its name plus a random suffix.
- price_usdc is a positive decimal; at most 5 tags.
- Lifecycle: draft -> active. `paused` exists but is only set by administrators.
- Activation happens exactly once and sets blockchain_link_id, activation_tx_hash
  and hashtag together. hashtag and blockchain_link_id are both NULL or both
  set.
- Only active products with a blockchain_link_id are listed in the marketplace.
"""

from __future__ import annotations

import random
import re
import string
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from .errors import PreconditionError
from .hype import HypeBadge, HypeSnapshot
from .time import require_utc_timestamp

HASHTAG_PREFIX: str = "aaas_"
HASHTAG_ID_CHARS: int = 8
PRODUCT_TAG_LIMIT: int = 5
SLUG_SUFFIX_LENGTH: int = 6
SKILL_VERSION: str = "1.1.1"

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")
_SLUG_ALPHABET = string.ascii_lowercase + string.digits


class ProductStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


class DeliveryMethod(str, Enum):
    FILE = "file"
    LINK = "link"
    LICENSE_KEY = "license_key"


class Category(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    DESIGN = "design"
    PHOTOS = "photos"
    THREE_D = "3d"
    CODE = "code"
    DOCUMENTS = "documents"
    EDUCATION = "education"
    AI = "ai"
    GAMING = "gaming"


class TemplateKind(str, Enum):
    INITIAL = "initial"
    FOLLOWUP = "followup"
    RESPONSE = "response"


# Suggested tags offered by the product form, per category.
TAG_OPTIONS: Dict[Category, Tuple[str, ...]] = {
    Category.AUDIO: ("Music", "Beats", "Sound Effects", "Sample Packs", "Loops", "Podcasts", "Audiobooks", "Hip-Hop", "EDM", "Lo-Fi"),
    Category.VIDEO: ("Stock Video", "After Effects", "Motion Graphics", "LUTs", "Premiere Pro", "Final Cut", "Transitions", "Intros"),
    Category.DESIGN: ("Templates", "Graphics", "Fonts", "Icons", "UI Kits", "Mockups", "Illustrations", "Figma", "Canva", "Notion"),
    Category.PHOTOS: ("Stock Photos", "Lightroom Presets", "Photo Packs", "Portraits", "Nature", "Abstract"),
    Category.THREE_D: ("3D Models", "Textures", "Unity Assets", "Unreal Assets", "Blender", "Characters", "Environments"),
    Category.CODE: ("Scripts", "Plugins", "Themes", "APIs", "Boilerplates", "Components", "WordPress", "Shopify"),
    Category.DOCUMENTS: ("Ebooks", "Guides", "Spreadsheets", "Contracts", "Checklists", "Business Plans", "Resumes"),
    Category.EDUCATION: ("Courses", "Tutorials", "Workshops", "Certifications", "Masterclass"),
    Category.AI: ("Prompts", "GPT Templates", "Midjourney", "Stable Diffusion", "Claude", "Workflows"),
    Category.GAMING: ("Game Assets", "Sprites", "Tilesets", "Character Packs", "Sound Effects", "Music Packs"),
}


@dataclass(frozen=True, slots=True)
class MarketingTemplate:
    template_id: str
    kind: TemplateKind
    content: str


@dataclass(frozen=True, slots=True)
class FAQBlock:
    question: str
    answer: str


def generate_product_hashtag(product_id: UUID | str) -> str:
    """
    Deterministic tracking hashtag for a product.

    "aaas_" + the first 8 characters of the id with '-' separators removed.
    Stored without the leading '#'.
    """

    short_id = str(product_id).replace("-", "")[:HASHTAG_ID_CHARS]
    return f"{HASHTAG_PREFIX}{short_id}"


def generate_slug(name: str, suffix: Optional[str] = None) -> str:
    """
    URL slug from a product name plus a random suffix.

    The suffix allows duplicate names across sellers while keeping slugs unique.
    """

    if suffix is None:
        suffix = "".join(random.choices(_SLUG_ALPHABET, k=SLUG_SUFFIX_LENGTH))

    base = _SLUG_SEPARATORS.sub("-", name.lower()).strip("-")
    if not base:
        return suffix
    return f"{base}-{suffix}"


@dataclass(frozen=True, slots=True)
class Product:
    """
    Sellable digital good.

    Immutability:
    - Transitions return new instances (see `activated` and `with_hype`).
    """

    product_id: UUID
    seller_wallet: str
    name: str
    slug: str
    price_usdc: Decimal
    status: ProductStatus = ProductStatus.DRAFT

    one_liner: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    # Delivery
    delivery_method: Optional[DeliveryMethod] = None
    download_url: Optional[str] = None
    file_name: Optional[str] = None
    image_url: Optional[str] = None

    # Promotion
    marketing_templates: Tuple[MarketingTemplate, ...] = field(default_factory=tuple)
    faq_blocks: Tuple[FAQBlock, ...] = field(default_factory=tuple)

    # Activation
    blockchain_link_id: Optional[int] = None
    activation_tx_hash: Optional[str] = None
    hashtag: Optional[str] = None

    # Metrics
    sales_count: int = 0
    moltbook_post_count: int = 0
    moltbook_engagement: int = 0
    hype_score: int = 0
    hype_badge: Optional[HypeBadge] = None
    skill_version: str = SKILL_VERSION

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name must be non-empty")
        if self.price_usdc <= 0:
            raise ValueError("price_usdc must be positive")
        if len(self.tags) > PRODUCT_TAG_LIMIT:
            raise ValueError(f"a product may have at most {PRODUCT_TAG_LIMIT} tags")
        if (self.hashtag is None) != (self.blockchain_link_id is None):
            raise ValueError("hashtag and blockchain_link_id must be set together")
        if self.blockchain_link_id is not None and self.blockchain_link_id < 0:
            raise ValueError("blockchain_link_id must be >= 0")
        for name in ("sales_count", "moltbook_post_count", "moltbook_engagement", "hype_score"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def is_activated(self) -> bool:
        return self.blockchain_link_id is not None

    @property
    def is_listed(self) -> bool:
        """Visible in the public marketplace."""
        return self.status is ProductStatus.ACTIVE and self.is_activated

    def activated(self, blockchain_link_id: int, activation_tx_hash: str) -> "Product":
        """
        Return a new Product in the active state.

        Re-activation is rejected: the link id is assigned exactly once.
        """

        if self.is_activated:
            raise PreconditionError(
                f"Product {self.product_id} is already activated (link id {self.blockchain_link_id})"
            )
        if self.status is not ProductStatus.DRAFT:
            raise PreconditionError(
                f"Product {self.product_id} cannot be activated from status '{self.status.value}'"
            )
        if not activation_tx_hash:
            raise ValueError("activation_tx_hash must be non-empty")

        return replace(
            self,
            blockchain_link_id=blockchain_link_id,
            activation_tx_hash=activation_tx_hash,
            hashtag=generate_product_hashtag(self.product_id),
            status=ProductStatus.ACTIVE,
        )

    def with_hype(self, snapshot: HypeSnapshot) -> "Product":
        return replace(
            self,
            moltbook_post_count=snapshot.post_count,
            moltbook_engagement=snapshot.engagement,
            hype_score=snapshot.hype_score,
            hype_badge=snapshot.hype_badge,
        )

    def templates_by_kind(self) -> Dict[TemplateKind, List[str]]:
        """Template contents grouped by kind, preserving the stored order."""

        grouped: Dict[TemplateKind, List[str]] = {}
        for template in self.marketing_templates:
            grouped.setdefault(template.kind, []).append(template.content)
        return grouped


__all__ = [
    "Category",
    "DeliveryMethod",
    "FAQBlock",
    "HASHTAG_PREFIX",
    "MarketingTemplate",
    "PRODUCT_TAG_LIMIT",
    "Product",
    "ProductStatus",
    "SKILL_VERSION",
    "TAG_OPTIONS",
    "TemplateKind",
    "generate_product_hashtag",
    "generate_slug",
]
