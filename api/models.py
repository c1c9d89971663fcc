"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.product import Category, DeliveryMethod, Product, TemplateKind


# ============================================================================
# Product Models
# ============================================================================

class MarketingTemplateModel(BaseModel):
    """Marketing copy for agents, tagged by when it is used."""
    id: Optional[str] = None
    type: TemplateKind
    content: str = Field(..., min_length=1)


class FAQBlockModel(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)


class ProductCreateRequest(BaseModel):
    """Request to create a draft product."""
    seller_wallet: str = Field(..., description="Seller wallet address (0x...)")
    name: str = Field(..., min_length=1, max_length=200)
    price_usdc: Decimal = Field(..., gt=0, decimal_places=6)
    one_liner: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    tags: List[str] = Field(default_factory=list, max_length=5)
    delivery_method: Optional[DeliveryMethod] = None
    download_url: Optional[str] = None
    file_name: Optional[str] = None
    image_url: Optional[str] = None
    marketing_templates: List[MarketingTemplateModel] = Field(default_factory=list)
    faq_blocks: List[FAQBlockModel] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "seller_wallet": "0x1111111111111111111111111111111111111111",
                "name": "Lo-Fi Beat Pack",
                "price_usdc": "10.00",
                "one_liner": "20 royalty-free lo-fi loops",
                "category": "audio",
                "tags": ["Beats", "Lo-Fi"],
                "delivery_method": "file",
                "download_url": "https://xyz.supabase.co/storage/v1/object/public/digital-products/abc/pack.zip",
                "marketing_templates": [],
                "faq_blocks": [{"question": "License?", "answer": "Royalty-free"}]
            }
        }


class ProductResponse(BaseModel):
    """Product as exposed by the API."""
    id: UUID
    seller_wallet: str
    name: str
    slug: str
    price_usdc: Decimal
    status: str
    one_liner: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: List[str]
    delivery_method: Optional[str] = None
    image_url: Optional[str] = None
    blockchain_link_id: Optional[int] = None
    activation_tx_hash: Optional[str] = None
    hashtag: Optional[str] = None
    sales_count: int
    moltbook_post_count: int
    moltbook_engagement: int
    hype_score: int
    hype_badge: Optional[str] = None
    created_at: Optional[datetime] = None

    @staticmethod
    def from_domain(product: Product) -> "ProductResponse":
        # download_url is only returned by the order endpoints.
        return ProductResponse(
            id=product.product_id,
            seller_wallet=product.seller_wallet,
            name=product.name,
            slug=product.slug,
            price_usdc=product.price_usdc,
            status=product.status.value,
            one_liner=product.one_liner,
            description=product.description,
            category=product.category.value if product.category else None,
            tags=list(product.tags),
            delivery_method=product.delivery_method.value if product.delivery_method else None,
            image_url=product.image_url,
            blockchain_link_id=product.blockchain_link_id,
            activation_tx_hash=product.activation_tx_hash,
            hashtag=product.hashtag,
            sales_count=product.sales_count,
            moltbook_post_count=product.moltbook_post_count,
            moltbook_engagement=product.moltbook_engagement,
            hype_score=product.hype_score,
            hype_badge=product.hype_badge.value if product.hype_badge else None,
            created_at=product.created_at,
        )


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total_count: int


class SellerDashboardResponse(BaseModel):
    seller_wallet: str
    product_count: int
    active_count: int
    draft_count: int
    completed_orders: int
    total_revenue: Decimal
    total_sales: int
    average_hype_score: float


# ============================================================================
# Activation Models
# ============================================================================

class ActivationRequest(BaseModel):
    """Confirmed createPaymentLink transaction submitted by the seller."""
    seller_wallet: str
    tx_hash: str = Field(..., description="createPaymentLink transaction hash")

    class Config:
        json_schema_extra = {
            "example": {
                "seller_wallet": "0x1111111111111111111111111111111111111111",
                "tx_hash": "0x" + "ab" * 32
            }
        }


class ActivationResponse(BaseModel):
    product: ProductResponse
    blockchain_link_id: int
    hashtag: str
    used_fallback_link_id: bool


# ============================================================================
# Order Models
# ============================================================================

class SettlementRequest(BaseModel):
    """Confirmed payLink transaction submitted after payment."""
    product_id: UUID
    buyer_wallet: str
    tx_hash: str
    amount_usdc: Decimal = Field(..., gt=0)


class SettlementResponse(BaseModel):
    order_id: UUID
    product_id: UUID
    status: str
    tx_hash: Optional[str]
    payment_confirmed_at: Optional[datetime]
    download_url: Optional[str] = None


class OrderStatusResponse(BaseModel):
    """Order status; download_url is only present once the order is completed."""
    order_id: UUID
    status: str
    tx_hash: Optional[str]
    payment_confirmed_at: Optional[datetime]
    product_name: Optional[str]
    download_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "order_id": "123e4567-e89b-12d3-a456-426614174003",
                "status": "completed",
                "tx_hash": "0x" + "cd" * 32,
                "payment_confirmed_at": "2025-01-01T12:00:00Z",
                "product_name": "Lo-Fi Beat Pack",
                "download_url": "https://xyz.supabase.co/storage/v1/object/sign/digital-products/abc/pack.zip?token=..."
            }
        }


class OrderResponse(BaseModel):
    order_id: UUID
    product_id: UUID
    buyer_wallet: str
    amount_usdc: Decimal
    status: str
    tx_hash: Optional[str]
    payment_confirmed_at: Optional[datetime]


# ============================================================================
# Sync Models
# ============================================================================

class SyncResponse(BaseModel):
    message: str
    synced: int
    errors: List[str]


# ============================================================================
# User Models
# ============================================================================

class UserRegisterRequest(BaseModel):
    wallet_address: str


class UsernameClaimRequest(BaseModel):
    username: str


class UserResponse(BaseModel):
    wallet_address: str
    display_name: Optional[str]
    needs_username: bool

