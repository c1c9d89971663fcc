"""
Products API Endpoints.

Endpoints for creating draft products, browsing the marketplace, activating
products on-chain and seller dashboards.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_chain_client, get_settings, get_supabase
from api.models import (
    ActivationRequest,
    ActivationResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    SellerDashboardResponse,
)
from config.settings import Settings
from domain.errors import NotFoundError, PreconditionError, TransactionPendingError, UpstreamError
from domain.product import Category, FAQBlock, MarketingTemplate
from repositories.product_repository import MarketplaceFilters, MarketplaceSort, get_product_by_id
from services.activation_service import activate_product
from services.product_service import (
    ProductDraft,
    create_draft_product,
    get_seller_dashboard,
    list_marketplace,
    list_seller_products,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_uuid(value: str, name: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid UUID format for {name}")


@router.post(
    "/products",
    response_model=ProductResponse,
    status_code=201,
    summary="Create Draft Product",
)
def create_product(request: ProductCreateRequest, client=Depends(get_supabase)):
    """
    Create a product in the `draft` state.

    A slug is generated from the name plus a random suffix. The product is not
    listed until it has been activated on-chain.
    """
    try:
        draft = ProductDraft(
            name=request.name,
            price_usdc=request.price_usdc,
            one_liner=request.one_liner,
            description=request.description,
            category=request.category,
            tags=tuple(request.tags),
            delivery_method=request.delivery_method,
            download_url=request.download_url,
            file_name=request.file_name,
            image_url=request.image_url,
            marketing_templates=tuple(
                MarketingTemplate(
                    template_id=t.id or f"template-{i + 1}",
                    kind=t.type,
                    content=t.content,
                )
                for i, t in enumerate(request.marketing_templates)
            ),
            faq_blocks=tuple(
                FAQBlock(question=f.question, answer=f.answer) for f in request.faq_blocks
            ),
        )
        product = create_draft_product(client, request.seller_wallet, draft)
        return ProductResponse.from_domain(product)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Failed to create product")
        raise HTTPException(status_code=500, detail="Failed to create product")


@router.get(
    "/products",
    response_model=ProductListResponse,
    summary="Browse Marketplace",
    description="List active, activated products with optional category/tag/search filters.",
)
def browse_marketplace(
    category: Optional[Category] = Query(None, description="Filter by category id"),
    tags: Optional[List[str]] = Query(None, description="Match products with any of these tags"),
    search: Optional[str] = Query(None, description="Case-insensitive name search"),
    sort: MarketplaceSort = Query(MarketplaceSort.HYPE, description="Sort order"),
    limit: int = Query(100, ge=1, le=500),
    client=Depends(get_supabase),
):
    """
    **Example usage:**
    - Hottest products: `GET /api/v1/products`
    - Newest audio: `GET /api/v1/products?category=audio&sort=newest`
    """
    try:
        filters = MarketplaceFilters(category=category, tags=tags, search=search, sort=sort)
        products = list_marketplace(client, filters, limit=limit)
        return ProductListResponse(
            items=[ProductResponse.from_domain(p) for p in products],
            total_count=len(products),
        )
    except Exception:
        logger.exception("Failed to query marketplace")
        raise HTTPException(status_code=500, detail="Failed to query marketplace")


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get Product")
def get_product(product_id: str, client=Depends(get_supabase)):
    product_uuid = _parse_uuid(product_id, "product_id")
    try:
        product = get_product_by_id(client, product_uuid)
    except Exception:
        logger.exception("Failed to fetch product")
        raise HTTPException(status_code=500, detail="Failed to fetch product")

    if product is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")
    return ProductResponse.from_domain(product)


@router.post(
    "/products/{product_id}/activate",
    response_model=ActivationResponse,
    summary="Activate Product",
)
def activate(
    product_id: str,
    request: ActivationRequest,
    client=Depends(get_supabase),
    chain=Depends(get_chain_client),
    settings: Settings = Depends(get_settings),
):
    """
    Activate a draft product from its confirmed `createPaymentLink` transaction.

    **Process:**
    1. Verifies the caller owns the product and it is not yet activated
    2. Fetches the transaction receipt from the chain node
    3. Reads the link id from the `PaymentLinkCreated` event
    4. Stores link id, transaction hash, hashtag and `active` status together

    Returns 409 while the transaction is unconfirmed; the product stays a draft.
    """
    product_uuid = _parse_uuid(product_id, "product_id")
    try:
        result = activate_product(
            client,
            chain,
            product_uuid,
            request.tx_hash,
            seller_wallet=request.seller_wallet,
            contract_address=settings.contract_address,
            strict_link_event=settings.strict_link_event,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransactionPendingError as e:
        raise HTTPException(status_code=409, detail=f"Transaction not yet confirmed: {e}")
    except PreconditionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError:
        logger.exception("Chain node error during activation")
        raise HTTPException(status_code=502, detail="Failed to read transaction from chain")
    except Exception:
        logger.exception("Failed to activate product")
        raise HTTPException(status_code=500, detail="Failed to save activation")

    return ActivationResponse(
        product=ProductResponse.from_domain(result.product),
        blockchain_link_id=result.link_id,
        hashtag=result.product.hashtag or "",
        used_fallback_link_id=result.used_fallback,
    )


@router.get(
    "/sellers/{seller_wallet}/products",
    response_model=ProductListResponse,
    summary="List Seller Products",
)
def seller_products(seller_wallet: str, client=Depends(get_supabase)):
    try:
        products = list_seller_products(client, seller_wallet)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Failed to list seller products")
        raise HTTPException(status_code=500, detail="Failed to list seller products")

    return ProductListResponse(
        items=[ProductResponse.from_domain(p) for p in products],
        total_count=len(products),
    )


@router.get(
    "/sellers/{seller_wallet}/dashboard",
    response_model=SellerDashboardResponse,
    summary="Seller Dashboard",
)
def seller_dashboard(seller_wallet: str, client=Depends(get_supabase)):
    """Revenue, sales and hype summary for a seller."""
    try:
        dashboard = get_seller_dashboard(client, seller_wallet)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Failed to build seller dashboard")
        raise HTTPException(status_code=500, detail="Failed to build seller dashboard")

    return SellerDashboardResponse(
        seller_wallet=dashboard.seller_wallet,
        product_count=dashboard.product_count,
        active_count=dashboard.active_count,
        draft_count=dashboard.draft_count,
        completed_orders=dashboard.completed_orders,
        total_revenue=dashboard.total_revenue,
        total_sales=dashboard.total_sales,
        average_hype_score=dashboard.average_hype_score,
    )
