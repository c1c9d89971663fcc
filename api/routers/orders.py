"""
Orders API Endpoints.

Settle confirmed payments and poll order status.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_chain_client, get_settings, get_supabase
from api.models import OrderResponse, OrderStatusResponse, SettlementRequest, SettlementResponse
from config.settings import Settings
from domain.errors import NotFoundError, PreconditionError, TransactionPendingError, UpstreamError
from repositories.order_repository import list_orders_by_product
from services.settlement_service import get_order_status, settle_payment

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/orders",
    response_model=SettlementResponse,
    status_code=201,
    summary="Settle Payment",
)
def settle(
    request: SettlementRequest,
    client=Depends(get_supabase),
    chain=Depends(get_chain_client),
    settings: Settings = Depends(get_settings),
):
    """
    Record a confirmed `payLink` transaction as a completed order.

    **Process:**
    1. Verifies the product is listed and the amount equals its price
    2. Rejects transaction hashes that were already settled
    3. Fetches the receipt and requires a PaymentReceived event for the
       product's link id, paid by `buyer_wallet`, for exactly the price
    4. Inserts a completed order with a server-side confirmation time
    5. Returns the delivery artifact (a one-hour signed URL for files)

    **Example request:**
    ```json
    {
      "product_id": "123e4567-e89b-12d3-a456-426614174000",
      "buyer_wallet": "0x2222222222222222222222222222222222222222",
      "tx_hash": "0xcdcd...cdcd",
      "amount_usdc": "10.00"
    }
    ```
    """
    try:
        settlement = settle_payment(
            client,
            chain,
            request.product_id,
            request.buyer_wallet,
            request.tx_hash,
            request.amount_usdc,
            bucket=settings.storage_bucket,
            contract_address=settings.contract_address,
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
        logger.exception("Chain node error during settlement")
        raise HTTPException(status_code=502, detail="Failed to read transaction from chain")
    except Exception:
        logger.exception("Failed to record order")
        raise HTTPException(status_code=500, detail="Failed to record order")

    order = settlement.order
    return SettlementResponse(
        order_id=order.order_id,
        product_id=order.product_id,
        status=order.status.value,
        tx_hash=order.tx_hash,
        payment_confirmed_at=order.payment_confirmed_at,
        download_url=settlement.download_url,
    )


@router.get(
    "/orders/{order_id}/status",
    response_model=OrderStatusResponse,
    response_model_exclude_unset=True,
    summary="Order Status",
    description="Poll an order. `download_url` is only included once the order is completed.",
)
def order_status(
    order_id: str,
    client=Depends(get_supabase),
    settings: Settings = Depends(get_settings),
):
    try:
        order_uuid = UUID(order_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid UUID format for order_id")

    try:
        view = get_order_status(client, order_uuid, bucket=settings.storage_bucket)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Failed to fetch order status")
        raise HTTPException(status_code=500, detail="Failed to fetch order status")

    fields = {
        "order_id": view.order_id,
        "status": view.status,
        "tx_hash": view.tx_hash,
        "payment_confirmed_at": view.payment_confirmed_at,
        "product_name": view.product_name,
    }
    if view.status == "completed" and view.download_url:
        fields["download_url"] = view.download_url
    return OrderStatusResponse(**fields)


@router.get(
    "/products/{product_id}/orders",
    response_model=list[OrderResponse],
    summary="List Product Orders",
)
def product_orders(product_id: str, client=Depends(get_supabase)):
    try:
        product_uuid = UUID(product_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid UUID format for product_id")

    try:
        orders = list_orders_by_product(client, product_uuid)
    except Exception:
        logger.exception("Failed to list orders")
        raise HTTPException(status_code=500, detail="Failed to list orders")

    return [
        OrderResponse(
            order_id=o.order_id,
            product_id=o.product_id,
            buyer_wallet=o.buyer_wallet,
            amount_usdc=o.amount_usdc,
            status=o.status.value,
            tx_hash=o.tx_hash,
            payment_confirmed_at=o.payment_confirmed_at,
        )
        for o in orders
    ]
