"""
Cron API Endpoints.

Scheduler-triggered Moltbook engagement sync, protected by the shared
CRON_SECRET bearer token.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_moltbook_client, get_supabase, verify_cron_secret
from api.models import SyncResponse
from services.hype_sync_service import sync_all_products

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


def _run_sync(client, moltbook) -> SyncResponse:
    try:
        report = sync_all_products(client, moltbook)
    except Exception:
        logger.exception("Failed to sync Moltbook activity")
        raise HTTPException(status_code=500, detail="Failed to sync Moltbook activity")

    if report.synced == 0 and not report.failed:
        message = "No products to sync"
    else:
        message = f"Synced {report.synced} products"

    return SyncResponse(message=message, synced=report.synced, errors=report.error_messages)


@router.post("/cron/sync-moltbook", response_model=SyncResponse, summary="Sync Moltbook Engagement")
def sync_moltbook(client=Depends(get_supabase), moltbook=Depends(get_moltbook_client)):
    """
    Refresh post counts, engagement and hype scores for every active product.

    Per-product failures are reported in `errors`; the rest of the batch
    still runs.
    """
    return _run_sync(client, moltbook)


@router.get("/cron/sync-moltbook", response_model=SyncResponse, include_in_schema=False)
def sync_moltbook_get(client=Depends(get_supabase), moltbook=Depends(get_moltbook_client)):
    # Some schedulers can only issue GET requests.
    return _run_sync(client, moltbook)
