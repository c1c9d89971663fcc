"""
Skills API Endpoints.

Download the agent skill file for an activated product.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response

from api.dependencies import get_skill_config, get_supabase
from domain.errors import PreconditionError
from repositories.product_repository import get_product_by_id
from services.skill_generator import SkillConfig, generate_skill, skill_filename

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/skills/{product_id}",
    summary="Download Skill File",
    description="Markdown skill document an agent uses to promote and sell the product.",
    response_class=Response,
)
def download_skill(
    product_id: str,
    client=Depends(get_supabase),
    config: SkillConfig = Depends(get_skill_config),
):
    """
    Render `<hashtag>.md` for an activated product.

    Returns 404 for unknown products and 400 for products that have not been
    activated on-chain yet.
    """
    try:
        product_uuid = UUID(product_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid UUID format for product_id")

    try:
        product = get_product_by_id(client, product_uuid)
    except Exception:
        logger.exception("Failed to fetch product for skill")
        raise HTTPException(status_code=500, detail="Failed to fetch product")

    if product is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")

    try:
        content = generate_skill(product, config)
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=content,
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{skill_filename(product)}"'},
    )
