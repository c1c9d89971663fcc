"""
FastAPI dependencies.

Clients are created once in the application lifespan and stored on
`app.state`; these functions hand them to the routers. Tests replace them
with `app.dependency_overrides`.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from supabase import Client  # type: ignore[import-not-found]

from config.settings import Settings
from services.chain_client import ChainClient
from services.moltbook_client import MoltbookClient
from services.skill_generator import SkillConfig


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_supabase(request: Request) -> Client:
    return request.app.state.supabase


def get_chain_client(request: Request) -> ChainClient:
    return request.app.state.chain_client


def get_moltbook_client(request: Request) -> MoltbookClient:
    return request.app.state.moltbook_client


def get_skill_config(settings: Settings = Depends(get_settings)) -> SkillConfig:
    return SkillConfig(
        base_url=settings.app_url,
        contract_address=settings.contract_address,
        chain_id=settings.chain_id,
    )


def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Shared-secret bearer check for scheduler-triggered endpoints.

    When no CRON_SECRET is configured the check is skipped (development).
    """

    if not settings.cron_secret:
        return

    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")
