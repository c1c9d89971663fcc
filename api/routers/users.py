"""
Users API Endpoints.

Wallet registration and username claims.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_supabase
from api.models import UserRegisterRequest, UserResponse, UsernameClaimRequest
from domain.errors import NotFoundError, PreconditionError
from domain.user import User
from services.user_service import claim_username, get_or_create_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        wallet_address=user.wallet_address,
        display_name=user.display_name,
        needs_username=user.needs_username,
    )


@router.post("/users", response_model=UserResponse, summary="Register Wallet")
def register_user(request: UserRegisterRequest, client=Depends(get_supabase)):
    """Return the user for a wallet, creating it on first connection."""
    try:
        user = get_or_create_user(client, request.wallet_address)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Failed to register user")
        raise HTTPException(status_code=500, detail="Failed to register user")
    return _to_response(user)


@router.put("/users/{wallet_address}/username", response_model=UserResponse, summary="Claim Username")
def set_username(wallet_address: str, request: UsernameClaimRequest, client=Depends(get_supabase)):
    try:
        user = claim_username(client, wallet_address, request.username)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("Failed to claim username")
        raise HTTPException(status_code=500, detail="Failed to claim username")
    return _to_response(user)
