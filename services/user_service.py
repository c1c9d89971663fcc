"""
User service: wallet registration and username claims.
"""

from __future__ import annotations

from supabase import Client  # type: ignore[import-not-found]

from domain.errors import NotFoundError, PreconditionError
from domain.order import normalize_wallet
from domain.user import User, validate_username
from repositories.user_repository import (
    get_user_by_wallet,
    insert_user,
    is_display_name_taken,
    set_display_name,
)


def get_or_create_user(client: Client, wallet_address: str) -> User:
    """Return the user for a wallet, creating it on first connection."""

    wallet = normalize_wallet(wallet_address)
    existing = get_user_by_wallet(client, wallet)
    if existing is not None:
        return existing
    return insert_user(client, wallet)


def claim_username(client: Client, wallet_address: str, username: str) -> User:
    """
    Claim a unique display name for a wallet.

    Raises:
        ValueError: invalid or reserved username
        NotFoundError: wallet has no user row
        PreconditionError: username already taken
    """

    wallet = normalize_wallet(wallet_address)
    name = validate_username(username)

    user = get_user_by_wallet(client, wallet)
    if user is None:
        raise NotFoundError("User", wallet)

    if user.display_name == name:
        return user

    if is_display_name_taken(client, name):
        raise PreconditionError(f"Username '{name}' is already taken")

    updated = set_display_name(client, wallet, name)
    if updated is None:
        raise NotFoundError("User", wallet)
    return updated


__all__ = ["claim_username", "get_or_create_user"]
