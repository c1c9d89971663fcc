"""
User repository (persistence).

Users are keyed by lowercase wallet address; display_name is unique.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.time import parse_optional_utc_timestamp
from domain.user import User
from repositories.client import check_response

_USERS_TABLE: str = "users"


def _row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        wallet_address=str(row["wallet_address"]),
        display_name=row.get("display_name"),
        created_at=parse_optional_utc_timestamp(row.get("created_at")),
    )


def get_user_by_wallet(client: Client, wallet_address: str) -> Optional[User]:
    response = (
        client.table(_USERS_TABLE)
        .select("*")
        .eq("wallet_address", wallet_address)
        .limit(1)
        .execute()
    )
    rows = check_response(response, "get user")

    if not rows:
        return None
    return _row_to_user(rows[0])


def insert_user(client: Client, wallet_address: str) -> User:
    response = (
        client.table(_USERS_TABLE)
        .insert({"wallet_address": wallet_address})
        .execute()
    )
    rows = check_response(response, "create user")

    if not rows:
        return User(wallet_address=wallet_address)
    return _row_to_user(rows[0])


def is_display_name_taken(client: Client, display_name: str) -> bool:
    response = (
        client.table(_USERS_TABLE)
        .select("display_name")
        .eq("display_name", display_name)
        .limit(1)
        .execute()
    )
    return bool(check_response(response, "check display name"))


def set_display_name(client: Client, wallet_address: str, display_name: str) -> Optional[User]:
    response = (
        client.table(_USERS_TABLE)
        .update({"display_name": display_name})
        .eq("wallet_address", wallet_address)
        .execute()
    )
    rows = check_response(response, "claim display name")

    if not rows:
        return None
    return _row_to_user(rows[0])


__all__ = [
    "get_user_by_wallet",
    "insert_user",
    "is_display_name_taken",
    "set_display_name",
]
