"""
Tests for `domain/user.py` and `services/user_service.py`.

Covers contract rules:
- Usernames are 3-20 characters of [a-z0-9_], stored lowercase.
- Reserved names cannot be claimed.
- Display names are unique across users.
"""

from __future__ import annotations

import pytest

from conftest import BUYER, SELLER
from domain.errors import NotFoundError, PreconditionError
from domain.user import User, validate_username
from services.user_service import claim_username, get_or_create_user


def test_validate_username_normalizes_case() -> None:
    assert validate_username("  Agent_Smith ") == "agent_smith"


@pytest.mark.parametrize(
    "value",
    ["ab", "a" * 21, "has space", "dash-name", "admin", "Moderator", "aaas"],
)
def test_validate_username_rejects_invalid_or_reserved(value: str) -> None:
    with pytest.raises(ValueError):
        validate_username(value)


def test_user_needs_username_until_claimed() -> None:
    assert User(wallet_address=SELLER).needs_username is True
    assert User(wallet_address=SELLER, display_name="seller").needs_username is False


def test_get_or_create_user_is_idempotent(supabase) -> None:
    """Verify the first connection creates a row and later ones reuse it."""

    first = get_or_create_user(supabase, SELLER.upper().replace("0X", "0x"))
    second = get_or_create_user(supabase, SELLER)

    assert first.wallet_address == SELLER
    assert second.wallet_address == SELLER
    assert len(supabase.rows("users")) == 1


def test_claim_username_enforces_uniqueness(supabase) -> None:
    get_or_create_user(supabase, SELLER)
    get_or_create_user(supabase, BUYER)

    claimed = claim_username(supabase, SELLER, "Beatmaker")
    assert claimed.display_name == "beatmaker"

    # claiming your own name again is a no-op
    assert claim_username(supabase, SELLER, "beatmaker").display_name == "beatmaker"

    with pytest.raises(PreconditionError):
        claim_username(supabase, BUYER, "beatmaker")


def test_claim_username_requires_registered_wallet(supabase) -> None:
    with pytest.raises(NotFoundError):
        claim_username(supabase, SELLER, "beatmaker")
