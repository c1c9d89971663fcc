"""
Domain: Users (wallet-identified accounts).

Users are created on first wallet connection and later claim a unique
display name. Wallet addresses are stored lowercase.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Optional

from .order import normalize_wallet
from .time import require_utc_timestamp

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,20}$")
RESERVED_USERNAMES: FrozenSet[str] = frozenset(
    {"admin", "aaas", "support", "help", "system", "mod", "moderator"}
)


def validate_username(username: str) -> str:
    """Return the normalized (lowercase) username or raise ValueError."""

    value = (username or "").strip().lower()
    if len(value) < 3:
        raise ValueError("Username must be at least 3 characters")
    if len(value) > 20:
        raise ValueError("Username must be at most 20 characters")
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username may only contain lowercase letters, numbers and underscores")
    if value in RESERVED_USERNAMES:
        raise ValueError("This username is reserved")
    return value


@dataclass(frozen=True, slots=True)
class User:
    wallet_address: str
    display_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "wallet_address", normalize_wallet(self.wallet_address))
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def needs_username(self) -> bool:
        return not self.display_name
