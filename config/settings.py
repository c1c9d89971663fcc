"""
Runtime settings.

Read from the environment (and the project's .env file) once per process by
`Settings.from_env()`. Nothing here creates clients; see `repositories.client`
and the API lifespan for that.

Environment variables required:
- SUPABASE_URL: Supabase project URL
- SUPABASE_KEY: Supabase API key (server-side key on the backend)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_APP_URL = "http://localhost:3000"
DEFAULT_CONTRACT_ADDRESS = "0x448D913F861E574872dE20af60190aCfA201d5E3"
DEFAULT_CHAIN_ID = 5042002
DEFAULT_CHAIN_RPC_URL = "https://rpc.testnet.arc.network"
DEFAULT_MOLTBOOK_API_URL = "https://api.moltbook.com"
DEFAULT_STORAGE_BUCKET = "digital-products"

_ENV_PATH = Path(__file__).parent.parent / ".env"


def _require(name: str, description: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"Missing environment variable: {name}. "
            f"Set {name} to {description}."
        )
    return value


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _origins() -> Tuple[str, ...]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    return tuple(o.strip() for o in raw.split(",") if o.strip())


def cors_allowed_origins_from_env(env_file: Optional[Path] = _ENV_PATH) -> Tuple[str, ...]:
    """
    CORS_ALLOWED_ORIGINS (comma separated, default "*").

    Middleware is registered before the lifespan runs, so the app factory
    reads this without requiring the Supabase variables.
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)
    return _origins()


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    app_url: str = DEFAULT_APP_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    usdc_address: Optional[str] = None
    chain_id: int = DEFAULT_CHAIN_ID
    chain_rpc_url: str = DEFAULT_CHAIN_RPC_URL
    moltbook_api_url: str = DEFAULT_MOLTBOOK_API_URL
    moltbook_api_key: Optional[str] = None
    cron_secret: Optional[str] = None
    storage_bucket: str = DEFAULT_STORAGE_BUCKET
    # Reject activations whose receipt lacks PaymentLinkCreated instead of
    # falling back to link id 1.
    strict_link_event: bool = False
    cors_allowed_origins: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    @staticmethod
    def from_env(env_file: Optional[Path] = _ENV_PATH) -> "Settings":
        if env_file is not None:
            load_dotenv(dotenv_path=env_file)

        return Settings(
            supabase_url=_require("SUPABASE_URL", "your Supabase project URL"),
            supabase_key=_require("SUPABASE_KEY", "your Supabase API key"),
            app_url=os.getenv("APP_URL", DEFAULT_APP_URL).rstrip("/"),
            contract_address=os.getenv("AAAS_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
            usdc_address=os.getenv("USDC_ADDRESS") or None,
            chain_id=int(os.getenv("CHAIN_ID", DEFAULT_CHAIN_ID)),
            chain_rpc_url=os.getenv("CHAIN_RPC_URL", DEFAULT_CHAIN_RPC_URL),
            moltbook_api_url=os.getenv("MOLTBOOK_API_URL", DEFAULT_MOLTBOOK_API_URL).rstrip("/"),
            moltbook_api_key=os.getenv("MOLTBOOK_API_KEY") or None,
            cron_secret=os.getenv("CRON_SECRET") or None,
            storage_bucket=os.getenv("STORAGE_BUCKET", DEFAULT_STORAGE_BUCKET),
            strict_link_event=_flag("STRICT_LINK_EVENT"),
            cors_allowed_origins=_origins(),
        )


__all__ = ["Settings", "cors_allowed_origins_from_env"]
