"""
Supabase client construction.

This module contains *only* the database connection setup. There is no
module-level client: the API lifespan (and the CLI scripts) build one per
process with `create_supabase_client` and pass it to the repository
functions explicitly.
"""

from __future__ import annotations

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config.settings import Settings


def create_supabase_client(settings: Settings) -> Client:
    """Create the official Supabase Python client from settings."""

    return create_client(settings.supabase_url, settings.supabase_key)


def check_response(response: object, action: str) -> list:
    """
    Raise RuntimeError if a Supabase response carries an error; return its rows.
    """

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")

    data = getattr(response, "data", None)
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]


__all__ = ["Client", "check_response", "create_supabase_client"]
