"""
Supabase Storage access for downloadable product files.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlparse

from supabase import Client  # type: ignore[import-not-found]

# Signed download links are valid for one hour.
SIGNED_URL_TTL_SECONDS: int = 3600


def object_path_from_url(download_url: str) -> str:
    """
    Storage object path for a stored file URL.

    Uploads are stored as '<folder>/<file>', so the path is the last two
    segments of the URL path.
    """

    path = urlparse(download_url).path
    segments = [s for s in path.split("/") if s]
    if not segments:
        raise ValueError(f"No object path in download URL: {download_url!r}")
    return "/".join(segments[-2:])


def create_signed_url(
    client: Client,
    bucket: str,
    object_path: str,
    expires_in: int = SIGNED_URL_TTL_SECONDS,
) -> str:
    """
    Mint a time-limited signed URL for a stored object.

    Raises RuntimeError when Storage returns no URL.
    """

    result: Any = client.storage.from_(bucket).create_signed_url(object_path, expires_in)

    signed_url = None
    if isinstance(result, Mapping):
        # storage3 has used both spellings
        signed_url = result.get("signedURL") or result.get("signedUrl")

    if not signed_url:
        raise RuntimeError(f"Failed to sign storage object: {bucket}/{object_path}")
    return str(signed_url)


__all__ = ["SIGNED_URL_TTL_SECONDS", "create_signed_url", "object_path_from_url"]
