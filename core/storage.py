# core/storage.py
"""
Core Storage Utilities.

Thin async wrappers around the Supabase Storage bucket configured in
``settings.STORAGE_BUCKET``. The synchronous client calls run in a worker
thread; every provider failure is re-raised as ``ProviderError`` carrying the
provider's own message so callers can show it verbatim.
"""
import asyncio
from typing import Any, Dict, List, Optional

from core.config import settings, logger as core_logger
from core.models import StoredObject
from core.supabase_client import get_supabase_client, ProviderError, provider_message

logger = core_logger.getChild("Storage")


async def _bucket():
    supabase = await get_supabase_client()
    return supabase.storage.from_(settings.STORAGE_BUCKET)


async def put_object(
    path: str,
    data: bytes,
    content_type: str,
    *,
    overwrite: bool = False,
    cache_control_seconds: Optional[int] = None,
) -> StoredObject:
    """Uploads ``data`` to ``path``. With overwrite=False the provider rejects an existing path."""
    if cache_control_seconds is None:
        cache_control_seconds = settings.UPLOAD_CACHE_CONTROL_SECONDS
    file_options = {
        "content-type": content_type,
        "cache-control": str(cache_control_seconds),
        "upsert": "true" if overwrite else "false",
    }
    logger.debug(f"Uploading {len(data)} bytes to '{path}' (overwrite={overwrite}).")
    bucket = await _bucket()

    def do_upload():
        return bucket.upload(path=path, file=data, file_options=file_options)

    try:
        await asyncio.to_thread(do_upload)
    except Exception as e:
        message = provider_message(e)
        logger.error(f"Upload to '{path}' failed: {message}")
        raise ProviderError("upload", message) from e

    logger.info(f"Stored '{path}' ({len(data)} bytes, {content_type}).")
    return StoredObject(path=path, size=len(data), content_type=content_type)


async def list_objects(prefix: str, filename_filter: Optional[str] = None) -> List[Dict[str, Any]]:
    """Lists entries directly under ``prefix``; ``filename_filter`` maps to the provider's search."""
    options = {"search": filename_filter} if filename_filter else None
    logger.debug(f"Listing objects under '{prefix}' (search={filename_filter!r}).")
    bucket = await _bucket()

    def do_list():
        return bucket.list(prefix, options) if options else bucket.list(prefix)

    try:
        entries = await asyncio.to_thread(do_list)
    except Exception as e:
        message = provider_message(e)
        logger.error(f"Listing '{prefix}' failed: {message}")
        raise ProviderError("list", message) from e

    entries = entries or []
    logger.info(f"Found {len(entries)} object(s) under '{prefix}'.")
    return entries


async def delete_object(path: str) -> None:
    logger.debug(f"Deleting object '{path}'.")
    bucket = await _bucket()

    def do_remove():
        return bucket.remove([path])

    try:
        await asyncio.to_thread(do_remove)
    except Exception as e:
        message = provider_message(e)
        logger.error(f"Deleting '{path}' failed: {message}")
        raise ProviderError("delete", message) from e
    logger.info(f"Deleted object '{path}'.")


def public_url(path: str) -> str:
    return f"{settings.public_base_url}/{path.lstrip('/')}"
