import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from supabase import create_client

from finance_tracker.core.config import get_settings

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(RuntimeError):
    """Raised when the object store rejects an upload."""


@dataclass(frozen=True)
class StoredObject:
    file_name: str
    key: str
    url: str


def safe_file_name(filename: Optional[str]) -> str:
    name = Path(filename or "").name
    name = _UNSAFE_NAME_CHARS.sub("_", name).strip("._")
    return name or "receipt"


def build_receipt_key(user_id: str, filename: Optional[str], *, timestamp_ms: Optional[int] = None) -> tuple[str, str]:
    """Return ``(file_name, key)`` where key is ``{user_id}/{timestamp}-{name}``."""
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    file_name = f"{stamp}-{safe_file_name(filename)}"
    return file_name, f"{user_id}/{file_name}"


def get_storage_client():
    settings = get_settings()
    key = settings.supabase_service_role_key or settings.supabase_key
    if not settings.supabase_url or not key:
        raise StorageError("Supabase storage credentials are not configured")
    return create_client(settings.supabase_url, key)


def build_object_url(bucket: str, path: str) -> str:
    settings = get_settings()
    return f"{settings.supabase_url}/storage/v1/object/{bucket}/{path}"


def upload_receipt_file(
    *,
    user_id: str,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str],
) -> StoredObject:
    """Store receipt bytes in the receipts bucket.

    If the store is unavailable the object gets a relative ``/storage/...`` URL
    so the receipt row can still be recorded.
    """
    settings = get_settings()
    bucket = settings.receipt_storage_bucket
    file_name, key = build_receipt_key(user_id, filename)

    try:
        client = get_storage_client()
        options = {"content-type": content_type} if content_type else None
        result = client.storage.from_(bucket).upload(key, content, options)
        error = result.get("error") if isinstance(result, dict) else getattr(result, "error", None)
        if error:
            raise StorageError(str(error))
        url = build_object_url(bucket, key)
    except Exception as exc:
        logger.error("Receipt upload to storage failed: %s", exc, exc_info=True)
        url = f"/storage/{bucket}/{key}"

    return StoredObject(file_name=file_name, key=key, url=url)
