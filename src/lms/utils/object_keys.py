import re
import uuid
from typing import Optional

from lms.errors import StorageError


def safe_key(s: str) -> str:
    s = s.strip()
    s = re.sub(r"[^a-zA-Z0-9._/-]+", "_", s)
    s = re.sub(r"_+", "_", s)
    return s


def build_object_key(folder: str, filename: str) -> str:
    """`{folder}/{uuid}-{filename}` with whitespace and odd characters squashed"""
    name = safe_key(re.sub(r"\s+", "-", filename or "file")).replace("/", "_")
    return f"{safe_key(folder).strip('/')}/{uuid.uuid4().hex}-{name}"


def public_url(key: str, base_url: Optional[str] = None, endpoint: Optional[str] = None,
               bucket: Optional[str] = None) -> str:
    key = key.lstrip("/")
    if base_url:
        return f"{base_url.rstrip('/')}/{key}"
    if endpoint and bucket:
        return f"{endpoint.rstrip('/')}/{bucket}/{key}"
    raise StorageError("Missing STORAGE_PUBLIC_BASE_URL (or STORAGE_ENDPOINT + STORAGE_BUCKET)")
