"""
Private document storage for therapist verification uploads.

Files live under DOCUMENT_STORAGE_DIR keyed by storage-relative paths such as
`<user_id>/government_id_<name>`. They are never served directly: admins get
time-limited URLs signed with HMAC-SHA256 over `path:expires`.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import os
import re
import secrets
import time
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlencode

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"application/pdf", "image/jpeg", "image/jpg", "image/png"}
MAX_DOCUMENT_BYTES = 5 * 1024 * 1024
DEFAULT_STORAGE_DIR = "./storage/therapist-documents"
DEFAULT_URL_TTL_SECONDS = 3600

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")

# Process-local fallback so URLs still verify within one run when no secret is set
_EPHEMERAL_SECRET = secrets.token_hex(32)


class StorageError(RuntimeError):
    pass


class DocumentValidationError(ValueError):
    pass


def storage_root() -> Path:
    return Path(os.getenv("DOCUMENT_STORAGE_DIR", DEFAULT_STORAGE_DIR)).resolve()


def _url_secret() -> bytes:
    secret = os.getenv("DOCUMENT_URL_SECRET")
    if not secret:
        return _EPHEMERAL_SECRET.encode()
    return secret.encode()


def _url_ttl() -> int:
    try:
        return int(os.getenv("DOCUMENT_URL_TTL_SECONDS", str(DEFAULT_URL_TTL_SECONDS)))
    except ValueError:
        return DEFAULT_URL_TTL_SECONDS


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name or "document")


async def read_upload(upload) -> bytes:
    """Read at most one byte past the size limit so oversized files are never fully buffered."""
    return await upload.read(MAX_DOCUMENT_BYTES + 1)


def validate_document(content_type: Optional[str], data: bytes, label: str) -> None:
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise DocumentValidationError(f"{label} must be a PDF, JPEG, or PNG file")
    if len(data) > MAX_DOCUMENT_BYTES:
        raise DocumentValidationError(f"{label} must be smaller than 5MB")


def _resolve(relative_path: str) -> Path:
    root = storage_root()
    target = (root / relative_path).resolve()
    if root != target and root not in target.parents:
        raise StorageError("Invalid document path")
    return target


def save_document(relative_path: str, data: bytes) -> str:
    target = _resolve(relative_path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        logger.error("Failed to store document %s: %s", relative_path, exc)
        raise StorageError("Failed to store document") from exc
    return relative_path


def delete_document(relative_path: Optional[str]) -> None:
    if not relative_path:
        return
    try:
        _resolve(relative_path).unlink(missing_ok=True)
    except (OSError, StorageError) as exc:
        logger.warning("Could not remove old document %s: %s", relative_path, exc)


def read_document(relative_path: str) -> Path:
    target = _resolve(relative_path)
    if not target.is_file():
        raise FileNotFoundError(relative_path)
    return target


def _signature(relative_path: str, expires: int) -> str:
    message = f"{relative_path}:{expires}".encode()
    return hmac.new(_url_secret(), message, hashlib.sha256).hexdigest()


def signed_url(relative_path: Optional[str], *, now: Optional[float] = None) -> Optional[str]:
    if not relative_path:
        return None
    expires = int(now if now is not None else time.time()) + _url_ttl()
    query = urlencode({"expires": expires, "signature": _signature(relative_path, expires)})
    return f"/documents/{quote(relative_path)}?{query}"


def verify_signature(relative_path: str, expires: int, signature: str, *, now: Optional[float] = None) -> bool:
    current = now if now is not None else time.time()
    if expires < current:
        return False
    return hmac.compare_digest(_signature(relative_path, expires), signature or "")
