"""Blob storage for uploaded documents, plus image previews.

Files are stored per tenant: {base_dir}/{tenant_id}/{timestamp}-{random}.{ext}
"""

from __future__ import annotations

import asyncio
import io
import secrets
import time
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from horeca.config import get_settings

_settings = get_settings()
_PREVIEW_SIZE = _settings.storage.preview_size


def _base() -> Path:
    return Path(get_settings().storage.base_dir)


def make_storage_key(tenant_id: str, filename: str) -> str:
    ext = Path(filename).suffix.lower().lstrip(".")
    key = f"{tenant_id}/{int(time.time() * 1000)}-{secrets.token_hex(6)}"
    return f"{key}.{ext}" if ext else key


def _resolve(storage_key: str) -> Path:
    base = _base().resolve()
    path = (base / storage_key).resolve()
    if base not in path.parents:
        raise ValueError(f"Storage key escapes base dir: {storage_key}")
    return path


def _write_sync(storage_key: str, data: bytes) -> None:
    path = _resolve(storage_key)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def _read_sync(storage_key: str) -> bytes:
    path = _resolve(storage_key)
    if not path.exists():
        raise FileNotFoundError(f"Blob not found: {storage_key}")
    return path.read_bytes()


def _delete_sync(storage_key: str) -> None:
    _resolve(storage_key).unlink(missing_ok=True)


async def save_blob(storage_key: str, data: bytes) -> None:
    await asyncio.to_thread(_write_sync, storage_key, data)


async def read_blob(storage_key: str) -> bytes:
    return await asyncio.to_thread(_read_sync, storage_key)


async def delete_blob(storage_key: str) -> None:
    await asyncio.to_thread(_delete_sync, storage_key)


class InvalidImageError(ValueError):
    pass


def _verify_sync(data: bytes) -> None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidImageError(str(e)) from e


async def verify_image(data: bytes) -> None:
    """Raise InvalidImageError unless Pillow can decode the bytes."""
    await asyncio.to_thread(_verify_sync, data)


def _thumbnail_sync(data: bytes, size: tuple[int, int]) -> bytes:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(str(e)) from e
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    img.thumbnail(size)
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=85)
    return buf.getvalue()


async def make_preview(data: bytes, size: tuple[int, int] | None = None) -> bytes:
    """Downscaled JPEG preview of an image."""
    return await asyncio.to_thread(_thumbnail_sync, data, tuple(size or _PREVIEW_SIZE))
