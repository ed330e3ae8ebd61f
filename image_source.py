"""
image_source.py — turns an image handle into bytes the pipeline can send.

A handle is whatever the caller's picker produced:
  • native runtime: a filesystem path or a file:// URI
  • web runtime:    an http(s):// URL or a data: URI (blob → data URL)

encode()   → EncodedImage (base64 + media type), raises EncodingError
validate() → bool, never raises
metadata() → {"size": n} or {}, never raises
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote_to_bytes, urlparse
from urllib.request import url2pathname

import aiohttp

import config
from errors import EncodingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedImage:
    """Text-safe image payload for remote calls. Lives for one resolve() call."""
    data: str           # base64, no data: prefix
    media_type: str     # image/jpeg | image/png | image/gif | image/webp

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


def detect_media_type(image_bytes: bytes) -> str:
    """Sniff the media type from magic numbers (default jpeg)."""
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"GIF8":
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


class ImageHandle:
    """
    Opaque reference to image bytes at rest.

    The encoding is computed lazily and memoised on the instance, so every
    stage of one resolve() call shares a single read. image_search creates a
    fresh ImageHandle per call — nothing is cached across calls.
    """

    def __init__(self, ref: str):
        if not isinstance(ref, str) or not ref.strip():
            raise ValueError("image handle must be a non-empty string")
        self.ref = ref.strip()
        self._encoded: Optional[EncodedImage] = None
        self._lock = asyncio.Lock()

    @classmethod
    def of(cls, handle: HandleLike) -> "ImageHandle":
        if isinstance(handle, ImageHandle):
            return handle
        return cls(str(handle))

    @property
    def kind(self) -> str:
        """'http', 'data' or 'file'."""
        scheme = urlparse(self.ref).scheme.lower()
        if scheme in ("http", "https"):
            return "http"
        if scheme == "data":
            return "data"
        return "file"

    @property
    def path(self) -> Path:
        """Filesystem path for native handles (plain path or file:// URI)."""
        parsed = urlparse(self.ref)
        if parsed.scheme.lower() == "file":
            return Path(url2pathname(parsed.path))
        return Path(self.ref)

    async def encode(self) -> EncodedImage:
        async with self._lock:
            if self._encoded is None:
                self._encoded = await encode(self.ref)
            return self._encoded

    def __repr__(self) -> str:
        shown = self.ref if len(self.ref) <= 60 else self.ref[:57] + "..."
        return f"ImageHandle({shown!r})"


HandleLike = Union[str, Path, ImageHandle]


# ── encode ────────────────────────────────────────────────────────────────────

async def encode(handle: HandleLike) -> EncodedImage:
    """Read the image behind `handle` and return it base64-encoded."""
    image = ImageHandle.of(handle)
    if image.kind == "http":
        raw = await _download(image.ref)
    elif image.kind == "data":
        raw = _decode_data_uri(image.ref)
    else:
        try:
            raw = await asyncio.to_thread(image.path.read_bytes)
        except OSError as exc:
            logger.error("Error reading image file %s: %s", image.path, exc)
            raise EncodingError(f"Failed to read image file: {exc}") from exc

    if not raw:
        raise EncodingError("Image is empty")
    return EncodedImage(
        data=base64.b64encode(raw).decode(),
        media_type=detect_media_type(raw),
    )


async def _download(url: str) -> bytes:
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS),
            ) as resp:
                if resp.status != 200:
                    raise EncodingError(f"Image download failed with HTTP {resp.status}")
                return await resp.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.error("Error downloading image %s: %s", url[:80], exc)
        raise EncodingError(f"Failed to download image: {exc}") from exc


def _decode_data_uri(uri: str) -> bytes:
    """Decode `data:[<media type>][;base64],<payload>`."""
    header, sep, payload = uri.partition(",")
    if not sep:
        raise EncodingError("Malformed data URI")
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EncodingError(f"Malformed base64 payload: {exc}") from exc
    return unquote_to_bytes(payload)


# ── validate / metadata ───────────────────────────────────────────────────────

async def validate(handle: HandleLike) -> bool:
    """
    True if the image can be reached: HEAD probe for web URLs, payload decode
    for data URIs, existence check for local files.
    """
    try:
        image = ImageHandle.of(handle)
        if image.kind == "http":
            status, _ = await _head(image.ref)
            return 200 <= status < 300
        if image.kind == "data":
            return bool(_decode_data_uri(image.ref))
        return await asyncio.to_thread(image.path.is_file)
    except Exception as exc:
        logger.error("Error validating image %r: %s", handle, exc)
        return False


async def metadata(handle: HandleLike) -> dict:
    """Best-effort {"size": bytes}; {} when unknown. Never raises."""
    try:
        image = ImageHandle.of(handle)
        if image.kind == "http":
            status, length = await _head(image.ref)
            if 200 <= status < 300 and length is not None:
                return {"size": length}
            return {}
        if image.kind == "data":
            return {"size": len(_decode_data_uri(image.ref))}
        stat = await asyncio.to_thread(image.path.stat)
        return {"size": stat.st_size}
    except Exception as exc:
        logger.error("Error getting image metadata for %r: %s", handle, exc)
        return {}


async def _head(url: str) -> tuple[int, Optional[int]]:
    """Return (status, content_length) for a HEAD request."""
    async with aiohttp.ClientSession() as session:
        async with session.head(
            url,
            allow_redirects=True,
            timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS),
        ) as resp:
            return resp.status, resp.content_length
