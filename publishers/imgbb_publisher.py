"""
ImgBB publisher — uploads the image to https://api.imgbb.com.

Get a free API key at https://api.imgbb.com/ and set IMAGE_PUBLISHER=imgbb
plus IMGBB_API_KEY.

  POST multipart: key=<api key>, image=<base64>
  → {"success": true, "data": {"url": "https://i.ibb.co/..."}}
  → {"success": false, "error": {"message": "..."}}
"""
from __future__ import annotations

import asyncio
import logging

import aiohttp

from errors import EncodingError, UploadError
from image_source import ImageHandle
from publishers.base import ImagePublisher

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.imgbb.com/1/upload"

_TIMEOUT = aiohttp.ClientTimeout(total=15)


class ImgBBPublisher(ImagePublisher):

    def __init__(self, api_key: str, upload_url: str = UPLOAD_URL) -> None:
        self._key = api_key
        self._upload_url = upload_url

    @property
    def name(self) -> str:
        return "ImgBB"

    async def publish(self, image: ImageHandle) -> str:
        try:
            encoded = await image.encode()
        except EncodingError as exc:
            raise UploadError(f"Cannot upload unreadable image: {exc}") from exc

        form = aiohttp.FormData()
        form.add_field("key", self._key)
        form.add_field("image", encoded.data)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self._upload_url, data=form, timeout=_TIMEOUT) as resp:
                    try:
                        result = await resp.json(content_type=None)
                    except ValueError as exc:
                        raise UploadError(f"ImgBB returned non-JSON (HTTP {resp.status})") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise UploadError(f"ImgBB upload failed: {exc}") from exc

        if not isinstance(result, dict) or not result.get("success"):
            error = (result or {}).get("error") if isinstance(result, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise UploadError(message or "Upload failed")

        url = (result.get("data") or {}).get("url")
        if not url:
            raise UploadError("ImgBB response has no image URL")
        logger.info("Image uploaded successfully: %s", url)
        return url
