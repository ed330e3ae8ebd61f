"""
OpenAI-compatible inference provider — gpt-4o-mini by default.

Works against any chat completions API that speaks the OpenAI protocol
(OpenAI itself, Groq via https://api.groq.com/openai/v1, OpenRouter, …);
set OPENAI_BASE_URL to point elsewhere.

The shared message shape uses {"type": "image", "image": <base64>}; the
chat completions API wants an image_url part with a data URL instead.
"""
from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Optional

import openai
from openai import AsyncOpenAI

from errors import InferenceError
from image_source import detect_media_type
from providers.base import InferenceProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(InferenceProvider):

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
    ):
        self.name = "openai"
        self.model_id = model
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def complete(self, messages: list[dict]) -> str:
        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                max_tokens=256,
                temperature=0,
                messages=[self._to_chat_message(m) for m in messages],
            )
        except openai.OpenAIError as exc:
            raise InferenceError(f"[{self.full_name}] request failed: {exc}") from exc

        if not response.choices:
            raise InferenceError(f"[{self.full_name}] response has no choices")
        content = response.choices[0].message.content
        if not isinstance(content, str):
            raise InferenceError(f"[{self.full_name}] response has no completion text")

        logger.debug(
            "[%s] completion in %dms: %s",
            self.full_name, int((time.monotonic() - t0) * 1000), content[:120],
        )
        return content

    def _to_chat_message(self, message: dict) -> dict:
        content = message["content"]
        if isinstance(content, str):
            return {"role": message["role"], "content": content}

        parts = []
        for part in content:
            if part.get("type") == "image":
                parts.append({
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{_sniff_media_type(part['image'])};base64,{part['image']}",
                        "detail": "low",
                    },
                })
            else:
                parts.append(part)
        return {"role": message["role"], "content": parts}


def _sniff_media_type(b64: str) -> str:
    # 16 base64 chars → 12 bytes, enough for every magic number we check
    try:
        return detect_media_type(base64.b64decode(b64[:16]))
    except (binascii.Error, ValueError):
        return "image/jpeg"
