"""
Toolkit inference provider — a plain JSON multimodal completion endpoint.

Wire format:
  POST {INFERENCE_API_URL}
  {"messages": [...]}           → 2xx {"completion": "..."}

Any non-2xx status, network error, non-JSON body or missing "completion"
field is an InferenceError.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import aiohttp

from errors import InferenceError
from providers.base import InferenceProvider, parse_json_response

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://toolkit.rork.com/text/llm/"


class ToolkitProvider(InferenceProvider):

    def __init__(self, api_url: str = DEFAULT_API_URL, timeout: Optional[float] = None):
        self.name = "toolkit"
        self.model_id = "default"
        self._api_url = api_url
        # None → no transport timeout; the orchestrator bounds each stage anyway
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def complete(self, messages: list[dict]) -> str:
        t0 = time.monotonic()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._api_url,
                    json={"messages": messages},
                    headers={"Content-Type": "application/json"},
                    timeout=self._timeout,
                ) as resp:
                    body = await resp.text()
                    if not 200 <= resp.status < 300:
                        raise InferenceError(f"[{self.full_name}] HTTP {resp.status}: {body[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise InferenceError(f"[{self.full_name}] request failed: {exc}") from exc

        data = parse_json_response(body, self.full_name)
        completion = data.get("completion")
        if not isinstance(completion, str):
            raise InferenceError(f"[{self.full_name}] response has no completion field")

        logger.debug(
            "[%s] completion in %dms: %s",
            self.full_name, int((time.monotonic() - t0) * 1000), completion[:120],
        )
        return completion
