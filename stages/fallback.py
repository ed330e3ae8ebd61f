"""
Last-resort stage — always returns a popular product noun.

The pick is time-derived (epoch milliseconds modulo the list length), so the
caller is never left without a term even when fully offline.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from image_source import HandleLike, ImageHandle
from stages.base import ResolverStage

logger = logging.getLogger(__name__)

POPULAR_PRODUCTS = (
    "smartphone", "laptop", "headphones", "watch", "shoes",
    "bag", "camera", "tablet", "speaker", "charger",
)


class FallbackSelector(ResolverStage):
    name = "fallback"
    status = "🔄 Using smart fallback..."
    timed = False

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    async def fallback(self, handle: HandleLike) -> str:
        index = int(self._clock() * 1000) % len(POPULAR_PRODUCTS)
        term = POPULAR_PRODUCTS[index]
        logger.info("[%s] Using smart fallback for %r: %s", self.name, handle, term)
        return term

    async def attempt(self, image: ImageHandle) -> str:
        return await self.fallback(image)
