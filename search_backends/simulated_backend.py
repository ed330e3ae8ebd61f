"""
Simulated reverse-search backend.

Stands in for Google Lens / Vision until a real provider is wired in: waits
a little to mimic the network, then draws a random category and a random
product noun from PRODUCT_TAXONOMY. Pass a seeded random.Random for
reproducible draws.
"""
from __future__ import annotations

import asyncio
import logging
import random
from types import MappingProxyType
from typing import Optional

from search_backends.base import ReverseSearchBackend

logger = logging.getLogger(__name__)

PRODUCT_TAXONOMY = MappingProxyType({
    "electronics": ("smartphone", "laptop", "tablet", "headphones", "speaker", "camera", "smartwatch"),
    "accessories": ("phone case", "laptop bag", "wireless mouse", "keyboard", "charger", "cable"),
    "fashion":     ("shoes", "bag", "watch", "sunglasses", "wallet", "belt"),
    "home":        ("bottle", "mug", "lamp", "cushion", "clock"),
})


class SimulatedReverseSearchBackend(ReverseSearchBackend):

    def __init__(self, rng: Optional[random.Random] = None, delay: float = 1.5) -> None:
        self._rng = rng or random.Random()
        self._delay = delay

    @property
    def name(self) -> str:
        return "simulated"

    async def lookup(self, image_url: str) -> str:
        logger.info("Attempting reverse image search: %s", image_url)
        if self._delay > 0:
            await asyncio.sleep(self._delay)

        category = self._rng.choice(list(PRODUCT_TAXONOMY))
        product = self._rng.choice(PRODUCT_TAXONOMY[category])
        logger.info("Reverse search result: %s (%s)", product, category)
        return product
