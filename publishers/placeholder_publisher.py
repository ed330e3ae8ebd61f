"""
Placeholder publisher — no real image host.

Synthesises a via.placeholder.com URL stamped with the current time and
simulates upload latency. Good enough for the simulated reverse-search
backend, which never looks at the image.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from image_source import ImageHandle
from publishers.base import ImagePublisher

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://via.placeholder.com/400x400.png?text=Product+Image+{stamp}"


class PlaceholderPublisher(ImagePublisher):

    def __init__(self, delay: float = 1.0, clock: Callable[[], float] = time.time) -> None:
        self._delay = delay
        self._clock = clock

    @property
    def name(self) -> str:
        return "placeholder"

    async def publish(self, image: ImageHandle) -> str:
        logger.info("Preparing image for reverse search: %r", image)
        url = PLACEHOLDER_URL.format(stamp=int(self._clock() * 1000))
        if self._delay > 0:
            await asyncio.sleep(self._delay)
        logger.info("Placeholder image URL created: %s", url)
        return url
