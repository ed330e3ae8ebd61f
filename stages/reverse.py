"""
Tertiary stage — publish the image, then ask a reverse-search backend.

  ImagePublisher.publish(image)  → public URL     (UploadError on failure)
  ReverseSearchBackend.lookup(url) → product guess (SearchError on failure)

The guess is returned unchanged; an empty or overlong guess is a SearchError.
"""
from __future__ import annotations

import logging

from errors import SearchError, UploadError
from image_source import HandleLike, ImageHandle
from publishers.base import ImagePublisher
from search_backends.base import ReverseSearchBackend
from stages.base import MAX_TERM_LENGTH, ResolverStage

logger = logging.getLogger(__name__)


class ReverseSearchResolver(ResolverStage):
    name = "reverse"
    status = "🌐 Running reverse image search..."

    def __init__(self, publisher: ImagePublisher, backend: ReverseSearchBackend):
        self._publisher = publisher
        self._backend = backend

    def describe(self) -> str:
        return f"{self._publisher.name} → {self._backend.name}"

    async def reverse_search(self, handle: HandleLike) -> str:
        image = ImageHandle.of(handle)

        try:
            url = await self._publisher.publish(image)
        except UploadError:
            raise
        except Exception as exc:
            raise UploadError(f"[{self._publisher.name}] {exc}") from exc

        try:
            guess = await self._backend.lookup(url)
        except SearchError:
            raise
        except Exception as exc:
            raise SearchError(f"[{self._backend.name}] {exc}") from exc

        if not isinstance(guess, str) or not guess.strip() or len(guess) >= MAX_TERM_LENGTH:
            raise SearchError(f"[{self._backend.name}] unusable guess: {guess!r}")
        return guess

    async def attempt(self, image: ImageHandle) -> str:
        return await self.reverse_search(image)
