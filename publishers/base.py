"""
Abstract base for image publishers.

A publisher makes the image reachable at a public URL so a reverse-search
backend can fetch it. Every publisher must return a URL or raise UploadError —
the reverse-search stage doesn't care which host is active.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from image_source import ImageHandle


class ImagePublisher(ABC):
    """All publishers must implement this interface."""

    @abstractmethod
    async def publish(self, image: ImageHandle) -> str:
        """Return a publicly reachable URL for `image`."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable publisher name for logs."""
        ...
