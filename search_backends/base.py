"""
Abstract base for all reverse-image-search backends.

A backend takes the public URL of an image and returns a single product
guess. Production deployments swap the simulated backend for a real visual
search provider — the reverse-search stage doesn't care which is active.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class ReverseSearchBackend(ABC):
    """All backends must implement this interface."""

    @abstractmethod
    async def lookup(self, image_url: str) -> str:
        """
        Return one product guess (a SearchTerm) for the image at `image_url`.
        Raises SearchError when nothing usable is found.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for logs/display."""
        ...
