"""
Abstract base for a resolution stage.

A stage turns an image into one SearchTerm or raises. The orchestrator runs
stages in order and stops at the first one that returns a non-empty term;
anything a stage raises only advances the chain.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from image_source import ImageHandle

MAX_TERM_LENGTH = 100   # SearchTerm must be shorter than this


class ResolverStage(ABC):
    """All stages must implement this interface."""

    name: str
    status: str         # progress message shown while the stage runs
    # True → the orchestrator bounds attempt() with STAGE_TIMEOUT_SECONDS
    timed: bool = True

    @abstractmethod
    async def attempt(self, image: ImageHandle) -> str:
        """Return a SearchTerm for `image` or raise."""
        ...

    def describe(self) -> Optional[str]:
        """Extra detail for logs, e.g. the collaborators a stage uses."""
        return None

    def __repr__(self) -> str:
        detail = self.describe()
        return f"{self.name}({detail})" if detail else self.name
