"""
errors.py — exception taxonomy for the image → search-term pipeline.

  InvalidImageError  — precondition failure, the only error resolve() raises
  EncodingError      — image bytes could not be read / encoded      (stage-local)
  InferenceError     — inference call failed or returned junk       (stage-local)
  UploadError        — image could not be published to a URL        (stage-local)
  SearchError        — reverse search produced no usable guess      (stage-local)

Stage-local errors are caught by the orchestrator and only advance the chain.
"""
from __future__ import annotations


class ImageSearchError(Exception):
    """Base class for every error raised by this package."""


class InvalidImageError(ImageSearchError):
    """The image handle is missing or unreachable. Fatal to the call."""

    def __init__(self, handle: str):
        self.handle = handle
        super().__init__(
            "Unable to read the image. Please try again with a clearer photo, "
            "a different angle, or search manually."
        )


class EncodingError(ImageSearchError):
    """The image could not be read into a text-safe encoding."""


class InferenceError(ImageSearchError):
    """Network failure, non-JSON body, or an invalid completion."""


class UploadError(ImageSearchError):
    """The image publisher could not produce a public URL."""


class SearchError(ImageSearchError):
    """The reverse search backend could not produce a product guess."""
