"""
Provider Manager — builds the inference provider selected in config.

  INFERENCE_BACKEND=toolkit  → ToolkitProvider(INFERENCE_API_URL)      (default)
  INFERENCE_BACKEND=openai   → OpenAIProvider(OPENAI_API_KEY, OPENAI_MODEL,
                                              base_url=OPENAI_BASE_URL)

The provider holds no per-request state, so one instance is shared by every
stage and every concurrent resolve() call.
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from providers.base import InferenceProvider

logger = logging.getLogger(__name__)

# Module-level cache — reset to None to pick up config changes
_provider: Optional[InferenceProvider] = None


def build_provider() -> InferenceProvider:
    mode = config.INFERENCE_BACKEND.strip().lower()

    if mode == "toolkit":
        from providers.toolkit_provider import ToolkitProvider
        provider = ToolkitProvider(config.INFERENCE_API_URL)
    elif mode == "openai":
        if not config.OPENAI_API_KEY:
            raise RuntimeError(
                "INFERENCE_BACKEND=openai but OPENAI_API_KEY is not set.\n"
                "Add it to your .env file."
            )
        from providers.openai_provider import OpenAIProvider
        provider = OpenAIProvider(
            config.OPENAI_API_KEY,
            config.OPENAI_MODEL,
            base_url=config.OPENAI_BASE_URL,
        )
    else:
        raise RuntimeError(
            f"Unknown INFERENCE_BACKEND '{config.INFERENCE_BACKEND}'. "
            "Use 'toolkit' or 'openai'."
        )

    logger.info("Loaded inference provider: %s", provider.full_name)
    return provider


def get_provider() -> InferenceProvider:
    global _provider
    if _provider is None:
        _provider = build_provider()
    return _provider
