"""
Primary stage — ask the inference endpoint to name the product directly.

The system prompt pins the answer to 2–6 words of storefront search keywords.
The completion is cleaned (surrounding quotes, trailing punctuation) and
accepted only if 0 < len < 100.
"""
from __future__ import annotations

import logging

from errors import InferenceError
from image_source import HandleLike, ImageHandle
from providers.base import InferenceProvider, build_messages
from stages.base import MAX_TERM_LENGTH, ResolverStage

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert product identification AI specialized in e-commerce. \
Your task is to analyze product images and provide accurate, searchable product names and keywords.

Rules:
1. Identify the main product in the image
2. Provide specific product category and key features
3. Include brand name if visible
4. Use keywords that would work well on Flipkart, Amazon, and Snapdeal
5. Keep response concise (2-6 words max)
6. Focus on searchable terms, not descriptions

Examples:
- Image of iPhone → "iPhone smartphone"
- Image of Nike shoes → "Nike running shoes"
- Image of laptop → "laptop computer"
- Image of headphones → "wireless headphones"

Return ONLY the search keywords, nothing else."""

USER_PROMPT = "Identify this product and provide search keywords for e-commerce platforms:"

_QUOTES = "\"'`"
_TRAILING_PUNCTUATION = ".!?"


def clean_term(raw: str) -> str:
    """
    "  'Nike Running Shoes.'  " → "Nike Running Shoes".

    Strips whitespace and quote characters from both ends, then trailing
    sentence punctuation, until nothing more comes off.
    """
    term = raw
    while True:
        stripped = term.strip().strip(_QUOTES).rstrip(_TRAILING_PUNCTUATION)
        if stripped == term:
            return term
        term = stripped


class PrimaryIdentifier(ResolverStage):
    name = "primary"
    status = "🤖 AI analyzing product..."

    def __init__(self, provider: InferenceProvider):
        self._provider = provider

    def describe(self) -> str:
        return self._provider.full_name

    async def identify(self, handle: HandleLike) -> str:
        image = ImageHandle.of(handle)
        encoded = await image.encode()
        completion = await self._provider.complete(
            build_messages(SYSTEM_PROMPT, USER_PROMPT, encoded)
        )

        term = clean_term(completion)
        if not 0 < len(term) < MAX_TERM_LENGTH:
            logger.warning("[%s] Rejected completion: %r", self.name, completion[:120])
            raise InferenceError("invalid response")

        logger.info("[%s] AI identified product: %s", self.name, term)
        return term

    async def attempt(self, image: ImageHandle) -> str:
        return await self.identify(image)
