"""
Secondary stage — descriptive analysis mapped onto the keyword vocabulary.

Asks the same endpoint for category, visual features and visible brand text,
then reduces the free text with keywords.extract_keywords(). Any noun-like
token beats failing the whole stage, so only an empty analysis is an error.
"""
from __future__ import annotations

import logging

from errors import InferenceError
from image_source import HandleLike, ImageHandle
from keywords import extract_keywords
from providers.base import InferenceProvider, build_messages
from stages.base import ResolverStage

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a computer vision expert. Analyze this product image and extract:
1. Product category (electronics, clothing, accessories, etc.)
2. Key visual features (color, shape, size indicators)
3. Brand logos or text if visible
4. Product type specifics

Provide a concise product identification suitable for e-commerce search."""

USER_PROMPT = "Analyze this product image and identify the item:"


class FeatureAnalyzer(ResolverStage):
    name = "features"
    status = "🔬 Analyzing image features..."

    def __init__(self, provider: InferenceProvider):
        self._provider = provider

    def describe(self) -> str:
        return self._provider.full_name

    async def analyze_features(self, handle: HandleLike) -> str:
        image = ImageHandle.of(handle)
        encoded = await image.encode()
        completion = await self._provider.complete(
            build_messages(SYSTEM_PROMPT, USER_PROMPT, encoded)
        )

        analysis = completion.strip()
        if not analysis:
            raise InferenceError("no analysis received")
        logger.debug("[%s] Image feature analysis: %s", self.name, analysis[:300])

        keyword = extract_keywords(analysis)
        logger.info("[%s] Extracted keyword: %s", self.name, keyword)
        return keyword

    async def attempt(self, image: ImageHandle) -> str:
        return await self.analyze_features(image)
