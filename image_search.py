"""
image_search.py — public interface for photo → search term resolution.

Callers import only from here:
  from image_search import resolve, validate, metadata, InvalidImageError

Strategy chain (each stage is tried only if the previous one failed):

  1. primary   — inference endpoint names the product directly
  2. features  — inference endpoint describes it, keywords.py picks a term
  3. reverse   — publish the image, ask a reverse-search backend
  4. fallback  — time-derived popular product noun, cannot fail

Stage failures and timeouts are logged and reported through the optional
on_status callback; they never reach the caller. With the default chain
resolve() raises only InvalidImageError, when the handle fails validate()
before any stage runs. A custom chain without a fallback stage can also
raise ImageSearchError once every stage has failed.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import random
from typing import Awaitable, Callable, Optional, Sequence, Union

import config
from errors import ImageSearchError, InvalidImageError
from image_source import HandleLike, ImageHandle, metadata, validate
from publishers.base import ImagePublisher
from search_backends.base import ReverseSearchBackend
from stages.base import MAX_TERM_LENGTH, ResolverStage
from stages.fallback import FallbackSelector
from stages.features import FeatureAnalyzer
from stages.primary import PrimaryIdentifier
from stages.reverse import ReverseSearchResolver

logger = logging.getLogger(__name__)

__all__ = [
    "ImageSearchPipeline",
    "InvalidImageError",
    "build_pipeline",
    "get_pipeline",
    "metadata",
    "pipeline_description",
    "resolve",
    "validate",
]

StatusCallback = Callable[[str], Union[None, Awaitable[None]]]

_pipeline: Optional["ImageSearchPipeline"] = None


class ImageSearchPipeline:
    """Ordered list of stages; the first non-empty term wins."""

    def __init__(
        self,
        stages: Sequence[ResolverStage],
        stage_timeout: Optional[float] = None,
    ) -> None:
        if not stages:
            raise ValueError("pipeline needs at least one stage")
        self.stages: tuple[ResolverStage, ...] = tuple(stages)
        self.stage_timeout = stage_timeout

    async def resolve(self, handle: HandleLike, on_status: Optional[StatusCallback] = None) -> str:
        """
        Resolve `handle` to one search term.

        Raises InvalidImageError if the image can't be reached. Otherwise
        always returns a non-empty term.
        """
        ref = handle.ref if isinstance(handle, ImageHandle) else str(handle or "").strip()
        if not ref:
            raise InvalidImageError(ref)

        await _report(on_status, "🔍 Analyzing image...")
        logger.info("Starting image-based product search: %.80s", ref)

        if not await validate(ref):
            await _report(on_status, "❌ Image search failed")
            raise InvalidImageError(ref)
        # metadata() costs another HEAD request for web handles
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Image metadata: %s", await metadata(ref))

        # Fresh handle per call: the encoding is shared by this call's stages only
        image = ImageHandle(ref)

        for stage in self.stages:
            await _report(on_status, stage.status)
            timeout = self.stage_timeout if stage.timed else None
            try:
                term = await self._run_stage(stage, image, timeout)
            except Exception as exc:
                # A TimeoutError raised by the stage itself is an ordinary failure
                if timeout and isinstance(exc, asyncio.TimeoutError):
                    logger.warning("❌ [%r] timed out after %ss", stage, timeout)
                    await _report(on_status, f"⏱️ {stage.name} step timed out, trying next method...")
                else:
                    logger.warning("❌ [%r] failed: %s", stage, exc)
                    await _report(on_status, f"⚠️ {stage.name} step failed, trying next method...")
                continue

            if term and term.strip() and len(term) < MAX_TERM_LENGTH:
                logger.info("✅ [%r] resolved search term: %s", stage, term)
                await _report(on_status, f"✅ Found: {term}")
                return term
            logger.warning("❌ [%r] returned an unusable term: %.120r", stage, term)

        raise ImageSearchError(
            "Unable to identify product in image. "
            "Please try with a clearer image or search manually."
        )

    async def _run_stage(self, stage: ResolverStage, image: ImageHandle,
                         timeout: Optional[float]) -> str:
        if timeout:
            return await asyncio.wait_for(stage.attempt(image), timeout=timeout)
        return await stage.attempt(image)

    def describe(self) -> str:
        return " → ".join(repr(s) for s in self.stages)


async def _report(on_status: Optional[StatusCallback], message: str) -> None:
    if on_status is None:
        return
    try:
        result = on_status(message)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        logger.warning("Status callback failed: %s", exc)


# ── Default pipeline from config ──────────────────────────────────────────────

def build_pipeline() -> ImageSearchPipeline:
    """
    Build the default chain from config.
    Raises RuntimeError on a misconfigured publisher/backend/provider.
    """
    from providers.manager import get_provider

    provider = get_provider()
    return ImageSearchPipeline(
        [
            PrimaryIdentifier(provider),
            FeatureAnalyzer(provider),
            ReverseSearchResolver(_build_publisher(), _build_reverse_backend()),
            FallbackSelector(),
        ],
        stage_timeout=config.STAGE_TIMEOUT_SECONDS,
    )


def _build_publisher() -> ImagePublisher:
    mode = config.IMAGE_PUBLISHER.strip().lower()

    if mode == "placeholder":
        from publishers.placeholder_publisher import PlaceholderPublisher
        return PlaceholderPublisher(delay=config.PUBLISH_DELAY_SECONDS)

    if mode == "imgbb":
        if not config.IMGBB_API_KEY:
            raise RuntimeError(
                "IMAGE_PUBLISHER=imgbb but IMGBB_API_KEY is not set.\n"
                "Get a free key at https://api.imgbb.com/ and add it to your .env file."
            )
        from publishers.imgbb_publisher import ImgBBPublisher
        return ImgBBPublisher(config.IMGBB_API_KEY, upload_url=config.IMGBB_UPLOAD_URL)

    raise RuntimeError(
        f"Unknown IMAGE_PUBLISHER '{config.IMAGE_PUBLISHER}'. Use 'placeholder' or 'imgbb'."
    )


def _build_reverse_backend() -> ReverseSearchBackend:
    mode = config.REVERSE_SEARCH_BACKEND.strip().lower()

    if mode == "simulated":
        from search_backends.simulated_backend import SimulatedReverseSearchBackend
        return SimulatedReverseSearchBackend(
            rng=random.Random(config.REVERSE_SEARCH_SEED),
            delay=config.REVERSE_SEARCH_DELAY_SECONDS,
        )

    if mode == "results_page":
        if not config.REVERSE_SEARCH_URL_TEMPLATE:
            raise RuntimeError(
                "REVERSE_SEARCH_BACKEND=results_page but REVERSE_SEARCH_URL_TEMPLATE is not set.\n"
                "Set it to a results page URL containing {image_url}."
            )
        from search_backends.results_page_backend import ResultsPageBackend
        return ResultsPageBackend(
            config.REVERSE_SEARCH_URL_TEMPLATE,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        )

    raise RuntimeError(
        f"Unknown REVERSE_SEARCH_BACKEND '{config.REVERSE_SEARCH_BACKEND}'. "
        "Use 'simulated' or 'results_page'."
    )


def get_pipeline() -> ImageSearchPipeline:
    """Return the default pipeline, building it once on first call."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
        logger.info("Image search pipeline: %s", _pipeline.describe())
    return _pipeline


def pipeline_description() -> str:
    try:
        return get_pipeline().describe()
    except Exception:
        return "not configured"


# ── Public functions ──────────────────────────────────────────────────────────

async def resolve(handle: HandleLike, on_status: Optional[StatusCallback] = None) -> str:
    """Resolve an image handle to a search term with the default pipeline."""
    return await get_pipeline().resolve(handle, on_status=on_status)
