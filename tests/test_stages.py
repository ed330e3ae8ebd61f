"""
Tests for stages/ — the four links of the resolution chain.

Covers:
  - clean_term(): quotes, trailing punctuation, whitespace
  - PrimaryIdentifier: prompt contract, cleaning, length validation, errors
  - FeatureAnalyzer: vocabulary mapping, empty analysis, errors
  - ReverseSearchResolver: publish → lookup, error wrapping, guess validation
  - FallbackSelector: time-derived pick, never fails
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from errors import EncodingError, InferenceError, SearchError, UploadError
from image_source import ImageHandle
from providers.base import InferenceProvider
from publishers.base import ImagePublisher
from search_backends.base import ReverseSearchBackend
from stages import fallback as fallback_mod
from stages import features as features_mod
from stages import primary as primary_mod
from stages.fallback import POPULAR_PRODUCTS, FallbackSelector
from stages.features import FeatureAnalyzer
from stages.primary import PrimaryIdentifier, clean_term
from stages.reverse import ReverseSearchResolver


def make_provider(completion=None, error: Exception | None = None) -> InferenceProvider:
    p = MagicMock(spec=InferenceProvider)
    p.full_name = "fake/model"
    if error is not None:
        p.complete = AsyncMock(side_effect=error)
    else:
        p.complete = AsyncMock(return_value=completion)
    return p


def make_publisher(url: str = "https://img.example.com/x.png", error: Exception | None = None):
    pub = MagicMock(spec=ImagePublisher)
    pub.name = "fake-publisher"
    pub.publish = AsyncMock(side_effect=error) if error else AsyncMock(return_value=url)
    return pub


def make_backend(guess: str = "laptop bag", error: Exception | None = None):
    backend = MagicMock(spec=ReverseSearchBackend)
    backend.name = "fake-backend"
    backend.lookup = AsyncMock(side_effect=error) if error else AsyncMock(return_value=guess)
    return backend


# ── clean_term ────────────────────────────────────────────────────────────────

class TestCleanTerm:
    def test_quotes_and_trailing_period(self):
        assert clean_term("  'Nike Running Shoes.'  ") == "Nike Running Shoes"

    def test_double_quotes_and_exclamation(self):
        assert clean_term('"wireless headphones!"') == "wireless headphones"

    def test_backticks(self):
        assert clean_term("`iPhone smartphone`") == "iPhone smartphone"

    def test_multiple_trailing_marks(self):
        assert clean_term("laptop computer?!.") == "laptop computer"

    def test_inner_apostrophe_kept(self):
        assert clean_term("Levi's denim jacket") == "Levi's denim jacket"

    def test_punctuation_then_whitespace(self):
        assert clean_term("'steel water bottle .'") == "steel water bottle"

    def test_only_quotes_becomes_empty(self):
        assert clean_term(" '' ") == ""


# ── PrimaryIdentifier ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestPrimaryIdentifier:
    async def test_returns_cleaned_term(self, png_file):
        stage = PrimaryIdentifier(make_provider("  'Nike Running Shoes.'  "))
        assert await stage.identify(str(png_file)) == "Nike Running Shoes"

    async def test_sends_primary_prompts(self, png_file):
        provider = make_provider("mug")
        await PrimaryIdentifier(provider).identify(str(png_file))

        messages = provider.complete.call_args.args[0]
        assert messages[0] == {"role": "system", "content": primary_mod.SYSTEM_PROMPT}
        assert messages[1]["content"][0] == {"type": "text", "text": primary_mod.USER_PROMPT}
        assert messages[1]["content"][1]["type"] == "image"
        assert "2-6 words" in primary_mod.SYSTEM_PROMPT

    async def test_empty_completion_rejected(self, png_file):
        stage = PrimaryIdentifier(make_provider("  '.'  "))
        with pytest.raises(InferenceError, match="invalid response"):
            await stage.identify(str(png_file))

    async def test_overlong_completion_rejected(self, png_file):
        stage = PrimaryIdentifier(make_provider("word " * 30))
        with pytest.raises(InferenceError, match="invalid response"):
            await stage.identify(str(png_file))

    async def test_99_chars_accepted(self, png_file):
        stage = PrimaryIdentifier(make_provider("a" * 99))
        assert len(await stage.identify(str(png_file))) == 99

    async def test_provider_error_propagates(self, png_file):
        stage = PrimaryIdentifier(make_provider(error=InferenceError("HTTP 500")))
        with pytest.raises(InferenceError):
            await stage.identify(str(png_file))

    async def test_unreadable_image_raises_encoding_error(self, tmp_path):
        provider = make_provider("mug")
        with pytest.raises(EncodingError):
            await PrimaryIdentifier(provider).identify(str(tmp_path / "missing.jpg"))
        provider.complete.assert_not_called()


# ── FeatureAnalyzer ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestFeatureAnalyzer:
    async def test_maps_analysis_to_vocabulary(self, png_file):
        stage = FeatureAnalyzer(make_provider(
            "Category: accessories. I see a black leather laptop bag with zipper."
        ))
        assert await stage.analyze_features(str(png_file)) == "laptop"

    async def test_sends_feature_prompts(self, png_file):
        provider = make_provider("a ceramic teapot")
        await FeatureAnalyzer(provider).analyze_features(str(png_file))
        messages = provider.complete.call_args.args[0]
        assert messages[0]["content"] == features_mod.SYSTEM_PROMPT
        assert messages[1]["content"][0]["text"] == features_mod.USER_PROMPT

    async def test_meaningful_word_when_no_category(self, png_file):
        stage = FeatureAnalyzer(make_provider("A ceramic teapot with floral print"))
        assert await stage.analyze_features(str(png_file)) == "ceramic"

    async def test_product_when_nothing_usable(self, png_file):
        stage = FeatureAnalyzer(make_provider("a red one"))
        assert await stage.analyze_features(str(png_file)) == "product"

    async def test_empty_analysis_raises(self, png_file):
        stage = FeatureAnalyzer(make_provider("   "))
        with pytest.raises(InferenceError, match="no analysis"):
            await stage.analyze_features(str(png_file))

    async def test_provider_error_propagates(self, png_file):
        stage = FeatureAnalyzer(make_provider(error=InferenceError("timeout")))
        with pytest.raises(InferenceError):
            await stage.analyze_features(str(png_file))


# ── ReverseSearchResolver ─────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestReverseSearchResolver:
    async def test_returns_lookup_value_unchanged(self, png_file):
        backend = make_backend("  Phone Case  ")
        stage = ReverseSearchResolver(make_publisher("https://img.example.com/X"), backend)

        assert await stage.reverse_search(str(png_file)) == "  Phone Case  "
        backend.lookup.assert_awaited_once_with("https://img.example.com/X")

    async def test_publisher_receives_image_handle(self, png_file):
        publisher = make_publisher()
        await ReverseSearchResolver(publisher, make_backend()).reverse_search(str(png_file))
        (image,) = publisher.publish.call_args.args
        assert isinstance(image, ImageHandle)
        assert image.ref == str(png_file)

    async def test_upload_error_propagates(self, png_file):
        backend = make_backend()
        stage = ReverseSearchResolver(make_publisher(error=UploadError("quota")), backend)
        with pytest.raises(UploadError, match="quota"):
            await stage.reverse_search(str(png_file))
        backend.lookup.assert_not_called()

    async def test_unexpected_publisher_error_wrapped(self, png_file):
        stage = ReverseSearchResolver(make_publisher(error=RuntimeError("disk full")), make_backend())
        with pytest.raises(UploadError, match="disk full"):
            await stage.reverse_search(str(png_file))

    async def test_unexpected_backend_error_wrapped(self, png_file):
        stage = ReverseSearchResolver(make_publisher(), make_backend(error=KeyError("data")))
        with pytest.raises(SearchError):
            await stage.reverse_search(str(png_file))

    async def test_empty_guess_rejected(self, png_file):
        stage = ReverseSearchResolver(make_publisher(), make_backend("  "))
        with pytest.raises(SearchError, match="unusable"):
            await stage.reverse_search(str(png_file))

    async def test_overlong_guess_rejected(self, png_file):
        stage = ReverseSearchResolver(make_publisher(), make_backend("x" * 100))
        with pytest.raises(SearchError):
            await stage.reverse_search(str(png_file))


# ── FallbackSelector ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestFallbackSelector:
    async def test_index_from_epoch_milliseconds(self):
        stage = FallbackSelector(clock=lambda: 1000.125)   # 1000125 ms
        assert await stage.fallback("/does/not/matter.jpg") == POPULAR_PRODUCTS[5] == "bag"

    async def test_every_pick_is_popular(self):
        for ms in range(len(POPULAR_PRODUCTS) * 2):
            stage = FallbackSelector(clock=lambda ms=ms: ms / 1000)
            assert await stage.fallback("x.jpg") in POPULAR_PRODUCTS

    async def test_deterministic_for_same_clock(self):
        stage = FallbackSelector(clock=lambda: 42.0)
        assert await stage.fallback("a.jpg") == await stage.fallback("b.jpg")

    async def test_empty_or_missing_handle_still_returns_term(self):
        stage = FallbackSelector(clock=lambda: 0.0)
        assert await stage.fallback("") == "smartphone"
        assert await stage.fallback(None) == "smartphone"

    async def test_not_timed(self):
        assert FallbackSelector.timed is False
        assert fallback_mod.POPULAR_PRODUCTS[0] == "smartphone"
