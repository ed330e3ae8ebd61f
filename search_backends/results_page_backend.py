"""
Results-page reverse-search backend.

Fetches a visual-search results page for the published image and mines it
for storefront product links:

  REVERSE_SEARCH_URL_TEMPLATE = "https://lens.example.com/upload?url={image_url}"

Product names come from the slug storefronts put in their URLs:

  amazon    /Sony-WH-1000XM4-Headphones/dp/B0863TXGM3   → "Sony WH 1000XM4 Headphones"
  flipkart  /apple-iphone-13-blue-128-gb/p/itm6c60...   → "apple iphone 13 blue 128 gb"
  snapdeal  /product/boat-rockerz-450-headphones/6384...→ "boat rockerz 450 headphones"

Myntra and Ajio links are collected but carry no usable slug pattern.
"""
from __future__ import annotations

import asyncio
import logging
import re
from urllib.parse import quote, urlparse

import aiohttp

from errors import SearchError
from keywords import FALLBACK_KEYWORD
from search_backends.base import ReverseSearchBackend

logger = logging.getLogger(__name__)

MAX_PRODUCT_URLS = 10

_PRODUCT_URL_PATTERNS = [
    re.compile(r"https?://(?:www\.)?amazon\.[a-z.]+/[^\s\"'<>]+", re.IGNORECASE),
    re.compile(r"https?://(?:www\.)?flipkart\.com/[^\s\"'<>]+", re.IGNORECASE),
    re.compile(r"https?://(?:www\.)?snapdeal\.com/[^\s\"'<>]+", re.IGNORECASE),
    re.compile(r"https?://(?:www\.)?myntra\.com/[^\s\"'<>]+", re.IGNORECASE),
    re.compile(r"https?://(?:www\.)?ajio\.com/[^\s\"'<>]+", re.IGNORECASE),
]

# (substring identifying the store, slug pattern)
_SLUG_PATTERNS = [
    ("amazon",   re.compile(r"/([^/]+)/dp/", re.IGNORECASE)),
    ("flipkart", re.compile(r"/([^/]+)/p/", re.IGNORECASE)),
    ("snapdeal", re.compile(r"/product/([^/]+)/", re.IGNORECASE)),
]

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9\s]")
_SPACES_RE = re.compile(r"\s+")


def extract_product_urls(html: str) -> list[str]:
    """Storefront product URLs in `html`, de-duplicated, at most 10."""
    urls: list[str] = []
    for pattern in _PRODUCT_URL_PATTERNS:
        urls.extend(pattern.findall(html))
    return list(dict.fromkeys(urls))[:MAX_PRODUCT_URLS]


def extract_product_name(url: str) -> str:
    """Product name from a storefront URL slug, or "product" if there is none."""
    parsed = urlparse(url)
    host = parsed.netloc.lower()
    name = ""
    for store, pattern in _SLUG_PATTERNS:
        if store in host:
            match = pattern.search(parsed.path)
            if match:
                name = match.group(1).replace("-", " ")
            break

    name = _SPACES_RE.sub(" ", _NON_ALNUM_RE.sub(" ", name)).strip()
    return name or FALLBACK_KEYWORD


class ResultsPageBackend(ReverseSearchBackend):

    def __init__(self, url_template: str, timeout: float = 10) -> None:
        if "{image_url}" not in url_template:
            raise ValueError("url_template must contain an {image_url} placeholder")
        self._template = url_template
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def name(self) -> str:
        return "results page"

    async def lookup(self, image_url: str) -> str:
        html = await self._fetch(self._template.format(image_url=quote(image_url, safe="")))

        candidates = extract_product_urls(html)
        logger.info("Results page listed %d product URLs", len(candidates))

        for url in candidates:
            name = extract_product_name(url)
            if name != FALLBACK_KEYWORD:
                logger.info("Reverse search result: %s", name)
                return name
        raise SearchError("No storefront product found on results page")

    async def _fetch(self, url: str) -> str:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, timeout=self._timeout) as resp:
                    if resp.status != 200:
                        raise SearchError(f"Results page returned HTTP {resp.status}")
                    return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise SearchError(f"Results page request failed: {exc}") from exc
