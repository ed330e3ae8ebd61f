"""
Central configuration — reads from .env file.

Every setting is a plain module attribute so tests can monkeypatch it and
image_search.build_pipeline() always sees the current value.
"""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_int(raw: Optional[str]) -> Optional[int]:
    raw = (raw or "").strip()
    return int(raw) if raw.lstrip("-").isdigit() else None


# ── Inference endpoint ────────────────────────────────────────────────────────
# toolkit → plain JSON endpoint: POST {messages: [...]} → {completion: "..."}
# openai  → any OpenAI-compatible chat completions API (OpenAI, Groq, OpenRouter…)
INFERENCE_BACKEND: str       = os.getenv("INFERENCE_BACKEND", "toolkit")
INFERENCE_API_URL: str       = os.getenv("INFERENCE_API_URL", "https://toolkit.rork.com/text/llm/")
OPENAI_API_KEY: str | None   = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL: str | None  = os.getenv("OPENAI_BASE_URL", "").strip() or None
OPENAI_MODEL: str            = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# ── Timeouts ──────────────────────────────────────────────────────────────────
# Each stage of the chain gets this long before it counts as failed.
STAGE_TIMEOUT_SECONDS: float = float(os.getenv("STAGE_TIMEOUT_SECONDS", "12"))
# validate / metadata probes and remote image downloads
HTTP_TIMEOUT_SECONDS: float  = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# ── Image publisher (reverse-search stage) ────────────────────────────────────
# placeholder → synthesised via.placeholder.com URL, no real upload (default)
# imgbb       → real upload to api.imgbb.com (needs IMGBB_API_KEY)
IMAGE_PUBLISHER: str         = os.getenv("IMAGE_PUBLISHER", "placeholder")
IMGBB_API_KEY: str | None    = os.getenv("IMGBB_API_KEY")
IMGBB_UPLOAD_URL: str        = os.getenv("IMGBB_UPLOAD_URL", "https://api.imgbb.com/1/upload")
PUBLISH_DELAY_SECONDS: float = float(os.getenv("PUBLISH_DELAY_SECONDS", "1.0"))

# ── Reverse search backend ────────────────────────────────────────────────────
# simulated    → random draw from a fixed product taxonomy (default)
# results_page → fetch REVERSE_SEARCH_URL_TEMPLATE and parse storefront links
REVERSE_SEARCH_BACKEND: str             = os.getenv("REVERSE_SEARCH_BACKEND", "simulated")
REVERSE_SEARCH_URL_TEMPLATE: str | None = os.getenv("REVERSE_SEARCH_URL_TEMPLATE", "").strip() or None
REVERSE_SEARCH_DELAY_SECONDS: float     = float(os.getenv("REVERSE_SEARCH_DELAY_SECONDS", "1.5"))
REVERSE_SEARCH_SEED: Optional[int]      = _optional_int(os.getenv("REVERSE_SEARCH_SEED"))
