"""
Shared request shape and base class for all inference providers.

Every stage talks to the endpoint with the same role-tagged message list:

  [
    {"role": "system", "content": "<task contract>"},
    {"role": "user",   "content": [
        {"type": "text",  "text":  "<instruction>"},
        {"type": "image", "image": "<base64 bytes>"},
    ]},
  ]

Providers translate that shape to their wire format and return the raw
completion text. Validation of the text belongs to the stage that asked.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod

from errors import InferenceError
from image_source import EncodedImage

logger = logging.getLogger(__name__)


def build_messages(system_prompt: str, user_text: str, image: EncodedImage) -> list[dict]:
    """Build the InferenceRequest sent verbatim to the endpoint."""
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": user_text},
                {"type": "image", "image": image.data},
            ],
        },
    ]


def parse_json_response(raw: str, provider_name: str) -> dict:
    """
    Parse a JSON response body, handling markdown fences gracefully.
    Raises InferenceError on parse failure or a non-object body.
    """
    text = raw.strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", provider_name, raw[:300])
        raise InferenceError(f"[{provider_name}] JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise InferenceError(f"[{provider_name}] expected a JSON object, got {type(data).__name__}")
    return data


# ── Abstract base ──────────────────────────────────────────────────────────────

class InferenceProvider(ABC):
    """Base class all inference providers must implement."""

    name: str           # e.g. "toolkit"
    model_id: str       # e.g. "default" or "gpt-4o-mini"

    @abstractmethod
    async def complete(self, messages: list[dict]) -> str:
        """
        Send one InferenceRequest and return the completion text.
        Raises InferenceError on any transport or protocol failure.
        """
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"
