"""
Shared pytest fixtures.

Every test runs with the simulated latencies switched off and the cached
provider / pipeline cleared, so tests are fast and isolated from each other.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 24


@pytest.fixture(autouse=True)
def fast_config(monkeypatch):
    """Default backends, no simulated sleeps, fresh provider + pipeline per test."""
    import config
    import image_search
    import providers.manager as manager_mod

    monkeypatch.setattr(config, "INFERENCE_BACKEND", "toolkit")
    monkeypatch.setattr(config, "IMAGE_PUBLISHER", "placeholder")
    monkeypatch.setattr(config, "REVERSE_SEARCH_BACKEND", "simulated")
    monkeypatch.setattr(config, "PUBLISH_DELAY_SECONDS", 0.0)
    monkeypatch.setattr(config, "REVERSE_SEARCH_DELAY_SECONDS", 0.0)
    monkeypatch.setattr(manager_mod, "_provider", None)
    monkeypatch.setattr(image_search, "_pipeline", None)
    yield


@pytest.fixture
def png_file(tmp_path) -> Path:
    path = tmp_path / "product.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture
def jpeg_file(tmp_path) -> Path:
    path = tmp_path / "product.jpg"
    path.write_bytes(JPEG_BYTES)
    return path


def mock_response(status: int = 200, *, text: str = "", json_data=None,
                  body: bytes = b"", content_length=None):
    """aiohttp response usable as `async with session.get(...) as resp`."""
    from unittest.mock import AsyncMock, MagicMock

    resp = MagicMock()
    resp.status = status
    resp.content_length = content_length
    resp.text = AsyncMock(return_value=text)
    resp.read = AsyncMock(return_value=body)
    resp.json = AsyncMock(return_value=json_data)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


def mock_session(**methods):
    """aiohttp.ClientSession replacement; methods map name → response or exception."""
    from unittest.mock import AsyncMock, MagicMock

    session = MagicMock()
    for name, result in methods.items():
        if isinstance(result, BaseException):
            setattr(session, name, MagicMock(side_effect=result))
        else:
            setattr(session, name, MagicMock(return_value=result))
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return session
