"""Configuration constants, defaults, and .env loading.

WHY: Centralizes every configurable value (backend location, default
models, reasoning-filter policy, server binding) so operators can tune
the gateway through the environment without touching code.

HOW: python-dotenv loads the .env file on import. Constants are module
level values read with os.getenv. load_credentials() gives a clear error
when the backend credentials are missing.

RULES:
- Credentials are loaded from the environment, never hardcoded
- Boolean settings accept "true"/"false" (case-insensitive)
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the server is started from)
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


# ---------------------------------------------------------------------------
# Backend configuration
# ---------------------------------------------------------------------------

BACKEND_BASE_URL = os.getenv("BACKEND_BASE_URL", "https://api.cloudflare.com/client/v4")
BACKEND_TIMEOUT_S = float(os.getenv("BACKEND_TIMEOUT_S", "120"))

DEFAULT_CHAT_MODEL = os.getenv("DEFAULT_CHAT_MODEL", "@cf/meta/llama-3.1-8b-instruct")
DEFAULT_COMPLETION_MODEL = os.getenv(
    "DEFAULT_COMPLETION_MODEL", "@cf/mistral/mistral-7b-instruct-v0.1"
)
DEFAULT_TRANSCRIPTION_MODEL = os.getenv("DEFAULT_TRANSCRIPTION_MODEL", "@cf/openai/whisper")

# ---------------------------------------------------------------------------
# Reasoning preamble filter
# ---------------------------------------------------------------------------

REASONING_DELIMITER = os.getenv("REASONING_DELIMITER", "</think>")
"""Closing tag that ends a model's reasoning preamble."""

COMPLETION_STRIP_REASONING = _env_flag("COMPLETION_STRIP_REASONING", "true")
CHAT_STRIP_REASONING = _env_flag("CHAT_STRIP_REASONING", "false")

FLUSH_UNCLOSED_REASONING = _env_flag("FLUSH_UNCLOSED_REASONING", "true")
"""Release withheld text at stream end when the delimiter never appeared."""

# ---------------------------------------------------------------------------
# Output media types
# ---------------------------------------------------------------------------

SUBTITLE_MEDIA_TYPES: dict[str, str] = {
    "srt": "text/plain",
    "vtt": "text/vtt",
}

EVENT_STREAM_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def load_credentials() -> tuple[str, str]:
    """Load the backend account ID and API token from the environment.

    WHY: Every backend call is scoped to an account and authenticated with
    a bearer token. Loading both from the environment keeps them out of
    source code.

    RULES:
    - Raises ValueError if either value is missing or empty
    - Never returns a placeholder value
    """
    account_id = os.getenv("CF_ACCOUNT_ID", "").strip()
    api_token = os.getenv("CF_API_TOKEN", "").strip()
    if not account_id or not api_token:
        raise ValueError(
            "Backend credentials not configured. "
            "Add CF_ACCOUNT_ID and CF_API_TOKEN to the .env file."
        )
    return account_id, api_token
