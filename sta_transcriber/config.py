"""Configuration constants, service endpoints, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Endpoints, deadlines, polling budget, and
supported file formats are plain data — not buried in logic — so the
client, poller, and CLI all agree on them.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level values, overridable via environment variables. The
load_credentials() function provides a clear error when sign-in data
is missing.

RULES:
- Per-call deadlines: 90s wake, 120s upload, 30s per poll
- Polling: one attempt every 3s, at most 300 attempts (~15 minutes)
- Text pages hold at most 350 whitespace-delimited tokens
- Credentials are loaded from .env, never hardcoded
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            "Invalid value for {}: {!r} (expected a number)".format(name, raw)
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "Invalid value for {}: {!r} (expected an integer)".format(name, raw)
        )


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------

TRANSCRIBE_API_URL = os.getenv(
    "TRANSCRIBE_API_URL", "https://api-transcription-assemblyai.onrender.com"
)
AUTH_API_URL = os.getenv(
    "AUTH_API_URL", "https://login-transcriptor.onrender.com/api/auth"
)

# ---------------------------------------------------------------------------
# Deadlines and polling budget
# ---------------------------------------------------------------------------

WAKE_TIMEOUT_S = _env_float("WAKE_TIMEOUT_S", 90.0)
UPLOAD_TIMEOUT_S = _env_float("UPLOAD_TIMEOUT_S", 120.0)
POLL_TIMEOUT_S = _env_float("POLL_TIMEOUT_S", 30.0)
POLL_INTERVAL_S = _env_float("POLL_INTERVAL_S", 3.0)
MAX_POLL_ATTEMPTS = _env_int("MAX_POLL_ATTEMPTS", 300)

# Progress never reaches 100 until the service reports completion.
PROGRESS_CEILING = 95.0

# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

WORDS_PER_PAGE = 350
"""Roughly what fits on one A4 page of 11pt body text."""

SUBTITLE_SLOT_S = 3
"""Synthesized duration of each subtitle cue, in seconds."""

# ---------------------------------------------------------------------------
# Supported audio file extensions
# ---------------------------------------------------------------------------

SUPPORTED_AUDIO_FORMATS: set[str] = {
    ".mp3", ".wav", ".m4a", ".flac", ".ogg", ".webm",
}
"""Audio file extensions accepted by the service (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# Document renderer branding (optional)
# ---------------------------------------------------------------------------

PDF_LOGO_PATH = os.getenv("PDF_LOGO_PATH", "").strip() or None
PDF_CREDITS: list[str] = [
    name.strip() for name in os.getenv("PDF_CREDITS", "").split(",") if name.strip()
]


def load_credentials() -> tuple[str, str]:
    """Load the sign-in email and password from the environment.

    WHY: The --login flow needs credentials for the auth service. Loading
    them from the environment (via .env) keeps them out of shell history.

    HOW: Reads TRANSCRIBE_EMAIL and TRANSCRIBE_PASSWORD from os.environ
    (populated by python-dotenv).

    RULES:
    - Raises ValueError if either value is missing or empty
    - Never returns a default/placeholder value
    """
    email = os.getenv("TRANSCRIBE_EMAIL", "").strip()
    password = os.getenv("TRANSCRIBE_PASSWORD", "")
    if not email or not password:
        raise ValueError(
            "Sign-in credentials not configured. "
            "Add TRANSCRIBE_EMAIL and TRANSCRIBE_PASSWORD to the .env file."
        )
    return email, password
