"""
Central configuration — reads from .env file.

Every setting is a plain module attribute so tests can monkeypatch it and the
rest of the bot always reads config.X at call time.
"""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _flag(env_key: str, default: str = "true") -> bool:
    return os.getenv(env_key, default).strip().lower() not in ("false", "0", "no")


def _optional_float(env_key: str) -> Optional[float]:
    raw = os.getenv(env_key, "").strip()
    return float(raw) if raw else None


# ── Telegram ──────────────────────────────────────────────────────────────────
# Only required when the bot is actually started (main.py checks it).
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Recognition backends ──────────────────────────────────────────────────────
# Keys are optional; a signal whose backend has no key is simply not built.
OPENAI_API_KEY: str | None    = os.getenv("OPENAI_API_KEY") or None
ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY") or None

OPENAI_VISION_MODEL: str    = os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")
ANTHROPIC_VISION_MODEL: str = os.getenv("ANTHROPIC_VISION_MODEL", "claude-3-haiku-20240307")

# Text signal backend:
#   tesseract → local OCR via pytesseract (default, no API key needed)
#   openai    → OpenAI vision model
#   anthropic → Claude vision model
TEXT_BACKEND: str = os.getenv("TEXT_BACKEND", "tesseract").strip().lower()

# Object + scene signal backend: openai | anthropic
LABEL_BACKEND: str = os.getenv("LABEL_BACKEND", "openai").strip().lower()

# Per-signal toggles ENABLE_TEXT_SIGNAL / ENABLE_OBJECT_SIGNAL / ENABLE_SCENE_SIGNAL
# are read by recognizers/manager.py at build time.

# ── Inference pipeline ────────────────────────────────────────────────────────
# How many terms make up the search phrase (k of the term selector)
SEARCH_TERM_CUTOFF: int = int(os.getenv("SEARCH_TERM_CUTOFF", "3"))
# k for the longer "Also matched" list shown under the search phrase
SUGGESTION_CUTOFF: int  = int(os.getenv("SUGGESTION_CUTOFF", "5"))
INFER_CATEGORY: bool    = _flag("INFER_CATEGORY")

# Per-signal timeout in seconds. Empty → wait for every signal without limit.
SIGNAL_TIMEOUT_SECS: Optional[float] = _optional_float("SIGNAL_TIMEOUT_SECS")

# Contrast / sharpen / exposure pass before recognition
PREPROCESS_IMAGES: bool = _flag("PREPROCESS_IMAGES")

# Optional JSON taxonomy file; empty → built-in table in inference/taxonomy.py
TAXONOMY_PATH: str | None = os.getenv("TAXONOMY_PATH", "").strip() or None

# ── Storage ───────────────────────────────────────────────────────────────────
DATA_DIR: str = os.getenv("DATA_DIR", "data")

# ── Bot behaviour ─────────────────────────────────────────────────────────────
RATE_MAX_REQUESTS: int = int(os.getenv("RATE_MAX_REQUESTS", "5"))
RATE_WINDOW_SECS: int  = int(os.getenv("RATE_WINDOW_SECS", "60"))

# Show which signals fired in the identification card (useful during development)
SHOW_SIGNAL_INFO: bool = _flag("SHOW_SIGNAL_INFO", "false")
