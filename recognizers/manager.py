"""
Recognizer registry — builds one recognizer per enabled signal.

Backends:
  text           TEXT_BACKEND  = tesseract (default) | openai | anthropic
  object, scene  LABEL_BACKEND = openai (default) | anthropic

Per-signal enable/disable via environment variables (all default to true):
  ENABLE_TEXT_SIGNAL=true/false
  ENABLE_OBJECT_SIGNAL=true/false
  ENABLE_SCENE_SIGNAL=true/false

A signal whose backend has no API key is skipped with a log line; the
pipeline then simply runs with fewer signals.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import config
from recognizers.base import Recognizer, SourceKind

logger = logging.getLogger(__name__)

# Module-level cache, cleared by reset()
_recognizers: dict[SourceKind, Recognizer] = {}

_ENABLE_FLAGS = {
    SourceKind.TEXT:   "ENABLE_TEXT_SIGNAL",
    SourceKind.OBJECT: "ENABLE_OBJECT_SIGNAL",
    SourceKind.SCENE:  "ENABLE_SCENE_SIGNAL",
}


def _signal_enabled(env_key: str, default: bool = True) -> bool:
    """
    Check whether a signal is enabled via an environment variable.
    Default is True; pass default=False to require explicit opt-in.
    """
    raw = os.getenv(env_key, "true" if default else "false")
    return raw.strip().lower() not in ("false", "0", "no")


def _make_llm(backend: str, kind: SourceKind) -> Optional[Recognizer]:
    if backend == "openai":
        if not config.OPENAI_API_KEY:
            logger.info("Skipped %s signal: OPENAI_API_KEY not set", kind.value)
            return None
        from recognizers.openai_recognizer import OpenAIRecognizer
        return OpenAIRecognizer(config.OPENAI_API_KEY, kind, config.OPENAI_VISION_MODEL)

    if backend == "anthropic":
        if not config.ANTHROPIC_API_KEY:
            logger.info("Skipped %s signal: ANTHROPIC_API_KEY not set", kind.value)
            return None
        from recognizers.anthropic_recognizer import AnthropicRecognizer
        return AnthropicRecognizer(config.ANTHROPIC_API_KEY, kind, config.ANTHROPIC_VISION_MODEL)

    raise ValueError(f"Unknown recognition backend '{backend}' for {kind.value} signal")


def _make(kind: SourceKind) -> Optional[Recognizer]:
    if kind is SourceKind.TEXT:
        if config.TEXT_BACKEND == "tesseract":
            from recognizers.tesseract_recognizer import TesseractTextRecognizer
            return TesseractTextRecognizer()
        return _make_llm(config.TEXT_BACKEND, kind)
    return _make_llm(config.LABEL_BACKEND, kind)


def build_recognizers() -> dict[SourceKind, Recognizer]:
    """
    Instantiate every enabled signal whose backend is usable.
    Returns dict keyed by SourceKind in text → object → scene order.
    """
    recognizers: dict[SourceKind, Recognizer] = {}

    for kind in SourceKind:
        flag = _ENABLE_FLAGS[kind]
        if not _signal_enabled(flag):
            logger.info("Skipped %s signal (disabled by %s)", kind.value, flag)
            continue
        recognizer = _make(kind)
        if recognizer is not None:
            recognizers[kind] = recognizer
            logger.info("Loaded %s signal: %s", kind.value, recognizer.name)

    if not recognizers:
        raise RuntimeError(
            "No recognizers available.\n"
            "Install Tesseract for the text signal, or set OPENAI_API_KEY / "
            "ANTHROPIC_API_KEY for the object and scene signals."
        )

    return recognizers


def get_recognizers() -> dict[SourceKind, Recognizer]:
    global _recognizers
    if not _recognizers:
        _recognizers = build_recognizers()
    return _recognizers


def reset() -> None:
    """Forget cached recognizers (e.g. after a key or backend change)."""
    global _recognizers
    _recognizers = {}
