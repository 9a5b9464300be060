"""
Shared types and base classes for all recognition signals.

A recognizer is a black box: it receives a decoded image and returns a ranked
list of labelled candidates with confidence scores, or raises. It never applies
selection policy itself; that lives in inference/signals.py.
"""
from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from PIL import Image

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    TEXT   = "text"
    OBJECT = "object"
    SCENE  = "scene"


@dataclass(frozen=True)
class RecognitionCandidate:
    """One raw output unit of a single signal."""
    label: str
    confidence: float           # 0–1
    source_kind: SourceKind
    region: int = 0             # text: detected region index; labels: always 0
    rank: int = 0               # 0 = top-ranked candidate within its region / list


# ── Prompts (shared by the LLM-backed recognizers) ────────────────────────────

TEXT_PROMPT = """You are an OCR engine.
Read every piece of printed text visible in the photo and return ONLY a valid
JSON object — no markdown, no prose.

{
  "regions": [
    {"candidates": [{"text": "best reading", "confidence": 0.0-1.0},
                    {"text": "second reading", "confidence": 0.0-1.0}]}
  ]
}

Rules:
- one region per visually separate line or block of text
- candidates ordered best-first, at most 3 per region
- return {"regions": []} if there is no text
"""

OBJECT_PROMPT = """You are an image classifier for retail products.
Return ONLY a valid JSON object — no markdown, no prose.

{"labels": [{"label": "short object name", "confidence": 0.0-1.0}]}

Rules:
- name the physical objects in the photo, most prominent first
- at most 5 labels, each 1-3 words
- return {"labels": []} if nothing is recognisable
"""

SCENE_PROMPT = """You are a scene classifier.
Return ONLY a valid JSON object — no markdown, no prose.

{"labels": [{"label": "scene or setting", "confidence": 0.0-1.0}]}

Rules:
- describe where the photo was taken or what kind of scene it is
  (e.g. "clothing store", "kitchen", "outdoor", "studio shot")
- at most 3 labels, most likely first
- return {"labels": []} if unsure
"""

PROMPTS: dict[SourceKind, str] = {
    SourceKind.TEXT:   TEXT_PROMPT,
    SourceKind.OBJECT: OBJECT_PROMPT,
    SourceKind.SCENE:  SCENE_PROMPT,
}

USER_PROMPT = "Analyse this photo and return the JSON."


def parse_json_response(raw: str, recognizer_name: str) -> dict:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure.
    """
    text = (raw or "").strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", recognizer_name, (raw or "")[:300])
        raise ValueError(f"[{recognizer_name}] JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"[{recognizer_name}] expected a JSON object, got {type(data).__name__}")
    return data


def _clamp(value: Any) -> float | None:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return None
    return max(0.0, min(1.0, conf))


def candidates_from_payload(payload: dict, kind: SourceKind) -> list[RecognitionCandidate]:
    """
    Turn a parsed model reply into ranked candidates.
    Entries without a usable label or confidence are skipped.
    """
    results: list[RecognitionCandidate] = []

    if kind is SourceKind.TEXT:
        for region_idx, region in enumerate(payload.get("regions") or []):
            if not isinstance(region, dict):
                continue
            rank = 0
            for cand in region.get("candidates") or []:
                if not isinstance(cand, dict):
                    continue
                text = cand.get("text")
                conf = _clamp(cand.get("confidence"))
                if not isinstance(text, str) or conf is None:
                    continue
                results.append(RecognitionCandidate(text, conf, kind, region=region_idx, rank=rank))
                rank += 1
        return results

    labels = []
    for item in payload.get("labels") or []:
        if not isinstance(item, dict):
            continue
        label = item.get("label")
        conf = _clamp(item.get("confidence"))
        if isinstance(label, str) and conf is not None:
            labels.append((label, conf))

    # sorted() is stable, so equal confidences keep the model's order
    labels = sorted(labels, key=lambda lc: lc[1], reverse=True)
    return [
        RecognitionCandidate(label, conf, kind, rank=rank)
        for rank, (label, conf) in enumerate(labels)
    ]


# ── Abstract bases ─────────────────────────────────────────────────────────────

class Recognizer(ABC):
    """Base class all recognition signals must implement."""

    name: str               # e.g. "openai/gpt-4o-mini"
    kind: SourceKind

    @abstractmethod
    async def recognize(self, image: Image.Image) -> list[RecognitionCandidate]:
        """Run recognition on a decoded image. Raises on failure."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind.value}:{self.name}>"


class BlockingRecognizer(Recognizer):
    """
    Base for CPU-bound recognizers (local OCR, on-device models).
    The blocking work runs in a worker thread so signals execute in parallel
    instead of stalling the event loop.
    """

    async def recognize(self, image: Image.Image) -> list[RecognitionCandidate]:
        return await asyncio.to_thread(self._recognize_blocking, image)

    @abstractmethod
    def _recognize_blocking(self, image: Image.Image) -> list[RecognitionCandidate]:
        ...
