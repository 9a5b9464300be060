"""
Local OCR text signal via pytesseract.

Words reported by Tesseract are grouped into regions by (block, paragraph,
line). Each region yields a single rank-0 candidate: the joined line text with
the mean word confidence scaled to 0–1.
"""
from __future__ import annotations

import logging

import pytesseract
from PIL import Image

from recognizers.base import BlockingRecognizer, RecognitionCandidate, SourceKind

logger = logging.getLogger(__name__)


class TesseractTextRecognizer(BlockingRecognizer):

    def __init__(self, lang: str = "eng", psm: int = 11):
        self.kind = SourceKind.TEXT
        self.lang = lang
        # psm 11 = sparse text: product photos rarely contain paragraphs
        self.psm = psm
        self.name = f"tesseract/{lang}"

    def _recognize_blocking(self, image: Image.Image) -> list[RecognitionCandidate]:
        data = pytesseract.image_to_data(
            image,
            lang=self.lang,
            config=f"--psm {self.psm}",
            output_type=pytesseract.Output.DICT,
        )
        return regions_from_data(data)


def regions_from_data(data: dict) -> list[RecognitionCandidate]:
    """Group an image_to_data DICT into one candidate per text line."""
    lines: dict[tuple, list[tuple[str, float]]] = {}
    for i, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        try:
            conf = float(data["conf"][i])
        except (KeyError, IndexError, TypeError, ValueError):
            continue
        if conf < 0:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        lines.setdefault(key, []).append((word, conf))

    candidates = []
    for region, words in enumerate(lines.values()):
        text = " ".join(w for w, _ in words)
        mean = sum(c for _, c in words) / len(words)
        candidates.append(RecognitionCandidate(
            label=text,
            confidence=min(1.0, mean / 100.0),
            source_kind=SourceKind.TEXT,
            region=region,
        ))
    return candidates
