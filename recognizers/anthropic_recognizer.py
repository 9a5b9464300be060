"""
Anthropic vision recognizer — Claude as a text / object / scene signal.

Claude is a useful alternative for the text signal on photos with small print
where local OCR struggles.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time

import anthropic
from PIL import Image

from preprocessing import encode_jpeg
from recognizers.base import (
    PROMPTS, USER_PROMPT,
    RecognitionCandidate, Recognizer, SourceKind,
    candidates_from_payload, parse_json_response,
)

logger = logging.getLogger(__name__)


class AnthropicRecognizer(Recognizer):

    def __init__(self, api_key: str, kind: SourceKind, model: str = "claude-3-haiku-20240307"):
        self.kind = kind
        self.model_id = model
        self.name = f"anthropic/{model}"
        self._client = anthropic.AsyncAnthropic(api_key=api_key)

    async def recognize(self, image: Image.Image) -> list[RecognitionCandidate]:
        jpeg = await asyncio.to_thread(encode_jpeg, image)
        b64 = base64.b64encode(jpeg).decode()
        t0 = time.monotonic()

        message = await self._client.messages.create(
            model=self.model_id,
            max_tokens=512,
            system=PROMPTS[self.kind],
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": "image/jpeg",
                                "data": b64,
                            },
                        },
                        {"type": "text", "text": USER_PROMPT},
                    ],
                }
            ],
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        raw = message.content[0].text
        data = parse_json_response(raw, self.name)
        candidates = candidates_from_payload(data, self.kind)
        logger.debug("[%s] %s → %d candidates in %dms",
                     self.name, self.kind.value, len(candidates), latency_ms)
        return candidates
