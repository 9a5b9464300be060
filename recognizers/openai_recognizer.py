"""
OpenAI vision recognizer — one instance per signal kind.

The same model serves the text, object and scene signals; only the system
prompt and the expected JSON shape differ (see recognizers/base.py).
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time

from openai import AsyncOpenAI
from PIL import Image

from preprocessing import encode_jpeg
from recognizers.base import (
    PROMPTS, USER_PROMPT,
    RecognitionCandidate, Recognizer, SourceKind,
    candidates_from_payload, parse_json_response,
)

logger = logging.getLogger(__name__)


class OpenAIRecognizer(Recognizer):

    def __init__(self, api_key: str, kind: SourceKind, model: str = "gpt-4o-mini"):
        self.kind = kind
        self.model_id = model
        self.name = f"openai/{model}"
        self._client = AsyncOpenAI(api_key=api_key)

    async def recognize(self, image: Image.Image) -> list[RecognitionCandidate]:
        jpeg = await asyncio.to_thread(encode_jpeg, image)
        b64 = base64.b64encode(jpeg).decode()
        t0 = time.monotonic()

        response = await self._client.chat.completions.create(
            model=self.model_id,
            max_tokens=512,
            temperature=0,
            messages=[
                {"role": "system", "content": PROMPTS[self.kind]},
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:image/jpeg;base64,{b64}",
                                "detail": "high",
                            },
                        },
                        {"type": "text", "text": USER_PROMPT},
                    ],
                },
            ],
        )

        latency_ms = int((time.monotonic() - t0) * 1000)
        raw = response.choices[0].message.content
        data = parse_json_response(raw, self.name)
        candidates = candidates_from_payload(data, self.kind)
        logger.debug("[%s] %s → %d candidates in %dms",
                     self.name, self.kind.value, len(candidates), latency_ms)
        return candidates
