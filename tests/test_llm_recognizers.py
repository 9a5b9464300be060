"""
Tests for recognizers/openai_recognizer.py and recognizers/anthropic_recognizer.py.

The SDK clients are replaced with AsyncMocks, so no network calls are made.

Covers:
  - request carries the signal's prompt and a base64 JPEG of the photo, encoded off the event loop
  - JSON reply → ranked candidates of the recognizer's kind
  - bad replies and API errors propagate (the pipeline isolates them)
"""
from __future__ import annotations

import base64
import json
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from PIL import Image

import preprocessing
from recognizers.base import OBJECT_PROMPT, SCENE_PROMPT, TEXT_PROMPT, SourceKind

T, O, S = SourceKind.TEXT, SourceKind.OBJECT, SourceKind.SCENE


def make_image() -> Image.Image:
    return Image.new("RGB", (16, 16), "navy")


def openai_response(content: str) -> MagicMock:
    resp = MagicMock()
    resp.choices = [MagicMock()]
    resp.choices[0].message.content = content
    return resp


def anthropic_message(text: str) -> MagicMock:
    msg = MagicMock()
    msg.content = [MagicMock(text=text)]
    return msg


LABELS_JSON = json.dumps({"labels": [
    {"label": "coat", "confidence": 0.4},
    {"label": "bomber jacket", "confidence": 0.9},
]})

REGIONS_JSON = json.dumps({"regions": [
    {"candidates": [{"text": "LEVIS", "confidence": 0.92}]},
]})


def record_encoding_thread(monkeypatch, module: str) -> list:
    """Patch the recognizer's encode_jpeg so it remembers which thread ran it."""
    threads = []

    def encode(image):
        threads.append(threading.current_thread())
        return preprocessing.encode_jpeg(image)

    monkeypatch.setattr(f"{module}.encode_jpeg", encode)
    return threads


# ── OpenAI ────────────────────────────────────────────────────────────────────

def make_openai(kind: SourceKind, reply: str = LABELS_JSON):
    from recognizers.openai_recognizer import OpenAIRecognizer
    with patch("recognizers.openai_recognizer.AsyncOpenAI") as client_cls:
        client = client_cls.return_value
        client.chat.completions.create = AsyncMock(return_value=openai_response(reply))
        rec = OpenAIRecognizer("sk-test", kind, "gpt-4o-mini")
    return rec, client


@pytest.mark.asyncio
class TestOpenAIRecognizer:
    async def test_object_labels(self):
        rec, _ = make_openai(O)
        result = await rec.recognize(make_image())
        assert [(c.label, c.rank) for c in result] == [("bomber jacket", 0), ("coat", 1)]
        assert all(c.source_kind is O for c in result)

    async def test_text_regions(self):
        rec, _ = make_openai(T, REGIONS_JSON)
        result = await rec.recognize(make_image())
        assert result[0].label == "LEVIS"
        assert result[0].confidence == pytest.approx(0.92)

    async def test_request_shape(self):
        rec, client = make_openai(S)
        await rec.recognize(make_image())

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        system, user = kwargs["messages"]
        assert system == {"role": "system", "content": SCENE_PROMPT}
        url = user["content"][0]["image_url"]["url"]
        assert url.startswith("data:image/jpeg;base64,")
        jpeg = base64.b64decode(url.split(",", 1)[1])
        assert jpeg[:2] == b"\xff\xd8"

    async def test_jpeg_encoded_off_event_loop(self, monkeypatch):
        threads = record_encoding_thread(monkeypatch, "recognizers.openai_recognizer")
        rec, _ = make_openai(O)
        await rec.recognize(make_image())
        assert len(threads) == 1
        assert threads[0] is not threading.current_thread()

    async def test_name(self):
        rec, _ = make_openai(O)
        assert rec.name == "openai/gpt-4o-mini"
        assert rec.kind is O

    async def test_non_json_reply_raises(self):
        rec, _ = make_openai(O, "Looks like a jacket to me.")
        with pytest.raises(ValueError):
            await rec.recognize(make_image())

    async def test_api_error_propagates(self):
        rec, client = make_openai(O)
        client.chat.completions.create.side_effect = RuntimeError("rate limited")
        with pytest.raises(RuntimeError, match="rate limited"):
            await rec.recognize(make_image())


# ── Anthropic ─────────────────────────────────────────────────────────────────

def make_anthropic(kind: SourceKind, reply: str = LABELS_JSON):
    from recognizers.anthropic_recognizer import AnthropicRecognizer
    with patch("anthropic.AsyncAnthropic") as client_cls:
        client = client_cls.return_value
        client.messages.create = AsyncMock(return_value=anthropic_message(reply))
        rec = AnthropicRecognizer("sk-ant-test", kind, "claude-3-haiku-20240307")
    return rec, client


@pytest.mark.asyncio
class TestAnthropicRecognizer:
    async def test_object_labels(self):
        rec, _ = make_anthropic(O)
        result = await rec.recognize(make_image())
        assert [c.label for c in result] == ["bomber jacket", "coat"]

    async def test_fenced_reply(self):
        rec, _ = make_anthropic(T, f"```json\n{REGIONS_JSON}\n```")
        result = await rec.recognize(make_image())
        assert [c.label for c in result] == ["LEVIS"]
        assert result[0].source_kind is T

    async def test_request_shape(self):
        rec, client = make_anthropic(T)
        await rec.recognize(make_image())

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == TEXT_PROMPT
        image_block = kwargs["messages"][0]["content"][0]
        assert image_block["type"] == "image"
        assert image_block["source"]["media_type"] == "image/jpeg"
        assert base64.b64decode(image_block["source"]["data"])[:2] == b"\xff\xd8"

    async def test_jpeg_encoded_off_event_loop(self, monkeypatch):
        threads = record_encoding_thread(monkeypatch, "recognizers.anthropic_recognizer")
        rec, _ = make_anthropic(O)
        await rec.recognize(make_image())
        assert len(threads) == 1
        assert threads[0] is not threading.current_thread()

    async def test_prompt_follows_kind(self):
        rec, client = make_anthropic(O)
        await rec.recognize(make_image())
        assert client.messages.create.call_args.kwargs["system"] == OBJECT_PROMPT

    async def test_name(self):
        rec, _ = make_anthropic(S)
        assert rec.name == "anthropic/claude-3-haiku-20240307"
