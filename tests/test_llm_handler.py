"""
Tests for the LLM client wrappers.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import requests

from errors import InferenceError
from llm_handler import GeminiClient, OllamaClient, create_llm_client, extract_json_object


@pytest.mark.parametrize(
    "text, expected",
    [
        ('{"a": 1}', {"a": 1}),
        ('Here you go:\n{"a": {"b": 2}}\nThanks!', {"a": {"b": 2}}),
        ('```json\n{"a": 1}\n```', {"a": 1}),
        ("[1, 2]", None),
        ("no braces here", None),
        ('{"a": }', None),
        ("", None),
        ('[{"a": 1}]', None),
        ('```json\n[{"a": 1}]\n```', None),
        ('"just a string"', None),
    ],
)
def test_extract_json_object(text, expected):
    assert extract_json_object(text) == expected


@pytest.fixture
def gemini_model():
    with patch("llm_handler.genai") as genai:
        model = MagicMock()
        genai.GenerativeModel.return_value = model
        yield model


@pytest.mark.asyncio
async def test_gemini_complete_returns_stripped_text(gemini_model):
    gemini_model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text="  hello  "))
    client = GeminiClient("key", "gemini-test", temperature=0.7)

    assert await client.complete("prompt") == "hello"
    _, kwargs = gemini_model.generate_content_async.call_args
    assert kwargs["generation_config"]["temperature"] == 0.7


@pytest.mark.asyncio
async def test_gemini_errors_become_inference_errors(gemini_model):
    gemini_model.generate_content_async = AsyncMock(side_effect=RuntimeError("quota exceeded"))
    client = GeminiClient("key", "gemini-test")

    with pytest.raises(InferenceError, match="quota exceeded"):
        await client.complete("prompt")


@pytest.mark.asyncio
async def test_gemini_empty_response_is_an_error(gemini_model):
    gemini_model.generate_content_async = AsyncMock(return_value=SimpleNamespace(text="", candidates=[]))
    client = GeminiClient("key", "gemini-test")

    with pytest.raises(InferenceError, match="Empty response"):
        await client.complete("prompt")


def _ollama_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


@pytest.mark.asyncio
async def test_ollama_complete_posts_prompt():
    with patch("llm_handler.requests.post", return_value=_ollama_response({"response": " hi "})) as post:
        client = OllamaClient("http://ollama:11434/", "llama3", timeout=5)

        assert await client.complete("prompt") == "hi"

    args, kwargs = post.call_args
    assert args[0] == "http://ollama:11434/api/generate"
    assert kwargs["json"]["model"] == "llama3"
    assert kwargs["json"]["stream"] is False
    assert kwargs["json"]["options"] == {"temperature": 0.2}
    assert kwargs["timeout"] == 5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "side_effect, message",
    [
        (requests.Timeout("slow"), "timed out"),
        (requests.ConnectionError("refused"), "refused"),
    ],
)
async def test_ollama_transport_errors(side_effect, message):
    with patch("llm_handler.requests.post", side_effect=side_effect):
        with pytest.raises(InferenceError, match=message):
            await OllamaClient().complete("prompt")


@pytest.mark.asyncio
async def test_ollama_empty_response_is_an_error():
    with patch("llm_handler.requests.post", return_value=_ollama_response({"response": ""})):
        with pytest.raises(InferenceError, match="Empty response"):
            await OllamaClient().complete("prompt")


def test_create_llm_client_picks_provider():
    settings = SimpleNamespace(
        llm_provider="ollama", ollama_url="http://localhost:11434", ollama_model="llama3", llm_timeout_seconds=10
    )

    client = create_llm_client(settings)

    assert isinstance(client, OllamaClient)
    assert client.model_name == "llama3"


def test_create_llm_client_applies_temperature():
    settings = SimpleNamespace(
        llm_provider="ollama", ollama_url="http://localhost:11434", ollama_model="llama3", llm_timeout_seconds=10
    )

    with patch("llm_handler.requests.post", return_value=_ollama_response({"response": "ok"})) as post:
        client = create_llm_client(settings, temperature=0.7)
        asyncio.run(client.complete("prompt"))

    assert post.call_args.kwargs["json"]["options"] == {"temperature": 0.7}
