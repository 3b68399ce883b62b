"""
LLM client wrappers exposing a single ``complete(prompt) -> text`` capability.

Clients are created once per process and passed explicitly to the components
that need them. Sampling temperature is fixed per client, so the letter
synthesizer gets its own client.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional

import google.generativeai as genai
import requests
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from errors import InferenceError

LOGGER = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-1.5-flash-latest"
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "gpt-oss:latest"
DEFAULT_TEMPERATURE = 0.2


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Locate and decode a JSON object inside an LLM response.

    Markdown code fences are stripped. A response that is valid JSON as a
    whole is used as-is; otherwise the first "{...}" block is tried.

    Args:
        text: Raw model output.

    Returns:
        Decoded JSON object, or None if the response holds no JSON object.
    """
    if not text:
        return None
    text = text.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.S)
    if fenced:
        text = fenced.group(1).strip()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", text, re.S)
        if not match:
            LOGGER.debug("No JSON found in LLM response (first 200 chars): %s", text[:200])
            return None
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            LOGGER.debug("Failed to parse JSON from LLM response: %s", exc)
            return None

    if not isinstance(payload, dict):
        LOGGER.debug("LLM response JSON is a %s, not an object", type(payload).__name__)
        return None
    return payload


def _response_text(response: Any) -> str:
    """Pull the text out of a Gemini response object."""
    try:
        text = getattr(response, "text", None)
    except ValueError:
        # Raised by the SDK when the candidate was blocked.
        text = None
    if text is None and getattr(response, "candidates", None):
        parts = response.candidates[0].content.parts
        text = "".join(getattr(part, "text", "") for part in parts)
    return (text or "").strip()


class GeminiClient:
    """Wrapper around the Google Gemini API."""

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_GEMINI_MODEL,
        timeout: float = 120.0,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        """
        Initialize the Gemini client.

        Args:
            api_key: Google Gemini API key.
            model_name: Name of the Gemini model to use.
            timeout: Upper bound in seconds for a single completion.
            temperature: Sampling temperature for every completion.
        """
        genai.configure(api_key=api_key)
        self._model_name = model_name
        self._timeout = timeout
        self._model = None
        self._initialize_model()
        self._generation_config = {
            "temperature": temperature,
            "top_p": 0.9,
            "top_k": 32,
            "candidate_count": 1,
        }
        self._safety_settings = {
            HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
            HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
        }
        LOGGER.info("Gemini client initialized with model %s", self._model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    def _initialize_model(self) -> None:
        """Initialize the Gemini model with fallback options."""
        preferred = [
            self._model_name,
            "gemini-1.5-flash-latest",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        ]
        attempts = [m for i, m in enumerate(preferred) if m and m not in preferred[:i]]

        for attempt in attempts:
            try:
                self._model = genai.GenerativeModel(attempt)
                self._model_name = attempt
                LOGGER.info("LLM enabled (Gemini) with model %s", attempt)
                return
            except Exception as exc:
                LOGGER.debug("Gemini model %s failed: %s", attempt, str(exc)[:100])
        raise RuntimeError("No supported Gemini model found")

    async def complete(self, prompt: str) -> str:
        """
        Send a prompt to Gemini and return the stripped response text.

        Args:
            prompt: Full prompt text.

        Returns:
            Non-empty model output.

        Raises:
            InferenceError: On API failure, timeout or empty output.
        """
        try:
            response = await asyncio.wait_for(
                self._model.generate_content_async(
                    prompt,
                    generation_config=self._generation_config,
                    safety_settings=self._safety_settings,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise InferenceError(f"Gemini call timed out after {self._timeout:.0f}s") from exc
        except Exception as exc:
            raise InferenceError(f"Gemini call failed: {exc}") from exc

        text = _response_text(response)
        if not text:
            raise InferenceError("Empty response from Gemini")
        LOGGER.debug("Raw LLM response (first 200 chars): %s", text[:200])
        return text


class OllamaClient:
    """Client for a local Ollama server's /api/generate endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        model_name: str = DEFAULT_OLLAMA_MODEL,
        timeout: float = 120.0,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self._url = base_url.rstrip("/") + "/api/generate"
        self._model_name = model_name
        self._timeout = timeout
        self._temperature = temperature
        LOGGER.info("LLM enabled (Ollama) with model %s at %s", model_name, base_url)

    @property
    def model_name(self) -> str:
        return self._model_name

    def _generate(self, prompt: str) -> str:
        payload = {
            "model": self._model_name,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self._temperature},
        }
        response = requests.post(self._url, json=payload, timeout=self._timeout)
        response.raise_for_status()
        return (response.json().get("response") or "").strip()

    async def complete(self, prompt: str) -> str:
        """
        Send a prompt to Ollama and return the stripped response text.

        Raises:
            InferenceError: On HTTP failure, timeout or empty output.
        """
        try:
            text = await asyncio.to_thread(self._generate, prompt)
        except requests.Timeout as exc:
            raise InferenceError(f"Ollama call timed out after {self._timeout:.0f}s") from exc
        except (requests.RequestException, ValueError) as exc:
            raise InferenceError(f"Ollama call failed: {exc}") from exc

        if not text:
            raise InferenceError("Empty response from Ollama")
        LOGGER.debug("Raw LLM response (first 200 chars): %s", text[:200])
        return text


def create_llm_client(settings, temperature: float = DEFAULT_TEMPERATURE):
    """
    Build the configured LLM client.

    Args:
        settings: Application settings dataclass.
        temperature: Sampling temperature used for every completion.

    Returns:
        GeminiClient or OllamaClient.
    """
    if settings.llm_provider == "ollama":
        return OllamaClient(
            base_url=settings.ollama_url,
            model_name=settings.ollama_model,
            timeout=settings.llm_timeout_seconds,
            temperature=temperature,
        )
    return GeminiClient(
        settings.gemini_api_key,
        settings.gemini_model,
        timeout=settings.llm_timeout_seconds,
        temperature=temperature,
    )
