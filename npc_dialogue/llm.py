"""LLM client — HTTP connection to a text-generation backend.

The generation adapter injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, prompt: str) -> str: ...

`stage` says why the adapter is calling ("greeting" when the player walks
up, "dialogue" for a typed line). Implementations use it for logging only.

Two implementations are provided:

    HttpLLM     — real HTTP client for Gemini, OpenAI-compatible and
                  KoboldCpp backends. Selected by provider_format.
    OfflineLLM  — answers every prompt with a canned in-character reply.
                  Lets you walk around and talk without a running model.

Tests use scripted fakes (see conftest.py) instead.
"""

from __future__ import annotations

import json
import logging
from typing import Literal, Protocol

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["gemini", "openai", "koboldcpp"]


class HttpLLM:
    """Async HTTP client for text-generation backends.

    Supported formats:
      "gemini"     — POST /v1beta/models/{model}:generateContent
                     {"contents": [{"role": "user", "parts": [{"text": ...}]}]}
                     Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
      "openai"     — POST /v1/chat/completions
                     {"model": ..., "messages": [{"role": "user", "content": ...}]}
                     Response: {"choices": [{"message": {"content": "..."}}]}
      "koboldcpp"  — POST /api/v1/generate  {"prompt": ...}
                     Response: {"results": [{"text": "..."}]}

    Args:
        provider_url:    Base URL of the backend.
        api_key:         API key, or empty string if not required.
        provider_format: Wire format to use. Defaults to "gemini".
        model:           Model identifier (gemini and openai formats).
        timeout:         HTTP timeout in seconds. Defaults to 60.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "gemini",
        model: str = "gemini-2.5-flash",
        timeout: float = 60.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if not self._api_key:
            return headers
        if self._format == "gemini":
            headers["x-goog-api-key"] = self._api_key
        else:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, prompt: str) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "gemini":
            url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
            return url, {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        if self._format == "openai":
            url = f"{self._base_url}/v1/chat/completions"
            body: dict = {"messages": [{"role": "user", "content": prompt}]}
            if self._model:
                body["model"] = self._model
            return url, body

        # koboldcpp
        url = f"{self._base_url}/api/v1/generate"
        return url, {"prompt": prompt}

    def _parse_response(self, data: dict) -> str:
        """Extract the generated text from the response body."""
        try:
            if self._format == "gemini":
                parts = data["candidates"][0]["content"]["parts"]
                return "".join(part.get("text", "") for part in parts)
            if self._format == "openai":
                content = data["choices"][0]["message"]["content"]
                if not isinstance(content, str):
                    raise TypeError(type(content).__name__)
                return content
            return data["results"][0]["text"]
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise LLMError(f"Unexpected response format from {self._format} backend") from e

    async def __call__(self, stage: str, prompt: str) -> str:
        url, body = self._build_request(prompt)
        logger.debug("llm call stage=%s url=%s prompt_len=%d", stage, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {type(e).__name__}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e
        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text


# ---------------------------------------------------------------------------
# OfflineLLM — no network; always answers in the expected JSON shape
# ---------------------------------------------------------------------------

OFFLINE_GREETING = "Ah, a traveler! The road has brought you to me. How may I help?"
OFFLINE_REPLY = "Hmm. The wind carries many answers, but none for that today."


class OfflineLLM:
    """Replies without a model, in the same JSON shape a real backend uses."""

    async def __call__(self, stage: str, prompt: str) -> str:
        logger.debug("OfflineLLM stage=%s prompt_len=%d", stage, len(prompt))
        text = OFFLINE_GREETING if stage == "greeting" else OFFLINE_REPLY
        return json.dumps({"response": text, "action": {"type": "none"}})


# ---------------------------------------------------------------------------
# LLMError — raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
