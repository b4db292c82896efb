"""LLM client — HTTP connection to a text-completion backend.

The pipeline injects an LLM callable matching the protocol:

    async def __call__(self, stage, prompt, *, min_tokens, max_tokens,
                       include_history, stop=None) -> Generation | None: ...

`stage` identifies which pipeline stage is calling ("skit" for the scene
script, "skit_analysis" for the outcome pass). The implementation may use
it for logging or routing; the simplest implementation ignores it.

A None return, or a Generation whose result is missing or blank, counts as
a failed generation. The skit pipeline retries those the same way it
retries raised errors.

Two implementations are provided:

    HttpLLM   — real HTTP client, supports KoboldCpp and OpenAI-compatible
                 backends. Selected by provider_format.
    EchoLLM   — returns the prompt back unchanged. Useful for smoke-testing
                 the pipeline wiring without a running model.

Tests use a StubLLM that hands out canned responses per stage.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Generation(BaseModel):
    result: str | None = None


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(
        self,
        stage: str,
        prompt: str,
        *,
        min_tokens: int,
        max_tokens: int,
        include_history: bool,
        stop: list[str] | None = None,
    ) -> Generation | None: ...


# ---------------------------------------------------------------------------
# HttpLLM: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["koboldcpp", "openai"]


class HttpLLM:
    """Async HTTP client for text-completion backends.

    Supported formats:
      "koboldcpp"  — POST /api/v1/generate  {"prompt", "max_length", ...}
                     Response: {"results": [{"text": "..."}]}
      "openai"     — POST /v1/completions   {"model", "prompt", "max_tokens", ...}
                     Response: {"choices": [{"text": "..."}]}

    include_history is part of the protocol but plain completion backends
    keep no conversation state, so it is only logged here.

    Args:
        provider_url:    Base URL of the backend, e.g. "http://localhost:5001".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format to use. Defaults to "koboldcpp".
        model:           Model identifier, used only by the openai format.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(
        self, prompt: str, min_tokens: int, max_tokens: int, stop: list[str] | None
    ) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai":
            url = f"{self._base_url}/v1/completions"
            body: dict = {"prompt": prompt, "max_tokens": max_tokens}
            if self._model:
                body["model"] = self._model
            if stop:
                body["stop"] = stop
            return url, body

        # koboldcpp (default)
        url = f"{self._base_url}/api/v1/generate"
        body = {"prompt": prompt, "max_length": max_tokens, "min_length": min_tokens}
        if stop:
            body["stop_sequence"] = stop
        return url, body

    def _parse_response(self, data: dict) -> Generation:
        """Extract the completion text from the response body."""
        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "text" not in choices[0]:
                raise LLMError("Unexpected response format from OpenAI-compatible backend")
            return Generation(result=choices[0]["text"])

        # koboldcpp
        results = data.get("results")
        if not results or "text" not in results[0]:
            raise LLMError("Unexpected response format from KoboldCpp backend")
        return Generation(result=results[0]["text"])

    async def __call__(
        self,
        stage: str,
        prompt: str,
        *,
        min_tokens: int,
        max_tokens: int,
        include_history: bool,
        stop: list[str] | None = None,
    ) -> Generation | None:
        url, body = self._build_request(prompt, min_tokens, max_tokens, stop)
        logger.debug(
            "llm call stage=%s url=%s prompt_len=%d max_tokens=%d history=%s",
            stage, url, len(prompt), max_tokens, include_history,
        )

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

        generation = self._parse_response(resp.json())
        logger.debug("llm response stage=%s len=%d", stage, len(generation.result or ""))
        return generation


# ---------------------------------------------------------------------------
# EchoLLM: returns the prompt unchanged; useful for pipeline smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the prompt text as-is. No network calls.

    Lets you verify that the pipeline wiring (prompt rendering, retries,
    result assembly) works end-to-end without a running model. The echoed
    prompt rarely parses into a useful script — use StubLLM in tests when
    you need controlled responses.
    """

    async def __call__(
        self,
        stage: str,
        prompt: str,
        *,
        min_tokens: int,
        max_tokens: int,
        include_history: bool,
        stop: list[str] | None = None,
    ) -> Generation | None:
        logger.debug("EchoLLM stage=%s prompt_len=%d", stage, len(prompt))
        return Generation(result=prompt)


# ---------------------------------------------------------------------------
# LLMError: raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
