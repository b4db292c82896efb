"""Speech client — HTTP connection to a text-to-speech service.

The pipeline injects a Speech callable matching the protocol:

    async def __call__(self, transcript: str, voice_id: str | None = None)
        -> SpeechResult | None: ...

Implementations may raise; the skit pipeline treats any failure, or a
result without a url, as "no audio" for that entry.

    HttpSpeech    — POSTs to a synthesis service and returns the audio URL.
    SilentSpeech  — never produces audio. Used when no TTS service is set.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class SpeechResult(BaseModel):
    url: str = ""


class Speech(Protocol):
    async def __call__(
        self, transcript: str, voice_id: str | None = None
    ) -> SpeechResult | None: ...


class HttpSpeech:
    """Async HTTP client for a synthesis service.

    POST {service_url}/synthesize  {"text": ..., "voice_id": ...}
    Response: {"url": "..."}
    """

    def __init__(self, service_url: str, api_key: str = "", timeout: float = 60.0) -> None:
        self._base_url = service_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def __call__(
        self, transcript: str, voice_id: str | None = None
    ) -> SpeechResult | None:
        url = f"{self._base_url}/synthesize"
        body: dict = {"text": transcript}
        if voice_id:
            body["voice_id"] = voice_id
        logger.debug("tts call url=%s voice=%s chars=%d", url, voice_id, len(transcript))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise SpeechError(f"Cannot connect to speech service at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise SpeechError(
                f"Speech service returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise SpeechError(f"Speech service timed out after {self._timeout}s") from e

        data = resp.json()
        if not isinstance(data, dict) or "url" not in data:
            raise SpeechError("Unexpected response format from speech service")
        return SpeechResult(url=data["url"] or "")


class SilentSpeech:
    """Produces no audio; every entry keeps an empty speech URL."""

    async def __call__(
        self, transcript: str, voice_id: str | None = None
    ) -> SpeechResult | None:
        return None


class SpeechError(RuntimeError):
    """Raised when the speech service cannot be reached or returns an error."""
