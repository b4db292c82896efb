"""Tests for skit_engine.speech — HttpSpeech and SilentSpeech."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from skit_engine.speech import HttpSpeech, SilentSpeech, SpeechError, SpeechResult


def _mock_response(body, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


class TestSilentSpeech:
    async def test_never_produces_audio(self) -> None:
        assert await SilentSpeech()("Hello.", "voice-jane") is None


class TestHttpSpeech:
    @pytest.fixture
    def speech(self) -> HttpSpeech:
        return HttpSpeech("http://localhost:9000/")

    async def test_happy_path(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"url": "http://cdn/a.wav"}))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await speech("Hello.", "voice-jane")
        assert result == SpeechResult(url="http://cdn/a.wav")

    async def test_request_shape(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"url": "u"}))
        with patch("httpx.AsyncClient.post", mock_post):
            await speech("Hello.", "voice-jane")
        assert mock_post.call_args[0][0] == "http://localhost:9000/synthesize"
        assert mock_post.call_args.kwargs["json"] == {"text": "Hello.", "voice_id": "voice-jane"}

    async def test_voice_omitted_when_none(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"url": "u"}))
        with patch("httpx.AsyncClient.post", mock_post):
            await speech("Hello.")
        assert mock_post.call_args.kwargs["json"] == {"text": "Hello."}

    async def test_bearer_token(self) -> None:
        speech = HttpSpeech("http://localhost:9000", api_key="secret")
        mock_post = AsyncMock(return_value=_mock_response({"url": "u"}))
        with patch("httpx.AsyncClient.post", mock_post):
            await speech("Hello.")
        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"

    async def test_connect_error(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(SpeechError, match="Cannot connect"):
                await speech("Hello.")

    async def test_timeout(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(side_effect=httpx.TimeoutException("slow"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(SpeechError, match="timed out"):
                await speech("Hello.")

    async def test_http_error(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(return_value=_mock_response({}, status=500))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(SpeechError, match="HTTP 500"):
                await speech("Hello.")

    async def test_malformed_response(self, speech: HttpSpeech) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"audio": "..."}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(SpeechError, match="Unexpected response format"):
                await speech("Hello.")
