"""Tests for the HTTP surface — /api/health and /api/skits/generate."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from skit_engine.app import create_app
from skit_engine.config import Settings
from skit_engine.llm import HttpLLM
from skit_engine.models import ScriptEntry, Skit, SkitResult, World
from skit_engine.speech import SilentSpeech


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(Settings(llm_url="http://localhost:5001", max_attempts=2)))


@pytest.fixture
def body(world: World, skit: Skit) -> dict:
    skit.script = [ScriptEntry(message="The door slides open.")]
    return {"world": world.model_dump(mode="json"), "skit": skit.model_dump(mode="json")}


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"ok": True, "speech": False}


def test_health_reports_speech() -> None:
    client = TestClient(create_app(Settings(tts_url="http://tts:9000")))
    assert client.get("/api/health").json()["speech"] is True


def test_generate_extends_script(client: TestClient, body: dict) -> None:
    result = SkitResult(
        entries=[ScriptEntry(speaker="Jane Doe", message='"Hello."', end_scene=True)],
        end_scene=True,
        stat_changes={"jane": {"trust": 1}},
        summary="Jane said hello.",
    )
    with patch("skit_engine.routes.generate_skit_script", new_callable=AsyncMock) as mock_gen:
        mock_gen.return_value = result
        resp = client.post("/api/skits/generate", json=body)

    assert resp.status_code == 200
    data = resp.json()
    assert data["result"]["end_scene"] is True
    assert data["result"]["stat_changes"] == {"jane": {"trust": 1}}
    assert [e["message"] for e in data["skit"]["script"]] == ["The door slides open.", '"Hello."']


def test_generate_passes_configured_clients(client: TestClient, body: dict) -> None:
    with patch("skit_engine.routes.generate_skit_script", new_callable=AsyncMock) as mock_gen:
        mock_gen.return_value = SkitResult(entries=[ScriptEntry(message="Quiet.")])
        client.post("/api/skits/generate", json=body)

    kwargs = mock_gen.call_args.kwargs
    assert isinstance(kwargs["llm"], HttpLLM)
    assert isinstance(kwargs["speech"], SilentSpeech)
    assert kwargs["max_attempts"] == 2
    skit, world = mock_gen.call_args[0]
    assert skit.module_id == "quarters-1"
    assert set(world.actors) == {"jane", "rex", "mira"}


def test_generate_without_llm(body: dict) -> None:
    client = TestClient(create_app(Settings()))
    resp = client.post("/api/skits/generate", json=body)
    assert resp.status_code == 400
    assert "LLM_URL" in resp.json()["detail"]


def test_generate_exhausted(client: TestClient, body: dict) -> None:
    with patch("skit_engine.routes.generate_skit_script", new_callable=AsyncMock) as mock_gen:
        mock_gen.return_value = SkitResult.empty()
        resp = client.post("/api/skits/generate", json=body)
    assert resp.status_code == 502


def test_generate_rejects_bad_body(client: TestClient) -> None:
    resp = client.post("/api/skits/generate", json={"world": {}, "skit": {"type": "MUSICAL"}})
    assert resp.status_code == 422
