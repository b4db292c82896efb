"""FastAPI endpoints under /api.

POST /api/skits/generate runs one generation cycle for the posted skit
against the posted world snapshot. The service keeps no state: the
updated skit (script extended, outcome fields written) is returned for
the caller to store.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from skit_engine.config import Settings, build_llm, build_speech
from skit_engine.models import Skit, SkitResult, World
from skit_engine.pipeline import generate_skit_script

router = APIRouter()


class GenerateBody(BaseModel):
    world: World
    skit: Skit


class GenerateResponse(BaseModel):
    result: SkitResult
    skit: Skit


def _settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/health")
async def health(request: Request):
    """Report whether the service is up and speech is configured."""
    return {"ok": True, "speech": bool(_settings(request).tts_url)}


@router.post("/skits/generate")
async def generate_skit(body: GenerateBody, request: Request) -> GenerateResponse:
    """Generate the next stretch of a skit."""
    settings = _settings(request)
    llm = build_llm(settings)
    if llm is None:
        raise HTTPException(400, "No LLM connection configured — set LLM_URL")

    skit = body.skit
    result = await generate_skit_script(
        skit,
        body.world,
        llm=llm,
        speech=build_speech(settings),
        max_attempts=settings.max_attempts,
    )
    if not result.entries:
        raise HTTPException(502, "Skit generation failed — the LLM produced no usable script")

    skit.script.extend(result.entries)
    return GenerateResponse(result=result, skit=skit)
