"""Runtime configuration, read from the environment (and .env)."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

from skit_engine.llm import HttpLLM
from skit_engine.speech import HttpSpeech, SilentSpeech, Speech

ROOT = Path(__file__).parent.parent


class Settings(BaseModel):
    llm_url: str = ""
    llm_api_key: str = ""
    llm_format: str = "koboldcpp"
    llm_model: str = ""
    llm_timeout: float = 120.0
    tts_url: str = ""  # empty disables speech
    tts_api_key: str = ""
    tts_timeout: float = 60.0
    max_attempts: int = 3


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from environment variables, loading .env first.

    Values already present in the environment win over the .env file.
    """
    load_dotenv(env_file or ROOT / ".env")
    fields: dict[str, str] = {}
    for name in Settings.model_fields:
        value = os.getenv(name.upper())
        if value is not None and value != "":
            fields[name] = value
    return Settings.model_validate(fields)


def build_llm(settings: Settings) -> HttpLLM | None:
    """HttpLLM for the configured backend, or None if no URL is set."""
    if not settings.llm_url:
        return None
    provider_format = "openai" if settings.llm_format == "openai" else "koboldcpp"
    return HttpLLM(
        provider_url=settings.llm_url,
        api_key=settings.llm_api_key,
        provider_format=provider_format,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )


def build_speech(settings: Settings) -> Speech:
    if not settings.tts_url:
        return SilentSpeech()
    return HttpSpeech(settings.tts_url, api_key=settings.tts_api_key, timeout=settings.tts_timeout)
