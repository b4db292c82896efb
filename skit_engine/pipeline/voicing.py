"""Text-to-speech for the quoted dialogue in script entries."""

from __future__ import annotations

import logging
import re
from collections.abc import Coroutine
from typing import Any

from skit_engine.models import Actor, ScriptEntry
from skit_engine.names import find_best_name_match
from skit_engine.speech import Speech

logger = logging.getLogger(__name__)

QUOTE = '"'
SEGMENT_SEPARATOR = "........."
EMPHASIS_RE = re.compile(r"[*_~`]+")


def dialogue_transcript(message: str) -> str:
    """Join the quoted spans of `message` into one speakable transcript."""
    spoken = message.split(QUOTE)[1::2]
    return EMPHASIS_RE.sub("", SEGMENT_SEPARATOR.join(spoken).strip())


async def voice_entry(entry: ScriptEntry, actors: list[Actor], speech: Speech) -> None:
    """Synthesize `entry`'s dialogue and attach the URL. Never raises."""
    actor = find_best_name_match(entry.speaker, actors)
    if actor is None or QUOTE not in entry.message:
        entry.speech_url = ""
        return

    transcript = dialogue_transcript(entry.message)
    try:
        result = await speech(transcript, actor.voice_id)
    except Exception as e:
        logger.warning("Speech synthesis failed for %s: %s", actor.name, e)
        entry.speech_url = ""
        return
    entry.speech_url = result.url if result and result.url else ""


def speech_tasks(
    entries: list[ScriptEntry], actors: list[Actor], speech: Speech
) -> list[Coroutine[Any, Any, None]]:
    """One voice_entry coroutine per entry, to be awaited as a single batch."""
    return [voice_entry(entry, actors, speech) for entry in entries]
