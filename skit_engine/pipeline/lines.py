"""Reconstruct script entries from raw model output.

The model is asked for "SPEAKER: text" lines, but a single beat often wraps
over several raw lines and the last line may be cut off by the token
budget. combine_lines() rebuilds logical lines using the colon as the only
structural anchor, dropping anything that does not end like a finished
sentence. build_entries() then splits speaker from message and resolves
speakers to canonical actor names.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from skit_engine.emotions import Emotion
from skit_engine.models import NARRATOR, Actor, ScriptEntry
from skit_engine.names import find_best_name_match

from .tags import extract_tags, resolve_emotion_tag, resolve_movement_tag, strip_tags

logger = logging.getLogger(__name__)

END_MARKER = "[SUMMARY"
SUMMARY_RE = re.compile(r"\[SUMMARY:\s*([^\]]+)\]", re.IGNORECASE)

# a line ending in anything else was probably truncated mid-sentence
TERMINAL_CHARS = ("]", "*", "_", ")", ".", "!", "?", '"', "'")


class CombinedLine(BaseModel):
    text: str
    emotions: dict[str, Emotion] = Field(default_factory=dict)
    arrivals: list[str] = Field(default_factory=list)
    departures: list[str] = Field(default_factory=list)


class ParsedScript(BaseModel):
    lines: list[CombinedLine] = Field(default_factory=list)
    end_scene: bool = False
    summary: str | None = None


def combine_lines(
    text: str,
    present: list[Actor],
    actors: list[Actor],
    in_scene: set[str] | None = None,
) -> ParsedScript:
    """Group raw output lines into logical script lines.

    Args:
        text:     Raw completion text.
        present:  Actors at the scene's location; emotion tags resolve here.
        actors:   Every actor in the world; movement tags resolve here.
        in_scene: Actor ids currently in the scene, used to validate
                  arrivals and departures. Not modified.
    """
    in_scene = set(in_scene or ())
    parsed = ParsedScript()

    current = ""
    current_emotions: dict[str, Emotion] = {}
    current_arrivals: list[str] = []
    current_departures: list[str] = []

    def flush() -> None:
        if current:
            parsed.lines.append(CombinedLine(
                text=current.strip(),
                emotions=current_emotions,
                arrivals=current_arrivals,
                departures=current_departures,
            ))

    for raw in text.split("\n"):
        line = raw.strip()

        if line.startswith(END_MARKER):
            logger.info("Detected end scene tag")
            parsed.end_scene = True
            m = SUMMARY_RE.search(line)
            if m:
                parsed.summary = m.group(1).strip()
            continue

        if not line or not line.endswith(TERMINAL_CHARS):
            continue

        bodies, visible = extract_tags(line)
        emotions: dict[str, Emotion] = {}
        arrivals: list[str] = []
        departures: list[str] = []

        for body in (b.strip() for b in bodies):
            if not body:
                continue
            movement = resolve_movement_tag(body, actors)
            if movement:
                kind, actor = movement
                if kind == "arrives" and actor.id not in in_scene:
                    in_scene.add(actor.id)
                    arrivals.append(actor.id)
                elif kind == "departs" and actor.id in in_scene:
                    in_scene.discard(actor.id)
                    departures.append(actor.id)
                else:
                    logger.warning("Ignoring invalid %s tag for %s", kind, actor.name)
                continue
            resolved = resolve_emotion_tag(body, present)
            if resolved:
                name, emotion = resolved
                logger.debug("Detected emotion tag for %s: %s", name, emotion.value)
                emotions[name] = emotion

        visible = visible.strip()

        # the colon decision is made on the raw line, before tags were removed
        if ":" in raw:
            flush()
            current = visible
            current_emotions = emotions
            current_arrivals = arrivals
            current_departures = departures
        else:
            current += "\n" + visible
            current_emotions = {**current_emotions, **emotions}
            current_arrivals = current_arrivals + arrivals
            current_departures = current_departures + departures

    flush()
    return parsed


def build_entries(lines: list[CombinedLine], present: list[Actor]) -> list[ScriptEntry]:
    """Turn combined lines into script entries, dropping empty ones.

    Speakers that match a present actor are renamed to that actor's
    canonical name; anything else (NARRATOR, the player, stray labels) is
    kept as written.
    """
    entries: list[ScriptEntry] = []
    for line in lines:
        label, sep, rest = line.text.partition(":")
        if sep:
            speaker, message = label.strip(), rest.strip()
        else:
            speaker, message = NARRATOR, line.text
        message = strip_tags(message).strip()
        if not message:
            continue

        actor = find_best_name_match(speaker, present)
        entries.append(ScriptEntry(
            speaker=actor.name if actor else speaker,
            message=message,
            actor_emotions=line.emotions or None,
            arrivals=line.arrivals or None,
            departures=line.departures or None,
        ))
    return entries
