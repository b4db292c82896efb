"""Bracket tags embedded in generated script lines.

Tags look like "[JANE EXPRESSES JOY]" or "[JANE arrives]". Extraction is
independent of meaning: every [...] span is pulled out and stripped from
the visible text whether or not anything downstream understands it.
"""

from __future__ import annotations

import logging
import re

from skit_engine.emotions import Emotion, lookup_emotion
from skit_engine.models import Actor
from skit_engine.names import find_best_name_match

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"\[([^\]]+)\]")
EXPRESSES_RE = re.compile(r"([^\[\]]+)\s+EXPRESSES\s+([^\[\]]+)", re.IGNORECASE)
ARRIVES_RE = re.compile(r"^([^\[\]]+)\s+arrives$", re.IGNORECASE)
DEPARTS_RE = re.compile(r"^([^\[\]]+)\s+departs$", re.IGNORECASE)


def extract_tags(line: str) -> tuple[list[str], str]:
    """Return (tag bodies, line with every tag span removed).

    Tags don't nest. A bracket with no closing partner on the line is left
    in the text untouched.
    """
    return TAG_RE.findall(line), TAG_RE.sub("", line)


def strip_tags(text: str) -> str:
    return TAG_RE.sub("", text)


def resolve_emotion_tag(body: str, present: list[Actor]) -> tuple[str, Emotion] | None:
    """Interpret "<name> EXPRESSES <emotion>" against the present actors.

    Returns (canonical actor name, emotion), or None if the tag is not an
    emotion tag or either side cannot be resolved.
    """
    m = EXPRESSES_RE.search(body)
    if not m:
        return None
    actor = find_best_name_match(m.group(1).strip(), present)
    if actor is None:
        logger.debug("emotion tag %r names no present actor", body)
        return None
    emotion = lookup_emotion(m.group(2))
    if emotion is None:
        logger.debug("emotion tag %r has unknown emotion", body)
        return None
    return actor.name, emotion


def resolve_movement_tag(body: str, actors: list[Actor]) -> tuple[str, Actor] | None:
    """Interpret "<name> arrives" / "<name> departs".

    Returns ("arrives" | "departs", actor) or None. Any actor in the world
    may arrive, so `actors` is the full collection.
    """
    for kind, pattern in (("arrives", ARRIVES_RE), ("departs", DEPARTS_RE)):
        m = pattern.match(body.strip())
        if m:
            actor = find_best_name_match(m.group(1).strip(), actors)
            if actor is None:
                logger.debug("movement tag %r names no known actor", body)
                return None
            return kind, actor
    return None
