"""End-of-scene analysis: stat changes, faction requests, reputation.

Once a scene ends, the model is asked a second time to summarise its
consequences as bracket tags, one per line:

    [JANE DOE: charm +2, trust -1]      character stat changes
    [STATION: Security -2, Harmony -1]  station stat changes
    [REQUEST: faction | desc | req -> reward]
    [FACTION: Stellar Concord +1]       reputation change
    [SUMMARY: ...]                      scene summary, if none yet

Lines that don't parse, or that name nobody present, are skipped.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from skit_engine.faction_requests import RequestParser
from skit_engine.llm import LLM
from skit_engine.models import STATION, Actor, Request, ScriptEntry, Skit, World
from skit_engine.names import find_best_name_match
from skit_engine.prompts import build_analysis_prompt
from skit_engine.stats import Stat, StationStat, normalize_stat_name

logger = logging.getLogger(__name__)

STAT_TAG_RE = re.compile(r"\[(.+?):\s*([^\]]+)\]")
ADJUSTMENT_RE = re.compile(r"([A-Za-z\s]+)\s*([+-]\s*\d+)")
FACTION_TAG_RE = re.compile(r"\[FACTION:\s*([^+\-]+)\s*([+-]\s*\d+)\]", re.IGNORECASE)
SUMMARY_RE = re.compile(r"\[SUMMARY:\s*([^\]]+)\]", re.IGNORECASE)
STOP_TOKEN = "[END]"


class SkitOutcome(BaseModel):
    stat_changes: dict[str, dict[str, int]] = Field(default_factory=dict)
    requests: list[Request] = Field(default_factory=list)
    faction_changes: dict[str, int] = Field(default_factory=dict)
    summary: str | None = None


def parse_adjustments(
    payload: str, vocabulary: type[Stat] | type[StationStat]
) -> list[tuple[str, int]]:
    """Parse "charm +2, trust-1" into [("charm", 2), ("trust", -1)]."""
    adjustments: list[tuple[str, int]] = []
    for part in (p.strip() for p in payload.split(",")):
        m = ADJUSTMENT_RE.search(part)
        if not m or not m.group(1).strip():
            continue
        value = int(re.sub(r"\s+", "", m.group(2)))
        adjustments.append((normalize_stat_name(m.group(1), vocabulary), value))
    return adjustments


def _accumulate(bucket: dict[str, int], adjustments: list[tuple[str, int]]) -> None:
    for stat, value in adjustments:
        bucket[stat] = bucket.get(stat, 0) + value


def parse_outcome(
    text: str,
    world: World,
    present: list[Actor],
    request_parser: RequestParser,
) -> SkitOutcome:
    """Parse an analysis response into a SkitOutcome."""
    outcome = SkitOutcome()

    for raw in text.split("\n"):
        line = raw.strip()
        if not line or not line.startswith("["):
            continue
        upper = line.upper()

        if upper.startswith("[REQUEST:"):
            request = request_parser(line, world)
            if request:
                logger.info("Added new request from tag: %s", request.description)
                outcome.requests.append(request)
            continue

        if upper.startswith("[SUMMARY:"):
            m = SUMMARY_RE.search(line)
            if m:
                outcome.summary = m.group(1).strip()
            continue

        if upper.startswith("[FACTION:"):
            m = FACTION_TAG_RE.search(line)
            if not m:
                continue
            faction = find_best_name_match(m.group(1).strip(), world.factions.values())
            change = int(re.sub(r"\s+", "", m.group(2)))
            if faction and change:
                outcome.faction_changes[faction.id] = outcome.faction_changes.get(faction.id, 0) + change
            continue

        m = STAT_TAG_RE.search(line)
        if not m:
            continue
        target, payload = m.group(1).strip(), m.group(2).strip()

        if target.upper() == STATION:
            key, adjustments = STATION, parse_adjustments(payload, StationStat)
        else:
            actor = find_best_name_match(target, present)
            if actor is None:
                logger.debug("Stat tag target %r is not present; skipped", target)
                continue
            key, adjustments = actor.id, parse_adjustments(payload, Stat)

        if adjustments:
            _accumulate(outcome.stat_changes.setdefault(key, {}), adjustments)

    return outcome


async def analyze_outcome(
    skit: Skit,
    world: World,
    entries: list[ScriptEntry],
    summary: str | None,
    llm: LLM,
    request_parser: RequestParser,
) -> SkitOutcome:
    """Ask the model for the scene's consequences and parse its answer."""
    prompt = build_analysis_prompt(skit, world, entries, summary)
    response = await llm(
        "skit_analysis",
        prompt,
        min_tokens=5,
        max_tokens=250 if summary else 400,
        include_history=True,
        stop=[STOP_TOKEN],
    )
    if not response or not response.result:
        logger.info("Scene analysis returned nothing")
        return SkitOutcome()
    logger.debug("Scene analysis response: %r", response.result)

    # present actors are re-read here; the world may have moved on since parsing
    present = world.present_actors(skit.module_id)
    return parse_outcome(response.result, world, present, request_parser)
