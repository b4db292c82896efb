"""Parsing of faction request tags.

Tag grammar:

    [REQUEST: <faction> | <description> | <requirement> -> <reward>]

Requirement forms:
    ACTOR brawn>=7, charm>=5, lust<=3     any actor within stat bounds
    ACTOR-NAME Jane Doe                   a specific actor, by name
    ACTOR-ID abc-123                      a specific actor, by id
    STATION Security-2, Harmony-1         station stats given up

Reward form:
    Systems+2, Comfort+1                  station stat bonuses

Anything malformed is rejected with a warning; the parser never raises.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Protocol

from skit_engine.models import (
    ActorStatsRequirement,
    Request,
    SpecificActorRequirement,
    StationStatsRequirement,
    StationStatsReward,
    World,
)
from skit_engine.names import find_best_name_match
from skit_engine.stats import Stat, StationStat, find_stat

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"\[REQUEST:\s*(.+?)\s*\]", re.IGNORECASE)
_ACTOR_BOUND_RE = re.compile(r"^(\w+)\s*(>=|<=)\s*(\d+)$")
_STATION_COST_RE = re.compile(r"^(\w+)\s*-\s*(\d+)$")
_REWARD_RE = re.compile(r"^(\w+)\s*\+\s*(\d+)$")


class RequestParser(Protocol):
    def __call__(self, tag: str, world: World) -> Request | None: ...


def parse_request_tag(tag: str, world: World) -> Request | None:
    """Parse one REQUEST tag line into a Request, or None if it is invalid."""
    match = _TAG_RE.search(tag)
    if not match:
        logger.warning("Invalid REQUEST tag format: %s", tag)
        return None

    parts = [p.strip() for p in match.group(1).split("|")]
    if len(parts) != 3:
        logger.warning("REQUEST tag needs faction | description | requirement -> reward: %s", tag)
        return None
    faction_name, description, terms = parts
    if not faction_name or not description:
        logger.warning("REQUEST tag has an empty faction or description: %s", tag)
        return None

    faction = find_best_name_match(faction_name, world.factions.values())
    if faction is None:
        logger.warning("REQUEST tag names unknown faction %r", faction_name)
        return None

    sides = [p.strip() for p in terms.split("->")]
    if len(sides) != 2:
        logger.warning("REQUEST tag needs requirement -> reward: %s", tag)
        return None

    requirement = _parse_requirement(sides[0], world)
    if requirement is None:
        logger.warning("Failed to parse requirement: %s", sides[0])
        return None

    reward = _parse_reward(sides[1])
    if reward is None:
        logger.warning("Failed to parse reward: %s", sides[1])
        return None

    return Request(
        id=uuid.uuid4().hex,
        faction_id=faction.id,
        description=description,
        requirement=requirement,
        reward=reward,
    )


def _parse_requirement(
    text: str, world: World
) -> ActorStatsRequirement | SpecificActorRequirement | StationStatsRequirement | None:
    upper = text.upper()

    if upper.startswith("ACTOR-NAME"):
        name = text[len("ACTOR-NAME"):].strip()
        actor = find_best_name_match(name, world.all_actors()) if name else None
        return SpecificActorRequirement(actor_id=actor.id) if actor else None

    if upper.startswith("ACTOR-ID"):
        actor_id = text[len("ACTOR-ID"):].strip()
        return SpecificActorRequirement(actor_id=actor_id) if actor_id else None

    if upper.startswith("ACTOR"):
        return _parse_actor_bounds(text[len("ACTOR"):].strip())

    if upper.startswith("STATION"):
        return _parse_station_cost(text[len("STATION"):].strip())

    return None


def _parse_actor_bounds(text: str) -> ActorStatsRequirement | None:
    if not text:
        return None
    min_stats: dict[str, int] = {}
    max_stats: dict[str, int] = {}
    for constraint in (c.strip() for c in text.split(",")):
        m = _ACTOR_BOUND_RE.match(constraint)
        if not m:
            logger.warning("Invalid actor stat constraint: %s", constraint)
            return None
        stat = find_stat(m.group(1), Stat)
        if stat is None:
            logger.warning("Unknown stat: %s", m.group(1))
            return None
        bucket = min_stats if m.group(2) == ">=" else max_stats
        bucket[stat] = int(m.group(3))
    return ActorStatsRequirement(min_stats=min_stats or None, max_stats=max_stats or None)


def _parse_station_cost(text: str) -> StationStatsRequirement | None:
    if not text:
        return None
    stats: dict[str, int] = {}
    for constraint in (c.strip() for c in text.split(",")):
        m = _STATION_COST_RE.match(constraint)
        if not m:
            logger.warning("Invalid station stat constraint: %s", constraint)
            return None
        stat = find_stat(m.group(1), StationStat)
        if stat is None:
            logger.warning("Unknown station stat: %s", m.group(1))
            return None
        stats[stat] = int(m.group(2))
    return StationStatsRequirement(stats=stats)


def _parse_reward(text: str) -> StationStatsReward | None:
    stats: dict[str, int] = {}
    for bonus in (b.strip() for b in text.split(",")):
        m = _REWARD_RE.match(bonus)
        if not m:
            logger.warning("Invalid reward bonus: %s", bonus)
            return None
        stat = find_stat(m.group(1), StationStat)
        if stat is None:
            logger.warning("Unknown station stat in reward: %s", m.group(1))
            return None
        stats[stat] = int(m.group(2))
    if not stats:
        return None
    return StationStatsReward(stats=stats)
