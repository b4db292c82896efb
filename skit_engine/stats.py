"""Character and station stat vocabularies."""

from __future__ import annotations

from enum import Enum


class Stat(str, Enum):
    """Core character stats, each on a 1-10 scale."""

    BRAWN = "brawn"  # physical condition and strength
    SKILL = "skill"  # capability and finesse
    NERVE = "nerve"  # courage and confidence
    WITS = "wits"  # intelligence and awareness
    CHARM = "charm"  # charisma and tact
    LUST = "lust"  # sexuality and physical desire
    JOY = "joy"  # happiness and positivity
    TRUST = "trust"  # compliance and faith in the player


class StationStat(str, Enum):
    """Station-wide stats, each on a 1-10 scale."""

    SYSTEMS = "systems"
    COMFORT = "comfort"
    PROVISION = "provision"
    SECURITY = "security"
    HARMONY = "harmony"
    WEALTH = "wealth"


STAT_DESCRIPTIONS: dict[Stat, str] = {
    Stat.BRAWN: "Physical condition and strength",
    Stat.SKILL: "Capability and finesse",
    Stat.NERVE: "Courage and confidence",
    Stat.WITS: "Intelligence and awareness",
    Stat.CHARM: "Charisma and tact",
    Stat.LUST: "Sexuality and physical desire",
    Stat.JOY: "Happiness and positivity",
    Stat.TRUST: "Compliance and faith in the Director",
}


def normalize_stat_name(raw: str, vocabulary: type[Stat] | type[StationStat]) -> str:
    """Fold a free-text stat name onto a member of `vocabulary` if possible.

    Exact case-insensitive match first, then substring containment in
    either direction (first member in declaration order wins). Unknown
    names come back lower-cased and trimmed.
    """
    key = raw.strip().lower()
    for member in vocabulary:
        if member.value == key:
            return member.value
    for member in vocabulary:
        if member.value in key or key in member.value:
            return member.value
    return key


def find_stat(raw: str, vocabulary: type[Stat] | type[StationStat]) -> str | None:
    """Exact case-insensitive lookup; None if `raw` is not a member."""
    key = raw.strip().lower()
    for member in vocabulary:
        if member.value == key:
            return member.value
    return None
