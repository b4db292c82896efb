"""Core domain models.

All pipeline stages operate on these types. Pydantic is used for
validation and serialisation at every data boundary (HTTP bodies, stored
world snapshots).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from skit_engine.emotions import Emotion

NARRATOR = "NARRATOR"
STATION = "STATION"

SkitType = Literal[
    "BEGINNING",
    "INTRO CHARACTER",
    "VISIT CHARACTER",
    "ROLE ASSIGNMENT",
    "FACTION INTRODUCTION",
    "FACTION INTERACTION",
    "REQUEST FILL ACTOR",
    "REQUEST FILL STATION",
    "NEW MODULE",
    "RANDOM ENCOUNTER",
]


# ---------------------------------------------------------------------------
# World snapshot (read-only to the pipeline)
# ---------------------------------------------------------------------------

class Actor(BaseModel):
    """A character aboard the station."""

    id: str
    name: str
    location_id: str = ""  # module the actor is currently in
    voice_id: str | None = None
    description: str = ""
    profile: str = ""
    stats: dict[str, int] = Field(default_factory=dict)
    remote: bool = False


class Faction(BaseModel):
    id: str
    name: str
    description: str = ""
    reputation: int = 5  # 1–10


class Player(BaseModel):
    name: str = "Director"
    description: str = ""


class World(BaseModel):
    """Snapshot of the game world at the moment a skit is generated."""

    player: Player = Field(default_factory=Player)
    actors: dict[str, Actor] = Field(default_factory=dict)
    factions: dict[str, Faction] = Field(default_factory=dict)
    station_stats: dict[str, int] = Field(default_factory=dict)
    past_skits: list[Skit] = Field(default_factory=list)

    def all_actors(self) -> list[Actor]:
        return list(self.actors.values())

    def present_actors(self, location_id: str) -> list[Actor]:
        """Actors whose location is `location_id`, recomputed on every call."""
        return [a for a in self.actors.values() if a.location_id == location_id]


# ---------------------------------------------------------------------------
# Faction requests
# ---------------------------------------------------------------------------

class ActorStatsRequirement(BaseModel):
    """Any actor whose stats fall within the given bounds."""

    type: Literal["actor-with-stats"] = "actor-with-stats"
    min_stats: dict[str, int] | None = None
    max_stats: dict[str, int] | None = None


class SpecificActorRequirement(BaseModel):
    type: Literal["specific-actor"] = "specific-actor"
    actor_id: str


class StationStatsRequirement(BaseModel):
    """Station stats the player gives up (amount per stat)."""

    type: Literal["station-stats"] = "station-stats"
    stats: dict[str, int]


RequestRequirement = Annotated[
    ActorStatsRequirement | SpecificActorRequirement | StationStatsRequirement,
    Field(discriminator="type"),
]


class StationStatsReward(BaseModel):
    type: Literal["station-stats"] = "station-stats"
    stats: dict[str, int]


class Request(BaseModel):
    """An offer from a faction: fulfil the requirement, receive the reward."""

    id: str
    faction_id: str
    description: str
    requirement: RequestRequirement
    reward: StationStatsReward


# ---------------------------------------------------------------------------
# Skits
# ---------------------------------------------------------------------------

class ScriptEntry(BaseModel):
    """One beat of a scene, attributed to a speaker."""

    speaker: str = NARRATOR
    message: str
    speech_url: str = ""
    actor_emotions: dict[str, Emotion] | None = None  # canonical actor name -> emotion
    end_scene: bool | None = None
    arrivals: list[str] | None = None  # actor ids
    departures: list[str] | None = None  # actor ids


class Skit(BaseModel):
    """Mutable scene state threaded through generation cycles."""

    type: SkitType = "VISIT CHARACTER"
    module_id: str
    actor_id: str | None = None
    initial_actor_ids: list[str] | None = None
    script: list[ScriptEntry] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)
    requests: list[Request] = Field(default_factory=list)
    summary: str | None = None
    stat_changes: dict[str, dict[str, int]] = Field(default_factory=dict)
    faction_changes: dict[str, int] = Field(default_factory=dict)


def scene_presence(skit: Skit) -> set[str]:
    """Ids of actors in the scene after the existing script has played out."""
    in_scene = set(skit.initial_actor_ids or [])
    for entry in skit.script:
        in_scene.update(entry.arrivals or [])
        in_scene.difference_update(entry.departures or [])
    return in_scene


class SkitResult(BaseModel):
    """Output of one generation cycle."""

    entries: list[ScriptEntry] = Field(default_factory=list)
    end_scene: bool = False
    stat_changes: dict[str, dict[str, int]] = Field(default_factory=dict)
    requests: list[Request] = Field(default_factory=list)
    summary: str | None = None
    faction_changes: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> SkitResult:
        """The "no progress was made" sentinel returned after retries run out."""
        return cls()


World.model_rebuild()
