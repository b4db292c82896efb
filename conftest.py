"""Shared fixtures: a small station with three crew and two factions.

Jane and Rex share quarters-1 (where most scenes are set); Mira is in
the comms module and only enters a scene through an arrival tag.
"""

import pytest

from skit_engine.models import Actor, Faction, Player, Skit, World


@pytest.fixture
def world() -> World:
    return World(
        player=Player(name="Director", description="Keeper of the PARC."),
        actors={
            "jane": Actor(
                id="jane",
                name="Jane Doe",
                location_id="quarters-1",
                voice_id="voice-jane",
                description="A former courier with a dry sense of humour.",
                stats={"charm": 6, "trust": 4},
            ),
            "rex": Actor(
                id="rex",
                name="Rex Calloway",
                location_id="quarters-1",
                description="A gruff ex-soldier.",
                stats={"brawn": 8},
            ),
            "mira": Actor(
                id="mira",
                name="Mira Solano",
                location_id="comms",
                voice_id="voice-mira",
                description="Signals officer.",
            ),
        },
        factions={
            "concord": Faction(id="concord", name="Stellar Concord", description="Traders."),
            "syndicate": Faction(id="syndicate", name="Shadow Syndicate", reputation=3),
        },
        station_stats={"systems": 5, "security": 4},
    )


@pytest.fixture
def skit() -> Skit:
    return Skit(type="VISIT CHARACTER", module_id="quarters-1", actor_id="jane")


@pytest.fixture
def present(world: World) -> list[Actor]:
    return world.present_actors("quarters-1")
