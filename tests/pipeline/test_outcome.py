"""Tests for end-of-scene outcome parsing and the analysis call."""

import pytest

from skit_engine.faction_requests import parse_request_tag
from skit_engine.llm import Generation
from skit_engine.models import (
    Actor,
    Request,
    ScriptEntry,
    Skit,
    StationStatsRequirement,
    StationStatsReward,
    World,
)
from skit_engine.pipeline.outcome import analyze_outcome, parse_adjustments, parse_outcome
from skit_engine.stats import Stat, StationStat


def _parse(text: str, world: World, present: list[Actor], parser=parse_request_tag):
    return parse_outcome(text, world, present, parser)


# ── parse_adjustments ──────────────────────────────────────


def test_adjustments() -> None:
    assert parse_adjustments("charm +2, Trust-1", Stat) == [("charm", 2), ("trust", -1)]


def test_adjustments_skip_garbage() -> None:
    assert parse_adjustments("charm, +2, wits + 1", Stat) == [("wits", 1)]


def test_adjustments_station_vocabulary() -> None:
    assert parse_adjustments("Station Security -2", StationStat) == [("security", -2)]


# ── parse_outcome ──────────────────────────────────────────


def test_station_changes(world: World, present: list[Actor]) -> None:
    outcome = _parse("[STATION: Security-2, Harmony-1]", world, present)
    assert outcome.stat_changes == {"STATION": {"security": -2, "harmony": -1}}


def test_character_changes_keyed_by_actor_id(world: World, present: list[Actor]) -> None:
    outcome = _parse("[JANE: charm +2, trust -1]\n[Rex Calloway: brawn+1]", world, present)
    assert outcome.stat_changes == {
        "jane": {"charm": 2, "trust": -1},
        "rex": {"brawn": 1},
    }


def test_repeated_adjustments_are_summed(world: World, present: list[Actor]) -> None:
    outcome = _parse("[JANE: charm+2]\n[Jane Doe: charm +1]\n[JANE: charm+1, charm-1]", world, present)
    assert outcome.stat_changes == {"jane": {"charm": 3}}


def test_stat_names_normalized(world: World, present: list[Actor]) -> None:
    outcome = _parse("[REX: Wit +1, Charm Points -1, Strength +2]", world, present)
    assert outcome.stat_changes == {"rex": {"wits": 1, "charm": -1, "strength": 2}}


def test_absent_target_skipped(world: World, present: list[Actor]) -> None:
    outcome = _parse("[MIRA: charm+1]", world, present)
    assert outcome.stat_changes == {}


def test_tag_without_adjustments_adds_no_bucket(world: World, present: list[Actor]) -> None:
    outcome = _parse("[STATION: nothing changed]\n[JANE: fine]", world, present)
    assert outcome.stat_changes == {}


def test_non_tag_lines_ignored(world: World, present: list[Actor]) -> None:
    outcome = _parse("Here are the changes:\nJANE: charm +1\n[END]", world, present)
    assert outcome.stat_changes == {}
    assert outcome.requests == []


def test_summary(world: World, present: list[Actor]) -> None:
    outcome = _parse("[SUMMARY: Jane and Rex made peace.]", world, present)
    assert outcome.summary == "Jane and Rex made peace."
    assert outcome.stat_changes == {}


def test_faction_reputation(world: World, present: list[Actor]) -> None:
    outcome = _parse(
        "[FACTION: Stellar Concord +1]\n[FACTION: Shadow Syndicate -2]\n[FACTION: Concord +1]",
        world, present,
    )
    assert outcome.faction_changes == {"concord": 2, "syndicate": -2}
    assert outcome.stat_changes == {}


def test_unknown_faction_and_zero_change_ignored(world: World, present: list[Actor]) -> None:
    outcome = _parse("[FACTION: Nobody Inc +1]\n[FACTION: Stellar Concord +0]", world, present)
    assert outcome.faction_changes == {}


def test_requests_delegated(world: World, present: list[Actor]) -> None:
    seen: list[str] = []
    request = Request(
        id="r1",
        faction_id="concord",
        description="Guard duty",
        requirement=StationStatsRequirement(stats={"security": 1}),
        reward=StationStatsReward(stats={"wealth": 1}),
    )

    def parser(tag: str, w: World) -> Request | None:
        seen.append(tag)
        return request if "Guard" in tag else None

    outcome = _parse(
        "[REQUEST: Stellar Concord | Guard duty | STATION Security-1 -> Wealth+1]\n"
        "[request: Stellar Concord | Nonsense]",
        world, present, parser,
    )
    assert len(seen) == 2
    assert outcome.requests == [request]
    assert outcome.stat_changes == {}


def test_request_with_default_parser(world: World, present: list[Actor]) -> None:
    outcome = _parse(
        "[REQUEST: Stellar Concord | We need a strong laborer | ACTOR brawn>=7 -> Systems+2]",
        world, present,
    )
    assert len(outcome.requests) == 1
    assert outcome.requests[0].faction_id == "concord"


def test_mixed_response(world: World, present: list[Actor]) -> None:
    outcome = _parse(
        "[JANE: trust +1]\n"
        "[STATION: Harmony +1]\n"
        "[FACTION: Shadow Syndicate -1]\n"
        "[SUMMARY: Jane opened up.]\n"
        "[END]",
        world, present,
    )
    assert outcome.stat_changes == {"jane": {"trust": 1}, "STATION": {"harmony": 1}}
    assert outcome.faction_changes == {"syndicate": -1}
    assert outcome.summary == "Jane opened up."


# ── analyze_outcome ────────────────────────────────────────


class RecordingLLM:
    def __init__(self, response: Generation | None) -> None:
        self.response = response
        self.calls: list[dict] = []

    async def __call__(self, stage, prompt, *, min_tokens, max_tokens, include_history, stop=None):
        self.calls.append({
            "stage": stage, "prompt": prompt, "min_tokens": min_tokens,
            "max_tokens": max_tokens, "include_history": include_history, "stop": stop,
        })
        return self.response


@pytest.mark.parametrize("summary, max_tokens", [("They talked.", 250), (None, 400)])
async def test_analysis_call_parameters(
    world: World, skit: Skit, summary: str | None, max_tokens: int
) -> None:
    llm = RecordingLLM(Generation(result="[END]"))
    await analyze_outcome(skit, world, [], summary, llm, parse_request_tag)
    call = llm.calls[0]
    assert call["stage"] == "skit_analysis"
    assert call["min_tokens"] == 5
    assert call["max_tokens"] == max_tokens
    assert call["include_history"] is True
    assert call["stop"] == ["[END]"]


async def test_analysis_parses_response(world: World, skit: Skit) -> None:
    llm = RecordingLLM(Generation(result="[JANE: charm+1]\n[STATION: Comfort+1]\n[END]"))
    entries = [ScriptEntry(speaker="Jane Doe", message='"Thanks."')]
    outcome = await analyze_outcome(skit, world, entries, "Jane relaxed.", llm, parse_request_tag)
    assert outcome.stat_changes == {"jane": {"charm": 1}, "STATION": {"comfort": 1}}
    assert 'Jane Doe: "Thanks."' in llm.calls[0]["prompt"]


async def test_analysis_empty_response(world: World, skit: Skit) -> None:
    outcome = await analyze_outcome(skit, world, [], None, RecordingLLM(None), parse_request_tag)
    assert outcome.stat_changes == {}
    assert outcome.requests == []
    assert outcome.summary is None


async def test_analysis_uses_current_location(world: World, skit: Skit) -> None:
    # Mira walked in after the scene was generated
    world.actors["mira"].location_id = "quarters-1"
    llm = RecordingLLM(Generation(result="[MIRA: nerve+1]"))
    outcome = await analyze_outcome(skit, world, [], None, llm, parse_request_tag)
    assert outcome.stat_changes == {"mira": {"nerve": 1}}
