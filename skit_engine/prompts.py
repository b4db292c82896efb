"""Handlebars prompt rendering for skit generation.

Two prompts are produced per scene cycle:

    build_skit_prompt      — asks for the next stretch of the scene script
    build_analysis_prompt  — asks, once the scene ends, for stat changes,
                             faction requests and reputation changes

Both share one premise template; only the closing instruction differs.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any

import pybars

from skit_engine.models import NARRATOR, ScriptEntry, Skit, World, scene_presence
from skit_engine.names import names_match
from skit_engine.stats import STAT_DESCRIPTIONS

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_last(this, options, items, count):
    """{{#last array N}}...{{/last}} — iterate over the last N items."""
    count = int(count)
    if count <= 0:
        return []
    result = []
    for item in list(items)[-count:]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "last": _helper_last,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── Templates ────────────────────────────────────────────

PREMISE_TEMPLATE = """Premise:
This is a sci-fi visual novel game set on a space station that resurrects and rehabilitates patients who died in a multiverse-wide apocalypse: the Post-Apocalypse Rehabilitation Center (PARC). The player character, {{{player.name}}}, is the Director of the PARC, interacting with patients and crew as they navigate this futuristic universe together.
{{#if station_stats}}

The PARC's current stats:
{{#each station_stats}}  {{{name}}}: {{value}}
{{/each}}{{/if}}

{{{player.name}}}'s profile: {{{player.description}}}

Present Characters:
{{#each present}}{{{name}}}
  Description: {{{description}}}
  Profile: {{{profile}}}
  Stats: {{{stats}}}
{{else}}(None)
{{/each}}
Absent Characters:
{{#each absent}}{{{name}}}
  Description: {{{description}}}
{{else}}(None)
{{/each}}
Stats:
{{#each stat_descriptions}}{{{name}}}: {{{description}}}
{{/each}}
Scene Prompt:
{{{scene_prompt}}}
{{#if factions}}

Known Factions:
{{#each factions}}{{{name}}} (reputation {{reputation}}): {{{description}}}
{{/each}}{{/if}}{{#if recent_scenes}}

Recent Scenes for additional context:{{#last recent_scenes history_length}}

  Scene {{{label}}}:
{{{text}}}{{/last}}{{/if}}

{{{instruction}}}"""

# (opening, continuing) scene prompt per skit type
SCENE_PROMPTS: dict[str, tuple[str, str]] = {
    "BEGINNING": (
        "This scene introduces the beginning of the story, as the station's holographic aide "
        "resurrects {{{player}}} and declares them the new Director of the otherwise-abandoned PARC.",
        "Continue this introductory scene as the aide explains the PARC's purpose to {{{player}}}. "
        "Once the concept is established, use a \"[SUMMARY]\" tag to end the scene.",
    ),
    "INTRO CHARACTER": (
        "This scene introduces a new character, {{{actor}}}, fresh from their echo chamber. "
        "{{{actor}}} has no knowledge of this universe. Establish their personality and motivations.",
        "Continue the introduction of {{{actor}}}, expanding on their personality or motivations.",
    ),
    "VISIT CHARACTER": (
        "This scene depicts the Director's visit with {{{actor}}} in {{{actor}}}'s quarters. "
        "Potentially explore {{{actor}}}'s thoughts, feelings, or troubles in this intimate setting.",
        "Continue this scene with {{{actor}}}, exploring their thoughts, feelings, or troubles.",
    ),
    "ROLE ASSIGNMENT": (
        "This scene depicts the Director newly assigning {{{actor}}} to the role of {{{role}}} "
        "in the {{{module}}}. Portray {{{actor}}}'s reaction to this new role.",
        "Continue this scene with {{{actor}}}, exploring their feelings toward their new role.",
    ),
    "FACTION INTRODUCTION": (
        "This scene introduces a new faction that would like to do business with the PARC: "
        "{{{faction}}}. The conversation happens over a remote video link.",
        "This is an introductory scene for {{{faction}}}, conducted over a remote video link.",
    ),
    "FACTION INTERACTION": (
        "This scene depicts an interaction between the Director and {{{faction}}}, "
        "conducted over a remote video link.",
        "Continue this scene between the Director and a representative of {{{faction}}}.",
    ),
    "REQUEST FILL ACTOR": (
        "This scene depicts {{{actor}}} departing the PARC to fulfil a request from {{{faction}}}. "
        "Both sides will honor the agreement.",
        "Continue this scene, exploring {{{actor}}}'s feelings on leaving the PARC.",
    ),
    "REQUEST FILL STATION": (
        "This scene depicts the Director fulfilling a request from {{{faction}}}. "
        "Both sides will honor the agreement.",
        "Continue this scene describing the outcome of this request.",
    ),
    "NEW MODULE": (
        "This scene depicts the crew reacting to the opening of a new module, the {{{module}}}.",
        "Continue this scene, exploring the crew's feelings toward the new {{{module}}}.",
    ),
    "RANDOM ENCOUNTER": (
        "This scene depicts a chance encounter in the {{{module}}}. "
        "Explore what might arise from this unexpected meeting.",
        "Continue this chance encounter in the {{{module}}}.",
    ),
}

SCRIPT_FORMAT_EXAMPLE = (
    "Example Script Format:\n"
    "System: CHARACTER NAME: They do actions in prose. \"Their dialogue is in quotation marks.\"\n"
    "ANOTHER CHARACTER NAME: [ANOTHER CHARACTER NAME EXPRESSES JOY][CHARACTER NAME EXPRESSES SURPRISE] "
    "\"Dialogue in quotation marks.\"\n"
    "NARRATOR: [CHARACTER NAME EXPRESSES RELIEF] Descriptive content that is not attributed to a character."
    "\n\nExample Character Movement Format:\n"
    "System: NARRATOR: [CHARACTER NAME arrives] CHARACTER NAME enters the room.\n"
    "NARRATOR: [CHARACTER NAME departs] CHARACTER NAME leaves the scene."
)

WRAP_UP_GENTLE = (
    "\n\nPriority Instruction: Consider whether the scene has reached or can reach a natural "
    "stopping point where it might employ a \"[SUMMARY]\" tag."
)
WRAP_UP_FIRM = (
    "\n\nCritical Instruction: This scene is running long and needs a summary. "
    "Finish the immediate beat and include a \"[SUMMARY]\" tag."
)


# ── Context assembly ─────────────────────────────────────


def build_script_log(script: list[ScriptEntry]) -> str:
    """Render script entries back into the "SPEAKER: message" form the model writes."""
    if not script:
        return "(None so far)"
    lines: list[str] = []
    for entry in script:
        emotions = entry.actor_emotions or {}
        # re-attach the speaker's own emotion so the model sees its earlier cue
        name = next((n for n in emotions if names_match(n, entry.speaker)), None)
        tag = f" [{name} EXPRESSES {emotions[name].value.upper()}]" if name else ""
        lines.append(f"{entry.speaker}: {entry.message}{tag}")
    return "\n".join(lines)


def scene_prompt(skit: Skit, world: World) -> str:
    opening, continuing = SCENE_PROMPTS.get(skit.type, ("", ""))
    actor = world.actors.get(skit.actor_id or "")
    faction = world.factions.get(skit.context.get("faction_id", ""))
    return render_prompt(continuing if skit.script else opening, {
        "player": world.player.name,
        "actor": actor.name if actor else "a patient",
        "faction": faction.name if faction else "a secret organization",
        "module": skit.context.get("module_type", skit.module_id or "unknown module"),
        "role": skit.context.get("role", "something new"),
    })


def build_context(skit: Skit, world: World, history_length: int, instruction: str) -> dict[str, Any]:
    """Assemble template variables from the skit and world snapshot.

    Once the scene has a starting cast, the present and absent lists follow
    arrivals and departures in the script; before that they go by location.
    ``history_length`` counts the current scene, so one fewer past scene is
    shown.
    """
    if skit.initial_actor_ids is not None:
        in_scene = scene_presence(skit)
    else:
        in_scene = {a.id for a in world.present_actors(skit.module_id)}
    present = [a for a in world.all_actors() if a.id in in_scene and not a.remote]
    absent = [a for a in world.all_actors() if a.id not in in_scene and not a.remote]
    shown = max(history_length - 1, 0)

    # summaries stand in for older scenes; the most recent one is shown in full
    last = len(world.past_skits) - 1
    recent = [
        {
            "label": f"in {past.module_id or 'unknown'}",
            "text": (
                past.summary
                if past.summary and i != last
                else f"System: {build_script_log(past.script)}"
            ),
        }
        for i, past in enumerate(world.past_skits)
    ]

    return {
        "player": world.player.model_dump(),
        "station_stats": [{"name": k.upper(), "value": v} for k, v in world.station_stats.items()],
        "present": [
            {
                "name": a.name,
                "description": a.description,
                "profile": a.profile,
                "stats": ", ".join(f"{k}: {v}" for k, v in a.stats.items()) or "unknown",
            }
            for a in present
        ],
        "absent": [{"name": a.name, "description": a.description} for a in absent],
        "stat_descriptions": [
            {"name": stat.value.upper(), "description": desc}
            for stat, desc in STAT_DESCRIPTIONS.items()
        ],
        "scene_prompt": scene_prompt(skit, world),
        "factions": [f.model_dump() for f in world.factions.values()],
        # empty when nothing will be shown, so the section header is skipped too
        "recent_scenes": recent if shown else [],
        "history_length": shown,
        "instruction": instruction,
    }


# ── Prompt builders ──────────────────────────────────────


def wrap_up_instruction(script_length: int, rng: random.Random | None = None) -> str:
    """Nudge long scenes toward a summary; empty for short or new scenes."""
    if script_length == 0:
        return ""
    factor = script_length + (rng or random).randint(1, 10)
    if factor > 24:
        return WRAP_UP_FIRM
    if factor > 12:
        return WRAP_UP_GENTLE
    return ""


def build_skit_prompt(
    skit: Skit, world: World, history_length: int, rng: random.Random | None = None
) -> str:
    continuing = bool(skit.script)
    instruction = (
        SCRIPT_FORMAT_EXAMPLE
        + "\n\nExample Ending Script Format:\n"
        + "System: CHARACTER NAME: [CHARACTER NAME EXPRESSES OPTIMISM] Action in prose. "
        + "\"Dialogue in quotation marks.\"\nNARRATOR: A moment of prose describing events."
        + ("\n[SUMMARY: CHARACTER NAME is hopeful about this demonstration.]" if continuing else "")
        + f"\n\nCurrent Scene Script Log to Continue:\nSystem: {build_script_log(skit.script)}"
        + "\n\nPrimary Instruction:\nAt the \"System:\" prompt, "
        + ("extend or conclude the current scene script" if continuing else "generate a short scene script")
        + " based upon the Premise and the Scene Prompt, involving the Present Characters. "
        + "Follow the Example Script format strictly: actions in prose, dialogue in quotation marks. "
        + "Emotion tags (e.g. \"[CHARACTER NAME EXPRESSES JOY]\") mark significant emotional shifts; "
        + "movement tags (\"[CHARACTER NAME arrives]\", \"[CHARACTER NAME departs]\") mark characters "
        + "joining or leaving the scene."
        + (
            "\nWhen the script completes a full story beat or reaches a conclusive moment, insert a "
            "\"[SUMMARY: A brief synopsis of this scene's key events.]\" tag."
            + wrap_up_instruction(len(skit.script), rng)
            if continuing else ""
        )
    )
    return render_prompt(PREMISE_TEMPLATE, build_context(skit, world, history_length, instruction))


def build_analysis_prompt(
    skit: Skit, world: World, entries: list[ScriptEntry], summary: str | None
) -> str:
    example = world.all_actors()[0].name if world.actors else NARRATOR
    instruction = (
        f"Scene Script:\nSystem: {build_script_log(skit.script + entries)}"
        "\n\nPrimary Instruction:\nAnalyze the preceding scene script and output formatted tags in brackets, "
        "identifying the following changes to be incorporated into the game."
        "\n\nCharacter Stat Changes:\nFor each change implied by the scene, output a line:\n"
        "\"[CHARACTER NAME: <stat> +<value>(, ...)]\"\n"
        f"Full Examples:\n\"[{example}: brawn +1, charm +2]\"\n\"[{example}: lust -1]\""
        "\n\nStation Stat Changes:\nFor each change to PARC station stats, output a line:\n"
        "\"[STATION: <stat> +<value>(, ...)]\"\n"
        "Full Examples:\n\"[STATION: Systems +2, Comfort +1]\"\n\"[STATION: Security -1]\""
        "\n\nFaction Requests:\nFor each request a faction makes of the player or station, output a line:\n"
        "\"[REQUEST: <factionName> | <description> | <requirement> -> <reward>]\"\n"
        "Valid <requirement> formats:\n"
        "  ACTOR <stat><op><value>[, ...]  (op is >= or <=), e.g. ACTOR brawn>=7, charm>=5\n"
        "  ACTOR-NAME <actorName>, e.g. ACTOR-NAME Jane Doe\n"
        "  STATION <stat>-<value>[, ...], e.g. STATION Security-2, Harmony-1\n"
        "Valid <reward> format:\n"
        "  <stat>+<value>[, ...], e.g. Systems+2, Comfort+1\n"
        "Full Example:\n"
        "\"[REQUEST: Stellar Concord | We need a strong laborer | ACTOR brawn>=7 -> Systems+2, Comfort+1]\""
        "\n\nFaction Reputation Changes:\nFor each change to a faction's opinion of the PARC, output a line:\n"
        "\"[FACTION: <factionName> +<value>]\"\n"
        "Full Examples:\n\"[FACTION: Stellar Concord +1]\"\n\"[FACTION: Shadow Syndicate -2]\""
        + (
            ""
            if summary
            else "\n\nSummarize Scene:\n\"[SUMMARY: A brief synopsis of this scene's key events.]\""
        )
        + "\n\nFinal Instruction:\nAll suitable tags should be output in this response. "
        "All stats exist on a scale of 1-10; changes should typically be minor (+/- 1 or 2). "
        "If there is little or no change, or all relevant changes have been presented, "
        "the response may be ended early with [END].\n\n"
    )
    return render_prompt(PREMISE_TEMPLATE, build_context(skit, world, 0, instruction))
