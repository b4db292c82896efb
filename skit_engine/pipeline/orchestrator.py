"""Pipeline orchestrator — runs one skit generation cycle end-to-end.

Cycle flow (per attempt, up to max_attempts, strictly one after another):
  1. Build the skit prompt and call the LLM ("skit" stage).
     A None response or a blank result counts as a failed attempt, the
     same as a raised error.
  2. Combine raw lines into logical lines, resolving emotion and movement
     tags; detect the [SUMMARY] end marker.
  3. Build script entries and resolve speakers to present actors.
  4. Concurrently: synthesize speech for every entry with quoted dialogue
     and, if the scene ended, run the outcome analysis ("skit_analysis"
     stage). Individual failures are logged and dropped.
  5. Flag the final entry if the scene ended, write the outcome onto the
     skit and return the SkitResult.

After max_attempts failures the empty SkitResult is returned; nothing is
raised. The caller appends result.entries to skit.script.
"""

from __future__ import annotations

import asyncio
import logging
import random

from skit_engine.faction_requests import RequestParser, parse_request_tag
from skit_engine.llm import LLM
from skit_engine.models import Skit, SkitResult, World, scene_presence
from skit_engine.prompts import build_skit_prompt
from skit_engine.speech import Speech

from .lines import build_entries, combine_lines
from .outcome import SkitOutcome, analyze_outcome
from .voicing import speech_tasks

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


async def generate_skit_script(
    skit: Skit,
    world: World,
    *,
    llm: LLM,
    speech: Speech,
    request_parser: RequestParser = parse_request_tag,
    max_attempts: int = MAX_ATTEMPTS,
    rng: random.Random | None = None,
) -> SkitResult:
    """Generate the next stretch of `skit` and return it as a SkitResult."""

    if not skit.script and skit.initial_actor_ids is None:
        skit.initial_actor_ids = [a.id for a in world.present_actors(skit.module_id)]

    for attempt in range(max_attempts):
        try:
            result = await _attempt(skit, world, llm, speech, request_parser, attempt, max_attempts, rng)
        except Exception:
            logger.exception("Skit generation attempt %d/%d failed", attempt + 1, max_attempts)
            continue
        if result is not None:
            return result
        logger.warning("Skit generation attempt %d/%d returned no text", attempt + 1, max_attempts)

    logger.error("Skit generation gave up after %d attempts", max_attempts)
    return SkitResult.empty()


async def _attempt(
    skit: Skit,
    world: World,
    llm: LLM,
    speech: Speech,
    request_parser: RequestParser,
    attempt: int,
    max_attempts: int,
    rng: random.Random | None,
) -> SkitResult | None:
    # later attempts carry less history so the prompt shrinks
    history_length = 2 + (max_attempts - attempt)
    prompt = build_skit_prompt(skit, world, history_length, rng)
    response = await llm("skit", prompt, min_tokens=10, max_tokens=400, include_history=True)
    if not response or not response.result or not response.result.strip():
        return None

    present = world.present_actors(skit.module_id)
    parsed = combine_lines(response.result, present, world.all_actors(), scene_presence(skit))
    entries = build_entries(parsed.lines, present)

    tasks = speech_tasks(entries, world.all_actors(), speech)
    if parsed.end_scene:
        logger.info("Scene end detected; analyzing outcome")
        tasks.append(analyze_outcome(skit, world, entries, parsed.summary, llm, request_parser))

    outcome = SkitOutcome()
    for settled in await asyncio.gather(*tasks, return_exceptions=True):
        if isinstance(settled, BaseException):
            logger.warning("Concurrent skit task failed: %s", settled)
        elif isinstance(settled, SkitOutcome):
            outcome = settled

    if parsed.end_scene and entries:
        entries[-1].end_scene = True

    summary = parsed.summary or outcome.summary
    skit.stat_changes = outcome.stat_changes
    skit.requests = outcome.requests
    skit.faction_changes = outcome.faction_changes
    skit.summary = summary

    return SkitResult(
        entries=entries,
        end_scene=parsed.end_scene,
        stat_changes=outcome.stat_changes,
        requests=outcome.requests,
        summary=summary,
        faction_changes=outcome.faction_changes,
    )
