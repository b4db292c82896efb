"""Skit generation pipeline.

Turns one free-text completion into a playable scene:
  1. tags         — pull [bracket] tags out of a line; resolve emotion and
                    movement tags to actors.
  2. lines        — rebuild logical "SPEAKER: text" lines from wrapped,
                    possibly truncated output; detect the [SUMMARY] end
                    marker; build ScriptEntry objects.
  3. voicing      — synthesize the quoted dialogue of each entry.
  4. outcome      — after the scene ends, a second LLM pass yields stat
                    changes, faction requests and reputation changes.
  5. orchestrator — retry loop, concurrency and result assembly.

Model output format (parsed by combine_lines):
  SPEAKER NAME: [SPEAKER NAME EXPRESSES JOY] Action in prose. "Dialogue."
  NARRATOR: [OTHER NAME arrives] Description.
  [SUMMARY: What happened in the scene.]
"""

from .lines import (  # noqa: F401
    CombinedLine,
    ParsedScript,
    build_entries,
    combine_lines,
)
from .orchestrator import generate_skit_script  # noqa: F401
from .outcome import SkitOutcome, analyze_outcome, parse_outcome  # noqa: F401
from .tags import (  # noqa: F401
    extract_tags,
    resolve_emotion_tag,
    resolve_movement_tag,
    strip_tags,
)
from .voicing import dialogue_transcript, voice_entry  # noqa: F401
