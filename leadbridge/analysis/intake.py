"""
Intake filter for conversation-end events

Runs before any extraction work. A real qualification call has at least a
greeting, a caller reply and a follow-up, so a short call with two turns or
fewer is a hang-up, silent dial or robocall probe and is dropped.
"""

from typing import Sequence

DEFAULT_MIN_DURATION_SECONDS = 20
DEFAULT_MAX_SHORT_TURNS = 2


def should_process(
    duration_seconds: int,
    transcript: Sequence,
    min_duration_seconds: int = DEFAULT_MIN_DURATION_SECONDS,
    max_short_turns: int = DEFAULT_MAX_SHORT_TURNS,
) -> bool:
    """Return False when the call is too short and too empty to be a lead.

    Duration alone never rejects: a call with more than max_short_turns
    turns is always processed, even if the platform reported 0 seconds.
    """
    turn_count = len(transcript) if transcript else 0
    return not (duration_seconds < min_duration_seconds and turn_count <= max_short_turns)
