"""
Conversation-end webhook payloads from the voice platform

The platform has been seen posting the event both flat and wrapped in a
"data" envelope, so both shapes are accepted. Every field is optional:
anything missing or of the wrong type falls back to empty/zero.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..utils.helpers import safe_json_dumps


class SpeakerRole(str, Enum):
    AGENT = "agent"
    CALLER = "caller"


# Platform role names -> our roles; anything else is kept as sent
ROLE_ALIASES = {
    "agent": SpeakerRole.AGENT.value,
    "assistant": SpeakerRole.AGENT.value,
    "user": SpeakerRole.CALLER.value,
    "caller": SpeakerRole.CALLER.value,
}


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    message: str

    @classmethod
    def from_raw(cls, raw: Any) -> "ConversationTurn":
        if not isinstance(raw, dict):
            return cls(role="", message="" if raw is None else str(raw))

        role = str(raw.get("role") or "").strip().lower()
        message = raw.get("message")
        return cls(
            role=ROLE_ALIASES.get(role, role),
            message="" if message is None else str(message),
        )


@dataclass(frozen=True)
class CallEvent:
    """One finished call as reported by the voice platform"""
    conversation_id: Optional[str]
    transcript: Tuple[ConversationTurn, ...]
    duration_seconds: int
    metadata: Dict[str, Any] = field(default_factory=dict)
    # Transcript exactly as received, for lossless backup
    raw_transcript: Tuple[Any, ...] = ()

    @property
    def turn_count(self) -> int:
        return len(self.transcript)

    def serialized_transcript(self) -> str:
        # ASCII escapes keep lone surrogates from the platform storable
        return safe_json_dumps(list(self.raw_transcript), ensure_ascii=True)


def unwrap_payload(payload: Any) -> Dict[str, Any]:
    """Return the event body from a flat or data-enveloped payload"""
    if not isinstance(payload, dict):
        return {}
    data = payload.get("data")
    if isinstance(data, dict) and data:
        return data
    return payload


def coerce_duration(value: Any) -> int:
    """Duration in whole seconds; missing, invalid or negative becomes 0"""
    if isinstance(value, bool):
        return 0
    try:
        seconds = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(seconds, 0)


def parse_call_event(payload: Any) -> CallEvent:
    """Build a CallEvent from a raw webhook body, tolerating any shape"""
    body = unwrap_payload(payload)

    raw_transcript = body.get("transcript")
    if not isinstance(raw_transcript, list):
        raw_transcript = []

    metadata = body.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    conversation_id = body.get("conversation_id")
    if conversation_id is not None:
        conversation_id = str(conversation_id)

    return CallEvent(
        conversation_id=conversation_id,
        transcript=tuple(ConversationTurn.from_raw(turn) for turn in raw_transcript),
        duration_seconds=coerce_duration(metadata.get("call_duration_secs")),
        metadata=metadata,
        raw_transcript=tuple(raw_transcript),
    )


def format_transcript(transcript: Iterable[ConversationTurn]) -> str:
    """Flatten turns into speaker-prefixed lines"""
    return "\n".join(f"{turn.role}: {turn.message}" for turn in transcript)
