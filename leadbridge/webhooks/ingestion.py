"""
Post-call ingestion pipeline

Two phases: accept() runs inside the webhook request and decides what to
answer; process() runs detached as a background task after the answer has
been sent: extract -> classify -> store (with retry) -> notify.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple

import structlog
from fastapi import BackgroundTasks

from ..analysis.classifier import DEFAULT_ABANDONED_MAX_DURATION_SECONDS, classify_call
from ..analysis.intake import DEFAULT_MAX_SHORT_TURNS, DEFAULT_MIN_DURATION_SECONDS, should_process
from ..config import Settings
from ..database.models import CallStatus
from ..database.store import LeadEntry, LeadStore
from ..llm.extractor import TranscriptExtractor
from ..llm.validators import LeadRecord
from ..utils.helpers import retry_async
from .payloads import CallEvent, parse_call_event

logger = structlog.get_logger("leadbridge.webhooks.ingestion")

ACK_RECEIVED = {"received": True}
ACK_DISCARDED = {"received": True, "action": "discarded"}


class LeadNotifier(Protocol):
    async def notify_new_lead(self, entry: LeadEntry) -> int:
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for lead store writes"""
    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 8000

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.store_max_attempts,
            initial_delay_ms=settings.store_initial_delay_ms,
            max_delay_ms=settings.store_max_delay_ms,
        )


def build_lead_entry(event: CallEvent, lead: LeadRecord, call_status: CallStatus) -> LeadEntry:
    return LeadEntry(
        conversation_id=event.conversation_id,
        full_name=lead.name,
        email=lead.email,
        company=lead.company,
        use_case=lead.use_case,
        budget=lead.budget,
        timeline=lead.timeline,
        raw_transcript=event.serialized_transcript(),
        call_duration_sec=event.duration_seconds,
        call_status=call_status.value,
    )


class IngestionPipeline:
    """Handles conversation-end webhooks from the voice platform"""

    def __init__(
        self,
        extractor: TranscriptExtractor,
        lead_store: LeadStore,
        notifier: Optional[LeadNotifier] = None,
        retry_policy: Optional[RetryPolicy] = None,
        min_duration_seconds: int = DEFAULT_MIN_DURATION_SECONDS,
        max_short_turns: int = DEFAULT_MAX_SHORT_TURNS,
        abandoned_max_duration_seconds: int = DEFAULT_ABANDONED_MAX_DURATION_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.extractor = extractor
        self.lead_store = lead_store
        self.notifier = notifier
        self.retry_policy = retry_policy or RetryPolicy()
        self.min_duration_seconds = min_duration_seconds
        self.max_short_turns = max_short_turns
        self.abandoned_max_duration_seconds = abandoned_max_duration_seconds
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        extractor: TranscriptExtractor,
        lead_store: LeadStore,
        notifier: Optional[LeadNotifier] = None,
    ) -> "IngestionPipeline":
        return cls(
            extractor=extractor,
            lead_store=lead_store,
            notifier=notifier,
            retry_policy=RetryPolicy.from_settings(settings),
            min_duration_seconds=settings.intake_min_duration_seconds,
            max_short_turns=settings.intake_max_short_turns,
            abandoned_max_duration_seconds=settings.abandoned_max_duration_seconds,
        )

    def accept(self, payload: Any) -> Tuple[Dict[str, Any], Optional[CallEvent]]:
        """Synchronous phase: parse and filter, returning (ack, event to process)"""
        event = parse_call_event(payload)

        logger.info(
            "Conversation ended",
            conversation_id=event.conversation_id,
            duration=event.duration_seconds,
            message_count=event.turn_count,
            metadata_keys=list(event.metadata.keys())
        )

        if not should_process(
            event.duration_seconds,
            event.transcript,
            min_duration_seconds=self.min_duration_seconds,
            max_short_turns=self.max_short_turns,
        ):
            logger.info(
                "Call too short/empty, discarding",
                conversation_id=event.conversation_id,
                duration=event.duration_seconds,
                message_count=event.turn_count
            )
            return dict(ACK_DISCARDED), None

        return dict(ACK_RECEIVED), event

    def handle(self, payload: Any, background_tasks: BackgroundTasks) -> Dict[str, Any]:
        """Acknowledge now; run process() after the response is sent"""
        ack, event = self.accept(payload)
        if event is not None:
            background_tasks.add_task(self.process, event)
        return ack

    async def process(self, event: CallEvent) -> None:
        """Asynchronous phase; logs every outcome and never raises"""
        try:
            lead = await self.extractor.extract(event.transcript)
            logger.info(
                "Transcript parsed",
                conversation_id=event.conversation_id,
                lead_data=lead.to_dict()
            )

            call_status = classify_call(
                event.transcript,
                event.duration_seconds,
                lead,
                abandoned_max_duration_seconds=self.abandoned_max_duration_seconds,
            )

            entry = build_lead_entry(event, lead, call_status)
        except Exception as e:
            logger.error(
                "Post-call processing failed",
                conversation_id=event.conversation_id,
                error=str(e),
                transcript_backup=event.serialized_transcript()
            )
            return

        if not await self._persist(event, entry):
            return

        await self._notify(event, entry)

    async def _persist(self, event: CallEvent, entry: LeadEntry) -> bool:
        policy = self.retry_policy
        try:
            await retry_async(
                lambda: self.lead_store.insert(entry),
                max_attempts=policy.max_attempts,
                delay=policy.initial_delay_ms / 1000,
                backoff_factor=2.0,
                max_delay=policy.max_delay_ms / 1000,
                sleep=self._sleep,
                conversation_id=event.conversation_id,
            )
        except Exception as e:
            # Transcript goes to the log so the lead can be recovered by hand
            logger.error(
                "Post-call processing failed",
                conversation_id=event.conversation_id,
                error=str(e),
                attempts=policy.max_attempts,
                call_status=entry.call_status,
                transcript_backup=entry.raw_transcript
            )
            return False

        logger.info(
            "Lead saved",
            conversation_id=event.conversation_id,
            call_status=entry.call_status
        )
        return True

    async def _notify(self, event: CallEvent, entry: LeadEntry) -> None:
        if self.notifier is None or entry.call_status != CallStatus.COMPLETED.value:
            return
        try:
            await self.notifier.notify_new_lead(entry)
        except Exception as e:
            logger.warning(
                "Lead notification failed",
                conversation_id=event.conversation_id,
                error=str(e)
            )
