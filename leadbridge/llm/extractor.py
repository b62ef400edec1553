"""
Transcript -> lead record extraction using OpenAI GPT
A failed extraction degrades to an all-null record instead of raising
"""

from typing import Optional, Protocol, Sequence
import json

import structlog
from openai import AsyncOpenAI

from ..config import get_settings
from ..webhooks.payloads import ConversationTurn, format_transcript
from .prompts import EXTRACTION_SYSTEM_PROMPT, build_extraction_prompt
from .validators import LEAD_FIELDS, LeadRecord

logger = structlog.get_logger("leadbridge.llm.extractor")


class ExtractionError(Exception):
    """Extraction service returned nothing usable"""
    pass


class ExtractionBackend(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the raw JSON text produced for the prompts"""
        ...


class OpenAIExtractionBackend:
    """Chat completions backend with JSON-object responses"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        settings = get_settings()
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self.max_tokens = max_tokens or settings.openai_max_tokens
        self.timeout = timeout or settings.openai_timeout_seconds
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ExtractionError("OpenAI API key not configured")
            # One attempt only; the caller falls back to nulls on failure
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
        )
        if not response.choices:
            raise ExtractionError("Extraction response has no choices")

        content = response.choices[0].message.content
        if not content:
            raise ExtractionError("Extraction response is empty")
        return content


class TranscriptExtractor:
    """Turns a conversation transcript into a LeadRecord"""

    def __init__(self, backend: Optional[ExtractionBackend] = None):
        self.backend = backend or OpenAIExtractionBackend()

    async def extract(self, transcript: Sequence[ConversationTurn]) -> LeadRecord:
        """Extract lead fields; never raises.

        An empty transcript returns the all-null record without calling the
        backend. Fields the service leaves out stay null.
        """
        if not transcript:
            return LeadRecord.empty()

        transcript_text = format_transcript(transcript)

        try:
            logger.info(
                "Requesting lead extraction",
                turns=len(transcript),
                transcript_length=len(transcript_text)
            )

            content = await self.backend.complete(
                EXTRACTION_SYSTEM_PROMPT,
                build_extraction_prompt(transcript_text)
            )

            try:
                parsed = json.loads(content)
            except (json.JSONDecodeError, TypeError) as e:
                raise ExtractionError(f"Extraction response is not valid JSON: {e}") from e

            if not isinstance(parsed, dict):
                raise ExtractionError(
                    f"Extraction response is {type(parsed).__name__}, expected object"
                )

            record = LeadRecord.from_extraction(parsed)
            logger.info("Lead extraction completed", fields_found=record.count_filled(LEAD_FIELDS))
            return record

        except Exception as e:
            logger.error("Transcript parsing failed", error=str(e), error_type=type(e).__name__)
            return LeadRecord.empty()
