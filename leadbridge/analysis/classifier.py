"""
Call outcome classification from transcript, duration and extracted lead
"""

from typing import Sequence

from ..database.models import CallStatus
from ..llm.validators import CONTACT_FIELDS, LeadRecord

DEFAULT_ABANDONED_MAX_DURATION_SECONDS = 60


def classify_call(
    transcript: Sequence,
    duration_seconds: int,
    lead: LeadRecord,
    abandoned_max_duration_seconds: int = DEFAULT_ABANDONED_MAX_DURATION_SECONDS,
) -> CallStatus:
    """Pick the call status; first matching rule wins.

    1. No transcript at all -> voicemail
    2. At most one of name/email/company/useCase and a short call -> abandoned
    3. Anything else -> completed, even with null fields
    """
    if not transcript:
        return CallStatus.VOICEMAIL

    fields_collected = lead.count_filled(CONTACT_FIELDS)
    if fields_collected <= 1 and duration_seconds < abandoned_max_duration_seconds:
        return CallStatus.ABANDONED

    return CallStatus.COMPLETED
