"""
SQLAlchemy models for captured leads
One row per processed call, never updated after insert
"""

from datetime import datetime, timezone
from uuid import uuid4, UUID
from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, Text, Index, CheckConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator, CHAR

__all__ = ["GUID", "CallStatus", "Base", "Lead"]


class GUID(TypeDecorator):
    """Platform-independent GUID type"""
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif isinstance(value, UUID):
            return value.hex
        else:
            return str(value).replace('-', '')

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return UUID(value)


class CallStatus(str, Enum):
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    VOICEMAIL = "voicemail"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Base = declarative_base()


class Lead(Base):
    """Lead captured from one inbound voice call"""
    __tablename__ = "leads"

    id = Column(GUID(), primary_key=True, default=uuid4)
    conversation_id = Column(String(100), nullable=True, index=True)

    # Extracted fields, null when the caller never gave them
    full_name = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    company = Column(Text, nullable=True)
    use_case = Column(Text, nullable=True)
    budget = Column(Text, nullable=True)
    timeline = Column(Text, nullable=True)

    # Verbatim JSON transcript, stored even when extraction failed
    raw_transcript = Column(Text, nullable=False)
    call_duration_sec = Column(Integer, nullable=False, default=0)
    call_status = Column(
        String(20),
        default=CallStatus.COMPLETED.value,
        nullable=False
    )
    called_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_leads_email", "email"),
        Index("idx_leads_call_status", "call_status"),
        Index("idx_leads_called_at", "called_at"),
        CheckConstraint("call_duration_sec >= 0", name="check_call_duration_positive"),
        CheckConstraint(
            "call_status IN ('completed', 'abandoned', 'voicemail')",
            name="check_call_status_values"
        ),
    )

    def to_dict(self):
        return {
            "id": str(self.id) if self.id else None,
            "conversation_id": self.conversation_id,
            "full_name": self.full_name,
            "email": self.email,
            "company": self.company,
            "use_case": self.use_case,
            "budget": self.budget,
            "timeline": self.timeline,
            "call_duration_sec": self.call_duration_sec,
            "call_status": self.call_status,
            "called_at": self.called_at.isoformat() if self.called_at else None,
        }
