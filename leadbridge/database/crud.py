"""
CRUD operations for the leads table
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Lead

__all__ = ["LeadCRUD"]


class LeadCRUD:
    """CRUD operations for Lead model"""

    @staticmethod
    async def create_lead(
        session: AsyncSession,
        raw_transcript: str,
        call_status: str,
        call_duration_sec: int = 0,
        conversation_id: Optional[str] = None,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        company: Optional[str] = None,
        use_case: Optional[str] = None,
        budget: Optional[str] = None,
        timeline: Optional[str] = None,
        called_at: Optional[datetime] = None
    ) -> Lead:
        """Create a new lead record"""
        lead = Lead(
            conversation_id=conversation_id,
            full_name=full_name,
            email=email,
            company=company,
            use_case=use_case,
            budget=budget,
            timeline=timeline,
            raw_transcript=raw_transcript,
            call_duration_sec=call_duration_sec,
            call_status=call_status,
        )
        if called_at is not None:
            lead.called_at = called_at
        session.add(lead)
        # The caller's session owns the transaction
        await session.flush()
        return lead

    @staticmethod
    async def get_lead_by_id(session: AsyncSession, lead_id: UUID) -> Optional[Lead]:
        """Get lead by UUID"""
        result = await session.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_leads_by_conversation(session: AsyncSession, conversation_id: str) -> List[Lead]:
        """All rows written for one conversation (retries can produce more than one)"""
        result = await session.execute(
            select(Lead)
            .where(Lead.conversation_id == conversation_id)
            .order_by(Lead.called_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_recent_leads(
        session: AsyncSession,
        limit: int = 50,
        call_status: Optional[str] = None
    ) -> List[Lead]:
        """Get most recent leads, optionally filtered by call status"""
        query = select(Lead)
        if call_status:
            query = query.where(Lead.call_status == call_status)
        query = query.order_by(desc(Lead.called_at)).limit(limit)

        result = await session.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_status(session: AsyncSession) -> Dict[str, int]:
        """Number of leads per call status"""
        result = await session.execute(
            select(Lead.call_status, func.count(Lead.id)).group_by(Lead.call_status)
        )
        return {status: count for status, count in result.all()}
