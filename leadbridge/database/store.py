"""
Durable lead store used by the ingestion pipeline
Insert-only interface with a SQLAlchemy implementation
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError

from .crud import LeadCRUD
from .init_db import DatabaseManager, db_manager as default_db_manager

__all__ = ["LeadEntry", "LeadStore", "LeadStoreError", "SqlAlchemyLeadStore"]


class LeadStoreError(Exception):
    """Lead could not be written to the store"""
    pass


@dataclass(frozen=True)
class LeadEntry:
    """Values of one leads row; the store generates id and called_at"""
    raw_transcript: str
    call_duration_sec: int
    call_status: str
    conversation_id: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    use_case: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LeadStore(Protocol):
    async def insert(self, entry: LeadEntry) -> None:
        """Persist one entry, raising LeadStoreError on failure"""
        ...


class SqlAlchemyLeadStore:
    """LeadStore backed by the leads table"""

    def __init__(self, database: Optional[DatabaseManager] = None):
        self.database = database or default_db_manager

    async def insert(self, entry: LeadEntry) -> None:
        try:
            async with self.database.get_session() as session:
                await LeadCRUD.create_lead(session, **entry.to_dict())
        except SQLAlchemyError as e:
            raise LeadStoreError(f"Lead insert failed: {e}") from e
        except (UnicodeError, ValueError, TypeError) as e:
            # Driver rejected a bound value before it reached the database
            raise LeadStoreError(f"Lead insert failed: {e}") from e
