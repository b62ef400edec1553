"""
Shared fixtures for tests
"""

import json
from typing import List

import pytest
import pytest_asyncio

from leadbridge.database.init_db import DatabaseManager
from leadbridge.database.store import LeadEntry, LeadStoreError


class FakeLeadStore:
    """Lead store that fails a given number of times before succeeding"""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.attempts = 0
        self.entries: List[LeadEntry] = []

    async def insert(self, entry: LeadEntry) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise LeadStoreError(f"insert failed (attempt {self.attempts})")
        self.entries.append(entry)


class FakeBackend:
    """Extraction backend returning a canned response"""

    def __init__(self, content=None, error: Exception = None):
        self.content = content
        self.error = error
        self.calls = []

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error:
            raise self.error
        if isinstance(self.content, dict):
            return json.dumps(self.content)
        return self.content


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays"""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sample_transcript():
    """Qualification call transcript as sent by the voice platform"""
    return [
        {"role": "agent", "message": "Hi, thanks for calling Quanta AI Lab. Who am I speaking with?"},
        {"role": "user", "message": "John Smith from Acme."},
        {"role": "agent", "message": "Great, John. What can we help you with?"},
        {"role": "user", "message": "We need a support chatbot, budget around $10k, starting next month. Email is john@x.com."},
    ]


@pytest.fixture
def full_lead_response():
    """Extraction result for sample_transcript"""
    return {
        "name": "John Smith",
        "email": "john@x.com",
        "company": "Acme",
        "useCase": "support chatbot",
        "budget": "$10k",
        "timeline": "next month",
    }


@pytest.fixture
def make_payload():
    """Build a conversation-end webhook body, flat or enveloped"""
    def _make(transcript, duration=None, conversation_id="conv_123", envelope=True):
        body = {"conversation_id": conversation_id, "transcript": transcript}
        if duration is not None:
            body["metadata"] = {"call_duration_secs": duration}
        if envelope:
            return {"type": "post_call_transcription", "data": body}
        return body
    return _make


@pytest.fixture
def fake_store():
    return FakeLeadStore()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest_asyncio.fixture
async def database():
    """In-memory SQLite database with tables created"""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:", echo=False)
    await manager.init_database()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def file_database(tmp_path):
    """File-backed SQLite database, pooled like production"""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'leads.db'}", echo=False)
    await manager.init_database()
    yield manager
    await manager.close()
