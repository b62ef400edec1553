"""
Tests for the HTTP endpoints
"""

import json

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from leadbridge.llm.extractor import TranscriptExtractor
from leadbridge.main import app
from leadbridge.telephony.elevenlabs import TelephonyError
from leadbridge.webhooks.ingestion import IngestionPipeline

from .conftest import FakeBackend, FakeLeadStore, SleepRecorder

SIGNED_URL = "wss://api.elevenlabs.io/v1/convai/conversation?agent_id=agent_abc"
DEEPLY_NESTED = b'{"transcript": ' + b"[" * 50000 + b"]" * 50000 + b"}"


@pytest.fixture
def client():
    """TestClient with the original app.state restored afterwards"""
    saved = dict(app.state._state)
    yield TestClient(app)
    app.state._state.clear()
    app.state._state.update(saved)


@pytest.fixture
def wired_pipeline(full_lead_response):
    store = FakeLeadStore()
    backend = FakeBackend(content=full_lead_response)
    pipeline = IngestionPipeline(
        extractor=TranscriptExtractor(backend),
        lead_store=store,
        sleep=SleepRecorder(),
    )
    app.state.pipeline = pipeline
    return pipeline, store, backend


class TestConversationEnd:

    def test_accepted_call_is_stored(self, client, wired_pipeline, make_payload, sample_transcript):
        _, store, backend = wired_pipeline

        response = client.post("/conversation-end", json=make_payload(sample_transcript, duration=120))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        # TestClient runs background tasks before returning
        assert len(backend.calls) == 1
        assert len(store.entries) == 1
        assert store.entries[0].call_status == "completed"
        assert json.loads(store.entries[0].raw_transcript) == sample_transcript

    def test_flat_payload_accepted(self, client, wired_pipeline, make_payload, sample_transcript):
        _, store, _ = wired_pipeline

        response = client.post(
            "/conversation-end", json=make_payload(sample_transcript, duration=120, envelope=False)
        )

        assert response.json() == {"received": True}
        assert store.entries[0].conversation_id == "conv_123"

    def test_short_call_discarded(self, client, wired_pipeline, make_payload):
        _, store, backend = wired_pipeline

        response = client.post(
            "/conversation-end", json=make_payload([{"role": "agent", "message": "Hello?"}], duration=3)
        )

        assert response.status_code == 200
        assert response.json() == {"received": True, "action": "discarded"}
        assert backend.calls == []
        assert store.attempts == 0

    @pytest.mark.parametrize(
        "body", [b"not json", b"[1, 2, 3]", b"", DEEPLY_NESTED],
        ids=["not-json", "array", "empty", "deeply-nested"]
    )
    def test_malformed_body_discarded_not_failed(self, client, wired_pipeline, body):
        _, store, _ = wired_pipeline

        response = client.post("/conversation-end", content=body, headers={"content-type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"received": True, "action": "discarded"}
        assert store.attempts == 0

    def test_store_failure_not_surfaced(self, client, full_lead_response, make_payload, sample_transcript):
        store = FakeLeadStore(failures=100)
        app.state.pipeline = IngestionPipeline(
            extractor=TranscriptExtractor(FakeBackend(content=full_lead_response)),
            lead_store=store,
            sleep=SleepRecorder(),
        )

        response = client.post("/conversation-end", json=make_payload(sample_transcript, duration=120))

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert store.attempts == 3
        assert store.entries == []


class TestIncomingCall:

    def test_connects_to_agent(self, client):
        app.state.elevenlabs = MagicMock(get_signed_url=AsyncMock(return_value=SIGNED_URL))

        response = client.post("/incoming-call", data={"From": "+15550001", "To": "+15550002", "CallSid": "CA1"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "<Connect>" in response.text
        assert f'<Stream url="{SIGNED_URL}"' in response.text

    def test_fallback_message_on_error(self, client):
        app.state.elevenlabs = MagicMock(get_signed_url=AsyncMock(side_effect=TelephonyError("ElevenLabs API error 401")))

        response = client.post("/incoming-call", data={"CallSid": "CA2"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "<Say>" in response.text
        assert "technical difficulties" in response.text
        assert "<Stream" not in response.text

    def test_fallback_on_unexpected_error(self, client):
        app.state.elevenlabs = MagicMock(get_signed_url=AsyncMock(side_effect=RuntimeError("bug")))

        response = client.post("/incoming-call", data={})

        assert response.status_code == 200
        assert "<Say>" in response.text


class TestHealth:

    def test_healthy(self, client):
        app.state.monitoring = MagicMock(health_check=AsyncMock(return_value={"status": "ok", "service": "leadbridge"}))

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_degraded(self, client):
        app.state.monitoring = MagicMock(health_check=AsyncMock(return_value={"status": "degraded"}))

        response = client.get("/health")

        assert response.status_code == 503
