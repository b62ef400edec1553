"""
Tests for ElevenLabs call setup
"""

import httpx
import pytest
from unittest.mock import MagicMock, patch

from leadbridge.telephony.elevenlabs import (
    SIGNED_URL_ENDPOINT, ElevenLabsClient, TelephonyError, build_fallback_twiml, build_stream_twiml
)


def http_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def elevenlabs():
    return ElevenLabsClient(api_key="xi-test", agent_id="agent_abc", timeout=5.0)


class TestElevenLabsClient:

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_get_signed_url(self, mock_get, elevenlabs):
        mock_get.return_value = http_response(payload={"signed_url": "wss://signed"})

        assert await elevenlabs.get_signed_url() == "wss://signed"

        args, kwargs = mock_get.call_args
        assert args[0] == SIGNED_URL_ENDPOINT
        assert kwargs["params"] == {"agent_id": "agent_abc"}
        assert kwargs["headers"] == {"xi-api-key": "xi-test"}

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_error_status(self, mock_get, elevenlabs):
        mock_get.return_value = http_response(status_code=401, text="invalid api key")

        with pytest.raises(TelephonyError, match="401: invalid api key"):
            await elevenlabs.get_signed_url()

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_missing_signed_url(self, mock_get, elevenlabs):
        mock_get.return_value = http_response(payload={"other": "x"})

        with pytest.raises(TelephonyError):
            await elevenlabs.get_signed_url()

    @pytest.mark.asyncio
    @patch("httpx.AsyncClient.get")
    async def test_network_error(self, mock_get, elevenlabs):
        mock_get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(TelephonyError, match="connection refused"):
            await elevenlabs.get_signed_url()

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = ElevenLabsClient(api_key="xi-test", agent_id="agent_abc")
        client.agent_id = None

        with pytest.raises(TelephonyError, match="not configured"):
            await client.get_signed_url()


def test_stream_twiml():
    xml = build_stream_twiml("wss://example/stream?token=a&b=c")
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<Response><Connect>" in xml
    assert 'url="wss://example/stream?token=a&amp;b=c"' in xml


def test_fallback_twiml():
    xml = build_fallback_twiml("help@example.com")
    assert "<Say>" in xml
    assert "help@example.com" in xml
