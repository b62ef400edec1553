"""
Connects inbound Twilio calls to the ElevenLabs Conversational AI agent
"""

from typing import Optional

import httpx
import structlog
from twilio.twiml.voice_response import Connect, VoiceResponse

from ..config import get_settings

logger = structlog.get_logger("leadbridge.telephony")

SIGNED_URL_ENDPOINT = "https://api.elevenlabs.io/v1/convai/conversation/get_signed_url"


class TelephonyError(Exception):
    """Call could not be connected to the voice agent"""
    pass


class ElevenLabsClient:
    """Fetches one-time signed WebSocket URLs for the agent"""

    def __init__(self, api_key: Optional[str] = None, agent_id: Optional[str] = None,
                 timeout: Optional[float] = None):
        settings = get_settings()
        self.api_key = api_key or settings.elevenlabs_api_key
        self.agent_id = agent_id or settings.elevenlabs_agent_id
        self.timeout = timeout or settings.elevenlabs_timeout_seconds

    async def get_signed_url(self) -> str:
        if not self.api_key or not self.agent_id:
            raise TelephonyError("ElevenLabs API key or agent ID not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    SIGNED_URL_ENDPOINT,
                    params={"agent_id": self.agent_id},
                    headers={"xi-api-key": self.api_key},
                )
        except httpx.HTTPError as e:
            raise TelephonyError(f"ElevenLabs request failed: {e}") from e

        if not response.is_success:
            raise TelephonyError(f"ElevenLabs API error {response.status_code}: {response.text}")

        try:
            signed_url = response.json().get("signed_url")
        except ValueError as e:
            raise TelephonyError(f"ElevenLabs returned invalid JSON: {e}") from e

        if not signed_url:
            raise TelephonyError("ElevenLabs response has no signed_url")
        return signed_url


def build_stream_twiml(signed_url: str) -> str:
    """TwiML that streams the call audio to the agent"""
    response = VoiceResponse()
    connect = Connect()
    connect.stream(url=signed_url)
    response.append(connect)
    return response.to_xml()


def build_fallback_twiml(support_email: str) -> str:
    """TwiML apology so the caller is not left in silence"""
    response = VoiceResponse()
    response.say(
        "Sorry, we're experiencing technical difficulties. "
        f"Please try again later or email us at {support_email}."
    )
    return response.to_xml()
