"""
Telegram Alert System
Tells the sales team about new completed leads; skipped when not configured
"""

from html import escape
from typing import List, Optional

import httpx
import structlog

from ..config import get_settings
from ..database.store import LeadEntry
from ..utils.helpers import format_duration, truncate_text

logger = structlog.get_logger("leadbridge.alerts")


class TelegramLeadNotifier:
    """Sends new-lead messages to Telegram chats"""

    def __init__(self, bot_token: Optional[str] = None, chat_ids: Optional[List[str]] = None,
                 timeout: float = 10.0):
        settings = get_settings()
        self.bot_token = bot_token if bot_token is not None else settings.telegram_bot_token
        self.chat_ids = chat_ids if chat_ids is not None else settings.telegram_chat_id_list
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_ids)

    async def send_telegram_message(self, chat_id: str, message: str, parse_mode: str = "HTML") -> bool:
        """Send one message, returning False instead of raising"""
        try:
            url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"

            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json={
                    "chat_id": chat_id,
                    "text": message,
                    "parse_mode": parse_mode
                })

                response.raise_for_status()
                logger.info("Telegram message sent", chat_id=chat_id)
                return True

        except Exception as e:
            logger.warning(f"Failed to send Telegram message: {e}", chat_id=chat_id)
            return False

    @staticmethod
    def format_lead_message(entry: LeadEntry) -> str:
        def field(value: Optional[str]) -> str:
            return escape(truncate_text(value, 200)) if value else "-"

        return "\n".join([
            "<b>New lead from voice agent</b>",
            f"Name: {field(entry.full_name)}",
            f"Email: {field(entry.email)}",
            f"Company: {field(entry.company)}",
            f"Use case: {field(entry.use_case)}",
            f"Budget: {field(entry.budget)}",
            f"Timeline: {field(entry.timeline)}",
            f"Call: {format_duration(entry.call_duration_sec)}, {escape(entry.call_status)}",
        ])

    async def notify_new_lead(self, entry: LeadEntry) -> int:
        """Notify every configured chat; returns how many messages went out"""
        if not self.is_configured:
            logger.debug("Telegram notifications not configured, skipping")
            return 0

        message = self.format_lead_message(entry)
        sent = 0
        for chat_id in self.chat_ids:
            if await self.send_telegram_message(chat_id, message):
                sent += 1
        return sent
