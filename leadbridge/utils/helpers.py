"""
Helper utilities and common functions
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional
import json

import structlog

logger = structlog.get_logger("leadbridge.helpers")


def safe_json_loads(json_str: str, default: Any = None) -> Any:
    """Safely parse JSON string"""
    try:
        return json.loads(json_str)
    except (ValueError, TypeError, RecursionError):
        return default


def safe_json_dumps(data: Any, default: str = "[]", ensure_ascii: bool = False) -> str:
    """Safely serialize to JSON string"""
    try:
        return json.dumps(data, ensure_ascii=ensure_ascii, default=str)
    except Exception:
        return default


def format_duration(seconds: int) -> str:
    """Format duration in human readable format"""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        secs = seconds % 60
        return f"{minutes}m {secs}s"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m"


def truncate_text(text: Optional[str], max_length: int = 100, suffix: str = "...") -> Optional[str]:
    """Truncate text to maximum length"""
    if not text or len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def backoff_delay(attempt: int, delay: float = 1.0, backoff_factor: float = 2.0,
                  max_delay: Optional[float] = None) -> float:
    """Seconds to wait after the given zero-based failed attempt"""
    wait_time = delay * (backoff_factor ** attempt)
    if max_delay is not None:
        wait_time = min(wait_time, max_delay)
    return wait_time


async def retry_async(
    coro_func: Callable[[], Awaitable[Any]],
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: Optional[float] = None,
    exceptions: tuple = (Exception,),
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **log_context
) -> Any:
    """Retry async function with exponential backoff

    Calls coro_func up to max_attempts times. Between attempts it sleeps
    delay * backoff_factor ** attempt seconds, capped at max_delay. There is
    no sleep after the final attempt; its exception is re-raised.
    """
    last_exception = None

    for attempt in range(max_attempts):
        try:
            return await coro_func()
        except exceptions as e:
            last_exception = e

            if attempt == max_attempts - 1:
                break

            wait_time = backoff_delay(attempt, delay, backoff_factor, max_delay)
            logger.warning(
                f"Attempt {attempt + 1} failed, retrying in {wait_time}s",
                attempt=attempt + 1,
                max_attempts=max_attempts,
                error=str(e),
                **log_context
            )
            await sleep(wait_time)

    raise last_exception
