from __future__ import annotations

import asyncio
import logging

from telegram import Bot
from telegram.error import TelegramError

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """A price drop message could not be delivered."""


async def _send(token: str, chat_id: str, msg: str) -> None:
    async with Bot(token=token) as bot:
        await bot.send_message(chat_id=chat_id, text=msg)


def send_telegram(msg: str, *, token: str, chat_id: str) -> None:
    """Send *msg* to *chat_id*, raising ``NotificationError`` on failure."""
    try:
        asyncio.run(_send(token, chat_id, msg))
    except TelegramError as exc:
        raise NotificationError(f"Telegram delivery failed: {exc}") from exc


def notify(msg: str, settings: Settings | None = None) -> bool:
    """Log *msg* and send it via Telegram if configured.

    Returns ``False`` when delivery was attempted and failed.
    """
    settings = settings or get_settings()
    logger.info(msg)
    if not settings.telegram_enabled:
        return True
    try:
        send_telegram(
            msg, token=settings.telegram_token, chat_id=settings.telegram_chat_id
        )
    except NotificationError as exc:
        logger.error("%s", exc)
        return False
    return True


__all__ = ["NotificationError", "notify", "send_telegram"]
