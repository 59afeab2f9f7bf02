# rejabot/services/notifier.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from aiogram.client.bot import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramForbiddenError,
    TelegramRetryAfter,
)

from rejabot.keyboards.reminders import actions_keyboard

logger = logging.getLogger(__name__)


class Notifier:
    """
    Канал доставки поверх aiogram Bot.
    send() никогда не кидает ошибку доставки: логирует по получателю и
    возвращает False, чтобы пачка не обрывалась на одном юзере.
    """

    def __init__(self, bot: Bot, timeout: int = 10) -> None:
        self.bot = bot
        self.timeout = timeout

    async def send(
        self,
        user_id: str,
        text: str,
        actions: Optional[Sequence[tuple[str, str]]] = None,
    ) -> bool:
        try:
            chat_id = int(user_id)
        except (TypeError, ValueError):
            logger.warning("send skipped: bad chat id", extra={"user_id": user_id})
            return False

        try:
            await self.bot.send_message(
                chat_id,
                text,
                reply_markup=actions_keyboard(actions),
                request_timeout=self.timeout,
            )
            return True
        except TelegramRetryAfter as e:
            # флуд-контроль: не ждём, следующий тик повторит
            logger.warning("send rate-limited, retry_after=%s", e.retry_after, extra={"user_id": user_id})
        except TelegramForbiddenError:
            logger.info("send forbidden: bot blocked by user", extra={"user_id": user_id})
        except TelegramAPIError as e:
            logger.warning("send failed: %s", e, extra={"user_id": user_id})
        except asyncio.TimeoutError:
            logger.warning("send timed out after %ss", self.timeout, extra={"user_id": user_id})
        return False
