# rejabot/middlewares/deps.py
from typing import Any, Callable, Dict, Awaitable
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from rejabot.repositories.store import SqlStore


class DepsMiddleware(BaseMiddleware):
    """Своя сессия на каждый апдейт: хендлеры получают session и store."""

    def __init__(self, *, session_factory: Callable, services: Dict[str, Any]) -> None:
        self.session_factory = session_factory
        self.services = services

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.session_factory() as session:
            data["session"] = session
            data["store"] = SqlStore(session)

            # Пример: async def on_snooze(call: CallbackQuery, store: SqlStore, clock: Clock)
            for k, v in self.services.items():
                data[k] = v

            return await handler(event, data)
