# rejabot/middlewares/logging.py
import logging
import time
from typing import Any, Dict, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import Update

logger = logging.getLogger("rejabot.middleware.logging")


def _safe_get(obj: Any, path: str, default: Any = None):
    cur = obj
    for p in path.split("."):
        if cur is None:
            return default
        cur = getattr(cur, p, None)
    return cur if cur is not None else default


class LoggingMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any]
    ) -> Any:
        update: Update | None = data.get("event_update") or data.get("update")
        update_id = getattr(update, "update_id", "-")
        user_id = (
            _safe_get(event, "message.from_user.id")
            or _safe_get(event, "callback_query.from_user.id")
            or _safe_get(event, "from_user.id")
            or "-"
        )
        kind = getattr(update, "event_type", None) or type(event).__name__

        started = time.perf_counter()
        try:
            result = await handler(event, data)
            logger.info(
                "handled upd=%s in %sms", update_id, int((time.perf_counter() - started) * 1000),
                extra={"user_id": user_id, "kind": kind},
            )
            return result
        except Exception:
            logger.exception(
                "handler_error upd=%s", update_id,
                extra={"user_id": user_id, "kind": kind},
            )
            raise
