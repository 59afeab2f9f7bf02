# rejabot/web/errors.py
from __future__ import annotations
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

log = logging.getLogger("rejabot.web.errors")


async def unhandled_exception_handler(request: Request, exc: Exception):
    log.error("unhandled_exception path=%s error=%s", request.url.path, exc, exc_info=exc)
    # не палим детали наружу
    return JSONResponse({"ok": False, "error": "internal_error"}, status_code=500)
