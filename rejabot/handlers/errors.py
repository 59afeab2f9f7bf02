import logging

from aiogram import Router
from aiogram.types import ErrorEvent

router = Router(name="errors")
logger = logging.getLogger(__name__)


@router.error()
async def on_error(event: ErrorEvent):
    logger.error("Error in handler: %s", event.exception, exc_info=event.exception)
