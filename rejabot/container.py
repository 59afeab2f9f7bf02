# rejabot/container.py
from __future__ import annotations

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.base import BaseStorage
from aiogram.fsm.storage.memory import MemoryStorage

from rejabot.config import settings
from rejabot.db import SessionLocal, engine
from rejabot.models.base import Base
from rejabot.providers.prayer_times import AladhanPrayerTimes
from rejabot.scheduler.jobs import JobContext
from rejabot.services.ledger import MemoryLedger
from rejabot.services.notifier import Notifier
from rejabot.utils.dates import Clock


async def init_db() -> None:
    """
    Dev-инициализация БД: создаём таблицы, если их нет.
    Схемой в проде управляют снаружи.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_storage() -> BaseStorage:
    if settings.REDIS_DSN:
        from aiogram.fsm.storage.redis import RedisStorage
        return RedisStorage.from_url(settings.REDIS_DSN)
    return MemoryStorage()


async def build_dp(bot: Bot) -> Dispatcher:
    """
    Собираем Dispatcher для aiogram 3.x.
    """
    return Dispatcher(storage=build_storage())


def build_job_context(bot: Bot) -> JobContext:
    """
    Всё, что живёт весь процесс: канал, леджер, часы, провайдер намаза.
    """
    return JobContext(
        session_factory=SessionLocal,
        notifier=Notifier(bot, timeout=settings.SEND_TIMEOUT_SECONDS),
        ledger=MemoryLedger(),
        clock=Clock(settings.SCHEDULER_TZ),
        prayer_provider=AladhanPrayerTimes(
            base_url=settings.PRAYER_API_URL,
            tz_name=settings.SCHEDULER_TZ,
            timeout=settings.PRAYER_API_TIMEOUT_SECONDS,
            cache_ttl=settings.PRAYER_CACHE_TTL_SECONDS,
            method=settings.PRAYER_METHOD,
            school=settings.PRAYER_SCHOOL,
            session_factory=SessionLocal,
        ),
    )
