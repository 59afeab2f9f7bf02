# rejabot/main.py
from __future__ import annotations

import asyncio
import logging
import signal

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BotCommand
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from rejabot.config import settings
from rejabot.core.logging import setup_logging
from rejabot.container import build_dp, build_job_context, init_db
from rejabot.db import SessionLocal, engine
from rejabot.handlers.errors import router as errors_router
from rejabot.handlers.reminders import router as reminders_router
from rejabot.handlers.start import router as start_router
from rejabot.middlewares.deps import DepsMiddleware
from rejabot.middlewares.logging import LoggingMiddleware
from rejabot.scheduler.jobs import setup_scheduler
from rejabot.web.server import create_app

logger = logging.getLogger("rejabot.main")


async def setup_bot_commands(bot: Bot) -> None:
    await bot.set_my_commands([BotCommand(command="start", description="Boshlash")])


async def main() -> None:
    setup_logging()
    logger.info(
        "boot: starting with LOG_LEVEL=%s tz=%s promo_end=%s",
        settings.log_level,
        settings.SCHEDULER_TZ,
        settings.PROMO_END_AT,
    )

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    # На всякий: сносим вебхук, чтобы polling не конфликтовал
    try:
        await bot.delete_webhook(drop_pending_updates=True)
    except Exception:
        logger.warning("delete_webhook failed; continue with polling")

    dp: Dispatcher = await build_dp(bot)

    if settings.INIT_DB_ON_START:
        try:
            await init_db()
            logger.info("DB init done (create_all enabled by ENV)")
        except Exception:
            logger.exception("DB init failed (dev-only path)")

    ctx = build_job_context(bot)

    # Middlewares
    dp.update.outer_middleware(LoggingMiddleware())
    dp.update.middleware(DepsMiddleware(
        session_factory=SessionLocal,
        services={"clock": ctx.clock, "snooze_minutes": settings.SNOOZE_MINUTES},
    ))

    # Routers: порядок важен
    dp.include_routers(
        start_router,
        reminders_router,
        errors_router,
    )

    await setup_bot_commands(bot)

    # ---------- Scheduler ----------
    scheduler = AsyncIOScheduler(timezone=settings.SCHEDULER_TZ)
    setup_scheduler(scheduler, ctx)
    scheduler.start()
    logger.info("scheduler started: %s", [j.id for j in scheduler.get_jobs()])

    # Корректное завершение по сигналам
    stop_evt = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _stop(*_: object) -> None:
        stop_evt.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _stop)
        except NotImplementedError:
            pass

    async def _poll():
        try:
            await dp.start_polling(bot, handle_signals=False)
        except asyncio.CancelledError:
            pass

    tasks = [asyncio.create_task(_poll())]

    web = None
    if settings.WEBAPP_ENABLED:
        web = uvicorn.Server(uvicorn.Config(
            create_app(scheduler, ctx.ledger),
            host=settings.WEBAPP_HOST,
            port=settings.WEBAPP_PORT,
            log_config=None,
        ))
        tasks.append(asyncio.create_task(web.serve()))

    await stop_evt.wait()

    # ---------- Shutdown ----------
    # Отправки «в полёте» не дожидаемся
    try:
        scheduler.shutdown(wait=False)
    except Exception:
        logger.exception("scheduler shutdown failed")

    try:
        await dp.stop_polling()
    except Exception:
        pass

    if web is not None:
        web.should_exit = True

    for t in tasks:
        if not t.done():
            t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    try:
        await dp.storage.close()
    except Exception:
        logger.exception("storage close failed")

    try:
        await ctx.prayer_provider.close()
    except Exception:
        logger.exception("prayer provider close failed")

    try:
        await bot.session.close()
    except Exception:
        logger.exception("bot session close failed")

    try:
        await engine.dispose()
    except Exception:
        logger.exception("engine dispose failed")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
