# rejabot/scheduler/jobs.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from rejabot.config import settings
from rejabot.repositories.store import SqlStore
from rejabot.services.entitlement import EntitlementService
from rejabot.services.ledger import DedupLedger
from rejabot.services.prayer_service import PrayerService
from rejabot.services.reminder_service import ReminderService
from rejabot.services.report_service import ReportService
from rejabot.services.subscription_service import SubscriptionService
from rejabot.utils.dates import Clock

logger = logging.getLogger(__name__)

# startup-джоба и интервальная: разные job id, max_instances их не разводит
_running: dict[str, asyncio.Lock] = {}


@dataclass
class JobContext:
    """Всё долгоживущее, что нужно джобам: одно на процесс."""
    session_factory: Callable
    notifier: object
    ledger: DedupLedger
    clock: Clock
    prayer_provider: object


async def _run(name: str, ctx: JobContext, body: Callable[[SqlStore, JobContext], Awaitable[int]]) -> None:
    """
    Общая обёртка: своя сессия на прогон, ограничение по времени,
    и никаких исключений наружу: планировщик не должен падать.
    """
    async def _go() -> int:
        async with ctx.session_factory() as session:
            return await body(SqlStore(session), ctx)

    lock = _running.setdefault(name, asyncio.Lock())
    if lock.locked():
        logger.warning("previous run still in progress, skip", extra={"job": name})
        return

    try:
        async with lock:
            sent = await asyncio.wait_for(_go(), timeout=settings.JOB_TIMEOUT_SECONDS)
        if sent:
            logger.info("job done, sent=%s", sent, extra={"job": name})
    except asyncio.TimeoutError:
        logger.error("job timed out after %ss", settings.JOB_TIMEOUT_SECONDS, extra={"job": name})
    except Exception:
        logger.exception("job failed", extra={"job": name})


def _entitlement(store: SqlStore) -> EntitlementService:
    return EntitlementService(store, settings.PROMO_END_AT)


def _reports(store: SqlStore, ctx: JobContext) -> ReportService:
    return ReportService(
        store, ctx.notifier, ctx.ledger, _entitlement(store),
        weekly_time=settings.WEEKLY_REPORT_TIME,
        tolerance_seconds=settings.MATCH_TOLERANCE_SECONDS,
    )


async def _task_reminders(store: SqlStore, ctx: JobContext) -> int:
    svc = ReminderService(store, ctx.notifier, _entitlement(store), settings.SNOOZE_MINUTES)
    return await svc.tick(ctx.clock.now())


async def _daily_reports(store: SqlStore, ctx: JobContext) -> int:
    return await _reports(store, ctx).check_daily(ctx.clock.now())


async def _weekly_reports(store: SqlStore, ctx: JobContext) -> int:
    return await _reports(store, ctx).check_weekly(ctx.clock.now())


async def _prayer_reminders(store: SqlStore, ctx: JobContext) -> int:
    svc = PrayerService(
        store, ctx.notifier, ctx.ledger, _entitlement(store), ctx.prayer_provider,
        tolerance_seconds=settings.MATCH_TOLERANCE_SECONDS,
    )
    return await svc.check(ctx.clock.now())


async def _subscription_expiry(store: SqlStore, ctx: JobContext) -> int:
    svc = SubscriptionService(
        store, ctx.notifier, ctx.ledger,
        warning_days=settings.EXPIRY_WARNING_DAYS, tz=ctx.clock.tz,
    )
    return await svc.check_expiry(ctx.clock.now())


async def task_reminders_job(ctx: JobContext) -> None:
    await _run("task_reminders", ctx, _task_reminders)


async def daily_reports_job(ctx: JobContext) -> None:
    await _run("daily_reports", ctx, _daily_reports)


async def weekly_reports_job(ctx: JobContext) -> None:
    await _run("weekly_reports", ctx, _weekly_reports)


async def prayer_reminders_job(ctx: JobContext) -> None:
    await _run("prayer_reminders", ctx, _prayer_reminders)


async def subscription_expiry_job(ctx: JobContext) -> None:
    await _run("subscription_expiry", ctx, _subscription_expiry)


def setup_scheduler(scheduler: AsyncIOScheduler, ctx: JobContext) -> None:
    """
    Регистрирует все периодические задачи.
    Вызывается один раз при старте приложения.
    """
    common = dict(
        kwargs={"ctx": ctx},
        replace_existing=True,
        coalesce=True,
        max_instances=1,      # один и тот же чек не перекрывает сам себя
        misfire_grace_time=30,
    )

    scheduler.add_job(task_reminders_job, trigger="interval",
                      seconds=settings.REMINDER_INTERVAL_SECONDS, id="task_reminders_job", **common)
    scheduler.add_job(daily_reports_job, trigger="interval",
                      seconds=settings.REPORT_INTERVAL_SECONDS, id="daily_reports_job", **common)
    scheduler.add_job(weekly_reports_job, trigger="interval",
                      seconds=settings.REPORT_INTERVAL_SECONDS, id="weekly_reports_job", **common)
    scheduler.add_job(prayer_reminders_job, trigger="interval",
                      seconds=settings.PRAYER_INTERVAL_SECONDS, id="prayer_reminders_job", **common)
    scheduler.add_job(subscription_expiry_job, trigger="interval",
                      minutes=settings.EXPIRY_INTERVAL_MINUTES, id="subscription_expiry_job", **common)

    # первый проход вскоре после старта, не ждём целый интервал
    first_run = ctx.clock.now() + timedelta(seconds=settings.STARTUP_DELAY_SECONDS)
    scheduler.add_job(task_reminders_job, trigger="date", run_date=first_run,
                      id="task_reminders_startup", **common)
    scheduler.add_job(prayer_reminders_job, trigger="date", run_date=first_run,
                      id="prayer_reminders_startup", **common)
