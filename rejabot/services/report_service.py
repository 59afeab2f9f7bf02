# rejabot/services/report_service.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from rejabot.services.entitlement import EntitlementService
from rejabot.services.ledger import DedupLedger
from rejabot.services.ports import Channel, Store
from rejabot.services.reports import ReportSnapshot, build_daily_report, build_weekly_report
from rejabot.utils.dates import (
    at_time,
    candidate_days,
    date_marker,
    in_minute_window,
    iso_week_marker,
    local_midnight,
    parse_hhmm,
    weekday_name,
)

logger = logging.getLogger(__name__)

KIND_DAILY = "daily"
KIND_WEEKLY = "weekly"


class ReportService:
    """
    Ежедневные и еженедельные отчёты.
    Срабатывание: по совпадению минуты с настройкой юзера, повтор в том же
    периоде отсекает леджер с ключом (user, kind, маркер периода).
    """

    def __init__(
        self,
        store: Store,
        notifier: Channel,
        ledger: DedupLedger,
        entitlement: EntitlementService,
        *,
        weekly_time: str = "10:00",
        tolerance_seconds: int = 30,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.ledger = ledger
        self.entitlement = entitlement
        self.weekly_time = parse_hhmm(weekly_time)
        self.tolerance = tolerance_seconds

    # ---------- daily ----------

    async def check_daily(self, now: datetime) -> int:
        days = candidate_days(now, self.tolerance)
        sent = 0
        users = await self.store.list_users_with_daily_report_enabled()
        for pref in users:
            user_id = pref.telegram_user_id
            if not pref.daily_report_enabled or not pref.daily_report_time:
                continue
            try:
                at = parse_hhmm(pref.daily_report_time)
            except ValueError:
                logger.warning("bad daily_report_time=%r", pref.daily_report_time,
                               extra={"user_id": user_id, "kind": KIND_DAILY})
                continue
            try:
                for day in days:
                    target = at_time(day, at, now.tzinfo)
                    if not in_minute_window(now, target, self.tolerance):
                        continue
                    if await self._deliver(user_id, KIND_DAILY, date_marker(day), now, self._daily_text):
                        sent += 1
            except Exception:
                logger.exception("daily report failed", extra={"user_id": user_id, "kind": KIND_DAILY})

        self.ledger.prune([KIND_DAILY], [date_marker(d) for d in days])
        return sent

    async def _daily_text(self, user_id: str, now: datetime) -> str:
        snap = ReportSnapshot(
            tasks=await self.store.get_tasks(user_id, local_midnight(now)),
            expenses=await self.store.get_expenses(user_id, local_midnight(now)),
            goals=await self.store.get_active_goals(user_id, now),
        )
        return build_daily_report(snap, now)

    # ---------- weekly ----------

    async def check_weekly(self, now: datetime) -> int:
        days = [
            d for d in candidate_days(now, self.tolerance)
            if in_minute_window(now, at_time(d, self.weekly_time, now.tzinfo), self.tolerance)
        ]
        self.ledger.prune([KIND_WEEKLY], [iso_week_marker(d) for d in candidate_days(now, self.tolerance)])
        if not days:
            return 0

        sent = 0
        users = await self.store.list_users_with_weekly_report_enabled()
        for pref in users:
            user_id = pref.telegram_user_id
            try:
                if not pref.weekly_report_enabled:
                    continue
                for day in days:
                    if (pref.weekly_report_day or "").lower() != weekday_name(day):
                        continue
                    if await self._deliver(user_id, KIND_WEEKLY, iso_week_marker(day), now, self._weekly_text):
                        sent += 1
            except Exception:
                logger.exception("weekly report failed", extra={"user_id": user_id, "kind": KIND_WEEKLY})
        return sent

    async def _weekly_text(self, user_id: str, now: datetime) -> str:
        since = now - timedelta(days=7)
        snap = ReportSnapshot(
            tasks=await self.store.get_tasks(user_id, since),
            expenses=await self.store.get_expenses(user_id, since),
            goals=await self.store.get_active_goals(user_id, now),
            budget_limits=await self.store.get_budget_limits(user_id),
        )
        return build_weekly_report(snap, now)

    # ---------- common ----------

    async def _deliver(self, user_id: str, kind: str, marker: str, now: datetime, render) -> bool:
        if self.ledger.seen(user_id, kind, marker):
            return False
        # без подписки молча пропускаем и ничего не пишем в леджер
        if not await self.entitlement.is_entitled(user_id, now):
            return False
        if not self.ledger.claim(user_id, kind, marker):
            return False
        try:
            text = await render(user_id, now)
            ok = await self.notifier.send(user_id, text)
        except Exception:
            self.ledger.release(user_id, kind, marker)
            raise
        if not ok:
            self.ledger.release(user_id, kind, marker)
            return False
        logger.info("%s report sent", kind, extra={"user_id": user_id, "kind": kind})
        return True
