# rejabot/services/subscription_service.py
import logging
from datetime import datetime, timedelta

from rejabot.models.subscription import STATUS_ACTIVE, STATUS_EXPIRED, STATUS_TRIAL
from rejabot.services.ledger import DedupLedger
from rejabot.utils.dates import date_marker, now_utc

logger = logging.getLogger(__name__)

PLAN_DAYS = {"1_month": 30, "2_months": 60, "3_months": 90}

EXPIRY_WARNINGS = {
    3: "📅 Obunangiz tugashiga <b>3 kun</b> qoldi.\n\nEslatmalar va hisobotlar uzilmasligi uchun obunani oldindan yangilab qo'ying.",
    2: "⏳ Obunangiz tugashiga <b>2 kun</b> qoldi.\n\nObunani yangilashni unutmang!",
    1: "⚠️ <b>Diqqat!</b> Obunangiz <b>ertaga</b> tugaydi!\n\nHozir yangilamasangiz, eslatmalar, hisobotlar va namoz vaqtlari to'xtaydi.",
}
EXPIRED_NOTICE = (
    "❌ <b>Obunangiz muddati tugadi.</b>\n\n"
    "Eslatmalar, hisobotlar va namoz vaqtlari to'xtatildi. "
    "Davom ettirish uchun obunani yangilang."
)


def _warning_text(days_left: int) -> str:
    return EXPIRY_WARNINGS.get(days_left) or f"📅 Obunangiz tugashiga <b>{days_left} kun</b> qoldi."


class SubscriptionService:
    def __init__(self, store, notifier=None, ledger: DedupLedger | None = None,
                 warning_days=(3, 2, 1), tz=None):
        self.store = store
        self.notifier = notifier
        self.ledger = ledger
        self.warning_days = tuple(warning_days)
        self.tz = tz

    # ---------- выдача / продление ----------

    async def activate(self, user_id: str, plan_type: str):
        """
        Активирует новую или продлевает существующую подписку ОТ ТЕКУЩЕГО ВРЕМЕНИ.
        План определяет длительность:
          - 1_month  -> 30 дней
          - 2_months -> 60 дней
          - 3_months -> 90 дней
        Неизвестный план считаем месячным.
        """
        days = PLAN_DAYS.get(plan_type, PLAN_DAYS["1_month"])
        return await self.store.save_subscription(
            user_id, plan_type, STATUS_ACTIVE, now_utc() + timedelta(days=days)
        )

    async def start_trial(self, user_id: str, days: int):
        """Триал только для тех, у кого подписки ещё не было никогда."""
        if await self.store.get_subscription(user_id) is not None:
            return None
        return await self.store.save_subscription(
            user_id, "trial", STATUS_TRIAL, now_utc() + timedelta(days=days)
        )

    # ---------- ежечасная проверка сроков ----------

    async def check_expiry(self, now: datetime) -> int:
        sent = 0
        for days_left in self.warning_days:
            try:
                subs = await self.store.list_expiring_subscriptions(days_left, now)
            except Exception:
                logger.exception("expiring query failed: days_left=%s", days_left)
                continue
            for sub in subs:
                try:
                    if await self._warn(sub, days_left):
                        sent += 1
                except Exception:
                    logger.exception("expiry warning failed",
                                     extra={"user_id": sub.telegram_user_id, "kind": f"expiry_{days_left}d"})

        today = now.astimezone(self.tz) if self.tz else now
        self.ledger.prune_older([f"expiry_{d}d" for d in self.warning_days], date_marker(today.date()))

        for sub in await self.store.list_expired_subscriptions(now):
            try:
                if await self._expire(sub, now):
                    sent += 1
            except Exception:
                logger.exception("expire transition failed",
                                 extra={"user_id": sub.telegram_user_id, "kind": STATUS_EXPIRED})
        return sent

    async def _warn(self, sub, days_left: int) -> bool:
        user_id = sub.telegram_user_id
        kind = f"expiry_{days_left}d"
        # маркер: дата окончания: продление сдвигает её и снова взводит предупреждения
        end = sub.end_date.astimezone(self.tz) if self.tz else sub.end_date
        marker = date_marker(end.date())
        if not self.ledger.claim(user_id, kind, marker):
            return False
        if not await self.notifier.send(user_id, _warning_text(days_left)):
            self.ledger.release(user_id, kind, marker)
            return False
        logger.info("expiry warning sent", extra={"user_id": user_id, "kind": kind})
        return True

    async def _expire(self, sub, now: datetime) -> bool:
        user_id = sub.telegram_user_id
        # сначала переводим статус; уведомление шлёт только тот, кто реально перевёл.
        # Продлённую между выборкой и апдейтом подписку CAS по end_date не заденет
        changed = await self.store.update_subscription_status(user_id, STATUS_EXPIRED, ended_by=now)
        if not changed:
            return False
        logger.info("subscription expired", extra={"user_id": user_id, "kind": STATUS_EXPIRED})
        return await self.notifier.send(user_id, EXPIRED_NOTICE)
