import logging
from datetime import datetime, timedelta
from html import escape

from rejabot.keyboards.reminders import task_reminder_actions
from rejabot.services.entitlement import EntitlementService

logger = logging.getLogger(__name__)


class ReminderService:
    def __init__(self, store, notifier, entitlement: EntitlementService, snooze_minutes: int = 60):
        self.store = store
        self.notifier = notifier
        self.entitlement = entitlement
        self.snooze_minutes = snooze_minutes

    async def tick(self, now: datetime) -> int:
        """Периодическая задача: ищем наступившие напоминания по задачам и рассылаем их."""
        due = await self.store.list_pending_task_reminders(now)
        sent = 0
        for task in due:
            try:
                if await self._process(task, now):
                    sent += 1
            except Exception:
                logger.exception("task reminder failed: task=%s", task.id,
                                 extra={"user_id": task.telegram_user_id, "kind": "task"})
        return sent

    async def _process(self, task, now: datetime) -> bool:
        user_id = task.telegram_user_id
        if not user_id:
            return False
        # без подписки не шлём и флаг не трогаем: останется в очереди
        if not await self.entitlement.is_entitled(user_id, now):
            return False

        text = f"🔔 <b>Eslatma!</b>\n\n📝 {escape(task.text)}\n\nVazifani bajarish vaqti keldi!"
        ok = await self.notifier.send(user_id, text, task_reminder_actions(task.id, self.snooze_minutes))
        if not ok:
            return False

        # если запись флага упадёт: на следующем тике будет повтор, это ок
        await self.store.mark_reminder_sent(task.id)
        logger.info("reminder sent: task=%s", task.id, extra={"user_id": user_id, "kind": "task"})
        return True

    # ---------- действия юзера из кнопок ----------

    async def snooze(self, task_id: int, user_id: str, now: datetime) -> datetime | None:
        """
        Переносит напоминание на now + snooze и снова взводит его.
        None: задача не найдена или чужая.
        """
        task = await self._own_task(task_id, user_id)
        if task is None:
            return None
        new_time = now + timedelta(minutes=self.snooze_minutes)
        await self.store.reschedule_reminder(task_id, new_time)
        return new_time

    async def complete(self, task_id: int, user_id: str) -> bool:
        task = await self._own_task(task_id, user_id)
        if task is None:
            return False
        await self.store.complete_task(task_id)
        return True

    async def _own_task(self, task_id: int, user_id: str):
        task = await self.store.get_task(task_id)
        if task is None or str(task.telegram_user_id) != str(user_id):
            return None
        return task
