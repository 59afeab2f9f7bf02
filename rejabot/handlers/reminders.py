# rejabot/handlers/reminders.py
from __future__ import annotations

import logging

from aiogram import Router, F
from aiogram.types import CallbackQuery

from rejabot.keyboards.reminders import TASK_DONE_PREFIX, TASK_SNOOZE_PREFIX
from rejabot.repositories.store import SqlStore
from rejabot.services.reminder_service import ReminderService
from rejabot.utils.dates import Clock

router = Router(name="reminders")
logger = logging.getLogger(__name__)


def _task_id(data: str, prefix: str) -> int | None:
    tail = data[len(prefix):]
    return int(tail) if tail.isdigit() else None


@router.callback_query(F.data.startswith(TASK_SNOOZE_PREFIX))
async def on_snooze(call: CallbackQuery, store: SqlStore, clock: Clock, snooze_minutes: int):
    task_id = _task_id(call.data, TASK_SNOOZE_PREFIX)
    svc = ReminderService(store, notifier=None, entitlement=None, snooze_minutes=snooze_minutes)
    new_time = await svc.snooze(task_id, str(call.from_user.id), clock.now()) if task_id else None
    if new_time is None:
        await call.answer("Vazifa topilmadi", show_alert=True)
        return

    local = clock.localize(new_time)
    await call.message.edit_reply_markup(reply_markup=None)
    await call.message.answer(f"⏰ Eslatma {local:%H:%M} ga ko'chirildi.")
    await call.answer()
    logger.info("reminder snoozed: task=%s", task_id, extra={"user_id": call.from_user.id, "kind": "task"})


@router.callback_query(F.data.startswith(TASK_DONE_PREFIX))
async def on_done(call: CallbackQuery, store: SqlStore):
    task_id = _task_id(call.data, TASK_DONE_PREFIX)
    svc = ReminderService(store, notifier=None, entitlement=None)
    if not task_id or not await svc.complete(task_id, str(call.from_user.id)):
        await call.answer("Vazifa topilmadi", show_alert=True)
        return

    await call.message.edit_reply_markup(reply_markup=None)
    await call.answer("✅ Bajarildi!")
