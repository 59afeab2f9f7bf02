from __future__ import annotations

from aiogram import Router
from aiogram.filters import CommandStart
from aiogram.types import Message

from rejabot.config import settings
from rejabot.repositories.store import SqlStore
from rejabot.services.subscription_service import SubscriptionService

router = Router(name="start")


@router.message(CommandStart())
async def cmd_start(m: Message, store: SqlStore):
    """
    Первое касание: заводим настройки отчётов (по умолчанию 20:00 и воскресенье)
    и выдаём триал, если подписки ещё не было.
    """
    user_id = str(m.from_user.id)
    await store.ensure_notification_preference(user_id)
    trial = await SubscriptionService(store).start_trial(user_id, settings.TRIAL_DAYS)

    text = (
        "👋 <b>Assalomu alaykum!</b>\n\n"
        "Men sizning shaxsiy yordamchingizman: vazifalar, xarajatlar, maqsadlar "
        "va namoz vaqtlari.\n\n"
        "📊 Kunlik hisobot har kuni 20:00 da, haftalik hisobot yakshanba kuni keladi."
    )
    if trial is not None:
        text += f"\n\n🎁 Sizga <b>{settings.TRIAL_DAYS} kunlik</b> bepul sinov muddati berildi!"
    await m.answer(text)
