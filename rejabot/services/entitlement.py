from __future__ import annotations

from datetime import datetime
from typing import Optional

from rejabot.models.subscription import LIVE_STATUSES


class EntitlementService:
    """
    Единственная точка проверки «можно ли слать уведомления юзеру».
    Все пути (напоминания, отчёты, намаз) ходят только сюда.
    """

    def __init__(self, store, promo_end_at: Optional[datetime] = None) -> None:
        self.store = store
        self.promo_end_at = promo_end_at

    async def is_entitled(self, user_id: str, now: datetime) -> bool:
        if self.promo_end_at is not None and now < self.promo_end_at:
            return True
        sub = await self.store.get_subscription(user_id)
        return is_live(sub, now)


def is_live(sub, now: datetime) -> bool:
    if sub is None:
        return False
    return sub.status in LIVE_STATUSES and sub.end_date > now
