from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.models.subscription import Subscription, LIVE_STATUSES, STATUS_EXPIRED
from rejabot.utils.dates import now_utc


class SubscriptionRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def current_for_user(self, user_id: str) -> Optional[Subscription]:
        q = await self.s.execute(
            select(Subscription).where(Subscription.telegram_user_id == user_id).limit(1)
        )
        return q.scalar_one_or_none()

    async def create_or_extend(
        self,
        *,
        user_id: str,
        plan_type: str,
        status: str,
        new_end_date: datetime,
    ) -> Subscription:
        cur = await self.current_for_user(user_id)
        if cur:
            cur.plan_type = plan_type
            cur.status = status
            cur.start_date = now_utc()
            cur.end_date = new_end_date
            await self.s.commit()
            await self.s.refresh(cur)
            return cur

        sub = Subscription(
            telegram_user_id=user_id,
            plan_type=plan_type,
            status=status,
            start_date=now_utc(),
            end_date=new_end_date,
        )
        self.s.add(sub)
        await self.s.commit()
        await self.s.refresh(sub)
        return sub

    async def expiring(self, days_left: int, now: datetime) -> list[Subscription]:
        """
        Живые подписки, у которых до конца от (days_left-1) до days_left суток.
        """
        q = await self.s.execute(
            select(Subscription)
            .where(Subscription.status.in_(LIVE_STATUSES))
            .where(Subscription.end_date > now + timedelta(days=days_left - 1))
            .where(Subscription.end_date <= now + timedelta(days=days_left))
        )
        return list(q.scalars().all())

    async def expired(self, now: datetime) -> list[Subscription]:
        q = await self.s.execute(
            select(Subscription)
            .where(Subscription.status != STATUS_EXPIRED)
            .where(Subscription.end_date <= now)
        )
        return list(q.scalars().all())

    async def set_status(self, user_id: str, status: str, ended_by: Optional[datetime] = None) -> bool:
        """
        Compare-and-set: обновляет, только если статус ещё другой.
        ended_by: только если end_date <= ended_by (продлённую после выборки не трогаем).
        True: строка реально поменялась.
        """
        q = (
            update(Subscription)
            .where(Subscription.telegram_user_id == user_id)
            .where(Subscription.status != status)
        )
        if ended_by is not None:
            q = q.where(Subscription.end_date <= ended_by)
        res = await self.s.execute(q.values(status=status))
        await self.s.commit()
        return (res.rowcount or 0) > 0
