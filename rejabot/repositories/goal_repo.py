from datetime import datetime

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.models.goal import Goal


class GoalRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def active(self, user_id: str, now: datetime) -> list[Goal]:
        q = await self.s.execute(
            select(Goal)
            .where(
                Goal.telegram_user_id == user_id,
                Goal.start_date <= now,
                or_(Goal.end_date.is_(None), Goal.end_date >= now),
            )
            .order_by(Goal.created_at.desc())
        )
        return list(q.scalars().all())
