from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.models.task import Task


class TaskRepo:
    def __init__(self, s: AsyncSession) -> None:
        self.s = s

    async def get(self, task_id: int) -> Optional[Task]:
        return await self.s.get(Task, task_id)

    async def pending_reminders(self, now: datetime) -> list[Task]:
        q = await self.s.execute(
            select(Task)
            .where(
                Task.reminder_time.is_not(None),
                Task.reminder_time <= now,
                Task.reminder_sent.is_(False),
                Task.completed.is_(False),
                Task.telegram_user_id.is_not(None),
            )
            .order_by(Task.reminder_time)
        )
        return list(q.scalars().all())

    async def mark_reminder_sent(self, task_id: int) -> None:
        await self.s.execute(
            update(Task).where(Task.id == task_id).values(reminder_sent=True)
        )
        await self.s.commit()

    async def reschedule_reminder(self, task_id: int, new_time: datetime) -> None:
        await self.s.execute(
            update(Task)
            .where(Task.id == task_id)
            .values(reminder_time=new_time, reminder_sent=False)
        )
        await self.s.commit()

    async def complete(self, task_id: int) -> None:
        await self.s.execute(
            update(Task).where(Task.id == task_id).values(completed=True)
        )
        await self.s.commit()

    async def list_for_user(self, user_id: str, since: Optional[datetime] = None) -> list[Task]:
        q = select(Task).where(Task.telegram_user_id == user_id)
        if since is not None:
            q = q.where(Task.created_at >= since)
        res = await self.s.execute(q.order_by(Task.created_at.desc()))
        return list(res.scalars().all())
