from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.models.expense import Expense, BudgetLimit


class ExpenseRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def list_for_user(self, user_id: str, since: Optional[datetime] = None) -> list[Expense]:
        q = select(Expense).where(Expense.telegram_user_id == user_id)
        if since is not None:
            q = q.where(Expense.created_at >= since)
        res = await self.s.execute(q.order_by(Expense.created_at.desc()))
        return list(res.scalars().all())


class BudgetLimitRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def list_for_user(self, user_id: str) -> list[BudgetLimit]:
        res = await self.s.execute(
            select(BudgetLimit).where(BudgetLimit.telegram_user_id == user_id)
        )
        return list(res.scalars().all())
