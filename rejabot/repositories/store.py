# rejabot/repositories/store.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.repositories.task_repo import TaskRepo
from rejabot.repositories.finance_repo import ExpenseRepo, BudgetLimitRepo
from rejabot.repositories.goal_repo import GoalRepo
from rejabot.repositories.settings_repo import UserSettingsRepo
from rejabot.repositories.prayer_repo import PrayerSettingsRepo
from rejabot.repositories.subscription_repo import SubscriptionRepo


class SqlStore:
    """
    Фасад над репозиториями: ровно те методы, которые дёргает планировщик.
    Одна сессия на один прогон джобы.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.s = session
        self.tasks = TaskRepo(session)
        self.expenses = ExpenseRepo(session)
        self.budgets = BudgetLimitRepo(session)
        self.goals = GoalRepo(session)
        self.user_settings = UserSettingsRepo(session)
        self.prayer_settings = PrayerSettingsRepo(session)
        self.subs = SubscriptionRepo(session)

    # ---------- задачи ----------

    async def list_pending_task_reminders(self, now: datetime):
        return await self.tasks.pending_reminders(now)

    async def mark_reminder_sent(self, task_id: int) -> None:
        await self.tasks.mark_reminder_sent(task_id)

    async def reschedule_reminder(self, task_id: int, new_time: datetime) -> None:
        await self.tasks.reschedule_reminder(task_id, new_time)

    async def get_task(self, task_id: int):
        return await self.tasks.get(task_id)

    async def complete_task(self, task_id: int) -> None:
        await self.tasks.complete(task_id)

    # ---------- отчёты ----------

    async def list_users_with_daily_report_enabled(self):
        return await self.user_settings.daily_enabled()

    async def list_users_with_weekly_report_enabled(self):
        return await self.user_settings.weekly_enabled()

    async def ensure_notification_preference(self, user_id: str):
        return await self.user_settings.get_or_create(user_id)

    async def get_active_goals(self, user_id: str, now: datetime):
        return await self.goals.active(user_id, now)

    async def get_expenses(self, user_id: str, since: Optional[datetime] = None):
        return await self.expenses.list_for_user(user_id, since)

    async def get_tasks(self, user_id: str, since: Optional[datetime] = None):
        return await self.tasks.list_for_user(user_id, since)

    async def get_budget_limits(self, user_id: str):
        return await self.budgets.list_for_user(user_id)

    # ---------- намаз ----------

    async def list_all_prayer_preferences(self):
        return await self.prayer_settings.all()

    # ---------- подписки ----------

    async def get_subscription(self, user_id: str):
        return await self.subs.current_for_user(user_id)

    async def list_expiring_subscriptions(self, days_left: int, now: datetime):
        return await self.subs.expiring(days_left, now)

    async def list_expired_subscriptions(self, now: datetime):
        return await self.subs.expired(now)

    async def update_subscription_status(
        self, user_id: str, status: str, ended_by: Optional[datetime] = None
    ) -> bool:
        return await self.subs.set_status(user_id, status, ended_by)

    async def save_subscription(self, user_id: str, plan_type: str, status: str, end_date: datetime):
        return await self.subs.create_or_extend(
            user_id=user_id, plan_type=plan_type, status=status, new_end_date=end_date
        )
