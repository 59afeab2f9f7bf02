# rejabot/services/ports.py
"""
Интерфейсы, которые потребляет планировщик. Боевые реализации:
SqlStore (repositories/store.py), Notifier (services/notifier.py),
AladhanPrayerTimes (providers/prayer_times.py). В тестах: фейки.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

Action = tuple[str, str]  # (текст кнопки, callback_data)


class Store(Protocol):
    async def list_pending_task_reminders(self, now: datetime) -> Sequence[Any]: ...
    async def mark_reminder_sent(self, task_id: int) -> None: ...
    async def reschedule_reminder(self, task_id: int, new_time: datetime) -> None: ...
    async def get_task(self, task_id: int) -> Any: ...
    async def complete_task(self, task_id: int) -> None: ...

    async def list_users_with_daily_report_enabled(self) -> Sequence[Any]: ...
    async def list_users_with_weekly_report_enabled(self) -> Sequence[Any]: ...
    async def ensure_notification_preference(self, user_id: str) -> Any: ...
    async def get_active_goals(self, user_id: str, now: datetime) -> Sequence[Any]: ...
    async def get_expenses(self, user_id: str, since: Optional[datetime] = None) -> Sequence[Any]: ...
    async def get_tasks(self, user_id: str, since: Optional[datetime] = None) -> Sequence[Any]: ...
    async def get_budget_limits(self, user_id: str) -> Sequence[Any]: ...

    async def list_all_prayer_preferences(self) -> Sequence[Any]: ...

    async def get_subscription(self, user_id: str) -> Any: ...
    async def list_expiring_subscriptions(self, days_left: int, now: datetime) -> Sequence[Any]: ...
    async def list_expired_subscriptions(self, now: datetime) -> Sequence[Any]: ...
    async def update_subscription_status(
        self, user_id: str, status: str, ended_by: Optional[datetime] = None
    ) -> bool: ...
    async def save_subscription(self, user_id: str, plan_type: str, status: str, end_date: datetime) -> Any: ...


class Channel(Protocol):
    async def send(self, user_id: str, text: str, actions: Optional[Sequence[Action]] = None) -> bool: ...


class PrayerTimesSource(Protocol):
    async def get_times_for_region(self, region_code: str, day: date) -> Optional[dict[str, str]]: ...
    async def get_times_for_coordinates(self, lat: float, lon: float, day: date) -> Optional[dict[str, str]]: ...
