"""Общие фейки для тестов планировщика: стор в памяти, канал, часы."""
from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from rejabot.models.subscription import STATUS_ACTIVE, STATUS_EXPIRED
from rejabot.services.entitlement import EntitlementService
from rejabot.services.ledger import MemoryLedger

TZ = ZoneInfo("Asia/Tashkent")


def at(y, mo, d, h=0, mi=0, s=0) -> datetime:
    return datetime(y, mo, d, h, mi, s, tzinfo=TZ)


def make_sub(user_id="1", status=STATUS_ACTIVE, end_date=None, plan_type="1_month"):
    return SimpleNamespace(
        telegram_user_id=user_id,
        status=status,
        plan_type=plan_type,
        start_date=None,
        end_date=end_date,
    )


def make_task(task_id, user_id="1", text="Sut olish", reminder_time=None,
              reminder_sent=False, completed=False, created_at=None):
    return SimpleNamespace(
        id=task_id,
        telegram_user_id=user_id,
        text=text,
        reminder_time=reminder_time,
        reminder_sent=reminder_sent,
        completed=completed,
        created_at=created_at,
    )


def make_report_pref(user_id="1", daily_time="20:00", daily=True, weekly=False, weekly_day="sunday"):
    return SimpleNamespace(
        telegram_user_id=user_id,
        daily_report_enabled=daily,
        daily_report_time=daily_time,
        weekly_report_enabled=weekly,
        weekly_report_day=weekly_day,
    )


def make_prayer_pref(user_id="1", **flags):
    base = dict(
        telegram_user_id=user_id,
        region_code="toshkent_shahar",
        use_custom_location=False,
        latitude=None,
        longitude=None,
        fajr_enabled=False,
        dhuhr_enabled=False,
        asr_enabled=False,
        maghrib_enabled=False,
        isha_enabled=False,
        advance_minutes=10,
        suhoor_enabled=False,
        suhoor_minutes=15,
        iftar_enabled=False,
        iftar_minutes=5,
    )
    base.update(flags)
    return SimpleNamespace(**base)


class FakeStore:
    """Хранилище в памяти с теми же методами, что у SqlStore."""

    def __init__(self) -> None:
        self.tasks: dict[int, SimpleNamespace] = {}
        self.subs: dict[str, SimpleNamespace] = {}
        self.report_prefs: list[SimpleNamespace] = []
        self.prayer_prefs: list[SimpleNamespace] = []
        self.expenses: dict[str, list] = {}
        self.goals: dict[str, list] = {}
        self.budget_limits: dict[str, list] = {}
        self.created_prefs: list[str] = []
        self.status_updates: list[tuple[str, str]] = []

    # задачи
    async def list_pending_task_reminders(self, now):
        return [
            t for t in self.tasks.values()
            if t.reminder_time is not None and t.reminder_time <= now
            and not t.reminder_sent and not t.completed
        ]

    async def mark_reminder_sent(self, task_id):
        self.tasks[task_id].reminder_sent = True

    async def reschedule_reminder(self, task_id, new_time):
        self.tasks[task_id].reminder_time = new_time
        self.tasks[task_id].reminder_sent = False

    async def get_task(self, task_id):
        return self.tasks.get(task_id)

    async def complete_task(self, task_id):
        self.tasks[task_id].completed = True

    # отчёты
    async def list_users_with_daily_report_enabled(self):
        return [p for p in self.report_prefs if p.daily_report_enabled]

    async def list_users_with_weekly_report_enabled(self):
        return [p for p in self.report_prefs if p.weekly_report_enabled]

    async def ensure_notification_preference(self, user_id):
        for p in self.report_prefs:
            if p.telegram_user_id == user_id:
                return p
        pref = make_report_pref(user_id)
        self.report_prefs.append(pref)
        self.created_prefs.append(user_id)
        return pref

    async def get_active_goals(self, user_id, now):
        return self.goals.get(user_id, [])

    async def get_expenses(self, user_id, since=None):
        return [e for e in self.expenses.get(user_id, []) if since is None or e.created_at >= since]

    async def get_tasks(self, user_id, since=None):
        return [
            t for t in self.tasks.values()
            if t.telegram_user_id == user_id and (since is None or t.created_at >= since)
        ]

    async def get_budget_limits(self, user_id):
        return self.budget_limits.get(user_id, [])

    # намаз
    async def list_all_prayer_preferences(self):
        return list(self.prayer_prefs)

    # подписки
    async def get_subscription(self, user_id):
        return self.subs.get(user_id)

    async def list_expiring_subscriptions(self, days_left, now):
        lo, hi = now + timedelta(days=days_left - 1), now + timedelta(days=days_left)
        return [
            s for s in self.subs.values()
            if s.status != STATUS_EXPIRED and lo < s.end_date <= hi
        ]

    async def list_expired_subscriptions(self, now):
        return [s for s in self.subs.values() if s.status != STATUS_EXPIRED and s.end_date <= now]

    async def update_subscription_status(self, user_id, status, ended_by=None):
        sub = self.subs.get(user_id)
        if sub is None or sub.status == status:
            return False
        if ended_by is not None and sub.end_date > ended_by:
            return False
        sub.status = status
        self.status_updates.append((user_id, status))
        return True

    async def save_subscription(self, user_id, plan_type, status, end_date):
        sub = self.subs.get(user_id)
        if sub is None:
            sub = make_sub(user_id, status, end_date, plan_type)
            self.subs[user_id] = sub
        else:
            sub.status, sub.plan_type, sub.end_date = status, plan_type, end_date
        return sub


class FakeNotifier:
    """Записывает отправки. failing: user_id, которым доставка «не удаётся»."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, object]] = []
        self.failing: set[str] = set()

    async def send(self, user_id, text, actions=None) -> bool:
        if str(user_id) in self.failing:
            return False
        self.sent.append((str(user_id), text, actions))
        return True

    def texts_for(self, user_id: str) -> list[str]:
        return [text for uid, text, _ in self.sent if uid == user_id]


class FakePrayerTimes:
    def __init__(self, times=None) -> None:
        self.times = times
        self.calls: list[tuple] = []

    async def get_times_for_region(self, region_code, day):
        self.calls.append(("region", region_code, day))
        return self.times

    async def get_times_for_coordinates(self, lat, lon, day):
        self.calls.append(("coords", lat, lon, day))
        return self.times


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def ledger() -> MemoryLedger:
    return MemoryLedger()


@pytest.fixture
def entitlement(store) -> EntitlementService:
    return EntitlementService(store, promo_end_at=None)
