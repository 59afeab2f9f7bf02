"""Доступ к уведомлениям: промо-окно и живая подписка."""
from datetime import timedelta

import pytest

from conftest import FakePrayerTimes, at, make_prayer_pref, make_report_pref, make_sub, make_task
from rejabot.models.subscription import STATUS_EXPIRED, STATUS_TRIAL
from rejabot.services.entitlement import EntitlementService
from rejabot.services.prayer_service import PrayerService
from rejabot.services.reminder_service import ReminderService
from rejabot.services.report_service import ReportService
from rejabot.services.subscription_service import SubscriptionService

NOW = at(2026, 3, 10, 12, 0)


@pytest.mark.asyncio
async def test_no_subscription_not_entitled(store):
    assert not await EntitlementService(store).is_entitled("1", NOW)


@pytest.mark.asyncio
async def test_active_and_trial_until_end_date(store):
    store.subs["1"] = make_sub("1", end_date=NOW + timedelta(days=1))
    store.subs["2"] = make_sub("2", status=STATUS_TRIAL, end_date=NOW + timedelta(minutes=1))
    svc = EntitlementService(store)

    assert await svc.is_entitled("1", NOW)
    assert await svc.is_entitled("2", NOW)


@pytest.mark.asyncio
async def test_live_status_with_past_end_date_is_not_entitled(store):
    # статус ещё не переведён свипом, но срок уже вышел
    store.subs["1"] = make_sub("1", end_date=NOW - timedelta(seconds=1))
    assert not await EntitlementService(store).is_entitled("1", NOW)


@pytest.mark.asyncio
async def test_expired_status_not_entitled(store):
    store.subs["1"] = make_sub("1", status=STATUS_EXPIRED, end_date=NOW + timedelta(days=5))
    assert not await EntitlementService(store).is_entitled("1", NOW)


@pytest.mark.asyncio
async def test_promo_window_overrides_subscription(store):
    svc = EntitlementService(store, promo_end_at=NOW + timedelta(hours=1))
    assert await svc.is_entitled("nobody", NOW)
    assert not await svc.is_entitled("nobody", NOW + timedelta(hours=1))


@pytest.mark.asyncio
async def test_expired_user_gets_nothing_from_any_check(store, notifier, ledger):
    sunday_20 = at(2026, 3, 15, 20, 0, 5)
    store.subs["1"] = make_sub("1", status=STATUS_EXPIRED, end_date=sunday_20 - timedelta(days=1))
    store.tasks[1] = make_task(1, reminder_time=sunday_20 - timedelta(minutes=5))
    store.report_prefs.append(make_report_pref("1", daily_time="20:00", weekly=True, weekly_day="sunday"))
    store.prayer_prefs.append(make_prayer_pref("1", isha_enabled=True, advance_minutes=0))
    provider = FakePrayerTimes({"fajr": "05:00", "dhuhr": "12:30", "asr": "16:10", "sunset": "18:30",
                                "maghrib": "18:35", "isha": "20:00", "sunrise": "06:20"})
    gate = EntitlementService(store)

    reports = ReportService(store, notifier, ledger, gate, weekly_time="20:00")
    await ReminderService(store, notifier, gate).tick(sunday_20)
    await reports.check_daily(sunday_20)
    await reports.check_weekly(sunday_20)
    await PrayerService(store, notifier, ledger, gate, provider).check(sunday_20)
    await SubscriptionService(store, notifier, ledger).check_expiry(sunday_20)

    assert notifier.sent == []
    assert len(ledger) == 0
