"""Напоминания о намазе, сухуре и ифтаре."""
import pytest

from conftest import FakePrayerTimes, at, make_prayer_pref, make_sub
from rejabot.services.prayer_service import PrayerService

TIMES = {
    "fajr": "05:00 (+05)",
    "sunrise": "06:20",
    "dhuhr": "12:30",
    "asr": "16:10",
    "sunset": "18:30",
    "maghrib": "18:35",
    "isha": "20:00",
}


@pytest.fixture
def provider():
    return FakePrayerTimes(dict(TIMES))


@pytest.fixture
def svc(store, notifier, ledger, entitlement, provider):
    store.subs["1"] = make_sub("1", end_date=at(2027, 1, 1))
    return PrayerService(store, notifier, ledger, entitlement, provider, tolerance_seconds=30)


@pytest.mark.asyncio
async def test_fajr_fires_once_at_lead_minute(svc, store, notifier):
    store.prayer_prefs.append(make_prayer_pref("1", fajr_enabled=True, advance_minutes=10))

    assert await svc.check(at(2026, 3, 10, 4, 49, 5)) == 0
    assert await svc.check(at(2026, 3, 10, 4, 50, 5)) == 1
    assert await svc.check(at(2026, 3, 10, 4, 50, 45)) == 0
    assert await svc.check(at(2026, 3, 10, 4, 51, 5)) == 0

    [text] = notifier.texts_for("1")
    assert "Bomdod" in text
    assert "10 daqiqa" in text
    assert "05:00" in text


@pytest.mark.asyncio
async def test_disabled_prayers_are_quiet(svc, store, notifier):
    store.prayer_prefs.append(make_prayer_pref("1", isha_enabled=True, advance_minutes=0))

    assert await svc.check(at(2026, 3, 10, 4, 50, 5)) == 0
    assert await svc.check(at(2026, 3, 10, 20, 0, 5)) == 1
    assert "Xufton" in notifier.texts_for("1")[0]


@pytest.mark.asyncio
async def test_suhoor_relative_to_fajr(svc, store, notifier):
    store.prayer_prefs.append(make_prayer_pref("1", suhoor_enabled=True, suhoor_minutes=15))

    assert await svc.check(at(2026, 3, 10, 4, 45, 10)) == 1
    assert "Saharlik" in notifier.texts_for("1")[0]


@pytest.mark.asyncio
async def test_iftar_relative_to_sunset(svc, store, notifier):
    store.prayer_prefs.append(make_prayer_pref("1", iftar_enabled=True, iftar_minutes=5))

    assert await svc.check(at(2026, 3, 10, 18, 30, 10)) == 0
    assert await svc.check(at(2026, 3, 10, 18, 25, 10)) == 1
    assert "Iftorlik" in notifier.texts_for("1")[0]


@pytest.mark.asyncio
async def test_iftar_falls_back_to_maghrib(svc, store, notifier, provider):
    del provider.times["sunset"]
    store.prayer_prefs.append(make_prayer_pref("1", iftar_enabled=True, iftar_minutes=5))

    assert await svc.check(at(2026, 3, 10, 18, 30, 10)) == 1


@pytest.mark.asyncio
async def test_custom_location_uses_coordinates(svc, store, provider):
    store.prayer_prefs.append(make_prayer_pref(
        "1", fajr_enabled=True, use_custom_location=True, latitude=41.3, longitude=69.2,
    ))
    await svc.check(at(2026, 3, 10, 12, 0))
    assert provider.calls[0][:3] == ("coords", 41.3, 69.2)


@pytest.mark.asyncio
async def test_provider_failure_skips_user_only(svc, store, notifier, provider):
    store.subs["2"] = make_sub("2", end_date=at(2027, 1, 1))
    store.prayer_prefs.append(make_prayer_pref("1", fajr_enabled=True))
    store.prayer_prefs.append(make_prayer_pref("2", fajr_enabled=True, use_custom_location=True,
                                               latitude=1.0, longitude=2.0))

    async def broken(lat, lon, day):
        return None

    provider.get_times_for_coordinates = broken

    assert await svc.check(at(2026, 3, 10, 4, 50, 5)) == 1
    assert notifier.texts_for("2") == []


@pytest.mark.asyncio
async def test_bad_time_string_skips_slot(svc, store, notifier, provider):
    provider.times["fajr"] = "--:--"
    store.prayer_prefs.append(make_prayer_pref("1", fajr_enabled=True, dhuhr_enabled=True, advance_minutes=0))

    assert await svc.check(at(2026, 3, 10, 12, 30, 5)) == 1


@pytest.mark.asyncio
async def test_unentitled_user_gets_nothing(svc, store, notifier):
    store.prayer_prefs.append(make_prayer_pref("2", fajr_enabled=True))
    assert await svc.check(at(2026, 3, 10, 4, 50, 5)) == 0
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_failed_send_released_for_retry(svc, store, notifier):
    store.prayer_prefs.append(make_prayer_pref("1", fajr_enabled=True))
    notifier.failing.add("1")
    assert await svc.check(at(2026, 3, 10, 4, 50, 5)) == 0

    notifier.failing.clear()
    assert await svc.check(at(2026, 3, 10, 4, 50, 40)) == 1


@pytest.mark.asyncio
async def test_midnight_prune_keeps_today(svc, store, ledger):
    store.prayer_prefs.append(make_prayer_pref("1", fajr_enabled=True))
    await svc.check(at(2026, 3, 10, 4, 50, 5))
    ledger.claim("1", "isha", "2026-03-11")

    await svc.check(at(2026, 3, 11, 0, 0, 10))

    assert not ledger.seen("1", "fajr", "2026-03-10")
    assert ledger.seen("1", "isha", "2026-03-11")


@pytest.mark.asyncio
async def test_next_day_target_just_after_midnight(svc, store, notifier, provider):
    provider.times["isha"] = "00:00"
    store.prayer_prefs.append(make_prayer_pref("1", isha_enabled=True, advance_minutes=0))

    assert await svc.check(at(2026, 3, 10, 23, 59, 45)) == 1
    assert await svc.check(at(2026, 3, 11, 0, 0, 15)) == 0
    assert len(notifier.sent) == 1
    assert any(call[2] == at(2026, 3, 11).date() for call in provider.calls)


@pytest.mark.asyncio
async def test_tomorrow_suhoor_lead_lands_before_midnight(svc, store, notifier, provider):
    # бомдод 00:05, сахарлик за 15 минут: цель 23:50 предыдущего дня
    provider.times["fajr"] = "00:05"
    store.prayer_prefs.append(make_prayer_pref("1", suhoor_enabled=True, suhoor_minutes=15))

    assert await svc.check(at(2026, 3, 10, 23, 50, 5)) == 1
    assert await svc.check(at(2026, 3, 10, 23, 50, 40)) == 0
    assert "Saharlik" in notifier.texts_for("1")[0]
    assert ("region", "toshkent_shahar", at(2026, 3, 11).date()) in provider.calls
