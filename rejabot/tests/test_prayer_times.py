from datetime import date
from unittest.mock import AsyncMock

import pytest

from rejabot.providers.prayer_times import UZBEKISTAN_REGIONS, AladhanPrayerTimes, parse_timings

PAYLOAD = {
    "code": 200,
    "data": {
        "timings": {
            "Fajr": "05:01", "Sunrise": "06:22", "Dhuhr": "12:31", "Asr": "16:12",
            "Sunset": "18:33", "Maghrib": "18:33", "Isha": "19:51", "Imsak": "04:51",
        }
    },
}
DAY = date(2026, 3, 10)


def test_parse_timings_maps_keys():
    times = parse_timings(PAYLOAD)
    assert times == {
        "fajr": "05:01", "sunrise": "06:22", "dhuhr": "12:31", "asr": "16:12",
        "sunset": "18:33", "maghrib": "18:33", "isha": "19:51",
    }


@pytest.mark.parametrize("payload", [{}, {"data": None}, {"data": {"timings": {"Fajr": "05:00"}}}])
def test_parse_timings_bad_shape(payload):
    assert parse_timings(payload) is None


def test_all_regions_present():
    assert len(UZBEKISTAN_REGIONS) == 14
    assert "toshkent_shahar" in UZBEKISTAN_REGIONS


@pytest.fixture
def provider():
    p = AladhanPrayerTimes(base_url="https://api.aladhan.com/v1/timings/", tz_name="Asia/Tashkent")
    p._fetch = AsyncMock(return_value=parse_timings(PAYLOAD))
    return p


@pytest.mark.asyncio
async def test_region_times_cached_in_memory(provider):
    first = await provider.get_times_for_region("samarqand", DAY)
    second = await provider.get_times_for_region("samarqand", DAY)

    assert first == second
    provider._fetch.assert_awaited_once()
    lat, lon, day = provider._fetch.call_args.args
    assert (lat, lon) == (UZBEKISTAN_REGIONS["samarqand"]["lat"], UZBEKISTAN_REGIONS["samarqand"]["lon"])
    assert day == DAY


@pytest.mark.asyncio
async def test_unknown_region_is_none(provider):
    assert await provider.get_times_for_region("atlantis", DAY) is None
    provider._fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_failure_not_cached(provider):
    provider._fetch.return_value = None
    assert await provider.get_times_for_region("buxoro", DAY) is None

    provider._fetch.return_value = parse_timings(PAYLOAD)
    assert await provider.get_times_for_region("buxoro", DAY) is not None
    assert provider._fetch.await_count == 2


@pytest.mark.asyncio
async def test_coordinates_cached_per_day(provider):
    for _ in range(3):
        assert await provider.get_times_for_coordinates(41.0, 69.0, DAY) is not None
    assert provider._fetch.await_count == 1

    # другая дата и другая точка: свои запросы
    await provider.get_times_for_coordinates(41.0, 69.0, date(2026, 3, 11))
    await provider.get_times_for_coordinates(40.0, 69.0, DAY)
    assert provider._fetch.await_count == 3


@pytest.mark.asyncio
async def test_coordinates_failure_not_cached(provider):
    provider._fetch.return_value = None
    assert await provider.get_times_for_coordinates(41.0, 69.0, DAY) is None

    provider._fetch.return_value = parse_timings(PAYLOAD)
    assert await provider.get_times_for_coordinates(41.0, 69.0, DAY) is not None
    assert provider._fetch.await_count == 2


def test_base_url_trailing_slash_stripped(provider):
    assert provider.base_url == "https://api.aladhan.com/v1/timings"
