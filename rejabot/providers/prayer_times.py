# rejabot/providers/prayer_times.py
from __future__ import annotations

import asyncio
import logging
import time
from datetime import date
from typing import Callable, Optional

import aiohttp
from sqlalchemy.exc import SQLAlchemyError

from rejabot.repositories.prayer_repo import PrayerTimesRepo, TIME_FIELDS

logger = logging.getLogger(__name__)

# Регионы Узбекистана и координаты их центров
UZBEKISTAN_REGIONS: dict[str, dict] = {
    "toshkent_shahar": {"name": "Toshkent shahri", "lat": 41.2995, "lon": 69.2401},
    "toshkent_viloyat": {"name": "Toshkent viloyati", "lat": 41.3167, "lon": 69.2500},
    "namangan": {"name": "Namangan", "lat": 41.0011, "lon": 71.6725},
    "andijon": {"name": "Andijon", "lat": 40.7833, "lon": 72.3500},
    "fargona": {"name": "Farg'ona", "lat": 40.3733, "lon": 71.7978},
    "samarqand": {"name": "Samarqand", "lat": 39.6542, "lon": 66.9597},
    "buxoro": {"name": "Buxoro", "lat": 39.7681, "lon": 64.4556},
    "navoiy": {"name": "Navoiy", "lat": 40.0844, "lon": 65.3792},
    "qashqadaryo": {"name": "Qashqadaryo", "lat": 38.8500, "lon": 65.8000},
    "surxondaryo": {"name": "Surxondaryo", "lat": 37.2167, "lon": 67.2833},
    "jizzax": {"name": "Jizzax", "lat": 40.1167, "lon": 67.8333},
    "sirdaryo": {"name": "Sirdaryo", "lat": 40.8500, "lon": 68.6667},
    "xorazm": {"name": "Xorazm", "lat": 41.5500, "lon": 60.6333},
    "qoraqalpogiston": {"name": "Qoraqalpog'iston", "lat": 42.4611, "lon": 59.6033},
}

# ключи ответа aladhan -> наши
_API_KEYS = {
    "Fajr": "fajr", "Sunrise": "sunrise", "Dhuhr": "dhuhr", "Asr": "asr",
    "Sunset": "sunset", "Maghrib": "maghrib", "Isha": "isha",
}


def parse_timings(payload: dict) -> Optional[dict[str, str]]:
    """Достаёт семь времён из ответа /v1/timings. None, если формат не тот."""
    try:
        timings = payload["data"]["timings"]
        return {ours: str(timings[theirs]) for theirs, ours in _API_KEYS.items()}
    except (KeyError, TypeError):
        return None


class AladhanPrayerTimes:
    """
    Времена намаза с api.aladhan.com.

    Регион: кэш в памяти (TTL) -> таблица prayer_times -> HTTP -> запись в таблицу.
    Свои координаты: только HTTP. Любая ошибка -> None (и запись в лог).
    """

    def __init__(
        self,
        *,
        base_url: str,
        tz_name: str,
        timeout: int = 10,
        cache_ttl: int = 3600,
        method: int = 1,
        school: int = 1,
        session_factory: Optional[Callable] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.tz_name = tz_name
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.cache_ttl = cache_ttl
        self.method = method
        self.school = school
        self.session_factory = session_factory
        self._cache: dict[str, tuple[float, dict[str, str]]] = {}
        self._http: Optional[aiohttp.ClientSession] = None

    async def close(self) -> None:
        if self._http is not None and not self._http.closed:
            await self._http.close()

    # ---------- public ----------

    async def get_times_for_region(self, region_code: str, day: date) -> Optional[dict[str, str]]:
        key = f"{region_code}_{day.isoformat()}"
        hit = self._cached(key)
        if hit is not None:
            return hit

        cached = await self._db_get(region_code, day)
        if cached:
            self._remember(key, cached)
            return cached

        region = UZBEKISTAN_REGIONS.get(region_code)
        if region is None:
            logger.warning("unknown region_code=%s", region_code)
            return None

        times = await self._fetch(region["lat"], region["lon"], day)
        if times is None:
            return None
        await self._db_save(region_code, day, times)
        self._remember(key, times)
        return times

    async def get_times_for_coordinates(self, lat: float, lon: float, day: date) -> Optional[dict[str, str]]:
        # ключ: координаты до 4 знаков + дата
        key = f"{round(lat, 4)},{round(lon, 4)}_{day.isoformat()}"
        hit = self._cached(key)
        if hit is not None:
            return hit

        times = await self._fetch(lat, lon, day)
        if times is not None:
            self._remember(key, times)
        return times

    # ---------- internals ----------

    def _cached(self, key: str) -> Optional[dict[str, str]]:
        hit = self._cache.get(key)
        if hit and hit[0] > time.monotonic():
            return hit[1]
        return None

    def _remember(self, key: str, times: dict[str, str]) -> None:
        self._cache[key] = (time.monotonic() + self.cache_ttl, times)
        # вчерашние ключи больше не нужны
        if len(self._cache) > 256:
            now = time.monotonic()
            self._cache = {k: v for k, v in self._cache.items() if v[0] > now}

    async def _fetch(self, lat: float, lon: float, day: date) -> Optional[dict[str, str]]:
        url = f"{self.base_url}/{day.day:02d}-{day.month:02d}-{day.year}"
        params = {
            "latitude": str(lat),
            "longitude": str(lon),
            "method": str(self.method),
            "school": str(self.school),
            "timezone": self.tz_name,
            "adjustment": "0",
        }
        try:
            if self._http is None or self._http.closed:
                self._http = aiohttp.ClientSession(timeout=self.timeout)
            async with self._http.get(url, params=params) as resp:
                if resp.status != 200:
                    logger.error("aladhan error: status=%s", resp.status)
                    return None
                payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("aladhan request failed: %s", e)
            return None

        times = parse_timings(payload)
        if times is None:
            logger.error("aladhan: unexpected payload shape")
        return times

    async def _db_get(self, region_code: str, day: date) -> Optional[dict[str, str]]:
        if self.session_factory is None:
            return None
        try:
            async with self.session_factory() as s:
                return await PrayerTimesRepo(s).get(region_code, day.isoformat())
        except SQLAlchemyError:
            logger.exception("prayer_times cache read failed")
            return None

    async def _db_save(self, region_code: str, day: date, times: dict[str, str]) -> None:
        if self.session_factory is None:
            return
        try:
            async with self.session_factory() as s:
                await PrayerTimesRepo(s).save(region_code, day.isoformat(), {k: times[k] for k in TIME_FIELDS})
        except SQLAlchemyError:
            logger.exception("prayer_times cache write failed")
