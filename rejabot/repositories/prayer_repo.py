from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.models.prayer import PrayerSettings, PrayerTimes

TIME_FIELDS = ("fajr", "sunrise", "dhuhr", "asr", "sunset", "maghrib", "isha")


class PrayerSettingsRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def all(self) -> list[PrayerSettings]:
        q = await self.s.execute(select(PrayerSettings))
        return list(q.scalars().all())


class PrayerTimesRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def get(self, region_code: str, day: str) -> dict[str, str] | None:
        q = await self.s.execute(
            select(PrayerTimes).where(PrayerTimes.region_code == region_code, PrayerTimes.date == day)
        )
        row = q.scalar_one_or_none()
        if row is None:
            return None
        return {k: getattr(row, k) for k in TIME_FIELDS}

    async def save(self, region_code: str, day: str, times: dict[str, str]) -> None:
        q = await self.s.execute(
            select(PrayerTimes).where(PrayerTimes.region_code == region_code, PrayerTimes.date == day)
        )
        row = q.scalar_one_or_none()
        values = {k: times[k] for k in TIME_FIELDS}
        if row:
            for k, v in values.items():
                setattr(row, k, v)
        else:
            self.s.add(PrayerTimes(region_code=region_code, date=day, **values))
        await self.s.commit()
