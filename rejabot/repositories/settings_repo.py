from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rejabot.models.user_settings import UserSettings


class UserSettingsRepo:
    def __init__(self, s: AsyncSession): self.s = s

    async def get(self, user_id: str) -> UserSettings | None:
        q = await self.s.execute(select(UserSettings).where(UserSettings.telegram_user_id == user_id))
        return q.scalar_one_or_none()

    async def get_or_create(self, user_id: str) -> UserSettings:
        row = await self.get(user_id)
        if row:
            return row
        row = UserSettings(telegram_user_id=user_id)
        self.s.add(row)
        await self.s.commit()
        await self.s.refresh(row)
        return row

    async def daily_enabled(self) -> list[UserSettings]:
        q = await self.s.execute(select(UserSettings).where(UserSettings.daily_report_enabled.is_(True)))
        return list(q.scalars().all())

    async def weekly_enabled(self) -> list[UserSettings]:
        q = await self.s.execute(select(UserSettings).where(UserSettings.weekly_report_enabled.is_(True)))
        return list(q.scalars().all())
