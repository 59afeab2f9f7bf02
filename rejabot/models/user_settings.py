from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from rejabot.models.base import Base


class UserSettings(Base):
    """Настройки отчётов. Создаются при первом /start, одна запись на юзера."""
    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    telegram_user_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    daily_report_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    daily_report_time: Mapped[str] = mapped_column(String(5), default="20:00", nullable=False)  # HH:MM
    weekly_report_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    weekly_report_day: Mapped[str] = mapped_column(String(10), default="sunday", nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="Asia/Tashkent", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
