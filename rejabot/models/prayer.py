from datetime import datetime
from sqlalchemy import String, Boolean, DateTime, Integer, Float, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from rejabot.models.base import Base


class PrayerSettings(Base):
    __tablename__ = "prayer_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    telegram_user_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    region_code: Mapped[str] = mapped_column(String(32), default="toshkent_shahar", nullable=False)
    use_custom_location: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    fajr_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    dhuhr_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    asr_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    maghrib_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    isha_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    advance_minutes: Mapped[int] = mapped_column(Integer, default=10, nullable=False)

    # рамадан: саҳарлик (до фаджра) и ифтор (закат)
    suhoor_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    suhoor_minutes: Mapped[int] = mapped_column(Integer, default=15, nullable=False)
    iftar_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    iftar_minutes: Mapped[int] = mapped_column(Integer, default=5, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class PrayerTimes(Base):
    """Кэш расписания по региону на дату."""
    __tablename__ = "prayer_times"
    __table_args__ = (UniqueConstraint("region_code", "date", name="uq_prayer_times_region_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    region_code: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD

    fajr: Mapped[str] = mapped_column(String(16), nullable=False)
    sunrise: Mapped[str] = mapped_column(String(16), nullable=False)
    dhuhr: Mapped[str] = mapped_column(String(16), nullable=False)
    asr: Mapped[str] = mapped_column(String(16), nullable=False)
    sunset: Mapped[str] = mapped_column(String(16), nullable=False)
    maghrib: Mapped[str] = mapped_column(String(16), nullable=False)
    isha: Mapped[str] = mapped_column(String(16), nullable=False)
