from __future__ import annotations
from datetime import datetime
from typing import Annotated, List, Optional
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_csv_ints(value: str | List[int] | None) -> List[int]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [int(x) for x in value]
    if isinstance(value, int):
        return [value]
    parts = [p.strip() for p in str(value).split(",") if p.strip()]
    return [int(p) for p in parts]


class Settings(BaseSettings):
    # === Telegram ===
    BOT_TOKEN: str = ""

    # === Storage / DB ===
    DATABASE_URL: Optional[str] = None
    POSTGRES_DSN: Optional[str] = None
    DB_POOL_TIMEOUT: int = 10

    REDIS_DSN: Optional[str] = None  # без redis FSM живёт в памяти

    # === Время ===
    # Все расписания считаются в этой зоне, независимо от TZ сервера
    SCHEDULER_TZ: str = "Asia/Tashkent"

    # === Подписка / триал ===
    TRIAL_DAYS: int = 3
    # До этого момента уведомления получают все, даже без подписки
    PROMO_END_AT: Optional[datetime] = None

    # === Напоминания / отчёты ===
    SNOOZE_MINUTES: int = 60
    WEEKLY_REPORT_TIME: str = "10:00"
    EXPIRY_WARNING_DAYS: Annotated[List[int], NoDecode] = Field(default_factory=lambda: [3, 2, 1])
    MATCH_TOLERANCE_SECONDS: int = 30

    # === Планировщик ===
    REMINDER_INTERVAL_SECONDS: int = 60
    REPORT_INTERVAL_SECONDS: int = 60
    PRAYER_INTERVAL_SECONDS: int = 60
    EXPIRY_INTERVAL_MINUTES: int = 60
    STARTUP_DELAY_SECONDS: int = 5
    JOB_TIMEOUT_SECONDS: int = 50
    SEND_TIMEOUT_SECONDS: int = 10

    # === Время намаза (aladhan.com) ===
    PRAYER_API_URL: str = "https://api.aladhan.com/v1/timings"
    PRAYER_API_TIMEOUT_SECONDS: int = 10
    PRAYER_CACHE_TTL_SECONDS: int = 3600
    PRAYER_METHOD: int = 1  # University of Islamic Sciences, Karachi
    PRAYER_SCHOOL: int = 1  # ханафитский аср

    # === Веб (health / статус) ===
    WEBAPP_ENABLED: bool = False
    WEBAPP_HOST: str = "0.0.0.0"
    WEBAPP_PORT: int = 8080

    # === Dev ===
    INIT_DB_ON_START: bool = False

    # === Логи ===
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_sql: str = Field(default="WARNING", alias="LOG_SQL")
    log_aiogram: str = Field(default="INFO", alias="LOG_AIOGRAM")

    # ---- валидаторы ДО валидации типов ----
    @field_validator("EXPIRY_WARNING_DAYS", mode="before")
    @classmethod
    def _v_expiry_days(cls, v):
        if v is None or v == "":
            return [3, 2, 1]
        return sorted(set(_parse_csv_ints(v)), reverse=True)

    @field_validator("PROMO_END_AT")
    @classmethod
    def _v_promo_end(cls, v: Optional[datetime], info):
        # наивное время в .env трактуем как время SCHEDULER_TZ
        if v is not None and v.tzinfo is None:
            tz_name = info.data.get("SCHEDULER_TZ") or "UTC"
            v = v.replace(tzinfo=ZoneInfo(tz_name))
        return v

    @field_validator("WEEKLY_REPORT_TIME")
    @classmethod
    def _v_weekly_time(cls, v: str) -> str:
        hh, _, mm = v.partition(":")
        if not (hh.isdigit() and mm.isdigit() and int(hh) < 24 and int(mm) < 60):
            raise ValueError(f"WEEKLY_REPORT_TIME must be HH:MM, got {v!r}")
        return f"{int(hh):02d}:{int(mm):02d}"

    # ---- пост-обработчик ----
    def model_post_init(self, __context) -> None:
        # совместимость DSN/URL
        if not self.DATABASE_URL and self.POSTGRES_DSN:
            self.DATABASE_URL = self.POSTGRES_DSN

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
