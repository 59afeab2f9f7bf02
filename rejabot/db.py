# rejabot/db.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from rejabot.config import settings


# Пример DSN: postgresql+asyncpg://app:app@db:5432/rejabot
engine = create_async_engine(
    settings.DATABASE_URL or "postgresql+asyncpg://localhost/rejabot",
    echo=False,
    pool_pre_ping=True,
    pool_timeout=settings.DB_POOL_TIMEOUT,
)


SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
