from datetime import datetime
from sqlalchemy import String, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from rejabot.models.base import Base

STATUS_TRIAL = "trial"
STATUS_ACTIVE = "active"
STATUS_EXPIRED = "expired"
LIVE_STATUSES = (STATUS_TRIAL, STATUS_ACTIVE)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    telegram_user_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    status: Mapped[str] = mapped_column(String(16), default=STATUS_TRIAL, nullable=False)
    plan_type: Mapped[str] = mapped_column(String(32), default="trial", nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Subscription user={self.telegram_user_id} status={self.status} end_date={self.end_date}>"
