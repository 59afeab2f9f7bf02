import logging
import sys
from logging.config import dictConfig

from rejabot.config import settings

CTX_FIELDS = ("job", "user_id", "kind")


def setup_logging() -> None:
    """Базовая настройка логирования всего приложения."""
    level = settings.log_level.upper()

    if settings.log_json:
        formatter = {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(job)s %(user_id)s %(kind)s",
            "json_ensure_ascii": False,
        }
    else:
        formatter = {
            "format": (
                "%(asctime)s | %(levelname)5s | %(name)s | %(message)s "
                "| job=%(job)s user=%(user_id)s kind=%(kind)s"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }

    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"ctx": {"()": CtxFilter}},
        "formatters": {"default": formatter},
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
                "filters": ["ctx"],
            }
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            "sqlalchemy.engine": {"level": settings.log_sql.upper()},
            "aiogram": {"level": settings.log_aiogram.upper()},
            # apscheduler на INFO пишет каждый запуск джобы раз в минуту
            "apscheduler": {"level": "WARNING"},
            "rejabot": {"level": level},
        },
    })


class CtxFilter(logging.Filter):
    """Добавляет безопасные поля, чтобы форматтер не падал, когда нет extra."""
    def filter(self, record: logging.LogRecord) -> bool:
        for k in CTX_FIELDS:
            if not hasattr(record, k):
                setattr(record, k, "-")
        return True
