from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

UTC = timezone.utc

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


class Clock:
    """
    Источник «сейчас» в целевой зоне (SCHEDULER_TZ).
    Часовой пояс хоста ни на что не влияет: переводим по правилам IANA.
    """

    def __init__(self, tz_name: str) -> None:
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)

    def localize(self, dt: datetime) -> datetime:
        return dt.astimezone(self.tz)


def parse_hhmm(value: str) -> time:
    """
    "20:00" -> time(20, 0). Понимает и формат aladhan "05:12 (+05)".
    Кидает ValueError на мусор.
    """
    head = (value or "").strip().split(" ")[0]
    hh, sep, mm = head.partition(":")
    if not sep or not hh.isdigit() or not mm.isdigit():
        raise ValueError(f"bad time of day: {value!r}")
    h, m = int(hh), int(mm)
    if h > 23 or m > 59:
        raise ValueError(f"bad time of day: {value!r}")
    return time(h, m)


def minute_of_day(t: time) -> int:
    return t.hour * 60 + t.minute


def date_marker(d: date) -> str:
    return d.isoformat()


def iso_week_marker(d: date) -> str:
    year, week, _ = d.isocalendar()
    return f"{year}-W{week:02d}"


def weekday_name(d: date) -> str:
    return WEEKDAYS[d.weekday()]


def local_midnight(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def at_time(day: date, t: time, tz) -> datetime:
    return datetime.combine(day, t, tzinfo=tz)


def in_minute_window(now: datetime, target: datetime, tolerance_seconds: int) -> bool:
    """
    Совпала ли минута target с now. Окно [target - tolerance, target + 60s):
    тик, проснувшийся чуть раньше, тоже засчитывается. Повторы в пределах
    окна отсекает леджер, а не эта проверка.
    """
    start = target - timedelta(seconds=tolerance_seconds)
    end = target + timedelta(seconds=60)
    return start <= now < end


def candidate_days(now: datetime, tolerance_seconds: int) -> list[date]:
    """
    Дни, чьи целевые моменты могут попасть в окно: сегодня и, если до
    полуночи меньше tolerance, завтра.
    """
    days = [now.date()]
    ahead = (now + timedelta(seconds=tolerance_seconds)).date()
    if ahead != days[0]:
        days.append(ahead)
    return days
