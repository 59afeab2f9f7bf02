# rejabot/services/prayer_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from rejabot.services.entitlement import EntitlementService
from rejabot.services.ledger import DedupLedger
from rejabot.services.ports import Channel, PrayerTimesSource, Store
from rejabot.utils.dates import at_time, candidate_days, date_marker, in_minute_window, parse_hhmm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrayerSlot:
    kind: str          # ключ в леджере и флаг в настройках (<kind>_enabled)
    label: str
    emoji: str
    base: str          # от какого времени считаем
    fallback: Optional[str] = None


CANONICAL = (
    PrayerSlot("fajr", "Bomdod", "🌅", "fajr"),
    PrayerSlot("dhuhr", "Peshin", "☀️", "dhuhr"),
    PrayerSlot("asr", "Asr", "🌤", "asr"),
    PrayerSlot("maghrib", "Shom", "🌆", "maghrib"),
    PrayerSlot("isha", "Xufton", "🌙", "isha"),
)
SUHOOR = PrayerSlot("suhoor", "Saharlik", "🌙", "fajr")
IFTAR = PrayerSlot("iftar", "Iftorlik", "🌇", "sunset", fallback="maghrib")

PRAYER_KINDS = tuple(s.kind for s in CANONICAL) + (SUHOOR.kind, IFTAR.kind)


def _enabled_slots(pref) -> list[tuple[PrayerSlot, int]]:
    """(слот, сколько минут до) для всего, что юзер включил."""
    slots = [(s, pref.advance_minutes or 0) for s in CANONICAL if getattr(pref, f"{s.kind}_enabled", False)]
    if getattr(pref, "suhoor_enabled", False):
        slots.append((SUHOOR, pref.suhoor_minutes or 0))
    if getattr(pref, "iftar_enabled", False):
        slots.append((IFTAR, pref.iftar_minutes or 0))
    return slots


def _message(slot: PrayerSlot, lead: int, at: str) -> str:
    if slot is SUHOOR:
        return f"{slot.emoji} <b>{slot.label}</b>\n\nOg'iz yopish vaqtiga {lead} daqiqa qoldi.\n🕐 Bomdod: {at}"
    if slot is IFTAR:
        return f"{slot.emoji} <b>{slot.label}</b>\n\nOg'iz ochish vaqtiga {lead} daqiqa qoldi.\n🕐 Quyosh botishi: {at}"
    if lead <= 0:
        return f"{slot.emoji} <b>{slot.label}</b> namozi vaqti kirdi.\n🕐 {at}"
    return f"{slot.emoji} <b>{slot.label}</b> namoziga {lead} daqiqa qoldi.\n🕐 Vaqt: {at}"


class PrayerService:
    def __init__(
        self,
        store: Store,
        notifier: Channel,
        ledger: DedupLedger,
        entitlement: EntitlementService,
        provider: PrayerTimesSource,
        *,
        tolerance_seconds: int = 30,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.ledger = ledger
        self.entitlement = entitlement
        self.provider = provider
        self.tolerance = tolerance_seconds

    async def check(self, now: datetime) -> int:
        if now.hour == 0 and now.minute == 0:
            # раз в сутки, в локальную полночь, чистим прошлые дни
            self.ledger.prune(PRAYER_KINDS, [date_marker(d) for d in candidate_days(now, self.tolerance)])

        sent = 0
        for pref in await self.store.list_all_prayer_preferences():
            user_id = pref.telegram_user_id
            try:
                slots = _enabled_slots(pref)
                if not slots:
                    continue
                # цель = время намаза минус lead: завтрашний ранний бомдод может прийтись на сегодня
                lookahead = self.tolerance + 60 * max(lead for _, lead in slots)
                for day in candidate_days(now, lookahead):
                    times = await self._times_for(pref, day)
                    if times is None:
                        logger.warning("prayer times unavailable, skip user this cycle", extra={"user_id": user_id})
                        break
                    sent += await self._check_day(pref, slots, times, day, now)
            except Exception:
                logger.exception("prayer reminder failed", extra={"user_id": user_id})
        return sent

    async def _times_for(self, pref, day: date) -> Optional[dict[str, str]]:
        if pref.use_custom_location and pref.latitude is not None and pref.longitude is not None:
            return await self.provider.get_times_for_coordinates(pref.latitude, pref.longitude, day)
        return await self.provider.get_times_for_region(pref.region_code, day)

    async def _check_day(self, pref, slots, times: dict[str, str], day: date, now: datetime) -> int:
        user_id = pref.telegram_user_id
        marker = date_marker(day)
        sent = 0
        for slot, lead in slots:
            raw = times.get(slot.base) or (times.get(slot.fallback) if slot.fallback else None)
            try:
                at = parse_hhmm(raw)
            except ValueError:
                logger.warning("bad %s time %r", slot.base, raw, extra={"user_id": user_id, "kind": slot.kind})
                continue

            target = at_time(day, at, now.tzinfo) - timedelta(minutes=lead)
            if not in_minute_window(now, target, self.tolerance):
                continue
            if self.ledger.seen(user_id, slot.kind, marker):
                continue
            if not await self.entitlement.is_entitled(user_id, now):
                continue
            if not self.ledger.claim(user_id, slot.kind, marker):
                continue

            if await self.notifier.send(user_id, _message(slot, lead, at.strftime("%H:%M"))):
                sent += 1
                logger.info("prayer reminder sent", extra={"user_id": user_id, "kind": slot.kind})
            else:
                self.ledger.release(user_id, slot.kind, marker)
        return sent
