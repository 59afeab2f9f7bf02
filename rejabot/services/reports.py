# rejabot/services/reports.py
"""
Тексты ежедневного и еженедельного отчёта. Чистые функции: на вход снимок
данных юзера и «сейчас» в целевой зоне, на выход HTML для Telegram.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from html import escape
from typing import Any, Sequence

from rejabot.utils.dates import local_midnight

WEEK = timedelta(days=7)
TOP_CATEGORIES = 5


@dataclass
class ReportSnapshot:
    tasks: Sequence[Any] = field(default_factory=list)
    expenses: Sequence[Any] = field(default_factory=list)
    goals: Sequence[Any] = field(default_factory=list)
    budget_limits: Sequence[Any] = field(default_factory=list)


def _round(x: float) -> int:
    # половинки вверх, как в привычном «школьном» округлении
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def _percent(part: float, whole: float) -> int:
    if not whole:
        return 0
    return _round(part / whole * 100)


def format_currency(amount: int) -> str:
    return f"{amount:,}".replace(",", " ") + " so'm"


def progress_bar(current: int, target: int) -> str:
    pct = min(100, _percent(current, target))
    filled = _round(pct / 10)
    return "█" * filled + "░" * (10 - filled) + f" {pct}%"


def _since(items: Sequence[Any], since: datetime) -> list[Any]:
    return [x for x in items if x.created_at >= since]


def _category_totals(expenses: Sequence[Any]) -> list[tuple[str, int]]:
    totals: dict[str, int] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0) + e.amount
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)


def _fmt_date(dt: datetime) -> str:
    return dt.strftime("%d.%m.%Y")


def build_daily_report(snap: ReportSnapshot, now: datetime) -> str:
    since = local_midnight(now)
    tasks = _since(snap.tasks, since)
    done = sum(1 for t in tasks if t.completed)
    expenses = _since(snap.expenses, since)
    total = sum(e.amount for e in expenses)

    lines = [
        "📊 <b>Kunlik hisobot</b>",
        "",
        f"📅 {_fmt_date(now)}",
        "",
        "📋 <b>Vazifalar:</b>",
        f"├ Bugun qo'shildi: {len(tasks)}",
        f"├ Bajarildi: {done}",
        f"└ Jarayonda: {len(tasks) - done}",
        "",
        "💰 <b>Xarajatlar:</b>",
        f"└ Jami: {format_currency(total)}",
    ]

    cats = _category_totals(expenses)
    if cats:
        lines += ["", "📁 <b>Kategoriyalar:</b>"]
        lines += [f"• {escape(cat)}: {format_currency(amount)}" for cat, amount in cats]

    if snap.goals:
        lines += ["", "🎯 <b>Maqsadlar:</b>"]
        for g in snap.goals:
            lines.append(f"• {escape(g.title)}")
            lines.append(f"  {progress_bar(g.current_count, g.target_count)}")

    lines += ["", "<i>Ertaga ham barakali kun bo'lsin!</i> 🌿"]
    return "\n".join(lines)


def _budget_emoji(pct: int) -> str:
    if pct >= 100:
        return "🔴"
    if pct >= 80:
        return "🟡"
    return "🟢"


def _goal_emoji(pct: int) -> str:
    if pct < 50:
        return "🔴"
    if pct < 80:
        return "🟡"
    return "🟢"


def build_weekly_report(snap: ReportSnapshot, now: datetime) -> str:
    since = now - WEEK
    tasks = _since(snap.tasks, since)
    done = sum(1 for t in tasks if t.completed)
    expenses = _since(snap.expenses, since)
    total = sum(e.amount for e in expenses)

    lines = [
        "📊 <b>Haftalik hisobot</b>",
        "",
        f"📅 {_fmt_date(since)} - {_fmt_date(now)}",
        "",
        "📋 <b>Vazifalar:</b>",
        f"├ Jami qo'shildi: {len(tasks)}",
        f"├ Bajarildi: {done}",
        f"└ Jarayonda: {len(tasks) - done}",
    ]
    if tasks:
        lines += ["", f"📈 Bajarilish darajasi: {_percent(done, len(tasks))}%"]

    lines += ["", "💰 <b>Xarajatlar:</b>", f"└ Haftalik jami: {format_currency(total)}"]

    cats = _category_totals(expenses)
    if cats:
        lines += ["", "📁 <b>Kategoriyalar:</b>"]
        for cat, amount in cats[:TOP_CATEGORIES]:
            lines.append(f"• {escape(cat)}: {format_currency(amount)} ({_percent(amount, total)}%)")

    if snap.budget_limits:
        lines += ["", "💳 <b>Byudjet holati:</b>"]
        spent_by_cat = dict(cats)
        for limit in snap.budget_limits:
            pct = _percent(spent_by_cat.get(limit.category, 0), limit.limit_amount)
            lines.append(f"{_budget_emoji(pct)} {escape(limit.category)}: {pct}% sarflandi")

    if snap.goals:
        lines += ["", "🎯 <b>Maqsadlar:</b>"]
        for g in snap.goals:
            pct = _percent(g.current_count, g.target_count)
            lines.append(
                f"{_goal_emoji(pct)} {escape(g.title)}: {g.current_count}/{g.target_count} ({pct}%)"
            )

    lines += ["", "<i>Kelgusi hafta ham barakali bo'lsin!</i> 🌿"]
    return "\n".join(lines)
