from typing import Optional, Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

TASK_DONE_PREFIX = "task:done:"
TASK_SNOOZE_PREFIX = "task:snooze:"


def task_reminder_actions(task_id: int, snooze_minutes: int) -> list[tuple[str, str]]:
    hours = snooze_minutes // 60
    later = f"⏰ {hours} soatdan keyin" if snooze_minutes % 60 == 0 else f"⏰ {snooze_minutes} daqiqadan keyin"
    return [
        ("✅ Bajarildi", f"{TASK_DONE_PREFIX}{task_id}"),
        (later, f"{TASK_SNOOZE_PREFIX}{task_id}"),
    ]


def actions_keyboard(actions: Optional[Sequence[tuple[str, str]]]) -> Optional[InlineKeyboardMarkup]:
    if not actions:
        return None
    kb = InlineKeyboardBuilder()
    for text, data in actions:
        kb.button(text=text, callback_data=data)
    kb.adjust(len(actions))
    return kb.as_markup()
