# rejabot/services/ledger.py
from __future__ import annotations

from typing import Iterable, Protocol

LedgerKey = tuple[str, str, str]  # (user_id, kind, period_marker)


class DedupLedger(Protocol):
    def claim(self, user_id: str, kind: str, marker: str) -> bool: ...
    def release(self, user_id: str, kind: str, marker: str) -> None: ...
    def seen(self, user_id: str, kind: str, marker: str) -> bool: ...
    def prune(self, kinds: Iterable[str], keep_markers: Iterable[str]) -> int: ...
    def prune_older(self, kinds: Iterable[str], oldest_marker: str) -> int: ...


class MemoryLedger:
    """
    Журнал «уже отправлено» в памяти процесса.

    Живёт, пока жив процесс: после рестарта пустой, поэтому на границе
    минуты возможен повтор или пропуск. Все проверки крутятся в одном
    event loop, а claim() не содержит await, так что insert-if-absent
    атомарен без блокировок.
    """

    def __init__(self) -> None:
        self._keys: set[LedgerKey] = set()

    def claim(self, user_id: str, kind: str, marker: str) -> bool:
        """Занять ключ до отправки. False: уже занят."""
        key = (str(user_id), kind, marker)
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def release(self, user_id: str, kind: str, marker: str) -> None:
        """Отправка не удалась: освобождаем ключ, следующий тик попробует снова."""
        self._keys.discard((str(user_id), kind, marker))

    def seen(self, user_id: str, kind: str, marker: str) -> bool:
        return (str(user_id), kind, marker) in self._keys

    def prune(self, kinds: Iterable[str], keep_markers: Iterable[str]) -> int:
        """Удаляет записи указанных видов, чей маркер периода уже не актуален."""
        kinds = set(kinds)
        keep = set(keep_markers)
        stale = {k for k in self._keys if k[1] in kinds and k[2] not in keep}
        self._keys -= stale
        return len(stale)

    def prune_older(self, kinds: Iterable[str], oldest_marker: str) -> int:
        """Для маркеров-дат (YYYY-MM-DD): удаляет всё, что раньше oldest_marker."""
        kinds = set(kinds)
        stale = {k for k in self._keys if k[1] in kinds and k[2] < oldest_marker}
        self._keys -= stale
        return len(stale)

    def __len__(self) -> int:
        return len(self._keys)
