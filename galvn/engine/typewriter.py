"""
Typewriter - 逐字显示

Reveals a line one character per tick on a fixed interval, then calls the
completion callback exactly once. Starting a new reveal replaces the old one:
its pending ticks turn into no-ops and its callback never fires.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .scheduler import IScheduler


DEFAULT_INTERVAL_MS = 16


@dataclass
class TypewriterState:
    """打字机状态"""
    text: str = ""
    revealed_chars: int = 0
    is_complete: bool = True

    @property
    def total_chars(self) -> int:
        return len(self.text)

    def revealed_text(self) -> str:
        return self.text[:self.revealed_chars]


class Typewriter:
    def __init__(self, scheduler: IScheduler, interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        self.scheduler = scheduler
        self.interval_ms = max(1, int(interval_ms))
        self.state = TypewriterState()
        self._generation = 0
        self._on_update: Optional[Callable[[str], None]] = None
        self._on_complete: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return not self.state.is_complete

    def start(self, text: str, on_update: Callable[[str], None], on_complete: Callable[[], None]) -> None:
        """Begin revealing `text`; the first character appears immediately."""
        self._generation += 1
        self.state = TypewriterState(text=text or "", revealed_chars=0, is_complete=False)
        self._on_update = on_update
        self._on_complete = on_complete
        self._tick(self._generation)

    def cancel(self) -> None:
        self._generation += 1
        self.state.is_complete = True
        self._on_update = None
        self._on_complete = None

    def _tick(self, generation: int) -> None:
        if generation != self._generation:
            return
        st = self.state
        if st.revealed_chars >= st.total_chars:
            st.is_complete = True
            cb = self._on_complete
            self._on_update = None
            self._on_complete = None
            if cb:
                cb()
            return
        st.revealed_chars += 1
        if self._on_update:
            self._on_update(st.revealed_text())
        self.scheduler.call_later(self.interval_ms, self._tick, generation)
