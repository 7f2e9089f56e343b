from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class EventBus:
    """
    Tiny pub/sub between the engine and its host.

    - subscribe(name, fn): register a callback, returns an unsubscribe function
    - unsubscribe(name, fn): remove callback
    - emit(name, **data): fire event with keyword payload

    Events published by the engine: engine.start, engine.end, engine.finished,
    engine.stop, engine.warning, engine.error, label.enter, text.show,
    choice.show, choice.select, choice.effect.
    """

    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Listener]] = defaultdict(list)
        self._emit_count: Dict[str, int] = defaultdict(int)

    def subscribe(self, name: str, fn: Listener) -> Callable[[], None]:
        if fn not in self._subs[name]:
            self._subs[name].append(fn)

        def unsubscribe() -> None:
            self.unsubscribe(name, fn)
        return unsubscribe

    def unsubscribe(self, name: str, fn: Listener) -> None:
        try:
            self._subs[name].remove(fn)
        except ValueError:
            pass

    def emit(self, name: str, /, **data: Any) -> None:
        self._emit_count[name] += 1
        for fn in list(self._subs.get(name, [])):
            try:
                fn(dict(data))
            except Exception:
                # listener errors are logged, never raised
                logger.exception("listener for %r failed", name)

    def has_listeners(self, name: str) -> bool:
        return bool(self._subs.get(name))

    def emit_count(self, name: str) -> int:
        return self._emit_count.get(name, 0)

    def clear(self) -> None:
        self._subs.clear()
        self._emit_count.clear()
