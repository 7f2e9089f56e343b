from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    """Malformed script input.

    ``index`` is the position of the offending record in the instruction list
    (None when the whole document is bad); ``context`` is a short excerpt of
    that record, or the JSON line number, shown under the message.
    """

    message: str
    index: int | None = None
    context: str | None = None

    def __str__(self) -> str:
        loc = f" (instruction {self.index})" if self.index is not None else ""
        ctx = f"\n  >> {self.context}" if self.context else ""
        return f"{self.message}{loc}{ctx}"
