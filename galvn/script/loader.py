from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from .errors import ScriptError
from .model import (
    BgInstruction,
    BgmInstruction,
    CharInstruction,
    ChoiceInstruction,
    ChoiceOption,
    EndInstruction,
    Instruction,
    JumpInstruction,
    LabelInstruction,
    SayInstruction,
    Script,
    UnknownInstruction,
    WaitInstruction,
)

logger = logging.getLogger(__name__)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s else None


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_choices(raw: Any, index: int) -> tuple[ChoiceOption, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ScriptError("choice.choices must be a list", index, repr(raw))
    out: List[ChoiceOption] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ScriptError("choice option must be a mapping", index, repr(item))
        effect = item.get("onSelect", item.get("on_select"))
        out.append(ChoiceOption(
            text=str(item.get("text") or ""),
            goto=_opt_str(item.get("goto")),
            on_select=_opt_str(effect),
        ))
    return tuple(out)


def parse_instruction(record: Mapping[str, Any], index: int = 0, strict: bool = False) -> Instruction:
    """Build one instruction from a plain record (``type`` or ``kind`` tag)."""
    if not isinstance(record, Mapping):
        raise ScriptError("instruction must be a mapping", index, repr(record))
    kind = record.get("type", record.get("kind"))
    k = str(kind) if kind else ""
    if k == "label":
        return LabelInstruction(id=str(record.get("id") or ""))
    if k == "say":
        return SayInstruction(
            text=str(record.get("text") or ""),
            who=_opt_str(record.get("who")),
            name=_opt_str(record.get("name")),
        )
    if k == "bg":
        show = record.get("show")
        return BgInstruction(
            show=None if "show" not in record else bool(show),
            src=_opt_str(record.get("src")),
            wait=_opt_int(record.get("wait")),
        )
    if k == "char":
        return CharInstruction(
            id=str(record.get("id") or ""),
            action=str(record.get("action") or "show"),
            state=_opt_str(record.get("state")),
            side=_opt_str(record.get("side")),
            wait=_opt_int(record.get("wait")),
        )
    if k == "choice":
        return ChoiceInstruction(choices=_parse_choices(record.get("choices"), index))
    if k == "wait":
        return WaitInstruction(ms=_opt_int(record.get("ms")))
    if k == "jump":
        return JumpInstruction(to=_opt_str(record.get("to")))
    if k == "bgm":
        return BgmInstruction(
            action=str(record.get("action") or "play"),
            id=_opt_str(record.get("id")),
            loop=bool(record.get("loop", False)),
        )
    if k == "end":
        return EndInstruction()
    if strict:
        raise ScriptError(f"Unknown instruction kind: {k or '<missing>'}", index, repr(dict(record)))
    return UnknownInstruction(kind=k, payload=dict(record))


def load_script(records: Iterable[Mapping[str, Any]] | Script, strict: bool = False) -> Script:
    if isinstance(records, Script):
        return records
    if isinstance(records, (str, bytes)) or not isinstance(records, Iterable):
        raise ScriptError("script must be a list of instruction records")
    instructions = [parse_instruction(rec, i, strict=strict) for i, rec in enumerate(records)]
    unknown = sum(1 for ins in instructions if isinstance(ins, UnknownInstruction))
    if unknown:
        logger.warning("script contains %d unrecognized instruction(s)", unknown)
    return Script(instructions)


def load_script_file(path: Path | str, strict: bool = False) -> Script:
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ScriptError(f"Invalid JSON in {p}: {e.msg}", None, f"line {e.lineno}") from e
    # allow {"script": [...]} wrappers alongside bare lists
    if isinstance(data, dict) and "script" in data:
        data = data["script"]
    if not isinstance(data, list):
        raise ScriptError(f"{p}: top level must be a list of instructions")
    return load_script(data, strict=strict)
