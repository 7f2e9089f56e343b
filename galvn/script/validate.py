from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .model import (
    SIDES,
    BgmInstruction,
    CharInstruction,
    ChoiceInstruction,
    JumpInstruction,
    LabelInstruction,
    SayInstruction,
    Script,
    UnknownInstruction,
)


@dataclass
class Diagnostic:
    index: int | None
    severity: str  # "error" | "warning"
    message: str


def validate_script(script: Script, resources=None) -> list[Diagnostic]:
    """Static checks: jump/goto targets, duplicate labels, unknown kinds and actions.

    With a ResourceTable, character ids used by char/say are checked too.
    """
    diags: list[Diagnostic] = []
    seen: Dict[str, int] = {}
    for i, ins in enumerate(script):
        if isinstance(ins, LabelInstruction):
            if not ins.id:
                diags.append(Diagnostic(i, "warning", "Label without id"))
            elif ins.id in seen:
                diags.append(Diagnostic(i, "warning",
                                        f"Label '{ins.id}' redefined (first at {seen[ins.id]}); the last one wins"))
            else:
                seen[ins.id] = i

    def check_target(i: int, target: Optional[str], what: str) -> None:
        if target and target not in seen:
            diags.append(Diagnostic(i, "error", f"{what} target label not found: '{target}'"))

    for i, ins in enumerate(script):
        if isinstance(ins, JumpInstruction):
            if not ins.to:
                diags.append(Diagnostic(i, "warning", "Jump without target"))
            check_target(i, ins.to, "Jump")
        elif isinstance(ins, ChoiceInstruction):
            if not ins.choices:
                diags.append(Diagnostic(i, "error", "Choice without options"))
            for ch in ins.choices:
                check_target(i, ch.goto, "Choice")
        elif isinstance(ins, CharInstruction):
            if not ins.id:
                diags.append(Diagnostic(i, "warning", "char without id"))
            elif resources is not None and not resources.has_character(ins.id):
                diags.append(Diagnostic(i, "warning", f"Character not defined: '{ins.id}'"))
            if ins.action not in ("show", "hide", "setState"):
                diags.append(Diagnostic(i, "warning", f"Unknown char action: '{ins.action}'"))
            if ins.side and ins.side not in SIDES:
                diags.append(Diagnostic(i, "warning", f"Unknown side: '{ins.side}'"))
        elif isinstance(ins, SayInstruction):
            if resources is not None and ins.who and not resources.has_character(ins.who) and not ins.name:
                diags.append(Diagnostic(i, "warning", f"Speaker not defined: '{ins.who}'"))
        elif isinstance(ins, BgmInstruction):
            if ins.action not in ("play", "stop", "pause"):
                diags.append(Diagnostic(i, "warning", f"Unknown bgm action: '{ins.action}'"))
        elif isinstance(ins, UnknownInstruction):
            diags.append(Diagnostic(i, "warning", f"Unknown instruction kind: '{ins.kind or '<missing>'}'"))
    diags.sort(key=lambda d: (d.index if d.index is not None else -1))
    return diags


def has_errors(diags: List[Diagnostic]) -> bool:
    return any(d.severity == "error" for d in diags)
