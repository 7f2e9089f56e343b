from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple, Union


SIDES = ("left", "center", "right")


@dataclass(frozen=True)
class LabelInstruction:
    kind: ClassVar[str] = "label"
    id: str


@dataclass(frozen=True)
class SayInstruction:
    kind: ClassVar[str] = "say"
    text: str = ""
    who: Optional[str] = None
    # literal display name, used when `who` is not a known character
    name: Optional[str] = None


@dataclass(frozen=True)
class BgInstruction:
    kind: ClassVar[str] = "bg"
    show: Optional[bool] = None
    src: Optional[str] = None
    wait: Optional[int] = None


@dataclass(frozen=True)
class CharInstruction:
    kind: ClassVar[str] = "char"
    id: str = ""
    action: str = "show"  # show | hide | setState
    state: Optional[str] = None
    side: Optional[str] = None
    wait: Optional[int] = None


@dataclass(frozen=True)
class ChoiceOption:
    text: str = ""
    goto: Optional[str] = None
    # effect id published when the option is picked
    on_select: Optional[str] = None


@dataclass(frozen=True)
class ChoiceInstruction:
    kind: ClassVar[str] = "choice"
    choices: Tuple[ChoiceOption, ...] = ()


@dataclass(frozen=True)
class WaitInstruction:
    kind: ClassVar[str] = "wait"
    ms: Optional[int] = None


@dataclass(frozen=True)
class JumpInstruction:
    kind: ClassVar[str] = "jump"
    to: Optional[str] = None


@dataclass(frozen=True)
class BgmInstruction:
    kind: ClassVar[str] = "bgm"
    action: str = "play"  # play | stop | pause
    id: Optional[str] = None
    loop: bool = False


@dataclass(frozen=True)
class EndInstruction:
    kind: ClassVar[str] = "end"


@dataclass(frozen=True)
class UnknownInstruction:
    """Record whose kind is missing or not recognized; skipped at runtime."""

    kind: str = ""
    payload: Dict[str, Any] = field(default_factory=dict, compare=False)


Instruction = Union[
    LabelInstruction,
    SayInstruction,
    BgInstruction,
    CharInstruction,
    ChoiceInstruction,
    WaitInstruction,
    JumpInstruction,
    BgmInstruction,
    EndInstruction,
    UnknownInstruction,
]


class Script:
    """Immutable instruction tape. Offsets are positional and stable."""

    def __init__(self, instructions: Tuple[Instruction, ...] | list[Instruction] = ()) -> None:
        self._instructions: Tuple[Instruction, ...] = tuple(instructions)

    @property
    def instructions(self) -> Tuple[Instruction, ...]:
        return self._instructions

    def __len__(self) -> int:
        return len(self._instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self._instructions[index]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Script({len(self._instructions)} instructions)"

    def peek(self, index: int) -> Optional[Instruction]:
        if 0 <= index < len(self._instructions):
            return self._instructions[index]
        return None
