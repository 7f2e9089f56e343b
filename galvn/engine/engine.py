from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..script.loader import load_script
from ..script.model import (
    SIDES,
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
from .config_io import EngineOptions
from .event_bus import EventBus
from .labels import build_label_index
from .renderer import DummyRenderer, IRenderer
from .resources import ResourceTable
from .scheduler import IScheduler, Timer, VirtualScheduler
from .typewriter import Typewriter

logger = logging.getLogger(__name__)


class EngineState(Enum):
    IDLE = auto()
    RUNNING = auto()
    AWAITING_ADVANCE = auto()
    AWAITING_CHOICE = auto()
    ENDED = auto()
    STOPPED = auto()


@dataclass(frozen=True)
class RunState:
    running: bool = False
    waiting_for_advance: bool = False
    pending_choice: bool = False


@dataclass
class CharacterState:
    visible: bool = False
    state: Optional[str] = None
    side: str = "center"


@dataclass
class StageState:
    bg_visible: bool = True
    bg_asset: Optional[str] = None
    characters: Dict[str, CharacterState] = field(default_factory=dict)
    bgm: Optional[str] = None


class Directive(Enum):
    CONTINUE = auto()  # run the next instruction now
    SUSPEND = auto()   # wait for a reveal, an advance, a choice, or nothing (end)


@dataclass(frozen=True)
class ResumeAfter:
    ms: int


Step = Union[Directive, ResumeAfter]


class Engine:
    def __init__(self, renderer: Optional[IRenderer] = None,
                 resources: ResourceTable | Mapping[str, Any] | None = None,
                 scheduler: Optional[IScheduler] = None,
                 options: Optional[EngineOptions] = None,
                 events: Optional[EventBus] = None) -> None:
        self.renderer = renderer or DummyRenderer()
        if isinstance(resources, ResourceTable):
            self.resources = resources
        else:
            self.resources = ResourceTable.from_dict(resources)
        self.scheduler = scheduler or VirtualScheduler()
        self.options = options or EngineOptions()
        self.events = events or EventBus()
        self.typewriter = Typewriter(self.scheduler, self.options.type_interval_ms)
        self.stage = StageState()
        self._script = Script()
        self._labels: Dict[str, int] = {}
        self._pc = 0
        self._state = EngineState.IDLE
        self._choices: Tuple[ChoiceOption, ...] = ()
        # bumped on every start(); timers from an older run compare unequal
        self._generation = 0
        self._resume_timer: Optional[Timer] = None
        self._dispatching = False

    # --- resources ---
    def load(self, resources: ResourceTable | Mapping[str, Any]) -> "Engine":
        self.resources.merge(resources)
        return self

    def define_characters(self, chars: Mapping[str, Any]) -> None:
        self.resources.define_characters(chars)

    def define_backgrounds(self, bgs: Mapping[str, Any]) -> None:
        self.resources.define_backgrounds(bgs)

    def define_bgm(self, bgms: Mapping[str, Any]) -> None:
        self.resources.define_bgm(bgms)

    # --- read-only views ---
    @property
    def pc(self) -> int:
        return self._pc

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state in (EngineState.RUNNING, EngineState.AWAITING_ADVANCE, EngineState.AWAITING_CHOICE)

    @property
    def run_state(self) -> RunState:
        return RunState(
            running=self.running,
            waiting_for_advance=self._state is EngineState.AWAITING_ADVANCE,
            pending_choice=self._state is EngineState.AWAITING_CHOICE,
        )

    @property
    def script(self) -> Script:
        return self._script

    @property
    def labels(self) -> Dict[str, int]:
        return dict(self._labels)

    @property
    def characters(self) -> Dict[str, CharacterState]:
        return self.stage.characters

    @property
    def pending_choices(self) -> Tuple[ChoiceOption, ...]:
        return self._choices

    # --- control ---
    def start(self, script: Script | Iterable[Mapping[str, Any]]) -> "Engine":
        self.typewriter.cancel()
        self._cancel_resume()
        self._generation += 1
        self._script = load_script(script)
        self._labels = build_label_index(self._script)
        self._pc = 0
        self.stage = StageState()
        self._choices = ()
        self._state = EngineState.RUNNING
        self.events.emit("engine.start", count=len(self._script))
        self._dispatch()
        return self

    play_script = start

    def advance(self) -> bool:
        """External advance signal (click). Only honored while awaiting advance."""
        if self._dispatching or self._state is not EngineState.AWAITING_ADVANCE:
            logger.debug("advance ignored in state %s", self._state.name)
            return False
        self._state = EngineState.RUNNING
        self._dispatch()
        return True

    def select_choice(self, index: int) -> bool:
        if self._dispatching or self._state is not EngineState.AWAITING_CHOICE:
            logger.debug("choice %r ignored in state %s", index, self._state.name)
            return False
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._choices):
            self._report("engine.error", f"Choice index out of range: {index!r} (have {len(self._choices)})")
            return False
        opt = self._choices[index]
        self._choices = ()
        self.renderer.clear_choices()
        self.events.emit("choice.select", index=index, text=opt.text, goto=opt.goto)
        if opt.on_select:
            self.events.emit("choice.effect", effect=opt.on_select, index=index)
        if opt.goto:
            self.jump_to_label(opt.goto)
        self._state = EngineState.RUNNING
        self._dispatch()
        return True

    def jump_to_label(self, label: str) -> bool:
        if label in self._labels:
            self._pc = self._labels[label]
            return True
        self._report("engine.error", f"Label not found: {label}")
        return False

    def stop(self) -> None:
        if self.running:
            self._state = EngineState.STOPPED
        self.typewriter.cancel()
        self._cancel_resume()
        self.events.emit("engine.stop", pc=self._pc)

    def run_headless(self, choose: Optional[Callable[[List[str]], int]] = None,
                     wait: Optional[Callable[[], None]] = None) -> None:
        """Play to the end on a virtual clock: delays are skipped, not slept."""
        sched = self.scheduler
        if not isinstance(sched, VirtualScheduler):
            raise TypeError("run_headless requires a VirtualScheduler")
        while self.running:
            sched.run_until_idle()
            if self._state is EngineState.AWAITING_ADVANCE:
                if wait:
                    wait()
                self.advance()
            elif self._state is EngineState.AWAITING_CHOICE:
                texts = self._choice_texts(self._choices)
                idx = choose(texts) if choose else 0
                if not self.select_choice(idx):
                    self.select_choice(0)
            elif sched.pending == 0 and not self.typewriter.active:
                break

    # --- dispatch loop ---
    def _dispatch(self) -> None:
        if self._dispatching:
            return
        self._dispatching = True
        steps = 0
        try:
            while (self._state is EngineState.RUNNING
                   and not self.typewriter.active
                   and self._resume_timer is None):
                if self._pc >= len(self._script):
                    self._state = EngineState.ENDED
                    self.events.emit("engine.finished", pc=self._pc)
                    break
                steps += 1
                if steps > self.options.max_steps:
                    # label/jump cycle with nothing that waits
                    self._report("engine.error",
                                 f"{self.options.max_steps} steps without a pause at {self._pc}; stopping")
                    self.stop()
                    break
                ins = self._script[self._pc]
                self._pc += 1
                step = self._execute(ins)
                if isinstance(step, ResumeAfter):
                    self._schedule_resume(step.ms)
        finally:
            self._dispatching = False

    def _schedule_resume(self, ms: int) -> None:
        self._resume_timer = self.scheduler.call_later(ms, self._resume, self._generation)

    def _cancel_resume(self) -> None:
        if self._resume_timer is not None:
            self._resume_timer.cancel()
            self._resume_timer = None

    def _resume(self, generation: int) -> None:
        if generation != self._generation or not self.running:
            return
        self._resume_timer = None
        self._dispatch()

    def _execute(self, ins: Instruction) -> Step:
        match ins:
            case LabelInstruction(id=label_id):
                if label_id:
                    self.events.emit("label.enter", name=label_id)
                return Directive.CONTINUE
            case SayInstruction():
                return self._cmd_say(ins)
            case BgInstruction():
                return self._cmd_bg(ins)
            case CharInstruction():
                return self._cmd_char(ins)
            case ChoiceInstruction():
                return self._cmd_choice(ins)
            case WaitInstruction(ms=ms):
                return ResumeAfter(ms or self.options.wait_default_ms)
            case JumpInstruction(to=target):
                if target:
                    self.jump_to_label(target)
                return Directive.CONTINUE
            case BgmInstruction():
                return self._cmd_bgm(ins)
            case EndInstruction():
                return self._cmd_end()
            case UnknownInstruction(kind=kind):
                self._report("engine.warning", f"Unknown cmd {kind or '<missing>'!r} at {self._pc - 1}")
                return Directive.CONTINUE
            case _:
                self._report("engine.warning", f"Not an instruction at {self._pc - 1}: {ins!r}")
                return Directive.CONTINUE

    # --- instruction handlers ---
    def _cmd_say(self, ins: SayInstruction) -> Step:
        speaker = self.resources.display_name(ins.who) or ins.name or ""
        next_is_choice = isinstance(self._script.peek(self._pc), ChoiceInstruction)
        generation = self._generation
        self.events.emit("text.show", who=speaker, text=ins.text)
        self.renderer.begin_dialogue(speaker, ins.text)
        self.typewriter.start(
            ins.text,
            self.renderer.render_dialogue_text,
            lambda: self._on_reveal_done(generation, next_is_choice),
        )
        return Directive.SUSPEND

    def _on_reveal_done(self, generation: int, next_is_choice: bool) -> None:
        if generation != self._generation or self._state is not EngineState.RUNNING:
            return
        if next_is_choice:
            # choices follow their prompt line without an extra click
            self._dispatch()
        else:
            self._state = EngineState.AWAITING_ADVANCE

    def _cmd_bg(self, ins: BgInstruction) -> Step:
        if ins.show is not None:
            self.stage.bg_visible = ins.show
            self.renderer.set_background_visible(ins.show)
        if ins.src:
            if ins.src not in self.resources.backgrounds:
                logger.warning("background %r not in resource table; using it as an asset path", ins.src)
            asset = self.resources.resolve_background(ins.src)
            self.stage.bg_asset = asset
            self.renderer.set_background_image(asset)
        return ResumeAfter(self._settle(ins.wait))

    def _cmd_char(self, ins: CharInstruction) -> Step:
        cid = ins.id
        if not cid:
            self._report("engine.warning", f"char instruction without id at {self._pc - 1}")
            return Directive.CONTINUE
        if ins.action == "show":
            if not self.resources.has_character(cid):
                self._report("engine.warning", f"角色未定义: {cid}")
            else:
                state = ins.state or self.resources.first_state(cid)
                side = ins.side or "center"
                if side not in SIDES:
                    logger.warning("unknown side %r for %s; using center", side, cid)
                    side = "center"
                cs = self.stage.characters.setdefault(cid, CharacterState())
                cs.visible, cs.state, cs.side = True, state, side
                self.renderer.show_character(cid, self.resources.resolve_character_state(cid, state), side)
        elif ins.action == "hide":
            cs = self.stage.characters.get(cid)
            if cs is None:
                self._report("engine.warning", f"hide of character never shown: {cid}")
            else:
                cs.visible = False
                self.renderer.hide_character(cid)
        elif ins.action == "setState":
            if not self.resources.has_character(cid):
                self._report("engine.warning", f"角色未定义: {cid}")
            else:
                cs = self.stage.characters.setdefault(cid, CharacterState())
                cs.state = ins.state
                self.renderer.set_character_state(cid, self.resources.resolve_character_state(cid, ins.state))
        else:
            self._report("engine.warning", f"未知 char action: {ins.action}")
            return Directive.CONTINUE
        return ResumeAfter(self._settle(ins.wait))

    def _cmd_choice(self, ins: ChoiceInstruction) -> Step:
        if not ins.choices:
            # nothing to pick: a plain advance moves past it
            self._report("engine.warning", f"choice with no options at {self._pc - 1}")
            self._state = EngineState.AWAITING_ADVANCE
            return Directive.SUSPEND
        self._choices = ins.choices
        self._state = EngineState.AWAITING_CHOICE
        texts = self._choice_texts(ins.choices)
        self.events.emit("choice.show", choices=list(texts))
        self.renderer.render_choices(texts)
        return Directive.SUSPEND

    def _cmd_bgm(self, ins: BgmInstruction) -> Step:
        if ins.action == "play":
            asset = self.resources.resolve_audio(ins.id)
            self._audio_call(self.renderer.play_audio, asset, ins.loop)
            self.stage.bgm = ins.id
        elif ins.action == "stop":
            self._audio_call(self.renderer.stop_audio)
            self.stage.bgm = None
        elif ins.action == "pause":
            self._audio_call(self.renderer.pause_audio)
        else:
            self._report("engine.warning", f"unknown bgm action: {ins.action}")
        return ResumeAfter(self.options.bgm_settle_ms)

    def _cmd_end(self) -> Step:
        self._state = EngineState.ENDED
        self.typewriter.cancel()
        self._choices = ()
        self.renderer.clear_choices()
        self.renderer.show_end(self.options.end_text)
        self.events.emit("engine.end", pc=self._pc)
        return Directive.SUSPEND

    # --- helpers ---
    def _settle(self, wait: Optional[int]) -> int:
        return wait or self.options.transition_ms

    def _choice_texts(self, choices: Tuple[ChoiceOption, ...]) -> List[str]:
        return [ch.text or self.options.choice_fallback.format(n=i + 1) for i, ch in enumerate(choices)]

    def _audio_call(self, fn: Callable[..., None], *args: Any) -> None:
        try:
            fn(*args)
        except Exception as e:  # noqa: BLE001 - playback problems never stop the script
            logger.warning("BGM %s failed: %s", fn.__name__, e)
            self.events.emit("engine.warning", message=f"BGM {fn.__name__} failed: {e}")

    def _report(self, event: str, message: str) -> None:
        logger.warning(message)
        self.events.emit(event, message=message)
