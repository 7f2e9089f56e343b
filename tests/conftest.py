from __future__ import annotations

from typing import Any, List, Optional, Tuple

import pytest

from galvn.engine.engine import Engine
from galvn.engine.renderer import IRenderer
from galvn.engine.resources import ResourceTable
from galvn.engine.scheduler import VirtualScheduler


class RecordingRenderer(IRenderer):
    """Presentation port that only records what it was asked to do."""

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, ...]] = []

    def _rec(self, *call: Any) -> None:
        self.calls.append(call)

    def set_background_visible(self, visible: bool) -> None:
        self._rec("set_background_visible", visible)

    def set_background_image(self, asset: Optional[str]) -> None:
        self._rec("set_background_image", asset)

    def show_character(self, char_id: str, asset: Optional[str], side: str) -> None:
        self._rec("show_character", char_id, asset, side)

    def hide_character(self, char_id: str) -> None:
        self._rec("hide_character", char_id)

    def set_character_state(self, char_id: str, asset: Optional[str]) -> None:
        self._rec("set_character_state", char_id, asset)

    def begin_dialogue(self, speaker: str, text: str) -> None:
        self._rec("begin_dialogue", speaker, text)

    def render_dialogue_text(self, partial: str) -> None:
        self._rec("render_dialogue_text", partial)

    def render_choices(self, texts: List[str]) -> None:
        self._rec("render_choices", list(texts))

    def clear_choices(self) -> None:
        self._rec("clear_choices")

    def play_audio(self, asset: Optional[str], loop: bool) -> None:
        self._rec("play_audio", asset, loop)

    def stop_audio(self) -> None:
        self._rec("stop_audio")

    def pause_audio(self) -> None:
        self._rec("pause_audio")

    def show_end(self, text: str) -> None:
        self._rec("show_end", text)

    def named(self, name: str) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    def lines(self) -> List[str]:
        return [c[2] for c in self.calls if c[0] == "begin_dialogue"]


RESOURCES = {
    "characters": {
        "liz": {
            "name": "Liz",
            "states": {
                "neutral": "char/liz_neutral.png",
                "happy": "char/liz_happy.png",
                "sad": "char/liz_sad.png",
            },
        },
        "popo": {"name": "Popo", "states": {}},
    },
    "backgrounds": {"room": "bg/room.jpg", "park": "bg/park.jpg"},
    "bgm": {"calm": "bgm/calm.mp3"},
}


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def resources() -> ResourceTable:
    return ResourceTable.from_dict(RESOURCES)


@pytest.fixture
def engine(renderer, scheduler, resources) -> Engine:
    return Engine(renderer=renderer, resources=resources, scheduler=scheduler)


@pytest.fixture
def collect(engine):
    """Subscribe to engine events; returns {event name: [payloads]}."""
    seen: dict = {}

    def _listen(*names: str) -> dict:
        for name in names:
            seen.setdefault(name, [])
            engine.events.subscribe(name, lambda data, n=name: seen[n].append(data))
        return seen
    return _listen
