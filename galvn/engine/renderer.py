from __future__ import annotations

from typing import List, Optional


class IRenderer:
    """Presentation port: the effects the engine can request.

    The engine never touches pixels or audio devices; it only calls these.
    """

    # Background
    def set_background_visible(self, visible: bool) -> None:
        raise NotImplementedError

    def set_background_image(self, asset: Optional[str]) -> None:
        raise NotImplementedError

    # Characters
    def show_character(self, char_id: str, asset: Optional[str], side: str) -> None:
        raise NotImplementedError

    def hide_character(self, char_id: str) -> None:
        raise NotImplementedError

    def set_character_state(self, char_id: str, asset: Optional[str]) -> None:
        raise NotImplementedError

    # Dialogue: engine owns the reveal and pushes partial text on each tick
    def begin_dialogue(self, speaker: str, text: str) -> None:
        raise NotImplementedError

    def render_dialogue_text(self, partial: str) -> None:
        raise NotImplementedError

    # Choices
    def render_choices(self, texts: List[str]) -> None:
        raise NotImplementedError

    def clear_choices(self) -> None:
        raise NotImplementedError

    # Audio (single BGM channel)
    def play_audio(self, asset: Optional[str], loop: bool) -> None:
        raise NotImplementedError

    def stop_audio(self) -> None:
        raise NotImplementedError

    def pause_audio(self) -> None:
        raise NotImplementedError

    def show_end(self, text: str) -> None:
        raise NotImplementedError


class DummyRenderer(IRenderer):
    """Headless renderer that prints actions; useful for the CLI."""

    def set_background_visible(self, visible: bool) -> None:
        print(f"> BG {'show' if visible else 'hide'}")  # noqa: T201

    def set_background_image(self, asset: Optional[str]) -> None:
        print(f"> BG {asset or 'None'}")  # noqa: T201

    def show_character(self, char_id: str, asset: Optional[str], side: str) -> None:
        print(f"> CHAR {char_id} show {asset or 'None'} @{side}")  # noqa: T201

    def hide_character(self, char_id: str) -> None:
        print(f"> CHAR {char_id} hide")  # noqa: T201

    def set_character_state(self, char_id: str, asset: Optional[str]) -> None:
        print(f"> CHAR {char_id} state {asset or 'None'}")  # noqa: T201

    def begin_dialogue(self, speaker: str, text: str) -> None:
        # reveal ticks are not printed; the whole line goes out at once
        if speaker:
            print(f"{speaker}: {text}")  # noqa: T201
        else:
            print(text)  # noqa: T201

    def render_dialogue_text(self, partial: str) -> None:
        pass

    def render_choices(self, texts: List[str]) -> None:
        print("请选择：")  # noqa: T201
        for idx, txt in enumerate(texts, 1):
            print(f"  {idx}. {txt}")  # noqa: T201

    def clear_choices(self) -> None:
        pass

    def play_audio(self, asset: Optional[str], loop: bool) -> None:
        print(f"> BGM {asset or 'None'}{' loop' if loop else ''}")  # noqa: T201

    def stop_audio(self) -> None:
        print("> BGM stop")  # noqa: T201

    def pause_audio(self) -> None:
        print("> BGM pause")  # noqa: T201

    def show_end(self, text: str) -> None:
        print(text)  # noqa: T201
