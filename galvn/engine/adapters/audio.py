from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

import pygame


class IAudio(ABC):
    """Single background-music channel."""

    @abstractmethod
    def play(self, asset: Optional[str], loop: bool = False) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def pause(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class PygameAudio(IAudio):
    """BGM on pygame.mixer.music.

    Errors (missing file, no audio device) are raised to the caller; the
    engine decides that they are not fatal.
    """

    def __init__(self, resolve_path: Optional[Callable[[str], str]] = None) -> None:
        self._resolve = resolve_path or (lambda p: p)
        self.current: Optional[str] = None
        self.paused = False

    def _ensure_mixer(self) -> None:
        if not pygame.mixer.get_init():
            pygame.mixer.init()

    def play(self, asset: Optional[str], loop: bool = False) -> None:
        if not asset:
            self.stop()
            return
        self._ensure_mixer()
        path = self._resolve(asset)
        if not Path(path).exists():
            raise FileNotFoundError(path)
        pygame.mixer.music.load(path)
        # -1 repeats forever, 0 plays once
        pygame.mixer.music.play(-1 if loop else 0)
        self.current = asset
        self.paused = False

    def stop(self) -> None:
        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
        self.current = None
        self.paused = False

    def pause(self) -> None:
        if pygame.mixer.get_init() and self.current:
            pygame.mixer.music.pause()
            self.paused = True
