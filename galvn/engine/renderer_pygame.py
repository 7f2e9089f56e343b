from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pygame
from pygame import Surface

from galvn.engine.adapters.audio import IAudio, PygameAudio
from galvn.engine.renderer import IRenderer
from galvn.engine.resources import ResourceTable
from galvn.engine.scheduler import RealtimeScheduler
from galvn.ui.textwrap import wrap_text

logger = logging.getLogger(__name__)

# horizontal anchor of each side, as a fraction of the window width
SIDE_ANCHORS: Dict[str, float] = {"left": 0.06, "center": 0.5, "right": 0.94}

CJK_FONTS = [
    "Microsoft YaHei UI",
    "Microsoft YaHei",
    "SimHei",
    "Noto Sans CJK SC",
    "Noto Sans SC",
    "Source Han Sans SC",
    "WenQuanYi Zen Hei",
    "PingFang SC",
]


def init_font(font_path: Optional[str], size: int) -> pygame.font.Font:
    if font_path and Path(font_path).exists():
        return pygame.font.Font(font_path, size)
    return pygame.font.SysFont(CJK_FONTS, size)


@dataclass
class Sprite:
    surface: Surface
    side: str
    # fade: start tick and direction (+1 in, -1 out)
    fade_start: int = 0
    fade_dir: int = 1


class PygameRenderer(IRenderer):
    def __init__(self, title: str = "galvn", width: int = 960, height: int = 540,
                 textbox_height: int = 140, font_size: int = 24, font_path: Optional[str] = None,
                 transition_ms: int = 300, fps: int = 60, assets_dir: Optional[Path] = None,
                 audio: Optional[IAudio] = None) -> None:
        pygame.init()
        self.size: Tuple[int, int] = (int(width), int(height))
        self.screen = pygame.display.set_mode(self.size)
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self.fps = max(10, int(fps))
        self.textbox_height = int(textbox_height)
        self.transition_ms = max(1, int(transition_ms))
        self.font = init_font(font_path, font_size)
        self.name_font = init_font(font_path, font_size)
        self.name_font.set_bold(True)
        self.assets_dir = Path(assets_dir) if assets_dir else Path.cwd()
        self.audio = audio or PygameAudio(self._resolve_path)

        self._images: Dict[str, Surface] = {}
        self.bg: Optional[Surface] = None
        self.bg_visible = True
        self._bg_fade_start = 0
        self.sprites: Dict[str, Sprite] = {}
        self.speaker = ""
        self.text = ""
        self.choices: List[str] = []
        self._choice_rects: List[pygame.Rect] = []
        self.end_text: Optional[str] = None

    # --- assets ---
    def _resolve_path(self, asset: str) -> str:
        p = Path(asset)
        return str(p if p.is_absolute() else self.assets_dir / p)

    def load_image(self, asset: str) -> Surface:
        cached = self._images.get(asset)
        if cached is not None:
            return cached
        surf = pygame.image.load(self._resolve_path(asset)).convert_alpha()
        self._images[asset] = surf
        return surf

    def preload(self, resources: ResourceTable) -> None:
        def progress(done: int, total: int) -> None:
            logger.debug("preload %d/%d", done, total)
        resources.preload_all(self.load_image, progress)

    def _image_or_placeholder(self, asset: Optional[str], label: str, size: Tuple[int, int]) -> Surface:
        if asset:
            try:
                return self.load_image(asset)
            except (pygame.error, FileNotFoundError) as e:
                logger.warning("image %s not loaded: %s", asset, e)
        surf = pygame.Surface(size, pygame.SRCALPHA)
        surf.fill((80, 80, 120, 255))
        pygame.draw.rect(surf, (200, 200, 240, 255), surf.get_rect(), 4)
        txt = self.font.render(label, True, (255, 255, 255))
        surf.blit(txt, txt.get_rect(center=(size[0] // 2, 40)))
        return surf

    # --- IRenderer ---
    def set_background_visible(self, visible: bool) -> None:
        if visible != self.bg_visible:
            self._bg_fade_start = pygame.time.get_ticks()
        self.bg_visible = visible

    def set_background_image(self, asset: Optional[str]) -> None:
        if not asset:
            self.bg = None
            return
        stage = (self.size[0], self.size[1] - self.textbox_height)
        img = self._image_or_placeholder(asset, asset, stage)
        self.bg = pygame.transform.smoothscale(img, stage)

    def show_character(self, char_id: str, asset: Optional[str], side: str) -> None:
        h = self.size[1] - self.textbox_height
        img = self._image_or_placeholder(asset, char_id, (h * 5 // 9, h))
        if img.get_height() != h:
            w = max(1, img.get_width() * h // max(1, img.get_height()))
            img = pygame.transform.smoothscale(img, (w, h))
        existing = self.sprites.get(char_id)
        if existing and existing.fade_dir > 0:
            existing.surface, existing.side = img, side
        else:
            self.sprites[char_id] = Sprite(img, side, pygame.time.get_ticks(), 1)

    def hide_character(self, char_id: str) -> None:
        spr = self.sprites.get(char_id)
        if spr:
            spr.fade_start, spr.fade_dir = pygame.time.get_ticks(), -1

    def set_character_state(self, char_id: str, asset: Optional[str]) -> None:
        spr = self.sprites.get(char_id)
        if spr is None:
            return
        self.show_character(char_id, asset, spr.side)

    def begin_dialogue(self, speaker: str, text: str) -> None:
        self.speaker = speaker
        self.text = ""
        self.choices = []
        self.end_text = None

    def render_dialogue_text(self, partial: str) -> None:
        self.text = partial

    def render_choices(self, texts: List[str]) -> None:
        self.choices = list(texts)

    def clear_choices(self) -> None:
        self.choices = []
        self._choice_rects = []

    def play_audio(self, asset: Optional[str], loop: bool) -> None:
        self.audio.play(asset, loop)

    def stop_audio(self) -> None:
        self.audio.stop()

    def pause_audio(self) -> None:
        self.audio.pause()

    def show_end(self, text: str) -> None:
        self.speaker = ""
        self.text = text
        self.end_text = text

    # --- drawing ---
    def _alpha(self, start: int, direction: int, now: int) -> int:
        t = min(1.0, (now - start) / self.transition_ms)
        return int(255 * (t if direction > 0 else 1.0 - t))

    def draw(self) -> None:
        now = pygame.time.get_ticks()
        self.screen.fill((0, 0, 0))
        if self.bg is not None:
            a = self._alpha(self._bg_fade_start, 1 if self.bg_visible else -1, now)
            self.bg.set_alpha(a)
            self.screen.blit(self.bg, (0, 0))
        stage_bottom = self.size[1] - self.textbox_height
        for cid, spr in list(self.sprites.items()):
            a = self._alpha(spr.fade_start, spr.fade_dir, now)
            if spr.fade_dir < 0 and a <= 0:
                # fade-out finished: drop the sprite
                del self.sprites[cid]
                continue
            spr.surface.set_alpha(a)
            rect = spr.surface.get_rect(bottom=stage_bottom)
            anchor = int(self.size[0] * SIDE_ANCHORS.get(spr.side, 0.5))
            if spr.side == "left":
                rect.left = anchor
            elif spr.side == "right":
                rect.right = anchor
            else:
                rect.centerx = anchor
            self.screen.blit(spr.surface, rect)
        self._draw_textbox(stage_bottom)
        pygame.display.flip()

    def _draw_textbox(self, top: int) -> None:
        box = pygame.Surface((self.size[0], self.textbox_height), pygame.SRCALPHA)
        box.fill((0, 0, 0, 153))
        self.screen.blit(box, (0, top))
        x, y = 16, top + 16
        if self.speaker:
            self.screen.blit(self.name_font.render(self.speaker, True, (255, 255, 255)), (x, y))
            y += self.name_font.get_linesize() + 6
        for line in wrap_text(self.text, lambda s: self.font.size(s)[0], self.size[0] - 32):
            self.screen.blit(self.font.render(line, True, (255, 255, 255)), (x, y))
            y += self.font.get_linesize()
        self._choice_rects = []
        cx = x
        for txt in self.choices:
            label = self.font.render(txt, True, (20, 20, 20))
            rect = pygame.Rect(cx, y + 10, label.get_width() + 24, label.get_height() + 16)
            pygame.draw.rect(self.screen, (235, 235, 235), rect, border_radius=4)
            self.screen.blit(label, (rect.x + 12, rect.y + 8))
            self._choice_rects.append(rect)
            cx = rect.right + 8

    def choice_at(self, pos: Tuple[int, int]) -> Optional[int]:
        for i, rect in enumerate(self._choice_rects):
            if rect.collidepoint(pos):
                return i
        return None

    # --- host loop ---
    def run(self, engine, scheduler: RealtimeScheduler) -> None:
        """Frame loop: input -> engine signals, timers, redraw. Returns on quit."""
        while True:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    if self.choices:
                        idx = self.choice_at(event.pos)
                        if idx is not None:
                            engine.select_choice(idx)
                    else:
                        engine.advance()
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        return
                    if event.key in (pygame.K_SPACE, pygame.K_RETURN) and not self.choices:
                        engine.advance()
                    elif self.choices and pygame.K_1 <= event.key <= pygame.K_9:
                        engine.select_choice(event.key - pygame.K_1)
            scheduler.poll()
            self.draw()
            self.clock.tick(self.fps)

    def close(self) -> None:
        self.audio.stop()
        pygame.quit()
