from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Dict[str, Any]] = {
    "engine": {
        "transition_ms": 300,
        "type_interval_ms": 16,
        "wait_default_ms": 500,
        "bgm_settle_ms": 100,
        "end_text": "[游戏结束]",
        "choice_fallback": "选项 {n}",
        "max_steps": 10000,
    },
    "window": {
        "width": 960,
        "height": 540,
        "textbox_height": 140,
        "font_size": 24,
        "title": "galvn",
        "fps": 60,
    },
}


def merge_config(data: Optional[dict]) -> dict:
    """Shallow per-section merge over DEFAULTS; unknown keys are dropped."""
    data = data or {}
    out: dict = {}
    for section, defaults in DEFAULTS.items():
        sec = dict(defaults)
        given = data.get(section) or {}
        if isinstance(given, dict):
            sec.update({k: v for k, v in given.items() if k in defaults})
        out[section] = sec
    return out


def load_config(path: Optional[Path | str] = None) -> dict:
    if path is None:
        return merge_config(None)
    p = Path(path)
    try:
        if p.exists():
            return merge_config(json.loads(p.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("could not read config %s: %s; using defaults", p, e)
    return merge_config(None)


def save_config(cfg: dict, path: Path | str) -> bool:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(merge_config(cfg), ensure_ascii=False, indent=2), encoding="utf-8")
        return True
    except OSError as e:
        logger.warning("could not write config %s: %s", p, e)
        return False


@dataclass
class EngineOptions:
    transition_ms: int = 300
    type_interval_ms: int = 16
    wait_default_ms: int = 500
    bgm_settle_ms: int = 100
    end_text: str = "[游戏结束]"
    choice_fallback: str = "选项 {n}"
    max_steps: int = 10000

    @classmethod
    def from_config(cls, cfg: Optional[dict]) -> "EngineOptions":
        eng = merge_config(cfg)["engine"]
        return cls(
            transition_ms=int(eng["transition_ms"]),
            type_interval_ms=int(eng["type_interval_ms"]),
            wait_default_ms=int(eng["wait_default_ms"]),
            bgm_settle_ms=int(eng["bgm_settle_ms"]),
            end_text=str(eng["end_text"]),
            choice_fallback=str(eng["choice_fallback"]),
            max_steps=max(1, int(eng["max_steps"])),
        )
