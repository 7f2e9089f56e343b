"""Resource table: symbolic ids -> asset references.

Lookups never raise; a miss falls back to the id itself so scripts can name
files directly.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass
class CharacterDef:
    name: str = ""
    # insertion order matters: the first state is the default pose
    states: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, char_id: str, data: Mapping[str, Any]) -> "CharacterDef":
        states = data.get("states") or {}
        return cls(
            name=str(data.get("name") or char_id),
            states={str(k): str(v) for k, v in dict(states).items()},
        )


class ResourceTable:
    def __init__(self) -> None:
        self.characters: Dict[str, CharacterDef] = {}
        self.backgrounds: Dict[str, str] = {}
        self.bgm: Dict[str, str] = {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ResourceTable":
        table = cls()
        table.merge(data or {})
        return table

    # --- merging ---
    def merge(self, data: Mapping[str, Any] | "ResourceTable") -> "ResourceTable":
        if isinstance(data, ResourceTable):
            self.characters.update(data.characters)
            self.backgrounds.update(data.backgrounds)
            self.bgm.update(data.bgm)
            return self
        self.define_characters(data.get("characters") or {})
        self.define_backgrounds(data.get("backgrounds") or {})
        self.define_bgm(data.get("bgm") or {})
        return self

    def define_characters(self, chars: Mapping[str, Any]) -> None:
        for cid, entry in chars.items():
            if isinstance(entry, CharacterDef):
                self.characters[str(cid)] = entry
            elif isinstance(entry, Mapping):
                self.characters[str(cid)] = CharacterDef.from_dict(str(cid), entry)
            else:
                logger.warning("character %r: expected a mapping, got %s", cid, type(entry).__name__)

    def define_backgrounds(self, bgs: Mapping[str, Any]) -> None:
        self.backgrounds.update({str(k): str(v) for k, v in bgs.items()})

    def define_bgm(self, bgms: Mapping[str, Any]) -> None:
        self.bgm.update({str(k): str(v) for k, v in bgms.items()})

    # --- lookups ---
    def has_character(self, char_id: str) -> bool:
        return char_id in self.characters

    def display_name(self, char_id: Optional[str]) -> Optional[str]:
        if not char_id:
            return None
        c = self.characters.get(char_id)
        return c.name if c else None

    def first_state(self, char_id: str) -> Optional[str]:
        c = self.characters.get(char_id)
        if not c or not c.states:
            return None
        return next(iter(c.states))

    def resolve_character_state(self, char_id: str, state_id: Optional[str]) -> Optional[str]:
        if state_id is None:
            return None
        c = self.characters.get(char_id)
        if c and state_id in c.states:
            return c.states[state_id]
        return state_id

    def resolve_background(self, bg_id: Optional[str]) -> Optional[str]:
        if not bg_id:
            return None
        return self.backgrounds.get(bg_id, bg_id)

    def resolve_audio(self, bgm_id: Optional[str]) -> Optional[str]:
        if not bgm_id:
            return None
        return self.bgm.get(bgm_id, bgm_id)

    # --- preloading ---
    def asset_refs(self) -> List[str]:
        """Sprite and background assets, each listed once, in definition order."""
        seen: Dict[str, None] = {}
        for c in self.characters.values():
            for ref in c.states.values():
                seen.setdefault(ref, None)
        for ref in self.backgrounds.values():
            seen.setdefault(ref, None)
        return list(seen)

    def preload_all(self, load: Callable[[str], Any],
                    progress: Optional[Callable[[int, int], None]] = None) -> Dict[str, Any]:
        """Load every image asset; failed loads still count towards progress."""
        refs = self.asset_refs()
        total = len(refs)
        loaded: Dict[str, Any] = {}
        for done, ref in enumerate(refs, 1):
            try:
                loaded[ref] = load(ref)
            except Exception as e:  # noqa: BLE001 - any loader failure is non-fatal
                logger.warning("preload failed for %s: %s", ref, e)
            if progress:
                progress(done, total)
        return loaded


def load_resources_file(path: Path | str) -> ResourceTable:
    p = Path(path)
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{p}: resources must be a JSON object")
    return ResourceTable.from_dict(data)
