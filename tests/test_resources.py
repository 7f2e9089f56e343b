from __future__ import annotations

import json

import pytest

from galvn.engine.resources import CharacterDef, ResourceTable, load_resources_file

DATA = {
    "characters": {
        "liz": {"name": "Liz", "states": {"neutral": "c/liz_n.png", "happy": "c/liz_h.png"}},
        "popo": {"states": {}},
    },
    "backgrounds": {"room": "bg/room.jpg", "dup": "c/liz_n.png"},
    "bgm": {"calm": "bgm/calm.mp3"},
}


class TestLookups:
    """Symbolic id resolution with literal fallback."""

    def test_character_lookups(self):
        t = ResourceTable.from_dict(DATA)
        assert t.has_character("liz")
        assert t.display_name("liz") == "Liz"
        # name defaults to the id
        assert t.display_name("popo") == "popo"
        assert t.display_name("ghost") is None
        assert t.first_state("liz") == "neutral"
        assert t.first_state("popo") is None

    def test_state_fallback(self):
        t = ResourceTable.from_dict(DATA)
        assert t.resolve_character_state("liz", "happy") == "c/liz_h.png"
        assert t.resolve_character_state("liz", "other.png") == "other.png"
        assert t.resolve_character_state("ghost", "x") == "x"
        assert t.resolve_character_state("liz", None) is None

    def test_background_and_audio_fallback(self):
        t = ResourceTable.from_dict(DATA)
        assert t.resolve_background("room") == "bg/room.jpg"
        assert t.resolve_background("sky.png") == "sky.png"
        assert t.resolve_background(None) is None
        assert t.resolve_audio("calm") == "bgm/calm.mp3"
        assert t.resolve_audio("x.ogg") == "x.ogg"


def test_merge_overrides_by_id():
    t = ResourceTable.from_dict(DATA)
    t.merge({"backgrounds": {"room": "bg/room2.jpg"}})
    other = ResourceTable()
    other.define_characters({"liz": CharacterDef(name="Elizabeth")})
    t.merge(other)
    assert t.resolve_background("room") == "bg/room2.jpg"
    assert t.display_name("liz") == "Elizabeth"
    assert t.resolve_audio("calm") == "bgm/calm.mp3"


def test_bad_character_entry_is_skipped():
    t = ResourceTable()
    t.define_characters({"x": "not a mapping"})
    assert not t.has_character("x")


def test_asset_refs_are_unique():
    t = ResourceTable.from_dict(DATA)
    assert t.asset_refs() == ["c/liz_n.png", "c/liz_h.png", "bg/room.jpg"]


def test_preload_counts_failures():
    t = ResourceTable.from_dict(DATA)
    progress = []

    def load(ref):
        if ref.endswith(".jpg"):
            raise OSError("broken")
        return ref.upper()

    loaded = t.preload_all(load, lambda done, total: progress.append((done, total)))
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert loaded == {"c/liz_n.png": "C/LIZ_N.PNG", "c/liz_h.png": "C/LIZ_H.PNG"}


def test_load_resources_file(tmp_path):
    p = tmp_path / "res.json"
    p.write_text(json.dumps(DATA), encoding="utf-8")
    assert load_resources_file(p).resolve_background("room") == "bg/room.jpg"
    p.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_resources_file(p)
