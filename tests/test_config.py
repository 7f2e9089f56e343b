from __future__ import annotations

from galvn.engine.config_io import DEFAULTS, EngineOptions, load_config, merge_config, save_config


def test_merge_keeps_known_keys_only():
    cfg = merge_config({"engine": {"transition_ms": 120, "bogus": 1}, "window": "nope"})
    assert cfg["engine"]["transition_ms"] == 120
    assert "bogus" not in cfg["engine"]
    assert cfg["window"] == DEFAULTS["window"]


def test_load_missing_or_broken_file(tmp_path):
    assert load_config(tmp_path / "absent.json") == merge_config(None)
    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    assert load_config(bad) == merge_config(None)


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "config.json"
    assert save_config({"engine": {"end_text": "END"}}, path)
    cfg = load_config(path)
    assert cfg["engine"]["end_text"] == "END"
    assert cfg["window"]["fps"] == 60


def test_engine_options_from_config():
    opts = EngineOptions.from_config({"engine": {"type_interval_ms": "20", "wait_default_ms": 0}})
    assert opts.type_interval_ms == 20
    assert opts.wait_default_ms == 0
    assert opts.transition_ms == 300
    assert opts.choice_fallback.format(n=2) == "选项 2"


def test_max_steps_is_at_least_one():
    assert EngineOptions().max_steps == 10000
    assert EngineOptions.from_config({"engine": {"max_steps": 0}}).max_steps == 1
