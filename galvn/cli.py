from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .engine.config_io import EngineOptions, load_config, save_config
from .engine.engine import Engine
from .engine.resources import ResourceTable, load_resources_file
from .engine.scheduler import RealtimeScheduler, VirtualScheduler
from .script.errors import ScriptError
from .script.loader import load_script_file
from .script.validate import has_errors, validate_script


def _ask_choice(texts: List[str]) -> int:
    try:
        raw = input("> ")
        sel = int(raw.strip())
        if 1 <= sel <= len(texts):
            return sel - 1
    except (ValueError, EOFError):
        return 0
    return 0


def _wait_enter() -> None:
    try:
        input("")
    except EOFError:
        pass


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="galvn", description="galvn scene player")
    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", help="Play a JSON scene script")
    p_run.add_argument("script", type=str, help="Path to the script (.json)")
    p_run.add_argument("--resources", type=str, default=None, help="Resource table (.json)")
    p_run.add_argument("--config", type=str, default=None, help="Engine/window config (.json)")
    p_run.add_argument("--assets", type=str, default=None, help="Assets base directory (pygame)")
    p_run.add_argument("--font", type=str, default=None, help="Path to TTF/OTF font for CJK text")
    p_run.add_argument("--pygame", action="store_true", help="Use the pygame window (interactive)")
    p_run.add_argument("--interactive", action="store_true", help="Headless: wait for Enter and ask choices")
    p_run.add_argument("--strict", action="store_true", help="Reject unknown instruction kinds")
    p_run.add_argument("--log-level", type=str, default="WARNING", help="Logging level")

    p_check = sub.add_parser("check", help="Validate a script")
    p_check.add_argument("script", type=str, help="Path to the script (.json)")
    p_check.add_argument("--resources", type=str, default=None, help="Resource table (.json)")
    p_check.add_argument("--log-level", type=str, default="WARNING", help="Logging level")

    p_cfg = sub.add_parser("config", help="Write a config file with every setting filled in")
    p_cfg.add_argument("output", type=str, help="Where to write the config (.json)")
    p_cfg.add_argument("--config", type=str, default=None, help="Existing config to start from")
    p_cfg.add_argument("--log-level", type=str, default="WARNING", help="Logging level")

    # no subcommand means 'run'
    argv_list = list(argv) if argv is not None else sys.argv[1:]
    if not argv_list or argv_list[0] not in {"run", "check", "config"}:
        args = p_run.parse_args(argv_list)
        args.cmd = "run"  # type: ignore[attr-defined]
    else:
        args = parser.parse_args(argv_list)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    if args.cmd == "config":
        return _cmd_config(args)

    script_path = Path(args.script)
    if not script_path.exists():
        print(f"Script not found: {script_path}")  # noqa: T201
        return 2
    try:
        script = load_script_file(script_path, strict=bool(getattr(args, "strict", False)))
        resources = load_resources_file(args.resources) if args.resources else ResourceTable()
    except (ScriptError, ValueError, OSError) as e:
        print(f"[ERROR] {e}")  # noqa: T201
        return 2

    if args.cmd == "check":
        return _cmd_check(script_path, script, resources)
    return _cmd_run(args, script, resources)


def _cmd_config(args: argparse.Namespace) -> int:
    out = Path(args.output)
    if not save_config(load_config(args.config), out):
        print(f"[ERROR] could not write {out}")  # noqa: T201
        return 1
    print(f"Wrote {out}")  # noqa: T201
    return 0


def _cmd_check(path: Path, script, resources: ResourceTable) -> int:
    diags = validate_script(script, resources)
    for d in diags:
        loc = f"[{d.index}]" if d.index is not None else ""
        print(f"{path}{loc}: {d.severity}: {d.message}")  # noqa: T201
    if not diags:
        print(f"{path}: OK ({len(script)} instructions)")  # noqa: T201
    return 1 if has_errors(diags) else 0


def _cmd_run(args: argparse.Namespace, script, resources: ResourceTable) -> int:
    cfg = load_config(args.config)
    options = EngineOptions.from_config(cfg)

    if args.pygame:
        from .engine.renderer_pygame import PygameRenderer  # local import to avoid test deps

        win = cfg["window"]
        assets = Path(args.assets) if args.assets else Path(args.script).resolve().parent
        renderer = PygameRenderer(
            title=str(win["title"]), width=int(win["width"]), height=int(win["height"]),
            textbox_height=int(win["textbox_height"]), font_size=int(win["font_size"]),
            font_path=args.font, transition_ms=options.transition_ms, fps=int(win["fps"]),
            assets_dir=assets,
        )
        scheduler = RealtimeScheduler()
        engine = Engine(renderer=renderer, resources=resources, scheduler=scheduler, options=options)
        try:
            renderer.preload(resources)
            engine.start(script)
            renderer.run(engine, scheduler)
        finally:
            engine.stop()
            renderer.close()
        return 0

    engine = Engine(resources=resources, scheduler=VirtualScheduler(), options=options)
    engine.start(script)
    if args.interactive:
        engine.run_headless(choose=_ask_choice, wait=_wait_enter)
    else:
        engine.run_headless()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
