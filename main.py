"""Novella launcher — play in the terminal, serve the HTTP API, or audit a story."""

import argparse
import asyncio
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

from novella.audit import audit_story
from novella.config import NovellaConfig, load_config
from novella.console import ConsolePresenter, play
from novella.content import ContentResolver, open_source
from novella.session import Session

ROOT = Path(__file__).parent


def _resolver(config: NovellaConfig) -> ContentResolver:
    return ContentResolver(
        open_source(config.content_root, timeout=config.http_timeout),
        cache=config.cache,
    )


def cmd_play(config: NovellaConfig, args: argparse.Namespace) -> int:
    console = ConsolePresenter(color=not args.no_color)
    session = Session(
        _resolver(config), config.start,
        presenter=console, default_day_title=config.default_day_title,
    )
    try:
        asyncio.run(play(session, console))
    except KeyboardInterrupt:
        print()
    return 0


def cmd_audit(config: NovellaConfig, args: argparse.Namespace) -> int:
    report = asyncio.run(audit_story(_resolver(config), config.start))
    print(report.summary())
    return 0 if report.ok else 1


def cmd_serve(config: NovellaConfig, args: argparse.Namespace) -> int:
    # Build env for the subprocess so the backend picks up the same settings
    env = os.environ.copy()
    env["NOVELLA_CONTENT_ROOT"] = config.content_root
    env["NOVELLA_START_SOURCE"] = config.start_source
    env["NOVELLA_START_SCENE"] = config.start_scene

    cmd = ["uvicorn", "backend.app:app", "--host", config.host, "--port", str(config.port)]
    if args.reload:
        cmd.append("--reload")

    print(f"Starting backend on http://localhost:{config.port} ...")
    proc = subprocess.Popen(cmd, cwd=ROOT, env=env)

    def shutdown(*_):
        print("\nShutting down...")
        proc.terminate()
        proc.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)
    return proc.wait()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Novella visual novel engine")
    parser.add_argument("--content-root", default=None,
                        help="Story directory or base URL (default: ./story)")
    parser.add_argument("--start", default=None, metavar="SOURCE#SCENE",
                        help="Starting scene reference")
    sub = parser.add_subparsers(dest="command", required=True)

    p_play = sub.add_parser("play", help="Play in the terminal")
    p_play.add_argument("--no-color", action="store_true", help="Plain text output")
    p_play.set_defaults(func=cmd_play)

    p_serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    p_audit = sub.add_parser("audit", help="Check every reachable scene")
    p_audit.set_defaults(func=cmd_audit)

    args = parser.parse_args(argv)

    overrides = {"content_root": args.content_root}
    if args.start:
        start_source, _, start_scene = args.start.partition("#")
        overrides["start_source"] = start_source or None
        overrides["start_scene"] = start_scene or None
    config = load_config(dotenv_path=ROOT / ".env", **overrides)

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(config, args)


if __name__ == "__main__":
    sys.exit(main())
