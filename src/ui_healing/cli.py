"""Diagnostic CLI — inspect selector memory and check the vision backend."""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from . import config, debug
from .memory import SelectorMemory, create_storage
from .vision import create_locator

log = logging.getLogger(__name__)


async def _open_memory(args) -> SelectorMemory:
    return await SelectorMemory.open(create_storage(args.backend, args.path))


async def cmd_stats(args) -> dict:
    memory = await _open_memory(args)
    return memory.get_stats()


async def cmd_mappings(args) -> dict:
    memory = await _open_memory(args)
    return {"app": args.app, "mappings": [m.to_dict() for m in memory.get_app_mappings(args.app)]}


async def cmd_describe(args) -> dict:
    locator = create_locator(args.vision)
    try:
        screenshot = Path(args.screenshot).read_bytes()
        return {"description": await locator.describe_screen(screenshot)}
    finally:
        await locator.backend.aclose()


async def cmd_health(args) -> dict:
    locator = create_locator(args.vision)
    try:
        return await locator.check_health()
    finally:
        await locator.backend.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ui-healing", description=__doc__)
    parser.add_argument("--debug", action="store_true", help="enable color-coded debug log")
    parser.add_argument("--backend", choices=["json", "sqlite"], help=f"memory storage (default: {config.MEMORY_BACKEND})")
    parser.add_argument("--path", help="memory document / database path")
    parser.add_argument("--vision", help=f"vision backend (default: {config.VISION_BACKEND})")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="aggregate mapping stats").set_defaults(func=cmd_stats)

    p = sub.add_parser("mappings", help="all mappings for one app")
    p.add_argument("app")
    p.set_defaults(func=cmd_mappings)

    p = sub.add_parser("describe", help="describe a screenshot with the vision model")
    p.add_argument("screenshot")
    p.set_defaults(func=cmd_describe)

    sub.add_parser("health", help="vision backend health").set_defaults(func=cmd_health)
    return parser


def main(argv: list[str] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    debug.init(enabled=args.debug or config.DEBUG)
    try:
        result = asyncio.run(args.func(args))
    except (ValueError, OSError) as e:
        log.error(str(e))
        print(json.dumps({"ok": False, "error": str(e)}), file=sys.stderr)
        return 2
    finally:
        debug.close()
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
