"""
CLI entry point for android-ui-query.
Usage: pip install android-ui-query && android-ui-query find --dump window.xml --selector '...'
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from ui_query import (
    Malformed,
    SelectorEngine,
    Settings,
    UiFinder,
    Unavailable,
    create_root_provider,
    load_selector_file,
    parse_selector,
    suggest_selectors,
)
from ui_query.errors import SelectorSyntaxError
from ui_query.root_provider import describe_devices

logger = logging.getLogger("android_ui_query")

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_INPUT_ERROR = 2


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="android-ui-query",
        description="Android & iOS UI Query - resolve UiSelector expressions against a UI hierarchy"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: UI_QUERY_LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("find", "Print the first node matching a selector"),
        ("count", "Count occurrences of a selector's pattern"),
        ("suggest", "Suggest unique selectors for the node a selector finds"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        source = cmd.add_mutually_exclusive_group()
        source.add_argument("--dump", help="Hierarchy XML dump file")
        source.add_argument("--serial", "-s", help="Android device serial (default: the only device)")
        query = cmd.add_mutually_exclusive_group(required=True)
        query.add_argument("--selector", help='UiSelector expression, e.g. new UiSelector().text("OK")')
        query.add_argument("--selector-file", help="JSON selector definition")
        cmd.add_argument("--window", help="Only search windows with this package name or title")
        cmd.add_argument("--platform", choices=["android", "ios"], default=None,
                         help="Hierarchy platform (default: detect)")
        cmd.add_argument("--retries", type=int, default=None,
                         help="Dump attempts before giving up (default: UI_QUERY_DUMP_RETRIES or 3)")

    sub.add_parser("devices", help="List connected Android devices")
    return parser


def _load_selector(args):
    if args.selector_file:
        return load_selector_file(args.selector_file)
    return parse_selector(args.selector)


def _cmd_find(finder: UiFinder, selector, args) -> int:
    outcome = finder.find_outcome(selector, args.window)
    if isinstance(outcome, Malformed):
        _emit({"status": "malformed", "selector": str(selector), "error": outcome.reason})
        return EXIT_INPUT_ERROR
    if isinstance(outcome, Unavailable):
        _emit({"status": "unavailable", "selector": str(selector), "error": outcome.reason})
        return EXIT_NO_MATCH
    if not outcome.found:
        _emit({"status": "not_found", "selector": str(selector)})
        return EXIT_NO_MATCH
    _emit({"status": "found", "selector": str(selector), "node": outcome.node.to_dict()})
    return EXIT_MATCH


def _cmd_count(finder: UiFinder, selector, args) -> int:
    if selector.has_range:
        _emit({"status": "malformed", "selector": str(selector),
               "error": "Range selectors cannot be counted"})
        return EXIT_INPUT_ERROR
    total = finder.count(selector, args.window)
    _emit({"status": "counted", "selector": str(selector), "count": total})
    return EXIT_MATCH if total else EXIT_NO_MATCH


def _cmd_suggest(finder: UiFinder, selector, args) -> int:
    outcome = finder.find_outcome(selector, args.window)
    if isinstance(outcome, Malformed):
        _emit({"status": "malformed", "selector": str(selector), "error": outcome.reason})
        return EXIT_INPUT_ERROR
    if not outcome.found:
        _emit({"status": "not_found", "selector": str(selector)})
        return EXIT_NO_MATCH

    root = outcome.node
    while root.parent() is not None:
        root = root.parent()
    suggestions = suggest_selectors(outcome.node, root, finder.engine)
    _emit({
        "status": "found",
        "node": outcome.node.to_dict(),
        "suggestions": [str(s) for s in suggestions],
    })
    return EXIT_MATCH


COMMANDS = {
    "find": _cmd_find,
    "count": _cmd_count,
    "suggest": _cmd_suggest,
}


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    if args.command == "devices":
        _emit(describe_devices())
        return EXIT_MATCH

    if args.retries is not None and args.retries < 1:
        parser.error("--retries must be at least 1")
    settings = settings.with_overrides(dump_retries=args.retries)

    try:
        selector = _load_selector(args)
    except (SelectorSyntaxError, OSError) as e:
        logger.error(f"Invalid selector: {e}")
        _emit({"status": "invalid", "error": str(e)})
        return EXIT_INPUT_ERROR

    if args.dump and not Path(args.dump).is_file():
        _emit({"status": "invalid", "error": f"Dump file not found: {args.dump}"})
        return EXIT_INPUT_ERROR

    try:
        provider = create_root_provider(args.dump, args.serial, args.platform, settings)
    except ValueError as e:
        logger.error(str(e))
        _emit({"status": "invalid", "error": str(e)})
        return EXIT_INPUT_ERROR

    finder = UiFinder(provider, SelectorEngine())
    return COMMANDS[args.command](finder, selector, args)


if __name__ == "__main__":
    sys.exit(main())
