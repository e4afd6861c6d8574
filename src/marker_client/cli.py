#!/usr/bin/env python3
"""
CLI tool for sending markers and running the development collector.

Usage:
    python -m marker_client.cli send level_complete '{"level": 3}'
    python -m marker_client.cli send session_start --config markers.yaml
    python -m marker_client.cli serve --port 8060
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from colorama import Fore, Style, init as colorama_init

from .config import Config


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def load_config(args: argparse.Namespace) -> Config:
    """Load config from file (YAML or JSON) and apply CLI overrides."""
    if args.config:
        if args.config.endswith(".json"):
            config = Config.from_json(args.config)
        else:
            config = Config.from_yaml(args.config)
    else:
        config = Config()

    if args.api_key:
        config.api.api_key = args.api_key
    if args.base_url:
        config.api.base_url = args.base_url
    if args.transport:
        config.transport.type = args.transport
    return config


def cmd_send(args: argparse.Namespace) -> int:
    from .runtime import MarkerRuntime

    try:
        value = json.loads(args.value) if args.value is not None else None
    except json.JSONDecodeError as e:
        print(colorize(f"Invalid JSON value: {e}", Fore.RED), file=sys.stderr)
        return 1

    try:
        runtime = MarkerRuntime.create(load_config(args))
    except (TypeError, ValueError) as e:
        print(colorize(f"Invalid transport configuration: {e}", Fore.RED), file=sys.stderr)
        return 1

    if not runtime.markers.send_marker(args.name, value):
        print(colorize(f"Marker '{args.name}' rejected", Fore.RED), file=sys.stderr)
        return 1

    runtime.shutdown()

    stats = runtime.dispatcher.stats
    if stats["flush_errors"] or stats["markers_sent"] == 0:
        print(colorize(f"Marker '{args.name}' was not delivered", Fore.RED), file=sys.stderr)
        return 1

    print(colorize(f"Sent marker '{args.name}'", Fore.GREEN))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .collector import run

    print(colorize(f"Markers collector on http://{args.host}:{args.port}", Fore.CYAN))
    run(host=args.host, port=args.port, api_key=args.api_key)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marker-client",
        description="Send markers and run the development collector",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send a single marker")
    send.add_argument("name", help="Marker type name")
    send.add_argument("value", nargs="?", default=None, help="JSON object payload")
    send.add_argument("--config", help="Config file (.yaml or .json)")
    send.add_argument("--api-key", help="Collector API key (overrides config)")
    send.add_argument("--base-url", help="Collector base URL (overrides config)")
    send.add_argument("--transport", choices=["http", "console", "file", "zmq"], help="Transport type")
    send.set_defaults(func=cmd_send)

    serve = subparsers.add_parser("serve", help="Run the development collector")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8060)
    serve.add_argument("--api-key", help="Require this authorization header")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    colorama_init()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
