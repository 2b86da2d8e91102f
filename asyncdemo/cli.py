"""
Async Demo CLI
==============

Usage:
    # Run the server on the default port (3000, or $PORT)
    python -m asyncdemo start

    # Pick host, port, and directories
    python -m asyncdemo start --port 8080 --public-dir ./public --storage-dir /tmp

    # List the endpoints
    python -m asyncdemo endpoints
"""

from __future__ import annotations

import argparse

from asyncdemo.config import ServerConfig
from asyncdemo.handlers import ROUTE_SUMMARIES


# ─────────────────────────────────────────────────────────────
#  Commands
# ─────────────────────────────────────────────────────────────

def build_config(args) -> ServerConfig:
    """Turn CLI flags into a ServerConfig; unset flags keep the defaults."""
    overrides = {}
    for flag in ("host", "port", "public_dir", "storage_dir"):
        value = getattr(args, flag, None)
        if value is not None:
            overrides[flag] = value
    return ServerConfig.from_env(**overrides)


def cmd_start(args):
    """Launch the demo server."""
    try:
        import uvicorn  # noqa: F401
    except ImportError:
        print("✘ uvicorn is required to run the server.")
        print("  Install it with:  pip install uvicorn fastapi")
        return

    from asyncdemo.server import run_server
    run_server(build_config(args), log_level=args.log_level)


def cmd_endpoints(args):
    """Print the available endpoints."""
    print("\n◬ ─── Endpoints ───")
    for path, summary in ROUTE_SUMMARIES:
        print(f"  GET {path:<9} {summary}")
    print()


# ─────────────────────────────────────────────────────────────
#  Main
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asyncdemo",
        description="Async Patterns Demo — CPAN 212 Lab 2",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  asyncdemo start\n"
            "  asyncdemo start --port 8080\n"
            "  asyncdemo endpoints\n"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # start
    p_start = subparsers.add_parser("start", help="Run the demo server")
    p_start.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    p_start.add_argument("--port", default=None, type=int, help="Port number (default: $PORT or 3000)")
    p_start.add_argument("--public-dir", default=None, help="Static files directory (default: ./public)")
    p_start.add_argument("--storage-dir", default=None, help="Where sample.txt is written (default: cwd)")
    p_start.add_argument("--log-level", default="info", help="Logging level (default: info)")

    # endpoints
    subparsers.add_parser("endpoints", help="List the demo endpoints")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        "start": cmd_start,
        "endpoints": cmd_endpoints,
    }

    if args.command in commands:
        commands[args.command](args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
