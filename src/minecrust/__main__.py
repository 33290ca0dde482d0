"""Command-line entry point: ``python -m minecrust``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import logging
from pathlib import Path

from minecrust import __version__
from minecrust.config import MinecrustConfig, load_config
from minecrust.server import run_server

log = logging.getLogger("minecrust")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minecrust",
        description="Minecraft handshake/status server",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="path to minecrust.toml (default: discovered from the cwd upwards)",
    )
    parser.add_argument("--host", default=None, help="bind address override")
    parser.add_argument("--port", type=int, default=None, help="bind port override")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_config(args: argparse.Namespace) -> MinecrustConfig:
    config = load_config(args.config)
    overrides: dict[str, object] = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if overrides:
        config = dataclasses.replace(
            config, server=dataclasses.replace(config.server, **overrides)
        )
    return config


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    config = resolve_config(args)
    log.info("Welcome to Minecrust v%s", __version__)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_server(config))


if __name__ == "__main__":
    main()
