from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import load_settings
from .di import build_container
from .exceptions import FoxbitError
from .logging import configure_logging
from .runtime import run

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point supporting both CLI commands and stream mode.

    - `foxbit stream`: log the configured feeds until interrupted
    - `foxbit <typer-subcommand>`: run CLI mode (e.g. `foxbit instruments`)
    """
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "stream":
        return _run_stream_mode(argv[1:])

    return _run_cli_mode(argv)


def _run_stream_mode(argv: list[str]) -> int:
    """Run the long-lived stream runtime."""
    parser = argparse.ArgumentParser(
        prog="foxbit stream", description="Stream FoxBit market data and account events"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (default: FOXBIT_CONFIG or ./foxbit.yml)",
    )

    args = parser.parse_args(argv)
    configure_logging(Path("logs"))

    try:
        settings = load_settings(args.config)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    container = build_container(settings)

    logger.info("foxbit stream booting")
    try:
        asyncio.run(run(container))
    except KeyboardInterrupt:
        logger.info("interrupted")
    except FoxbitError as exc:
        logger.error("stream failed: %s", exc, exc_info=True)
        return 1
    logger.info("foxbit stream exit")

    return 0


def _run_cli_mode(argv: list[str]) -> int:
    """Run in CLI mode using Typer."""
    try:
        configure_logging(Path("logs"))

        # Imported here to keep stream mode free of typer and rich
        from .cli import run_cli

        run_cli(argv)
        return 0
    except SystemExit as e:
        return e.code if e.code else 0
    except Exception as e:
        logger.error("CLI error: %s", e, exc_info=True)
        return 1
