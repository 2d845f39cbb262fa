"""Command line entry point for nix-switch."""

from __future__ import annotations

import asyncio
import logging
import sys

from pydantic import ValidationError

from . import __version__
from .config import get_settings
from .workflow import SwitchWorkflow


def configure_logging(level: str) -> None:
    """Configure root logging for the switch command."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def main() -> None:
    """Run the switch workflow and exit with its status."""

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)
    logging.getLogger(__name__).debug("Starting nix-switch", extra={"version": __version__})

    try:
        exit_code = asyncio.run(SwitchWorkflow(settings).run())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
