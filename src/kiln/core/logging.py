"""Centralized logging configuration for Kiln."""

from __future__ import annotations

import logging
import os
from typing import Final

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging", "console"]

_LOG_LEVEL_ENV: Final[str] = "KILN_LOG_LEVEL"
_DEFAULT_LEVEL_NAME: Final[str] = "INFO"

console = Console()


def _resolve_level(level_name: str | None) -> int:
    name = (level_name or os.getenv(_LOG_LEVEL_ENV, _DEFAULT_LEVEL_NAME)).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level_name: str | None = None) -> None:
    """Configure the root logger once with a Rich handler.

    Calling it again only adjusts the level, so repeated CLI invocations in one
    process (tests) do not stack handlers.
    """
    root_logger = logging.getLogger()

    managed = [handler for handler in root_logger.handlers if getattr(handler, "_kiln_managed", False)]
    if not managed:
        handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._kiln_managed = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)

    root_logger.setLevel(_resolve_level(level_name))
    logging.captureWarnings(True)
