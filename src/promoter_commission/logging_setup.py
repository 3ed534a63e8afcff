"""Logging setup — configures loguru sinks for the CLI and embedders."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(level: str = "WARNING", log_file: Optional[Path] = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``level``.

    When ``log_file`` is given, also log there with daily rotation.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
    if log_file is not None:
        logger.add(
            str(log_file),
            rotation="1 day",
            retention="7 days",
            level="INFO",
            encoding="utf-8",
        )
