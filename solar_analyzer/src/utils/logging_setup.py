"""Centralised logging initialisation for the CLI and scripts."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Configure the root logger once per process.

    Args:
        level: Level name, e.g. "DEBUG" or "INFO".
        log_file: Write to this file (overwritten each run) instead of stderr.
    """
    kwargs = {"level": getattr(logging, level.upper()), "format": LOG_FORMAT, "force": True}
    if log_file:
        kwargs.update(filename=log_file, filemode="w")
    logging.basicConfig(**kwargs)
