"""Logging configuration for eisen."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    level: int | str = logging.WARNING,
    log_file: str | Path | None = None,
    console: Console | None = None,
) -> None:
    """Configure the ``eisen`` logger.

    Console output goes through Rich on stderr at ``level``. When
    ``log_file`` is given, everything from DEBUG up is also written there.
    Existing handlers are replaced so repeated calls do not duplicate output.
    """
    logger = logging.getLogger("eisen")
    logger.setLevel(logging.DEBUG)

    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    ch = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    ch.setLevel(level)
    logger.addHandler(ch)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)
