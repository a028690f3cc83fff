from __future__ import annotations

import logging
from pathlib import Path


def setup_logging(level: str = "INFO", logfile: str | None = None) -> None:
    """Configure the root logger once.

    Adds a console handler and, when ``logfile`` is given, a file handler.
    Later calls are no-ops so the CLI, the web app and tests can all call it.
    """
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
