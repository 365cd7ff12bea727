"""Logging setup for the service.

``setup_logging`` attaches a console handler (and optionally a file
handler) to the root logger the first time it is called. Later calls
are no-ops so that building the app repeatedly in tests does not stack
handlers.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: str | None = None) -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
