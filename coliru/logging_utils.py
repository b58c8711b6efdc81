from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.WARNING,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging for the `coliru` logger tree.

    Diagnostics only: the install announcements the user sees are printed by
    the pipeline reporter, not logged.

    Notes:
    - If `log_path` cannot be opened we fall back to `coliru.log` in the
      working directory.
    - Safe to call more than once; later calls only adjust the level.

    Returns the log file path in use, or None without a log file.
    """

    logger = logging.getLogger("coliru")
    logger.setLevel(logging.DEBUG if log_path else level)

    if getattr(logger, "_coliru_configured", False):
        for h in logger.handlers:
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
                h.setLevel(level)
        return getattr(logger, "_coliru_log_path", None)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []
    chosen_path: Optional[str] = None

    if log_path:
        try:
            Path(log_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(Path(log_path).expanduser())
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / "coliru.log")
            file_handler = logging.FileHandler(fallback)
            chosen_path = fallback
        file_handler.setFormatter(fmt)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_coliru_configured", True)
    setattr(logger, "_coliru_log_path", chosen_path)

    logger.debug("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
