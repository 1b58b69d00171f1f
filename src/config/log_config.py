from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers that follow the app level
_ALIGNED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx")


def configure_logging(level_name: str) -> None:
    """Install one stderr handler on the root logger and set levels.

    Safe to call repeatedly (uvicorn reload, tests creating several apps).
    SQL echo stays at WARNING unless the app runs at DEBUG.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)
    root = logging.getLogger()
    if not any(getattr(h, "_farm_notifications", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        handler._farm_notifications = True
        root.addHandler(handler)
    root.setLevel(level)
    for name in _ALIGNED_LOGGERS:
        logging.getLogger(name).setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    )
