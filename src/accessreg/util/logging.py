"""Logging setup for the access registry.

``setup_logging()`` is called by the application lifespan and may be called
again by the bootstrap CLI; the last call wins.  Registry transitions log
under ``accessreg.core.registry`` and event fan-out under
``accessreg.core.events``.
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that drown registry output at INFO.
_NOISY = ("uvicorn.access", "sqlalchemy.engine")


def setup_logging(level: int | str | None = None) -> None:
    """Configure the root logger on stdout.

    *level* may be an integer constant or a level name in any case
    (``"debug"``); it defaults to ``settings.LOG_LEVEL``.
    """
    if level is None:
        from accessreg.settings import settings

        level = settings.LOG_LEVEL
    if isinstance(level, str):
        level = level.upper()

    logging.basicConfig(
        level=level,
        format=_FORMAT,
        datefmt=_DATEFMT,
        stream=sys.stdout,
        force=True,
    )
    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for module *name* (pass ``__name__``)."""
    return logging.getLogger(name)
