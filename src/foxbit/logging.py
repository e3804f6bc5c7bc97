from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

# Wire traffic (every frame in and out, secrets masked) goes to this logger
FRAME_LOGGER = "foxbit.frames"

LOG_FILE = "foxbit.log"

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _truthy(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level_name: str | None) -> tuple[int, str | None]:
    """Map a level name to its number; the second item is the rejected name, if any."""
    name = (level_name or os.environ.get("FOXBIT_LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level, None
    return logging.INFO, name


def _handlers(log_dir: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        # 10MB per file, 5 backups
        handlers.append(
            logging.handlers.RotatingFileHandler(log_dir / LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=5)
        )
    return handlers


def configure_logging(
    log_dir: Path | None = None,
    *,
    level_name: str | None = None,
    log_frames: bool | None = None,
) -> None:
    """Configure console logging and, when log_dir is given, a rotating foxbit.log.

    Args:
        log_dir: Directory for the rotating log file
        level_name: Level for everything but frames; defaults to FOXBIT_LOG_LEVEL, then INFO
        log_frames: Log every frame at DEBUG regardless of the level; defaults to FOXBIT_LOG_FRAMES
    """
    level, rejected = _resolve_level(level_name)
    if log_frames is None:
        log_frames = _truthy(os.environ.get("FOXBIT_LOG_FRAMES"))

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Handlers pass everything; loggers decide
    for handler in _handlers(log_dir):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger(FRAME_LOGGER).setLevel(logging.DEBUG if log_frames else max(level, logging.INFO))

    # aiohttp logs every ping at DEBUG
    logging.getLogger("aiohttp").setLevel(max(level, logging.INFO))

    if rejected:
        logging.getLogger(__name__).warning("Unknown log level %r, using INFO", rejected)
