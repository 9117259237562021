from __future__ import annotations

import logging
import platform
import sys
from pathlib import Path
from typing import Tuple

from .lib.env import PATHS

DEFAULT_LOG_PATH = str(PATHS.state_dir / "kavow.log")
FALLBACK_LOG_NAME = "kavow.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_CONFIGURED_ATTR = "_kavow_log_path"


def _open_file_handler(log_path: str) -> Tuple[logging.Handler, str]:
    """File handler for ``log_path``, or for ./kavow.log if that is not writable."""

    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), log_path
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback, encoding="utf-8"), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = False,
) -> str:
    """Send every command and stage decision to the log file.

    The terminal belongs to the UI, so console logging stays off unless asked
    for. Calling this again only adjusts the level.

    Returns the path actually written to.
    """

    root = logging.getLogger()
    root.setLevel(level)

    existing = getattr(root, _CONFIGURED_ATTR, None)
    if existing is not None:
        return existing

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handler, chosen_path = _open_file_handler(log_path)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    if also_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        root.addHandler(console)

    setattr(root, _CONFIGURED_ATTR, chosen_path)

    logger = logging.getLogger(__name__)
    if chosen_path != log_path:
        logger.warning("Cannot write %s, logging to %s instead", log_path, chosen_path)
    logger.info("Logging to %s at %s", chosen_path, logging.getLevelName(level))
    return chosen_path


def log_run_header(version: str, argv: list[str]) -> None:
    logging.getLogger(__name__).info(
        "kavow %s starting (args=%s, python=%s, macOS=%s, arch=%s)",
        version,
        " ".join(argv) or "-",
        platform.python_version(),
        platform.mac_ver()[0] or "n/a",
        platform.machine(),
    )
