"""Logging setup for the bot and its CLI."""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE = "connections_bot.log"


def setup_logging(log_dir: Path, verbose: bool = False, level: Optional[str] = None) -> logging.Logger:
    """Configure the root logger.

    Always logs to ``<log_dir>/connections_bot.log``. With ``verbose`` the same
    records are echoed to the terminal.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    # Re-running setup (tests, repeated CLI calls) must not stack handlers
    for handler in list(root.handlers):
        if getattr(handler, "_connections_bot", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = logging.FileHandler(log_dir / LOG_FILE, encoding="utf-8")
    file_handler.setFormatter(formatter)
    file_handler._connections_bot = True
    root.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler._connections_bot = True
        root.addHandler(console_handler)

    # urllib3 is chatty at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return root
