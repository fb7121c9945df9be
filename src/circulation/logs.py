"""Logging setup for the command-line front-end.

Library modules only create loggers; handlers are installed here, once,
by the process entry point.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from .config import Config

ACTIVITY_FORMAT = "[%(asctime)s] %(message)s"
ACTIVITY_DATEFMT = "%Y-%m-%d %H:%M:%S"

_HANDLER_MARK = "_circulation_handler"


def setup_logging(config: Config) -> None:
    """Send activity to the log file and warnings to stderr.

    Calling it again replaces the handlers installed by the previous call.
    """
    root = logging.getLogger("circulation")
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    root.setLevel(config.log_level)

    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(ACTIVITY_FORMAT, datefmt=ACTIVITY_DATEFMT))

    console_handler = RichHandler(
        console=Console(stderr=True),
        level=logging.WARNING,
        show_path=False,
    )

    for handler in (file_handler, console_handler):
        setattr(handler, _HANDLER_MARK, True)
        root.addHandler(handler)
