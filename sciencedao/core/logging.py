"""
Logging setup for sciencedao.

Modules log through ``logging.getLogger(__name__)``; this module only wires
handlers: a rich console handler and an optional plain-text file handler.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler

from sciencedao.cli.display import console

_HANDLER_MARKER = "_sciencedao_handler"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure the ``sciencedao`` logger.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        level: Log level name or number
        log_file: Optional path for a plain-text log file

    Returns:
        logging.Logger: The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger("sciencedao")
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    console_handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_MARKER, True)
    root.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        file_handler.setLevel(level)
        setattr(file_handler, _HANDLER_MARKER, True)
        root.addHandler(file_handler)

    root.propagate = False
    return root
