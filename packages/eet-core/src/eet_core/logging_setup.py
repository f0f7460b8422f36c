"""
Diagnostic logging for the eet CLI.

All diagnostics go to stderr, prefixed with the program name, so stdout
carries nothing but source bytes:

    eet: unable to open `missing.log' for reading: No such file or directory

On a terminal the line is rendered by Rich. When stderr is redirected a
plain stream handler writes each message unwrapped on a single line.

Only the eet_core logger tree is configured; the root logger is left alone.
"""

import logging
import sys

from rich.console import Console
from rich.highlighter import NullHighlighter
from rich.logging import RichHandler

PACKAGE_LOGGER = "eet_core"


def _stderr_handler() -> logging.Handler:
    if not sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return RichHandler(
        console=Console(file=sys.stderr),
        show_time=False,
        show_level=False,
        show_path=False,
        markup=False,
        highlighter=NullHighlighter(),
    )


def configure_logging(verbose: bool = False, prog: str = "eet") -> None:
    """
    Install the stderr handler on the eet_core logger.

    Calling it again replaces the previous handler.

    Args:
        verbose: Also show lifecycle transitions (DEBUG)
        prog: Name used as the message prefix
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = _stderr_handler()
    handler.setFormatter(logging.Formatter(f"{prog}: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
