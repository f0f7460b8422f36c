"""
Source types for watched inputs.

This module defines the data structures for one watched origin:
- SourceFlags: Per-source options taken from the command line
- SourceState: Lifecycle states (ACTIVE, REOPENING, STOPPED)
- Source: Dataclass tying a path to its live descriptor and raw-mode handle
- open_source_fd: Opens a path (or the stdin alias) for non-blocking reads
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum, Flag, auto

from eet_core.terminal import RawModeHandle

logger = logging.getLogger(__name__)

# Token that stands for a duplicate of the process's standard input
STDIN_ALIAS = "-"


class SourceFlags(Flag):
    """Options that apply to a single source."""

    NONE = 0
    KEEP_OPEN = auto()  # end-of-stream is not terminal
    REOPEN = auto()  # reopen the path once per end-of-stream
    NO_TTY = auto()  # never put the descriptor into raw mode


class SourceState(str, Enum):
    """Valid source lifecycle states."""

    ACTIVE = "active"
    REOPENING = "reopening"
    STOPPED = "stopped"


@dataclass(eq=False)
class Source:
    """
    One watched input origin.

    A Source has exactly one live descriptor while it is not stopped.
    Once stopped, fd is None and the source is never read again, but it
    stays in the registry until shutdown.

    Attributes:
        path: Command-line token the source was created from
        flags: Options fixed at creation
        fd: Live descriptor, None once stopped
        index: Position in the registry (argument order)
        terminal: Saved terminal attributes for fd, if fd is a terminal
        state: Current lifecycle state
    """

    path: str
    flags: SourceFlags
    fd: int | None
    index: int = 0
    terminal: RawModeHandle | None = None
    state: SourceState = SourceState.ACTIVE

    @property
    def stopped(self) -> bool:
        """True once the source is permanently inactive."""
        return self.state is SourceState.STOPPED

    @property
    def wants_terminal(self) -> bool:
        """True if raw mode should be applied when fd is a terminal."""
        return not self.flags & SourceFlags.NO_TTY

    def __repr__(self) -> str:
        return (
            f"Source(path={self.path!r}, flags={self.flags}, fd={self.fd}, "
            f"state={self.state.value})"
        )


def open_source_fd(path: str, stdin_fd: int = 0) -> int | None:
    """
    Open a source path for reading.

    The stdin alias is a dup of stdin_fd. Everything else is opened
    read-only and non-blocking. Failures are logged and reported as None
    so one bad path never stops the others.

    Args:
        path: Path to open, or "-" for standard input
        stdin_fd: Descriptor duplicated for the stdin alias

    Returns:
        New descriptor, or None if it could not be opened
    """
    if path == STDIN_ALIAS:
        try:
            return os.dup(stdin_fd)
        except OSError as e:
            logger.error(f"can't dup stdin!: {e.strerror}")
            return None

    try:
        return os.open(path, os.O_RDONLY | os.O_NONBLOCK)
    except OSError as e:
        logger.error(f"unable to open `{path}' for reading: {e.strerror}")
        return None
