"""
Raw-mode control for terminal sources.

A terminal source is read byte-by-byte as typed, so canonical line editing
and local echo are switched off while eet owns it. The original attributes
are kept in a RawModeHandle and put back when the descriptor is closed.

- acquire(): save attributes, clear ICANON and ECHO, return a handle
- release(): restore the saved attributes, best effort

Unlike tty.setcbreak(), only the two local-mode bits are touched; control
characters and input flags keep whatever the user had.
"""

import logging
import os
import termios
import tty
from dataclasses import dataclass

from eet_core.errors import TerminalModeError

logger = logging.getLogger(__name__)

RAW_MODE_CLEAR = termios.ICANON | termios.ECHO


@dataclass(eq=False)
class RawModeHandle:
    """
    Saved terminal attributes for one descriptor.

    Attributes:
        fd: Descriptor the attributes were captured from
        saved: Result of termios.tcgetattr() before raw mode was applied
        released: Set once the attributes have been restored
    """

    fd: int
    saved: list
    released: bool = False


def acquire(fd: int) -> RawModeHandle | None:
    """
    Put a terminal descriptor into raw mode.

    Args:
        fd: Descriptor to switch

    Returns:
        Handle holding the original attributes, or None if fd is not a
        terminal or its attributes could not be changed
    """
    if not os.isatty(fd):
        return None

    try:
        saved = termios.tcgetattr(fd)
        mode = list(saved)
        mode[tty.LFLAG] &= ~RAW_MODE_CLEAR
        termios.tcsetattr(fd, termios.TCSANOW, mode)
    except termios.error as e:
        logger.debug(f"leaving fd {fd} in its current mode: {e}")
        return None

    return RawModeHandle(fd=fd, saved=saved)


def release(handle: RawModeHandle | None, fd: int) -> None:
    """
    Restore the attributes saved by acquire().

    Failures are ignored: this runs on EOF and at shutdown, where nothing
    else can be done about a terminal that went away.

    Args:
        handle: Handle from acquire(), or None
        fd: Descriptor the handle belongs to

    Raises:
        TerminalModeError: If the handle was already released or was
            captured from a different descriptor
    """
    if handle is None:
        return
    if handle.released:
        raise TerminalModeError(handle.fd, "already released")
    if handle.fd != fd:
        raise TerminalModeError(handle.fd, f"released against fd {fd}")

    handle.released = True
    try:
        termios.tcsetattr(fd, termios.TCSANOW, handle.saved)
    except (termios.error, OSError) as e:
        logger.debug(f"could not restore terminal mode on fd {fd}: {e}")
