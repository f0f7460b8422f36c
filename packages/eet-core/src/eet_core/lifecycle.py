"""
Source lifecycle: end-of-stream, reopen and read-error handling.

The lifecycle is split in two:
- transition(): a pure table of (state, event, flags) -> (next state, action)
  with no I/O, so every path can be checked with synthetic events
- SourceLifecycle: reads from a ready source, turns the outcome into an
  event, and carries out the action the table returns

States: ACTIVE -> STOPPED (terminal), with REOPENING as a transient step
between closing a descriptor and subscribing its replacement.

EOF policy:
- KEEP_OPEN: nothing happens, the source keeps being polled
- otherwise: restore raw mode, unsubscribe, close
  - without REOPEN: STOPPED
  - with REOPEN: exactly one reopen attempt of the same path; success goes
    back to ACTIVE with a fresh descriptor and raw-mode handle, failure is
    STOPPED. The next EOF gets its own single attempt.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum

from eet_core import terminal
from eet_core.config import READ_SIZE
from eet_core.errors import InvalidTransitionError
from eet_core.multiplexer import ReadinessMultiplexer, StopReason
from eet_core.output import OutputWriter
from eet_core.source import Source, SourceFlags, SourceState, open_source_fd

logger = logging.getLogger(__name__)


class SourceEvent(str, Enum):
    """Things that can happen to a source."""

    DATA = "data"
    WOULD_BLOCK = "would_block"
    EOF = "eof"
    READ_ERROR = "read_error"
    REOPEN_OK = "reopen_ok"
    REOPEN_FAILED = "reopen_failed"
    TERMINATE = "terminate"


class Action(str, Enum):
    """What the driver must do after a transition."""

    NONE = "none"
    FORWARD = "forward"  # write the bytes read to the output
    CLOSE = "close"  # restore raw mode, unsubscribe, close
    REOPEN = "reopen"  # CLOSE, then open the path again
    SUBSCRIBE = "subscribe"  # acquire raw mode and poll the new descriptor
    HALT = "halt"  # break the loop for every source
    IGNORE = "ignore"  # source is stopped; touch nothing


@dataclass(frozen=True)
class Transition:
    """Result of applying an event: the next state and the action to take."""

    state: SourceState
    action: Action


def transition(state: SourceState, event: SourceEvent, flags: SourceFlags) -> Transition:
    """
    Look up the transition for an event.

    Args:
        state: Current state of the source
        event: Event that occurred
        flags: Source flags (only KEEP_OPEN and REOPEN matter)

    Returns:
        Next state and action

    Raises:
        InvalidTransitionError: If the event cannot happen in this state
    """
    if state is SourceState.STOPPED:
        return Transition(SourceState.STOPPED, Action.IGNORE)

    if event is SourceEvent.TERMINATE:
        return Transition(state, Action.HALT)

    if state is SourceState.ACTIVE:
        if event is SourceEvent.DATA:
            return Transition(SourceState.ACTIVE, Action.FORWARD)
        if event is SourceEvent.WOULD_BLOCK:
            return Transition(SourceState.ACTIVE, Action.NONE)
        if event is SourceEvent.READ_ERROR:
            return Transition(SourceState.STOPPED, Action.CLOSE)
        if event is SourceEvent.EOF:
            if flags & SourceFlags.KEEP_OPEN:
                return Transition(SourceState.ACTIVE, Action.NONE)
            if flags & SourceFlags.REOPEN:
                return Transition(SourceState.REOPENING, Action.REOPEN)
            return Transition(SourceState.STOPPED, Action.CLOSE)

    if state is SourceState.REOPENING:
        if event is SourceEvent.REOPEN_OK:
            return Transition(SourceState.ACTIVE, Action.SUBSCRIBE)
        if event is SourceEvent.REOPEN_FAILED:
            return Transition(SourceState.STOPPED, Action.NONE)

    raise InvalidTransitionError(state.value, event.value)


class SourceLifecycle:
    """
    Drives sources through the transition table with real descriptor I/O.

    One instance serves every source. It is handed to the multiplexer as
    the readiness callback and is only ever called from the event loop,
    one source at a time.

    Example:
        lifecycle = SourceLifecycle(multiplexer, OutputWriter(1))
        multiplexer.subscribe(source, lifecycle.on_readable)
    """

    def __init__(
        self,
        multiplexer: ReadinessMultiplexer,
        output: OutputWriter,
        read_size: int = READ_SIZE,
        stdin_fd: int = 0,
    ) -> None:
        """
        Initialize lifecycle driver.

        Args:
            multiplexer: Multiplexer that polls the sources
            output: Shared output every source forwards to
            read_size: Maximum bytes per read
            stdin_fd: Descriptor duplicated when "-" is reopened
        """
        self._multiplexer = multiplexer
        self._output = output
        self._read_size = read_size
        self._stdin_fd = stdin_fd

    def on_readable(self, source: Source) -> None:
        """
        Handle one readiness notification for a source.

        Args:
            source: The source whose descriptor is readable
        """
        if source.stopped:
            return

        try:
            data = os.read(source.fd, self._read_size)
        except BlockingIOError:
            self.apply(source, SourceEvent.WOULD_BLOCK)
            return
        except OSError as e:
            logger.error(f"error reading from `{source.path}': {e.strerror}")
            self.apply(source, SourceEvent.READ_ERROR)
            return

        self.apply(source, SourceEvent.DATA if data else SourceEvent.EOF, data)

    def terminate(self) -> None:
        """
        Apply a termination request.

        Termination is all-or-nothing: it breaks the loop for every source
        at once and leaves each source as it is for the shutdown pass.
        """
        self._multiplexer.request_stop(StopReason.SIGNAL)

    def apply(self, source: Source, event: SourceEvent, data: bytes = b"") -> Transition:
        """
        Apply an event to a source and perform the resulting action.

        Args:
            source: Source the event belongs to
            event: Event to apply
            data: Bytes read, for DATA events

        Returns:
            The transition that was taken
        """
        step = transition(source.state, event, source.flags)
        if step.action is Action.IGNORE:
            return step

        if step.state is not source.state:
            logger.debug(f"{source.path}: {source.state.value} -> {step.state.value} on {event.value}")
        source.state = step.state

        if step.action is Action.FORWARD:
            self._forward(data)
        elif step.action is Action.CLOSE:
            self._close(source)
        elif step.action is Action.REOPEN:
            self._close(source)
            self._reopen(source)
        elif step.action is Action.SUBSCRIBE:
            self._subscribe(source)
        elif step.action is Action.HALT:
            self._multiplexer.request_stop(StopReason.SIGNAL)

        return step

    def _forward(self, data: bytes) -> None:
        try:
            self._output.write_all(data)
        except OSError as e:
            logger.error(f"error writing to stdout; serious problems!: {e.strerror}")
            self._multiplexer.request_stop(StopReason.OUTPUT_FAILED)

    def _close(self, source: Source) -> None:
        """Restore raw mode, stop polling and close the current descriptor."""
        fd = source.fd
        terminal.release(source.terminal, fd)
        source.terminal = None
        self._multiplexer.unsubscribe(source)
        source.fd = None
        os.close(fd)

    def _subscribe(self, source: Source) -> None:
        """Install a fresh raw-mode handle and poll the reopened descriptor."""
        if source.wants_terminal:
            source.terminal = terminal.acquire(source.fd)
        try:
            self._multiplexer.subscribe(source, self.on_readable)
        except OSError as e:
            logger.error(f"unable to set up `{source.path}': {e.strerror or e}")
            self._close(source)
            source.state = SourceState.STOPPED

    def _reopen(self, source: Source) -> None:
        fd = open_source_fd(source.path, self._stdin_fd)
        if fd is None:
            self.apply(source, SourceEvent.REOPEN_FAILED)
            return
        source.fd = fd
        self.apply(source, SourceEvent.REOPEN_OK)
