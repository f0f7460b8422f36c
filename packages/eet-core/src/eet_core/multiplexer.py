"""
Readiness multiplexer for watched sources.

This module provides the scheduler that waits until a source descriptor is
readable and hands it to the lifecycle callback:

- Uses loop.add_reader() so the only suspension point is the event loop's
  readiness wait; callbacks run one at a time on the loop thread
- Uses asyncio.Event for stop coordination, set by signal handlers, by an
  output failure, or when the last subscribed source goes away
- Signal handlers do not count as work: with nothing subscribed, run()
  returns even though SIGINT is still being watched

The loop is a SelectorEventLoop over PollSelector. epoll refuses regular
files, while poll reports them as always readable, which is what keep-open
on a growing file relies on.
"""

import asyncio
import functools
import logging
import selectors
import signal
from collections.abc import Callable
from enum import Enum

from eet_core.source import Source

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class StopReason(str, Enum):
    """Why the multiplexer stopped."""

    IDLE = "idle"  # no source left to poll
    SIGNAL = "signal"  # termination request
    OUTPUT_FAILED = "output_failed"  # shared output is unusable


def new_event_loop() -> asyncio.AbstractEventLoop:
    """Create an event loop whose selector accepts regular files."""
    return asyncio.SelectorEventLoop(selectors.PollSelector())


class ReadinessMultiplexer:
    """
    Dispatches readability of source descriptors to callbacks.

    Subscriptions are keyed by descriptor. The multiplexer binds to the
    running loop on first use, so it can be built before the loop starts.

    Example:
        mux = ReadinessMultiplexer()
        mux.subscribe(source, lifecycle.on_readable)
        reason = await mux.run()  # until idle, signal or output failure
    """

    def __init__(self) -> None:
        """Initialize multiplexer with no subscriptions."""
        self._loop: asyncio.AbstractEventLoop | None = None
        self._readers: dict[int, Source] = {}
        self._stop = asyncio.Event()
        self._reason: StopReason | None = None
        self._signals: list[signal.Signals] = []

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """Event loop the multiplexer is bound to."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def subscribed(self) -> int:
        """Number of descriptors currently polled."""
        return len(self._readers)

    @property
    def stop_reason(self) -> StopReason | None:
        """Reason passed to the first request_stop(), if any."""
        return self._reason

    def is_subscribed(self, source: Source) -> bool:
        """Return True if the source's current descriptor is polled."""
        return source.fd is not None and self._readers.get(source.fd) is source

    def subscribe(self, source: Source, callback: Callable[[Source], None]) -> None:
        """
        Start polling a source's descriptor.

        Args:
            source: Source with a live descriptor
            callback: Called with the source each time it is readable

        Raises:
            OSError: If the selector rejects the descriptor
        """
        self.loop.add_reader(source.fd, self._dispatch, source, callback)
        self._readers[source.fd] = source

    def unsubscribe(self, source: Source) -> None:
        """Stop polling a source. Does nothing if it is not subscribed."""
        if not self.is_subscribed(source):
            return
        self.loop.remove_reader(source.fd)
        del self._readers[source.fd]

    def _dispatch(self, source: Source, callback: Callable[[Source], None]) -> None:
        # Callbacks already queued for this iteration must not run after a stop
        if self._reason is not None:
            return
        callback(source)
        if not self._readers:
            self.request_stop(StopReason.IDLE)

    def request_stop(self, reason: StopReason) -> None:
        """
        Break the loop for every source.

        Only the first reason is kept; later requests are no-ops.

        Args:
            reason: Why the loop is stopping
        """
        if self._reason is not None:
            return
        logger.debug(f"stopping: {reason.value}")
        self._reason = reason
        self._stop.set()

    def install_signal_handlers(self, on_signal: Callable[[signal.Signals], None]) -> None:
        """
        Route SIGINT and SIGTERM to on_signal.

        Args:
            on_signal: Called with the signal received
        """
        for sig in TERMINATION_SIGNALS:
            self.loop.add_signal_handler(sig, functools.partial(on_signal, sig))
            self._signals.append(sig)

    def remove_signal_handlers(self) -> None:
        """Restore the default handlers for the signals installed."""
        for sig in self._signals:
            self.loop.remove_signal_handler(sig)
        self._signals.clear()

    async def run(self) -> StopReason:
        """
        Wait until the loop is asked to stop or nothing is left to poll.

        Returns:
            Why the loop stopped
        """
        if not self._readers:
            self.request_stop(StopReason.IDLE)
        await self._stop.wait()
        return self._reason
