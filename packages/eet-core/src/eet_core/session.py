"""
Session: one run of eet from registration to shutdown.

The session is the explicit context that owns the multiplexer, the
lifecycle driver, the registry and the output writer. Nothing is global.

CRITICAL ORDER:
1. Register sources in argument order (opens descriptors, applies raw mode)
2. Install SIGINT/SIGTERM handlers
3. Run the multiplexer until idle, signal or output failure
4. Always run the shutdown pass, then remove the signal handlers
"""

import asyncio
import logging
import signal
from collections.abc import Iterable

from eet_core.config import READ_SIZE, SourceSpec
from eet_core.lifecycle import SourceLifecycle
from eet_core.multiplexer import ReadinessMultiplexer, StopReason, new_event_loop
from eet_core.output import OutputWriter
from eet_core.registry import SourceRegistry

logger = logging.getLogger(__name__)


class Session:
    """
    Runs the sources of one command line to completion.

    Example:
        session = Session()
        reason = await session.run(parse_command_line(argv))
    """

    def __init__(
        self,
        output_fd: int = 1,
        stdin_fd: int = 0,
        read_size: int = READ_SIZE,
    ) -> None:
        """
        Initialize session components.

        Args:
            output_fd: Descriptor all sources are copied to
            stdin_fd: Descriptor the "-" alias duplicates
            read_size: Maximum bytes per read
        """
        self.output = OutputWriter(output_fd)
        self.multiplexer = ReadinessMultiplexer()
        self.lifecycle = SourceLifecycle(
            self.multiplexer,
            self.output,
            read_size=read_size,
            stdin_fd=stdin_fd,
        )
        self.registry = SourceRegistry(self.multiplexer, self.lifecycle, stdin_fd=stdin_fd)

    async def run(self, specs: Iterable[SourceSpec]) -> StopReason:
        """
        Register sources, multiplex them and shut down.

        Args:
            specs: Parsed command-line sources

        Returns:
            Why the multiplexer stopped
        """
        self.registry.register_all(specs)
        self.multiplexer.install_signal_handlers(self._handle_signal)
        try:
            reason = await self.multiplexer.run()
        finally:
            self.registry.close_all()
            self.multiplexer.remove_signal_handlers()
        logger.debug(f"{len(self.registry)} source(s) closed after {reason.value} stop")
        return reason

    def request_stop(self) -> None:
        """Ask the session to stop as if it had received SIGINT."""
        self.lifecycle.terminate()

    def _handle_signal(self, sig: signal.Signals) -> None:
        """
        Handle a termination signal.

        Signal handlers run on the loop thread via add_signal_handler, so
        this only marks the loop as stopping; cleanup happens in run().
        """
        logger.debug(f"received {sig.name}")
        self.request_stop()


def run_session(
    specs: Iterable[SourceSpec],
    output_fd: int = 1,
    stdin_fd: int = 0,
) -> StopReason:
    """
    Run a session on a fresh poll-based event loop.

    Args:
        specs: Parsed command-line sources
        output_fd: Descriptor all sources are copied to
        stdin_fd: Descriptor the "-" alias duplicates

    Returns:
        Why the session stopped
    """
    session = Session(output_fd=output_fd, stdin_fd=stdin_fd)
    with asyncio.Runner(loop_factory=new_event_loop) as runner:
        return runner.run(session.run(specs))
