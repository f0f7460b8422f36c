"""
SourceRegistry: owns every source for the lifetime of a run.

- register(): open a path, apply raw mode, subscribe, append
- close_all(): the shutdown pass, run once after the multiplexer stops

Sources are kept in argument order and never removed mid-run; a stopped
source stays registered with its descriptor already closed. A path that
fails to open is logged and skipped without affecting the others.
"""

import logging
import os
from collections.abc import Iterable, Iterator

from eet_core import terminal
from eet_core.config import SourceSpec
from eet_core.lifecycle import SourceLifecycle
from eet_core.multiplexer import ReadinessMultiplexer
from eet_core.source import Source, SourceFlags, SourceState, open_source_fd

logger = logging.getLogger(__name__)


class SourceRegistry:
    """
    Ordered collection of all successfully opened sources.

    Example:
        registry = SourceRegistry(multiplexer, lifecycle)
        registry.register("app.log", SourceFlags.KEEP_OPEN)
        # ... run the multiplexer ...
        registry.close_all()
    """

    def __init__(
        self,
        multiplexer: ReadinessMultiplexer,
        lifecycle: SourceLifecycle,
        stdin_fd: int = 0,
    ) -> None:
        """
        Initialize an empty registry.

        Args:
            multiplexer: Multiplexer new sources are subscribed with
            lifecycle: Lifecycle whose callback handles readiness
            stdin_fd: Descriptor duplicated for the "-" alias
        """
        self._multiplexer = multiplexer
        self._lifecycle = lifecycle
        self._stdin_fd = stdin_fd
        self._sources: list[Source] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[Source]:
        return iter(self._sources)

    @property
    def closed(self) -> bool:
        """True once close_all() has run."""
        return self._closed

    def active(self) -> list[Source]:
        """Sources that are not stopped, in registration order."""
        return [s for s in self._sources if not s.stopped]

    def register(self, path: str, flags: SourceFlags = SourceFlags.NONE) -> Source | None:
        """
        Open and start watching one source.

        Args:
            path: Path to open, or "-" for standard input
            flags: Options for this source

        Returns:
            The registered Source, or None if it could not be set up
        """
        fd = open_source_fd(path, self._stdin_fd)
        if fd is None:
            return None

        source = Source(path=path, flags=flags, fd=fd, index=len(self._sources))
        try:
            if source.wants_terminal:
                source.terminal = terminal.acquire(fd)
            self._multiplexer.subscribe(source, self._lifecycle.on_readable)
        except OSError as e:
            logger.error(f"unable to set up `{path}': {e.strerror or e}")
            terminal.release(source.terminal, fd)
            os.close(fd)
            return None

        self._sources.append(source)
        logger.debug(f"registered {source!r}")
        return source

    def register_all(self, specs: Iterable[SourceSpec]) -> int:
        """
        Register sources in order.

        Returns:
            Number of sources registered
        """
        count = 0
        for spec in specs:
            if self.register(spec.path, spec.flags) is not None:
                count += 1
        return count

    def close_all(self) -> None:
        """
        Restore terminals and close every descriptor still open.

        Must run after the multiplexer has stopped. Stopped sources were
        already closed by their lifecycle and are only dropped. Running it
        again is a no-op.
        """
        if self._closed:
            return
        self._closed = True

        for source in self._sources:
            if source.stopped:
                continue
            fd = source.fd
            terminal.release(source.terminal, fd)
            source.terminal = None
            self._multiplexer.unsubscribe(source)
            source.fd = None
            source.state = SourceState.STOPPED
            try:
                os.close(fd)
            except OSError as e:
                logger.debug(f"closing `{source.path}': {e.strerror}")
