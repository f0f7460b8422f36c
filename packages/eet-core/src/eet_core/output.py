"""
Shared output stream for all sources.

Every source's bytes end up on one descriptor (stdout by default). Writes
are synchronous: eet assumes the output never blocks for long, so a
source's chunk is always written completely before the next dispatch.
"""

import os
import select


class OutputWriter:
    """
    Writes complete chunks to the combined output descriptor.

    Example:
        out = OutputWriter(1)
        out.write_all(b"hello\\n")
    """

    def __init__(self, fd: int = 1) -> None:
        """
        Initialize writer.

        Args:
            fd: Output descriptor (default stdout)
        """
        self.fd = fd
        self.bytes_written = 0

    def write_all(self, data: bytes) -> int:
        """
        Write all of data, retrying after partial writes.

        If the output was left non-blocking by whoever set it up, a full
        pipe waits for writability instead of failing.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written (always len(data))

        Raises:
            OSError: On a hard write error; the output is unusable
        """
        view = memoryview(data)
        while view:
            try:
                n = os.write(self.fd, view)
            except BlockingIOError:
                select.select([], [self.fd], [])
                continue
            view = view[n:]
            self.bytes_written += n
        return len(data)
