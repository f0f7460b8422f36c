"""Shared fixtures for eet tests."""

import asyncio
import logging
import os
import termios
import time
from pathlib import Path

import pytest

from eet_core.logging_setup import PACKAGE_LOGGER
from eet_core.multiplexer import new_event_loop


def close_quietly(*fds: int) -> None:
    """Close descriptors that the code under test may already have closed."""
    for fd in fds:
        try:
            os.close(fd)
        except OSError:
            pass


def run_poll(coro):
    """Run a coroutine on the same poll-based loop the CLI uses."""
    with asyncio.Runner(loop_factory=new_event_loop) as runner:
        return runner.run(coro)


async def wait_for_output(path: Path, expected: bytes, timeout: float = 5.0) -> bytes:
    """Wait until the output file contains at least the expected bytes."""
    deadline = time.monotonic() + timeout
    data = path.read_bytes()
    while len(data) < len(expected) and time.monotonic() < deadline:
        await asyncio.sleep(0.01)
        data = path.read_bytes()
    return data


def set_canonical(fd: int) -> list:
    """Make sure a terminal has ICANON and ECHO on, and return its attributes."""
    attrs = termios.tcgetattr(fd)
    attrs[3] |= termios.ICANON | termios.ECHO
    termios.tcsetattr(fd, termios.TCSANOW, attrs)
    return termios.tcgetattr(fd)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo CLI logging setup so later tests log through caplog only."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def pipe():
    """A pipe as (read_fd, write_fd), closed after the test."""
    r, w = os.pipe()
    yield r, w
    close_quietly(r, w)


@pytest.fixture
def pty_pair():
    """A pseudo-terminal as (master_fd, slave_fd) in canonical echo mode."""
    master, slave = os.openpty()
    set_canonical(slave)
    yield master, slave
    close_quietly(master, slave)


@pytest.fixture
def output(tmp_path):
    """Output file as (fd, path), standing in for stdout."""
    path = tmp_path / "out.bin"
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    yield fd, path
    close_quietly(fd)
