"""
Exception classes for eet.

This module defines the few exceptions that leave a component:
- InvalidOptionError: Unknown option character on the command line
- InvalidTransitionError: Event not accepted by a source's current state
- TerminalModeError: Misuse of a raw-mode handle

Per-source I/O failures are plain OSErrors. They are caught where they
happen (registry, lifecycle) and turned into a single diagnostic line,
so they never appear here. Each exception keeps the offending option,
state or descriptor as an attribute next to its message.
"""


class EetError(Exception):
    """Base class for eet errors."""


class InvalidOptionError(EetError):
    """
    Raised when an option token contains an unknown flag character.

    This is the only startup-fatal error: the CLI reports it and exits
    with a failure status before any source is opened.

    Attributes:
        option: The offending character
        token: The full command-line token it appeared in
    """

    def __init__(self, option: str, token: str) -> None:
        self.option = option
        self.token = token
        super().__init__(f"invalid option `-{option}'")


class InvalidTransitionError(EetError):
    """
    Raised when an event is not defined for a source's current state.

    Attributes:
        state: State the source was in
        event: Event that was applied
    """

    def __init__(self, state: str, event: str) -> None:
        self.state = state
        self.event = event
        super().__init__(f"no transition from state {state!r} on event {event!r}")


class TerminalModeError(EetError):
    """
    Raised when a raw-mode handle is released twice or against the wrong
    descriptor.

    Attributes:
        fd: Descriptor the handle was captured from
    """

    def __init__(self, fd: int, reason: str) -> None:
        self.fd = fd
        self.reason = reason
        super().__init__(f"terminal mode handle for fd {fd}: {reason}")
