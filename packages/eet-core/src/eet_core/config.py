"""
Command-line configuration for eet.

eet has no configuration files and reads no environment variables. Its
whole configuration is the list of positional tokens, where option tokens
set flags for the path that follows them:

    eet -k growing.log -rt /dev/ttyS0 - other.fifo

- "-k", "-r" and "-t" set keep-open, reopen-on-eof and no-tty
- flags combine within a token ("-kt") or across tokens ("-k -t")
- flags apply to the next path only, then reset
- a bare "-" is a path (the stdin alias), not an option token

Example:
    specs = parse_command_line(["-k", "a.log", "-"])
    # [SourceSpec("a.log", KEEP_OPEN), SourceSpec("-", NONE)]
"""

from collections.abc import Iterable
from dataclasses import dataclass

from eet_core.errors import InvalidOptionError
from eet_core.source import STDIN_ALIAS, SourceFlags

# Bytes requested per read; every read gets its own buffer of this size
READ_SIZE = 8192

OPTION_FLAGS: dict[str, SourceFlags] = {
    "k": SourceFlags.KEEP_OPEN,
    "r": SourceFlags.REOPEN,
    "t": SourceFlags.NO_TTY,
}


@dataclass(frozen=True)
class SourceSpec:
    """
    One path from the command line with the flags that preceded it.

    Attributes:
        path: Path to watch, or "-" for standard input
        flags: Flags accumulated since the previous path
    """

    path: str
    flags: SourceFlags = SourceFlags.NONE


def is_option_token(token: str) -> bool:
    """Return True if token is a flag group rather than a path."""
    return token.startswith("-") and token != STDIN_ALIAS


def parse_option_token(token: str) -> SourceFlags:
    """
    Convert one option token into flags.

    Raises:
        InvalidOptionError: On the first character that is not a known flag
    """
    flags = SourceFlags.NONE
    for char in token[1:]:
        try:
            flags |= OPTION_FLAGS[char]
        except KeyError:
            raise InvalidOptionError(char, token) from None
    return flags


def parse_command_line(tokens: Iterable[str]) -> list[SourceSpec]:
    """
    Parse positional tokens into source specs, in argument order.

    The whole line is validated before anything is returned, so an invalid
    option means no source gets opened. Option tokens after the last path
    have nothing to apply to and are dropped.

    Args:
        tokens: Command-line tokens, without the program name

    Returns:
        One SourceSpec per path token

    Raises:
        InvalidOptionError: If any option token has an unknown character
    """
    specs: list[SourceSpec] = []
    pending = SourceFlags.NONE

    for token in tokens:
        if is_option_token(token):
            pending |= parse_option_token(token)
        else:
            specs.append(SourceSpec(path=token, flags=pending))
            pending = SourceFlags.NONE

    return specs
