"""
eet Core Library

eet is a backward tee: it watches any number of files, pipes and terminals
and copies whatever each one produces to a single output. This package
provides:

- Source, SourceFlags, SourceState: One watched input and its options
- SourceRegistry: Ordered ownership of all sources, plus shutdown
- ReadinessMultiplexer: asyncio readiness scheduler
- SourceLifecycle / transition: EOF, reopen and error handling
- Session / run_session: One complete run
- CLI infrastructure: Typer-based entry point
"""

__version__ = "0.1.0"

from eet_core.config import SourceSpec, parse_command_line
from eet_core.errors import (
    EetError,
    InvalidOptionError,
    InvalidTransitionError,
    TerminalModeError,
)
from eet_core.lifecycle import Action, SourceEvent, SourceLifecycle, Transition, transition
from eet_core.multiplexer import ReadinessMultiplexer, StopReason, new_event_loop
from eet_core.output import OutputWriter
from eet_core.registry import SourceRegistry
from eet_core.session import Session, run_session
from eet_core.source import Source, SourceFlags, SourceState

__all__ = [
    "__version__",
    # Sources
    "Source",
    "SourceFlags",
    "SourceState",
    "SourceSpec",
    "parse_command_line",
    # Engine
    "ReadinessMultiplexer",
    "StopReason",
    "new_event_loop",
    "SourceLifecycle",
    "SourceEvent",
    "Action",
    "Transition",
    "transition",
    "SourceRegistry",
    "OutputWriter",
    "Session",
    "run_session",
    # Errors
    "EetError",
    "InvalidOptionError",
    "InvalidTransitionError",
    "TerminalModeError",
]
