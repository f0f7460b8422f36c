"""eet CLI - backward tee: copy many inputs onto one output."""

import logging

import typer
from typer.core import TyperCommand

from eet_core.config import parse_command_line
from eet_core.errors import InvalidOptionError
from eet_core.logging_setup import configure_logging
from eet_core.session import run_session

logger = logging.getLogger(__name__)

RAW_ARGS = "eet.raw_args"
VERBOSE_OPTION = "--verbose"

app = typer.Typer(
    name="eet",
    help="Watch files, pipes and terminals and copy whatever they produce to stdout",
    add_completion=False,
    no_args_is_help=False,
)


class SourceArgsCommand(TyperCommand):
    """
    Command that keeps the arguments exactly as typed.

    Click drops "--" as an end-of-options marker. eet has no such marker:
    "--" is an option token with an unknown flag, so the source parser
    must see it.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        ctx.meta[RAW_ARGS] = list(args)
        return super().parse_args(ctx, args)


def source_tokens(ctx: typer.Context, args: list[str] | None) -> list[str]:
    """Return the command-line tokens the source parser owns."""
    raw = ctx.meta.get(RAW_ARGS)
    if raw is None:
        return list(args or [])
    return [token for token in raw if token != VERBOSE_OPTION]


@app.command(
    cls=SourceArgsCommand,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
    },
)
def run(
    ctx: typer.Context,
    args: list[str] = typer.Argument(
        None,
        metavar="[-krt]... PATH [[-krt]... PATH]...",
        help=(
            "Paths to watch, each optionally preceded by flags: "
            "-k keep open on EOF, -r reopen on EOF, -t don't treat as a terminal. "
            "Use - for standard input."
        ),
    ),
    verbose: bool = typer.Option(False, VERBOSE_OPTION, help="Log source lifecycle transitions"),
) -> None:
    """
    Copy every PATH's bytes to stdout as they become readable.

    Runs until all sources are closed or it is interrupted with Ctrl+C.
    """
    configure_logging(verbose=verbose)

    try:
        specs = parse_command_line(source_tokens(ctx, args))
    except InvalidOptionError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    reason = run_session(specs)
    logger.debug(f"exiting after {reason.value} stop")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
