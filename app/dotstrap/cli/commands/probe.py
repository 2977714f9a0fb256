"""Probe command implementation."""

import typer

from dotstrap.cli.types import QuietOption, get_reporter
from dotstrap.core.probe import probe_symlink_capability
from dotstrap.utils.shell import is_elevated

app = typer.Typer(
    help="Check whether this session can create symlinks.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def probe(ctx: typer.Context, quiet: QuietOption = False) -> None:
    """Check whether this session can create symlinks.

    Exits 0 when a directory symlink could be created, 1 otherwise.
    """
    if ctx.invoked_subcommand is not None:
        return

    reporter = get_reporter(ctx, quiet)
    if probe_symlink_capability():
        reporter.ok("Symlinks can be created.")
        return

    if is_elevated():
        reporter.warn("Symlinks cannot be created even though the process is elevated.")
    else:
        reporter.warn(
            "Symlinks cannot be created. Enable Developer Mode or run from an elevated terminal."
        )
    raise typer.Exit(code=1)
