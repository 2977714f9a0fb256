"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from dotstrap import __version__
from dotstrap.cli.commands import audit, bootstrap, install, link, probe, revert
from dotstrap.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="dotstrap",
    help="Provision a Windows machine from a dotfiles repository.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dotstrap version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, only with --verbose.

    User-facing output goes through the Reporter; logging carries the
    debug trace (commands run, steps entered, per-link detail).
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.CRITICAL,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only print warnings and errors.",
        ),
    ] = False,
) -> None:
    """dotstrap - Provision a Windows machine from a dotfiles repository.

    Installs the packages listed in the manifest, links the repository's
    .config folders into your home, and checks for drift later on.
    """
    configure_logging(verbose)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(bootstrap.app, name="bootstrap")
app.add_typer(install.app, name="install")
app.add_typer(audit.app, name="audit")
app.add_typer(link.app, name="link")
app.add_typer(revert.app, name="revert")
app.add_typer(probe.app, name="probe")


if __name__ == "__main__":
    app()
