"""Revert command implementation.

Undoes selected parts of a bootstrap. Nothing is reverted unless it is
selected explicitly or with --all.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotstrap.cli.display import create_revert_table
from dotstrap.cli.types import (
    DryRunOption,
    ManifestOption,
    QuietOption,
    get_env_store,
    get_fonts,
    get_operator,
    get_query,
    get_reporter,
)
from dotstrap.core.paths import get_default_repo_root
from dotstrap.core.revert import RevertContext, RevertOptions, run_revert

app = typer.Typer(
    help="Undo what bootstrap set up.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def revert(
    ctx: typer.Context,
    remove_links: Annotated[
        bool, typer.Option("--remove-links", help="Remove config links and the git include.")
    ] = False,
    uninstall_packages: Annotated[
        bool, typer.Option("--uninstall-packages", help="Uninstall manifest packages.")
    ] = False,
    remove_fonts: Annotated[
        bool, typer.Option("--remove-fonts", help="Delete the Nerd Font files.")
    ] = False,
    remove_profiles: Annotated[
        bool, typer.Option("--remove-profiles", help="Delete PowerShell profile stubs.")
    ] = False,
    uninstall_modules: Annotated[
        bool, typer.Option("--uninstall-modules", help="Uninstall the PowerShell modules.")
    ] = False,
    reset_env: Annotated[
        bool, typer.Option("--reset-env", help="Unset XDG_CONFIG_HOME if dotstrap set it.")
    ] = False,
    remove_repo: Annotated[
        bool, typer.Option("--remove-repo", help="Delete the repository cache.")
    ] = False,
    select_all: Annotated[
        bool, typer.Option("--all", "-a", help="Select every revert operation.")
    ] = False,
    repo: Annotated[
        Path | None,
        typer.Option(
            "--repo",
            "-r",
            help="Repository checkout bootstrap used.",
            envvar="DOTSTRAP_REPO",
            file_okay=False,
        ),
    ] = None,
    manifest: ManifestOption = None,
    dry_run: DryRunOption = False,
    quiet: QuietOption = False,
) -> None:
    """Undo what bootstrap set up.

    Only things dotstrap created are touched: links (never real folders),
    profile stubs carrying the dotstrap sentinel, the managed git include
    block, and XDG_CONFIG_HOME only when it still has dotstrap's value.

    Examples:
        dotstrap revert --all --dry-run        # Preview everything
        dotstrap revert --remove-links         # Only unlink config folders
    """
    if ctx.invoked_subcommand is not None:
        return

    reporter = get_reporter(ctx, quiet)
    if select_all:
        options = RevertOptions.everything(dry_run=dry_run)
    else:
        options = RevertOptions(
            remove_links=remove_links,
            uninstall_packages=uninstall_packages,
            remove_fonts=remove_fonts,
            remove_profiles=remove_profiles,
            uninstall_modules=uninstall_modules,
            reset_env=reset_env,
            remove_repo=remove_repo,
            dry_run=dry_run,
        )

    if not options.any_selected:
        reporter.error("Nothing selected. Pass one or more revert options, or --all.")
        raise typer.Exit(code=2)

    query = get_query()
    context = RevertContext(
        reporter=reporter,
        operator=get_operator(dry_run=dry_run),
        query=query if query.is_available() else None,
        env_store=get_env_store(),
        repo_root=repo or get_default_repo_root(),
        font_registry=get_fonts(),
        manifest_path=manifest,
    )
    report = run_revert(options, context)

    reporter.render(create_revert_table(report))
    if not report.ok:
        reporter.warn(f"{len(report.failed)} revert action(s) failed.")
        raise typer.Exit(code=1)
