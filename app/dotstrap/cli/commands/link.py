"""Link command implementation.

Links every folder of the repository config tree into the home config
root. Also used, with hidden options, as the elevated helper process.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotstrap.cli.display import print_link_summary
from dotstrap.cli.types import DryRunOption, QuietOption, get_mutator, get_reporter
from dotstrap.core.errors import LinkReconcileError, RepositoryLayoutError
from dotstrap.core.paths import (
    get_default_repo_root,
    get_gitconfig_path,
    get_home_config_root,
    get_repo_config_root,
)
from dotstrap.links.elevation import LinkRequest, escalate_links, report_elevation
from dotstrap.links.gitconfig import ensure_git_include
from dotstrap.links.reconciler import ensure_links

app = typer.Typer(
    help="Link repository config folders into the home config root.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def link_configs(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Replace real folders that occupy a link target.",
        ),
    ] = False,
    target_home: Annotated[
        Path | None,
        typer.Option(
            "--target-home",
            help="Home directory to link into (default: your home).",
            file_okay=False,
        ),
    ] = None,
    source_root: Annotated[
        Path | None,
        typer.Option(
            "--source-root",
            help="Config tree to link from (default: <repo>/.config).",
            file_okay=False,
        ),
    ] = None,
    target_root: Annotated[
        Path | None,
        typer.Option("--target-root", hidden=True, file_okay=False),
    ] = None,
    dry_run: DryRunOption = False,
    no_elevate: Annotated[
        bool,
        typer.Option(
            "--no-elevate",
            help="Do not retry failed links in an elevated helper.",
        ),
    ] = False,
    no_git_include: Annotated[
        bool,
        typer.Option("--no-git-include", hidden=True),
    ] = False,
    quiet: QuietOption = False,
) -> None:
    """Link repository config folders into the home config root.

    Existing links are repointed; real folders are only replaced with
    --force. If links cannot be created (Windows without Developer Mode),
    the link step is retried once in an elevated helper and the result is
    verified afterwards.

    Examples:
        dotstrap link --dry-run                # Preview
        dotstrap link --force                  # Replace real folders
        dotstrap link --source-root D:/dots/.config
    """
    if ctx.invoked_subcommand is not None:
        return

    reporter = get_reporter(ctx, quiet)
    source = source_root or get_repo_config_root(get_default_repo_root())
    target = target_root or get_home_config_root(target_home)

    try:
        results = ensure_links(source, target, force=force, dry_run=dry_run, reporter=reporter)
    except RepositoryLayoutError as e:
        reporter.error(str(e))
        raise typer.Exit(code=1) from e
    except LinkReconcileError as e:
        if no_elevate or dry_run:
            reporter.error(str(e))
            raise typer.Exit(code=1) from e

        request = LinkRequest(source.absolute(), target.absolute(), force=force)
        reporter.info("Retrying link creation in an elevated helper")
        report = escalate_links(request, get_mutator())
        report_elevation(report, request, reporter)
        if not report.spawned:
            raise typer.Exit(code=1) from e
        results = e.results

    if not no_git_include and (source / "git").is_dir():
        gitconfig = get_gitconfig_path(target_home)
        if ensure_git_include(gitconfig, target / "git" / "config", dry_run=dry_run):
            reporter.ok(f"{'Would add' if dry_run else 'Added'} git include to {gitconfig}")

    print_link_summary(results, reporter)
