"""Bootstrap command implementation.

Provisions the machine end to end: environment, packages, shell modules,
font, config links and profile stubs.
"""

from pathlib import Path
from typing import Annotated

import typer

from dotstrap.cli.types import (
    ManifestOption,
    QuietOption,
    get_env_store,
    get_fonts,
    get_mutator,
    get_operator,
    get_query,
    get_reporter,
)
from dotstrap.core.bootstrap import BootstrapContext, BootstrapOptions, run_bootstrap
from dotstrap.core.errors import BootstrapStepError

app = typer.Typer(
    help="Provision this machine from the dotfiles repository.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def bootstrap(
    ctx: typer.Context,
    repo_archive_url: Annotated[
        str | None,
        typer.Option(
            "--repo-archive-url",
            help="Zip archive of the repository, used when no local checkout exists.",
        ),
    ] = None,
    repo: Annotated[
        Path | None,
        typer.Option(
            "--repo",
            "-r",
            help="Local repository checkout (default: DOTSTRAP_REPO, the archive or the cache).",
            envvar="DOTSTRAP_REPO",
            file_okay=False,
        ),
    ] = None,
    elevate_link_on_failure: Annotated[
        bool,
        typer.Option(
            "--elevate-link-on-failure",
            help="Retry linking in an elevated helper (UAC prompt) if it fails.",
        ),
    ] = False,
    self_test: Annotated[
        bool,
        typer.Option(
            "--self-test",
            help="Audit packages and verify links after provisioning.",
        ),
    ] = False,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Replace real folders that occupy a link target.",
        ),
    ] = False,
    manifest: ManifestOption = None,
    quiet: QuietOption = False,
) -> None:
    """Provision this machine from the dotfiles repository.

    Steps run in a fixed order and are safe to repeat. The first failing
    step aborts the run with exit code 1.

    Examples:
        dotstrap bootstrap                                  # From the current checkout
        dotstrap bootstrap --elevate-link-on-failure        # Allow a UAC prompt
        dotstrap bootstrap --repo-archive-url URL --self-test
    """
    if ctx.invoked_subcommand is not None:
        return

    reporter = get_reporter(ctx, quiet)
    options = BootstrapOptions(
        repo_root=repo,
        repo_archive_url=repo_archive_url,
        manifest_path=manifest,
        elevate_link_on_failure=elevate_link_on_failure,
        self_test=self_test,
        force_links=force,
    )
    context = BootstrapContext(
        options=options,
        reporter=reporter,
        query=get_query(),
        operator=get_operator(),
        mutator=get_mutator(),
        env_store=get_env_store(),
        font_registry=get_fonts(),
    )

    try:
        result = run_bootstrap(context)
    except BootstrapStepError as e:
        reporter.error(f"Bootstrap aborted: {e}")
        raise typer.Exit(code=1) from e

    reporter.ok(f"Bootstrap complete ({len(result.completed)} steps).")
