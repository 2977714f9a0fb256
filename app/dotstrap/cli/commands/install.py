"""Install command implementation.

Installs every manifest package that is not yet present.
"""

import typer

from dotstrap.cli.display import create_results_table
from dotstrap.cli.types import (
    DryRunOption,
    ManifestOption,
    QuietOption,
    get_operator,
    get_query,
    get_reporter,
)
from dotstrap.core.manifest import require_manifest
from dotstrap.core.packages import PackageReconciler, summarize_failures

app = typer.Typer(
    help="Install missing manifest packages.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def install_packages(
    ctx: typer.Context,
    manifest: ManifestOption = None,
    dry_run: DryRunOption = False,
    quiet: QuietOption = False,
) -> None:
    """Install missing manifest packages.

    User-scope packages fall back to the default scope when the package
    has no user-scope installer. Individual failures are reported as
    warnings and do not change the exit code.

    Examples:
        dotstrap install                       # Install what is missing
        dotstrap install --dry-run             # Preview
        dotstrap install -m ~/packages.json    # Custom manifest
    """
    if ctx.invoked_subcommand is not None:
        return

    reporter = get_reporter(ctx, quiet)
    loaded = require_manifest(manifest)

    query = get_query()
    operator = get_operator(dry_run=dry_run)
    if not operator.is_available():
        reporter.error(f"{operator.name} is not available on this system.")
        raise typer.Exit(code=1)

    try:
        results = PackageReconciler(query, operator, reporter).install(loaded)
    except RuntimeError as e:
        reporter.error(f"Could not list installed packages: {e}")
        raise typer.Exit(code=1) from e

    title = "Install (Dry Run)" if dry_run else "Install"
    reporter.render(create_results_table(results, title=title))
    if not dry_run:
        summarize_failures(results, reporter)
