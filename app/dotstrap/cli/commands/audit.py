"""Audit command implementation.

Compares the manifest with the installed packages without changing
anything and reports drift through the exit code.
"""

import json
from typing import Annotated

import typer

from dotstrap.cli.display import create_results_table, print_audit_summary
from dotstrap.cli.types import ManifestOption, QuietOption, get_query, get_reporter
from dotstrap.core.audit import EXIT_DRIFT, audit
from dotstrap.core.manifest import require_manifest
from dotstrap.utils.formatting import console

app = typer.Typer(
    help="Check installed packages against the manifest.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def audit_packages(
    ctx: typer.Context,
    manifest: ManifestOption = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON for scripting.",
        ),
    ] = False,
    quiet: QuietOption = False,
) -> None:
    """Check installed packages against the manifest.

    Exit codes:
      0  every package is installed (and at its pinned version)
      1  at least one package is missing, drifted or could not be queried
      2  the manifest could not be loaded

    Examples:
        dotstrap audit                 # Table of every package
        dotstrap audit --json          # JSON output for scripting
        dotstrap audit -q; echo $?     # Exit code only
    """
    if ctx.invoked_subcommand is not None:
        return

    reporter = get_reporter(ctx, quiet)
    loaded = require_manifest(manifest)

    query = get_query()
    if not query.is_available():
        reporter.error(f"{query.name} is not available on this system.")
        raise typer.Exit(code=EXIT_DRIFT)

    report = audit(loaded, query)

    if json_output:
        console.print_json(json.dumps(report.to_dict()))
        raise typer.Exit(code=report.exit_code)

    reporter.render(create_results_table(list(report.results), title="Audit"))
    print_audit_summary(report, reporter)
    raise typer.Exit(code=report.exit_code)
