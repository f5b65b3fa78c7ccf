"""
git-metrics — CLI entrypoint.

Usage:
    gitmetrics --help
    gitmetrics run --cmd "make -s && stat -c %s build/app"
    gitmetrics status
    gitmetrics series --format csv
"""

from __future__ import annotations

import csv
import io
import json
import sys
from pathlib import Path

import click

from gitmetrics import __version__
from gitmetrics.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="gitmetrics")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to gitmetrics.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """git-metrics — measure a number across the recent commits of a branch."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


def _ledger_path(ctx: click.Context, db: Path | None) -> Path:
    """--db, else ledger_path from gitmetrics.yml, else ./db.json."""
    from gitmetrics.core.config.loader import ConfigError, find_config_file, load_config_file
    from gitmetrics.core.persistence.ledger_file import DEFAULT_LEDGER_FILE

    if db is not None:
        return db

    config_path: Path | None = ctx.obj.get("config_path") or find_config_file()
    if config_path is not None:
        try:
            values = load_config_file(config_path)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)
        if values.get("ledger_path"):
            return Path(values["ledger_path"])

    return Path(DEFAULT_LEDGER_FILE)


@cli.command()
@click.option(
    "--dir",
    "working_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Repository to measure (default: current directory).",
)
@click.option("--cmd", "command", default=None, help="Measurement command; must print one number.")
@click.option("--branch", "-b", default=None, help="Branch to walk (default: main).")
@click.option("--window", "-n", type=int, default=None, help="Number of recent commits (default: 500).")
@click.option(
    "--db",
    "ledger_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ledger file (default: ./db.json).",
)
@click.option(
    "--interactive/--batch",
    default=None,
    help="Ask what to do on failure (default), or record failures and continue.",
)
@click.option("--timeout", type=int, default=None, help="Measurement timeout in seconds.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    working_dir: Path | None,
    command: str | None,
    branch: str | None,
    window: int | None,
    ledger_path: Path | None,
    interactive: bool | None,
    timeout: int | None,
    as_json: bool,
) -> None:
    """Measure every commit in the window that has no value yet.

    Progress is saved after each commit; stop at any time and run again
    to pick up where you left off.

    Examples:

        gitmetrics run --cmd "wc -c < build/app"

        gitmetrics run --dir ../app --cmd ./size.sh --batch -n 100
    """
    from gitmetrics.core.engine.recovery import ClickPrompter, RecoveryProtocol
    from gitmetrics.core.use_cases.run import run_measurements

    def echo(line: str) -> None:
        click.echo(line, err=as_json)

    result = run_measurements(
        overrides={
            "working_dir": working_dir,
            "command": command,
            "branch": branch,
            "window": window,
            "ledger_path": ledger_path,
            "interactive": interactive,
            "timeout": timeout,
        },
        config_path=ctx.obj.get("config_path"),
        recovery=RecoveryProtocol(prompter=ClickPrompter(err=as_json), echo=echo),
        progress=None if ctx.obj.get("quiet") else echo,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error or (result.report and result.report.failed):
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None
    assert result.ledger_counts is not None

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(
        report.status, "white"
    )
    click.secho(
        f"   Result: {len(report.measured)} measured, {len(report.failed)} failed, "
        f"{len(report.broken)} broken, {len(report.skipped)} skipped",
        fg=status_color,
        bold=True,
    )
    counts = result.ledger_counts
    click.echo(
        f"   Ledger: {counts['total']} commits — {counts['measured']} measured, "
        f"{counts['pending'] + counts['failed']} to do, {counts['broken']} broken"
    )

    if report.failed:
        click.echo()
        sys.exit(1)

    click.echo()


@cli.command()
@click.option("--db", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Ledger file.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, db: Path | None, as_json: bool) -> None:
    """Show how far the ledger has got."""
    from gitmetrics.core.use_cases.status import get_status

    result = get_status(_ledger_path(ctx, db))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    counts = result.counts
    assert counts is not None

    click.secho(f"\n📒 {result.ledger_path}", fg="cyan", bold=True)
    if not result.exists:
        click.echo("   No ledger yet — run 'gitmetrics run' first.")
        click.echo()
        return

    click.echo(f"   Commits:  {counts['total']}")
    click.secho(f"   Measured: {counts['measured']}", fg="green")
    click.secho(f"   Pending:  {counts['pending']}", fg="white")
    if counts["failed"]:
        click.secho(f"   Failed:   {counts['failed']}", fg="yellow")
    if counts["broken"]:
        click.secho(f"   Broken:   {counts['broken']}", fg="red")

    if result.latest:
        click.echo()
        click.echo(
            f"   Latest:   {result.latest.short_id} = {result.latest.size:g}  "
            f"{result.latest.description[:60]}"
        )
    if result.next_pending:
        click.echo(
            f"   Next:     {result.next_pending.short_id}  "
            f"{result.next_pending.description[:60]}"
        )
    click.echo()


@cli.command()
@click.option("--db", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Ledger file.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "csv"]),
    default="json",
    help="Output format.",
)
@click.option("--all", "include_all", is_flag=True, help="Include commits without a value.")
@click.pass_context
def series(ctx: click.Context, db: Path | None, output_format: str, include_all: bool) -> None:
    """Print the measured series, oldest first, for charting."""
    from gitmetrics.core.persistence.ledger_file import LedgerError, load_ledger
    from gitmetrics.core.use_cases.status import series_points

    try:
        ledger = load_ledger(_ledger_path(ctx, db))
    except LedgerError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    points = series_points(ledger, include_unmeasured=include_all)

    if output_format == "json":
        click.echo(json.dumps(points, indent=2))
        return

    buf = io.StringIO()
    writer = csv.DictWriter(
        buf,
        fieldnames=["id", "timestamp", "date", "description", "size", "state"],
        lineterminator="\n",
    )
    writer.writeheader()
    for point in points:
        writer.writerow({**point, "size": "" if point["size"] is None else point["size"]})
    click.echo(buf.getvalue(), nl=False)


@cli.command()
@click.argument("commit")
@click.option("--db", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Ledger file.")
@click.pass_context
def reset(ctx: click.Context, commit: str, db: Path | None) -> None:
    """Return COMMIT (id or unique prefix) to pending so it is measured again."""
    from gitmetrics.core.use_cases.reset import reset_commit

    result = reset_commit(_ledger_path(ctx, db), commit)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.record is not None
    click.secho(f"↺ {result.record.short_id}", fg="cyan", bold=True, nl=False)
    click.echo(f" {result.previous_state} → {result.record.state.value}")


if __name__ == "__main__":
    cli()
