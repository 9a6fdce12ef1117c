"""Command-line interface for tagtickets."""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from tagtickets.exceptions import ConfigurationError, TagTicketsError
from tagtickets.extraction import GitCommitStore
from tagtickets.logging_config import setup_logging
from tagtickets.models import ReleaseReport, ReportEntry, RepositoryConfig, Settings
from tagtickets.releases import ReleaseMapper, ReportAssembler, TicketExtractor, parse_age

app = typer.Typer(
    name="tagtickets",
    help="Show which issue-tracker tickets landed in which release tag",
    add_completion=False,
)
console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def _build_mapper(
    repo_path: Path,
    settings: Settings,
    ticket_pattern: Optional[str],
    include_unreleased: bool,
    timeout: Optional[float],
) -> ReleaseMapper:
    store = GitCommitStore(RepositoryConfig(repo_path=repo_path))
    extractor = TicketExtractor(ticket_pattern or settings.ticket_pattern)
    return ReleaseMapper(
        store,
        extractor=extractor,
        include_unreleased=include_unreleased,
        unreleased_label=settings.unreleased_label,
        timeout=timeout if timeout is not None else settings.timeout_seconds,
    )


def _resolve_since(since: Optional[datetime], age: Optional[str]) -> Optional[datetime]:
    """Combine --since and --age, keeping the later of the two bounds."""
    if since is not None and since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    if not age:
        return since

    cutoff = datetime.now(timezone.utc) - parse_age(age)
    if since is None or cutoff > since:
        return cutoff
    return since


def _render_entry(entry: ReportEntry) -> None:
    label = escape(entry.label)
    if entry.unreleased:
        label = f"{label} [dim](untagged)[/dim]"
    if not entry.complete:
        label = f"{label} [yellow](incomplete)[/yellow]"

    if entry.tickets:
        console.print(f"[bold green]{label}[/bold green]")
    else:
        console.print(f"[dim]{label} (no entries)[/dim]")

    if entry.commits:
        for line in entry.commits:
            tickets = ", ".join(line.tickets) if line.tickets else "[dim](no tickets)[/dim]"
            console.print(f"  [cyan]{line.short_id}[/cyan] {tickets}  [dim]{escape(line.summary[:60])}[/dim]")
        return

    for index, ticket in enumerate(entry.tickets):
        if entry.ticket_urls:
            console.print(f"  [bold italic]{ticket:<10}[/bold italic] | {entry.ticket_urls[index]}")
        else:
            console.print(f"  [bold italic]{ticket}[/bold italic]")


def _render_warnings(warnings: List[str]) -> None:
    console.print(f"\n[bold yellow]Warnings ({len(warnings)}):[/bold yellow]")
    for warning in warnings:
        console.print(f"  [yellow]• {escape(warning)}[/yellow]")


def _render_report(report: ReleaseReport) -> None:
    if not report.entries:
        console.print("[dim]No releases found.[/dim]")
    # Newest release first
    for entry in reversed(report.entries):
        _render_entry(entry)

    if report.partial:
        console.print("\n[bold yellow]Results are partial: the walk was aborted.[/bold yellow]")
    if report.warnings:
        _render_warnings(report.warnings)


@app.command()
def releases(
    repo_path: Path = typer.Argument(Path("."), help="Path to Git repository"),
    filter_text: Optional[str] = typer.Option(None, "--filter", "-f", help="Filter by tag name or ticket key"),
    since: Optional[datetime] = typer.Option(None, "--since", formats=DATE_FORMATS, help="Only releases tagged on or after this date"),
    until: Optional[datetime] = typer.Option(None, "--until", formats=DATE_FORMATS, help="Only releases tagged on or before this date"),
    age: Optional[str] = typer.Option(None, "--age", "-t", help="Maximum age of releases, e.g. 1y 2mon 3w 4d 5h 6m 7s"),
    ticket_pattern: Optional[str] = typer.Option(None, "--ticket-pattern", "-r", help="Regex matching ticket keys"),
    ticket_url: Optional[str] = typer.Option(None, "--ticket-url", "-u", help="Ticket URL; {ticket} is replaced, else the key is appended"),
    show_commits: bool = typer.Option(False, "--commits", "-c", help="Show the commits referencing each ticket"),
    all_commits: bool = typer.Option(False, "--all", "-a", help="Show all commits, not just those with tickets"),
    no_unreleased: bool = typer.Option(False, "--no-unreleased", help="Hide commits after the newest tag"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Abort the walk after this many seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """List releases and the tickets each one introduced."""
    settings = Settings()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_format)

    try:
        mapper = _build_mapper(
            repo_path,
            settings,
            ticket_pattern,
            include_unreleased=settings.include_unreleased and not no_unreleased,
            timeout=timeout,
        )
        assembler = ReportAssembler(
            ticket_url=ticket_url or settings.ticket_url,
            show_commits=show_commits,
            all_commits=all_commits,
        )
        if until is not None and until.tzinfo is None:
            until = until.replace(tzinfo=timezone.utc)
        report = mapper.build_report(
            assembler,
            name_filter=filter_text,
            since=_resolve_since(since, age),
            until=until,
        )
    except TagTicketsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(e.message)}")
        raise typer.Exit(1)

    if json_output:
        typer.echo(report.model_dump_json(indent=2))
    else:
        _render_report(report)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Show which issue-tracker tickets landed in which release tag.

    Without a command, lists the releases of the current directory.
    """
    if ctx.invoked_subcommand is None:
        releases(
            repo_path=Path("."),
            filter_text=None,
            since=None,
            until=None,
            age=None,
            ticket_pattern=None,
            ticket_url=None,
            show_commits=False,
            all_commits=False,
            no_unreleased=False,
            json_output=False,
            timeout=None,
            verbose=False,
        )


@app.command()
def tickets(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    tag: str = typer.Argument(..., help="Release tag name"),
    ticket_pattern: Optional[str] = typer.Option(None, "--ticket-pattern", "-r", help="Regex matching ticket keys"),
) -> None:
    """Print the tickets introduced by one release, one per line."""
    settings = Settings()
    setup_logging(settings.log_level, settings.log_format)

    try:
        mapper = _build_mapper(repo_path, settings, ticket_pattern, include_unreleased=False, timeout=None)
        result = mapper.map_releases()
        release = result.get(tag)
        if release is None:
            raise ConfigurationError(f"Tag not found: {tag}")
    except TagTicketsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(e.message)}")
        raise typer.Exit(1)

    for key in release.ticket_keys:
        typer.echo(key)
    for warning in release.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")


if __name__ == "__main__":
    app()
