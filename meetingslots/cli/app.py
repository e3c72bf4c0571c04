"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.google_authenticator import GoogleAuthenticator
from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockAuthenticator, MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SchedulingError
from ..domain.models import SchedulingFailure
from ..services.meeting_suggester import MeetingSuggestionService

app = typer.Typer(
    name="meetingslots",
    help="Suggest free meeting slots across Google calendars",
    add_completion=False
)

console = Console()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Suggest free meeting slots across Google calendars.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def _load_config(config_file: Optional[Path], required: bool = True) -> AppConfig:
    """
    Load the YAML config, or built-in defaults when the file is optional.
    """
    config_path = config_file or get_default_config_path()

    if not required and not config_path.exists():
        return AppConfig()

    return AppConfig.load_from_yaml(config_path)


def _build_authenticator(config: AppConfig, mock: bool = False):
    if mock:
        return MockAuthenticator()

    return GoogleAuthenticator(
        client_id=config.google.client_id,
        client_secret=config.google.client_secret,
        refresh_token=config.google.refresh_token
    )


@app.command()
def suggest(
    calendars: Annotated[Optional[List[str]], typer.Argument(help="Calendar names or IDs (e.g. 'primary team'). Defaults to the configured calendars.")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    length: Annotated[Optional[int], typer.Option("--length", "-l", help="Meeting length in minutes")] = None,
    start_hour: Annotated[Optional[int], typer.Option("--start-hour", help="Working hours start (0-23)")] = None,
    end_hour: Annotated[Optional[int], typer.Option("--end-hour", help="Working hours end (0-23)")] = None,
    timezone: Annotated[Optional[str], typer.Option("--timezone", "-z", help="IANA timezone, e.g. America/Sao_Paulo")] = None,
    slots_per_day: Annotated[Optional[int], typer.Option("--slots-per-day", "-n", help="Maximum slots per working day")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-d", help="Number of working days to examine")] = None,
    look_ahead: Annotated[Optional[int], typer.Option("--look-ahead", help="Maximum calendar days to search ahead")] = None,
    holidays: Annotated[Optional[List[str]], typer.Option("--holiday", help="Bank holiday (YYYY-MM-DD), repeatable")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD). Defaults to tomorrow.")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use mock data and skip authentication.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print slots as JSON.")] = False,
):
    """
    Suggest free meeting slots.

    Examples:

        # Next three working days, one slot each
        meetingslots suggest

        # Two 30-minute slots per day across two calendars
        meetingslots suggest primary team --length 30 --slots-per-day 2

        # Start on a given date, skip a bank holiday
        meetingslots suggest --start 2026-11-02 --holiday 2026-11-02

        # Use mock data (for testing without Google credentials)
        meetingslots suggest --mock --json
    """
    try:
        config = _load_config(config_file, required=not mock)

        request = config.build_request(
            calendars or [],
            meeting_length_minutes=length,
            working_hours_start=start_hour,
            working_hours_end=end_hour,
            timezone=timezone,
            slots_per_day=slots_per_day,
            days_to_search=days,
            max_days_to_look_ahead=look_ahead,
            bank_holidays=holidays or [],
            start_date=start
        )

        if not as_json:
            console.print("[bold cyan]Searching free slots[/bold cyan]")
            console.print(f"   Calendars: {', '.join(request.calendar_ids)}")
            console.print(f"   Meeting length: {request.meeting_length_minutes} minutes")
            console.print(f"   Working hours: {request.working_hours_start}:00 - {request.working_hours_end}:00 ({request.timezone})")
            if mock:
                console.print("[yellow]MOCK MODE: using mock calendar data[/yellow]")
            console.print()

        if mock:
            client = MockCalendarClient()
        else:
            access_token = _build_authenticator(config).get_access_token(force_refresh=False)
            client = GoogleCalendarClient(access_token=access_token)

        service = MeetingSuggestionService(calendar_client=client)
        outcome = asyncio.run(service.suggest_meetings(request))

    except (FileNotFoundError, ValueError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if isinstance(outcome, SchedulingFailure):
        if as_json:
            typer.echo(json.dumps(outcome.to_dict(), indent=2))
        else:
            console.print(f"[bold red]Error ({outcome.error}):[/bold red] {outcome.message}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(outcome.to_list(), indent=2))
        return

    if not outcome.slots:
        console.print(
            "[yellow]No free slots found.[/yellow]\n"
            "Try more days, a longer look-ahead or a shorter meeting."
        )
        return

    console.print(f"[bold green]{len(outcome)} slot(s) found:[/bold green]\n")
    for slot in outcome:
        console.print(f"  {slot.format_display(outcome.timezone)}")
    console.print()


@app.command()
def list_calendars(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all configured calendar aliases.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.calendars:
        console.print("[yellow]No calendars defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured calendars",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("Calendar ID", style="dim")
    table.add_column("Default", justify="center")

    for calendar in config.calendars:
        is_default = calendar.name in config.default_calendars or calendar.calendar_id in config.default_calendars
        table.add_row(calendar.name, calendar.calendar_id, "x" if is_default else "")

    console.print()
    console.print(table)
    console.print()


@app.command()
def test_auth(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Ignore the cached access token"
    )
):
    """
    Test Google Calendar authentication.
    """
    try:
        config = _load_config(config_file, required=False)

        console.print("\n[bold]Testing Google Calendar authentication...[/bold]\n")

        access_token = _build_authenticator(config).get_access_token(force_refresh=force)

        client = GoogleCalendarClient(access_token=access_token)
        calendar_info = client.test_connection()

        console.print(Panel.fit(
            f"[bold green]Authentication successful![/bold green]\n\n"
            f"[bold]Calendar:[/bold] {calendar_info.get('summary', 'N/A')}\n"
            f"[bold]Timezone:[/bold] {calendar_info.get('timeZone', 'N/A')}",
            title="Connection test"
        ))
        console.print()

    except (FileNotFoundError, ValueError, SchedulingError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise typer.Exit(1)


@app.command()
def clear_cache(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    Clear the access token cache.
    """
    try:
        config = _load_config(config_file, required=False)
        _build_authenticator(config).clear_cache()
    except (FileNotFoundError, ValueError, SchedulingError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
