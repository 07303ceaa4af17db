"""
Main CLI application using Typer.
"""

import asyncio
from contextlib import contextmanager
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Iterator, NoReturn, Optional, TypeVar, Annotated

import pendulum
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..adapters.holiday_client import HolidayApiClient
from ..adapters.memory_store import InMemoryReservationStore
from ..adapters.notifiers import build_subscribers
from ..adapters.sql_store import SqlReservationStore
from ..config import AppConfig, get_default_config_path
from ..domain.calendar_policy import CalendarPolicy, HolidayCalendar
from ..domain.exceptions import (
    CalendarSourceError,
    InvalidInput,
    NoAvailabilityError,
    NotFound,
    SlotUnavailable,
    StorageFailure,
)
from ..logging_config import setup_logging
from ..services.cancellation import CancellationHub
from ..services.reservations import ReservationService
from ..services.store import ReservationStore
from ..validators import (
    parse_booking_date,
    resolve_start_date,
    validate_confirmation_code,
    validate_count,
    validate_email,
)

T = TypeVar("T")

EXIT_UNAVAILABLE = 1
EXIT_INVALID_INPUT = 2
EXIT_STORAGE = 3

app = typer.Typer(
    name="dayslot",
    help="Book single-slot-per-day appointments",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./dayslot.yaml"),
]
MemoryOption = Annotated[
    bool,
    typer.Option("--memory", help="Use a throwaway in-memory store instead of the database."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    log_file: Annotated[Optional[Path], typer.Option("--log-file", help="Also write logs to this file.")] = None,
):
    """
    Find free dates, book them, look bookings up and cancel them.
    """
    setup_logging(verbose=verbose, log_file=log_file)


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the given config file; without one, use ./dayslot.yaml or defaults."""
    try:
        if config_file is not None:
            return AppConfig.load_from_yaml(config_file)

        default_path = get_default_config_path()
        if default_path.exists():
            return AppConfig.load_from_yaml(default_path)
        return AppConfig()
    except FileNotFoundError as e:
        _fail(str(e), EXIT_INVALID_INPUT)
    except ValueError as e:
        # pydantic ValidationError and YAML problems
        _fail(f"Invalid configuration: {e}", EXIT_INVALID_INPUT)


def _today() -> pendulum.Date:
    return pendulum.now("UTC").date()


def _build_policy(config: AppConfig, years: Iterable[int]) -> CalendarPolicy:
    """Combine configured holiday dates with the remote source, if enabled."""
    holidays = HolidayCalendar(config.holidays.dates)

    if config.holidays.fetch_remote:
        client = HolidayApiClient(base_url=config.holidays.api_url)
        holidays = holidays.merge(
            client.build_calendar(config.holidays.country_code, years)
        )

    return CalendarPolicy(holidays, weekend_days=config.exclude_days)


def _open_store(config: AppConfig, memory: bool) -> ReservationStore:
    if memory:
        return InMemoryReservationStore()
    return SqlReservationStore(config.database_url)


def _build_service(config: AppConfig, store: ReservationStore, policy: CalendarPolicy) -> ReservationService:
    """Wire store, policy and subscribers. Subscribers are fixed from here on."""
    hub = CancellationHub(store, build_subscribers(config))
    hub.seal()

    return ReservationService(
        store,
        policy,
        hub,
        booking_hour=config.booking_hour,
        horizon_days=config.search_horizon_days,
        max_attempts=config.max_booking_attempts,
    )


def _run(
    config: AppConfig,
    operation: Callable[[ReservationService], Awaitable[T]],
    *,
    memory: bool = False,
    years: Iterable[int] = (),
) -> T:
    """Open a service, run one operation on it and close it again."""
    # Holiday data is fetched before the event loop starts
    policy = _build_policy(config, years)

    async def runner() -> T:
        store = _open_store(config, memory)
        try:
            if isinstance(store, SqlReservationStore):
                await store.create_all()
            return await operation(_build_service(config, store, policy))
        finally:
            await store.close()

    return asyncio.run(runner())


def _fail(message: str, exit_code: int) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(exit_code)


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Map the reservation error taxonomy to messages and exit codes."""
    try:
        yield
    except InvalidInput as e:
        _fail(str(e), EXIT_INVALID_INPUT)
    except (SlotUnavailable, NoAvailabilityError, NotFound) as e:
        _fail(str(e), EXIT_UNAVAILABLE)
    except (StorageFailure, CalendarSourceError) as e:
        _fail(str(e), EXIT_STORAGE)


@app.command()
def available(
    start: Annotated[Optional[str], typer.Option("--start", help="Search after this date (YYYY-MM-DD). Defaults to today.")] = None,
    count: Annotated[int, typer.Option("--count", "-n", help="Number of dates to find.")] = 1,
    config_file: ConfigOption = None,
    memory: MemoryOption = False,
):
    """
    Show the next available dates.

    Examples:

        dayslot available -n 3
        dayslot available --start 2025-03-07 -n 2
    """
    with _handle_errors():
        config = _load_config(config_file)
        n = validate_count(count, config.max_available_dates)
        start_date = resolve_start_date(start, _today())
        last_year = start_date.add(days=config.search_horizon_days).year

        dates = _run(
            config,
            lambda service: service.get_available_dates(start_date, n),
            memory=memory,
            years=range(start_date.year, last_year + 1),
        )

    console.print(f"[bold green]✓ {len(dates)} available date(s) after {start_date.isoformat()}:[/bold green]")
    for day in dates:
        console.print(f"  {day.format('dddd')}, {day.isoformat()}")


@app.command()
def reserve(
    date: Annotated[str, typer.Argument(help="Date to book (YYYY-MM-DD).")],
    attendee: Annotated[str, typer.Argument(help="Attendee e-mail address.")],
    config_file: ConfigOption = None,
    memory: MemoryOption = False,
):
    """
    Book a date and print the confirmation code.
    """
    with _handle_errors():
        config = _load_config(config_file)
        day = parse_booking_date(date, _today())
        email = validate_email(attendee)

        code = _run(
            config,
            lambda service: service.create_reservation(day, email),
            memory=memory,
            years=[day.year],
        )

    console.print(f"[bold green]✓ Reserved {day.isoformat()}[/bold green]")
    console.print(f"Confirmation code: [bold]{code}[/bold]")


@app.command()
def lookup(
    attendee: Annotated[str, typer.Argument(help="Attendee e-mail address.")],
    config_file: ConfigOption = None,
    memory: MemoryOption = False,
):
    """
    List all reservations of an attendee.
    """
    with _handle_errors():
        config = _load_config(config_file)
        email = validate_email(attendee)
        reservations = _run(
            config,
            lambda service: service.lookup_reservations(email),
            memory=memory,
        )

    table = Table(
        title=f"Reservations for {email}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Code", style="bold yellow")
    table.add_column("Date")
    table.add_column("Starts (UTC)")
    table.add_column("Status")
    table.add_column("Booked at (UTC)", style="dim")

    for reservation in reservations:
        status_style = "green" if reservation.is_active() else "red"
        table.add_row(
            reservation.confirmation_code,
            reservation.booking_date.isoformat(),
            reservation.starts_at.format("HH:mm"),
            f"[{status_style}]{reservation.status.value}[/{status_style}]",
            reservation.created_at.to_datetime_string(),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def cancel(
    code: Annotated[str, typer.Argument(help="Confirmation code of the reservation.")],
    config_file: ConfigOption = None,
    memory: MemoryOption = False,
):
    """
    Cancel a reservation and notify the configured recipients.
    """
    with _handle_errors():
        config = _load_config(config_file)
        code = validate_confirmation_code(code)
        cancelled = _run(
            config,
            lambda service: service.cancel_reservation(code),
            memory=memory,
        )

    if not cancelled:
        console.print("[yellow]Confirmation code not found.[/yellow]")
        raise typer.Exit(EXIT_UNAVAILABLE)

    console.print("[green]✓ Reservation cancelled successfully.[/green]")


@app.command()
def holidays(
    year: Annotated[Optional[int], typer.Option("--year", help="Calendar year. Defaults to the current year.")] = None,
    config_file: ConfigOption = None,
):
    """
    List the holidays that block bookings.
    """
    with _handle_errors():
        config = _load_config(config_file)
        year = year or _today().year
        policy = _build_policy(config, [year])

    days = [day for day in policy.holidays if day.year == year]
    if not days:
        console.print(f"[yellow]No holidays configured for {year}.[/yellow]")
        return

    table = Table(title=f"Holidays {year}", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Weekday", style="dim")
    for day in days:
        table.add_row(day.isoformat(), day.format("dddd"))

    console.print()
    console.print(table)
    console.print()


@app.command()
def init_db(
    config_file: ConfigOption = None,
):
    """
    Create the reservation tables.
    """
    with _handle_errors():
        config = _load_config(config_file)
        store = SqlReservationStore(config.database_url)

        async def create() -> None:
            try:
                await store.create_all()
            finally:
                await store.close()

        asyncio.run(create())

    console.print(f"[green]✓ Database ready:[/green] {config.database_url}")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]dayslot[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
