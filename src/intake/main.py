"""
Intake - CLI Entry Point.

Usage:
    intake match FILE --hours 3          Daypart verdicts for one provider's availability
    intake rank FILE --lat .. --lon ..   Rank providers for a customer location
    intake steps                         List step schemas and their fields
    intake health                        Check configuration
    intake serve                         Start the HTTP API
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="intake",
    help="Intake - multi-step request flow and provider availability matching.",
    add_completion=False,
)
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")) -> None:
    from intake.config import settings

    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )


def _load_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def match(
    file: Path = typer.Argument(..., help="JSON slot list, or a provider object with 'beschikbaarheid'"),
    hours: float = typer.Option(..., "--hours", "-u", min=0, help="Required hours of work"),
) -> None:
    """Show which dayparts a provider's availability can cover."""
    from intake.availability import DAY_CODES, DAYPARTS, daypart_availability

    data = _load_json(file)
    slots = data.get("beschikbaarheid", []) if isinstance(data, dict) else data
    result = daypart_availability(slots, hours)

    if not result:
        console.print("[yellow]No availability on the 07:00-22:00 grid.[/yellow]")
        return

    table = Table(title=f"Availability for {hours:g}h")
    table.add_column("Dag")
    for dp in DAYPARTS:
        table.add_column(f"{dp.code} ({dp.label})", justify="center")

    for day, code in DAY_CODES.items():
        if f"{code}-{DAYPARTS[0].code}" not in result:
            continue
        cells = ["[green]ja[/green]" if result[f"{code}-{dp.code}"] else "[dim]nee[/dim]" for dp in DAYPARTS]
        table.add_row(day, *cells)

    console.print(table)


@app.command()
def rank(
    file: Path = typer.Argument(..., help="JSON list of providers"),
    lat: float = typer.Option(..., "--lat", help="Customer latitude"),
    lon: float = typer.Option(..., "--lon", help="Customer longitude"),
    hours: float = typer.Option(0, "--hours", "-u", min=0, help="Required hours of work"),
    dagdelen: str = typer.Option("", "--dagdelen", "-d", help="Comma-separated dayparts, e.g. ma-ochtend,di-middag"),
) -> None:
    """Rank eligible providers by rating tier and distance."""
    from intake.availability import parse_daypart_selection
    from intake.config import settings
    from intake.providers import present_candidates

    providers = _load_json(file)
    ranked = present_candidates(
        providers,
        lat,
        lon,
        hours,
        parse_daypart_selection(dagdelen),
        max_top=settings.max_top_rated_candidates,
    )

    if not ranked:
        console.print("[yellow]No eligible providers.[/yellow]")
        return

    table = Table(title=f"{len(ranked)} providers")
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Naam")
    table.add_column("Rating", justify="right")
    table.add_column("Afstand", justify="right")

    for position, provider in enumerate(ranked, start=1):
        rating = provider.get("rating")
        name = " ".join(p for p in (provider.get("voornaam"), provider.get("achternaam")) if p)
        table.add_row(
            str(position),
            str(provider.get("id", "")),
            name or "-",
            "-" if rating is None else f"{float(rating):.1f}",
            provider["distance_text"],
        )

    console.print(table)


@app.command()
def steps() -> None:
    """List the step schemas and their fields."""
    from intake.schema import get_schema, list_schemas

    for name in list_schemas():
        schema = get_schema(name)
        table = Table(title=f"{name} ({schema.selector})")
        table.add_column("Veld")
        table.add_column("Type")
        table.add_column("Verplicht", justify="center")
        table.add_column("Persist")
        for f in schema.fields.values():
            table.add_row(f.name, f.validator_type, "ja" if f.required else "", f.persist)
        console.print(table)


@app.command()
def health() -> None:
    """Check configuration."""
    from intake.config import get_settings

    console.print("\n[bold]Intake Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.intake_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Backend: {settings.api_base_url} (timeout {settings.api_timeout_seconds}s)")

        if settings.storage_path:
            console.print(f"✅ File storage at {settings.storage_path}")
        else:
            console.print("ℹ️  In-memory storage (nothing persists between runs)")

        console.print("\n[green]All checks passed![/green]")

    except Exception as e:
        console.print(f"\n[red]Configuration error: {e}[/red]")
        console.print("[dim]Check your .env file.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from intake import __version__

    console.print(f"Intake version {__version__}")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    console.print("\n[bold green]Intake API[/bold green]")
    console.print(f"Starting server on http://localhost:{port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run("intake.web:app", host="0.0.0.0", port=port, reload=reload)


if __name__ == "__main__":
    app()
