"""Podium CLI — the main entry point for the athlete registry."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from podium import __version__
from podium.config import get_settings
from podium.log import configure_logging
from podium.registry.errors import RegistryError

console = Console()


def registry_dir_option(f):
    return click.option(
        "--registry-dir",
        "-r",
        default=lambda: get_settings().REGISTRY_DIR,
        show_default=".podium_registry",
        help="Registry directory",
    )(f)


def caller_option(f):
    return click.option(
        "--caller",
        "-c",
        default=lambda: get_settings().CALLER,
        help="Caller identity (defaults to $PODIUM_CALLER)",
    )(f)


@contextmanager
def _registry_errors():
    try:
        yield
    except RegistryError as e:
        console.print(f"[red]{e.kind}:[/] {e.message}")
        raise click.exceptions.Exit(1) from e


def _store(registry_dir: str):
    from podium.registry.store import RegistryStore

    return RegistryStore(registry_dir)


def _open(registry_dir: str):
    return _store(registry_dir).open()


def _timestamp(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def _flag(value: bool) -> str:
    return "[green]Y[/]" if value else "[red]N[/]"


@click.group()
@click.version_option(version=__version__)
def main():
    """Podium — permissioned registry of athletes and achievements.

    Athletes register themselves and record achievements; the registry
    owner verifies them.
    """
    configure_logging(get_settings().LOG_LEVEL)


# ── Init ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--owner", "-o", default=None, help="Registry owner (defaults to --caller)")
@caller_option
@registry_dir_option
def init(owner: str | None, caller: str, registry_dir: str):
    """Create an empty registry owned by OWNER."""
    with _registry_errors():
        registry = _store(registry_dir).create(owner or caller)

    console.print(f"\n[bold blue]Podium[/] — Registry initialized in {registry_dir}")
    console.print(f"  Owner: [cyan]{registry.owner}[/]")


# ── Mutations ────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.argument("sport")
@click.argument("age", type=int)
@click.option("--country", default="", help="Country the athlete represents")
@caller_option
@registry_dir_option
def register(name: str, sport: str, age: int, country: str, caller: str, registry_dir: str):
    """Register the caller's athlete profile."""
    with _registry_errors():
        with _store(registry_dir).transaction() as registry:
            athlete_id = registry.register_athlete(caller, name, sport, age, country)

    console.print(f"  Registered athlete [cyan]{athlete_id}[/]: {name} ({sport})")


@main.command(name="add-achievement")
@click.argument("athlete_id", type=int)
@click.argument("title")
@click.option("--description", "-d", default="", help="Achievement details")
@caller_option
@registry_dir_option
def add_achievement(athlete_id: int, title: str, description: str, caller: str, registry_dir: str):
    """Record an achievement for ATHLETE_ID."""
    with _registry_errors():
        with _store(registry_dir).transaction() as registry:
            achievement_id = registry.add_achievement(caller, athlete_id, title, description)

    console.print(f"  Added achievement [cyan]{athlete_id}/{achievement_id}[/]: {title}")


@main.command()
@click.argument("athlete_id", type=int)
@click.argument("achievement_id", type=int, default=0)
@caller_option
@registry_dir_option
def verify(athlete_id: int, achievement_id: int, caller: str, registry_dir: str):
    """Verify ATHLETE_ID, or one of its achievements when ACHIEVEMENT_ID is given.

    Only the registry owner may verify.
    """
    with _registry_errors():
        with _store(registry_dir).transaction() as registry:
            registry.verify(caller, athlete_id, achievement_id)

    if achievement_id:
        console.print(f"  [green]v[/] Achievement {athlete_id}/{achievement_id} verified")
    else:
        console.print(f"  [green]v[/] Athlete {athlete_id} verified")


@main.command()
@click.argument("roster_path", type=click.Path(exists=True, dir_okay=False))
@caller_option
@registry_dir_option
def seed(roster_path: str, caller: str, registry_dir: str):
    """Load athletes and achievements from a YAML roster.

    The caller performs any verifications the roster requests.
    """
    from podium.seed import apply_roster, load_roster

    console.print(f"\n[bold blue]Podium[/] — Seeding from: {roster_path}\n")

    with _registry_errors():
        entries = load_roster(roster_path)
        with _store(registry_dir).transaction() as registry:
            report = apply_roster(registry, entries, operator=caller)

    console.print(f"  Registered: {len(report.registered)} athletes")
    console.print(f"  Achievements: {report.achievements_added}")
    console.print(f"  Verified: {report.verified}")
    for skipped in report.skipped_callers:
        console.print(f"  [yellow]![/] Skipped {skipped} (already registered)")


# ── Queries ──────────────────────────────────────────────────────────


@main.command()
@click.argument("athlete_id", type=int)
@registry_dir_option
def show(athlete_id: int, registry_dir: str):
    """Show an athlete's profile and achievements."""
    with _registry_errors():
        registry = _open(registry_dir)
        athlete = registry.get_athlete_details(athlete_id)
        achievements = registry.list_achievements(athlete_id)

    verified = "[green]verified[/]" if athlete.is_verified else "[yellow]unverified[/]"
    active = "active" if athlete.is_active else "[red]inactive[/]"
    console.print(
        Panel(
            f"[bold]{athlete.name}[/] ({verified}, {active})\n"
            f"Sport: {athlete.sport}\n"
            f"Age: {athlete.age}\n"
            f"Country: {athlete.country or '-'}\n"
            f"Owner: {athlete.owner}\n"
            f"Achievements: {athlete.achievement_count}",
            title=f"Athlete {athlete.id}",
        )
    )

    if achievements:
        table = Table(title="Achievements")
        table.add_column("ID", style="dim", width=4)
        table.add_column("Title", style="cyan")
        table.add_column("Verified", justify="center")
        table.add_column("Recorded")
        for a in achievements:
            table.add_row(str(a.id), a.title, _flag(a.is_verified), _timestamp(a.created_at))
        console.print(table)


@main.command()
@click.argument("athlete_id", type=int)
@click.argument("achievement_id", type=int)
@registry_dir_option
def achievement(athlete_id: int, achievement_id: int, registry_dir: str):
    """Show a single achievement."""
    with _registry_errors():
        registry = _open(registry_dir)
        a = registry.get_achievement(athlete_id, achievement_id)

    verified = "[green]verified[/]" if a.is_verified else "[yellow]unverified[/]"
    console.print(
        Panel(
            f"[bold]{a.title}[/] ({verified})\n"
            f"{a.description or ''}\n"
            f"Recorded: {_timestamp(a.created_at)}",
            title=f"Achievement {a.athlete_id}/{a.id}",
        )
    )


@main.command(name="list")
@registry_dir_option
def list_athletes(registry_dir: str):
    """List all registered athletes."""
    with _registry_errors():
        registry = _open(registry_dir)
        athletes = registry.list_athletes()

    if not athletes:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Athletes ({len(athletes)})")
    table.add_column("ID", style="dim", width=4)
    table.add_column("Name", style="cyan")
    table.add_column("Sport")
    table.add_column("Country")
    table.add_column("Achievements", justify="right")
    table.add_column("Verified", justify="center")

    for a in athletes:
        table.add_row(
            str(a.id), a.name, a.sport, a.country, str(a.achievement_count), _flag(a.is_verified)
        )

    console.print(table)


@main.command()
@registry_dir_option
def total(registry_dir: str):
    """Print the number of registered athletes."""
    with _registry_errors():
        registry = _open(registry_dir)
        console.print(registry.get_total_athletes())


@main.command()
@caller_option
@registry_dir_option
def whoami(caller: str, registry_dir: str):
    """Print the caller's athlete id (0 if not registered)."""
    with _registry_errors():
        registry = _open(registry_dir)
        console.print(registry.get_my_athlete_id(caller))


@main.command()
@click.option("--event", "-e", default=None, help="Only show this notification type")
@click.option("--athlete", "-a", "athlete_id", type=int, default=None, help="Only show this athlete")
@click.option("--limit", "-n", default=50, help="Maximum entries to show")
@registry_dir_option
def events(event: str | None, athlete_id: int | None, limit: int, registry_dir: str):
    """Show the notification log, newest first."""
    from podium.registry.events import event_to_dict

    entries = _store(registry_dir).events.read(
        event=event, athlete_id=athlete_id, limit=limit
    )

    if not entries:
        console.print("[yellow]No events recorded.[/]")
        return

    table = Table(title=f"Events ({len(entries)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Event", style="cyan")
    table.add_column("Details")
    table.add_column("Logged")

    for entry in entries:
        payload = event_to_dict(entry.event)
        name = payload.pop("event")
        details = ", ".join(f"{k}={v}" for k, v in payload.items())
        table.add_row(str(entry.sequence), name, details, entry.timestamp)

    console.print(table)


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default=lambda: get_settings().HOST, help="Bind address")
@click.option("--port", default=lambda: get_settings().PORT, type=int, help="Bind port")
def serve(host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    console.print(f"\n[bold blue]Podium[/] — Serving on http://{host}:{port} (docs at /docs)\n")
    uvicorn.run(
        "web.backend.app.main:app",
        host=host,
        port=port,
        log_level=get_settings().LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
