"""CLI for Movie Ranker."""

from __future__ import annotations

import asyncio
import logging
import random
from pathlib import Path
from typing import Annotated

import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt
from rich.table import Table

from movie_ranker import __version__
from movie_ranker.core.config import RankingPlan, RankingSettings, load_config
from movie_ranker.core.errors import RankingError
from movie_ranker.ranking import ComparableItem, LeaderboardEntry, RankingSession, elo_to_rating
from movie_ranker.services import VersusService
from movie_ranker.services.reporting import (
    format_progress,
    generate_leaderboard_report,
    write_leaderboard_csv,
)
from movie_ranker.services.storage import DBStore, MemoryStore, RankingStore

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="movie-ranker",
    help="Movie Ranker - Rank your watched movies through versus battles scored with Elo",
    add_completion=False,
)
console = Console()

CHOICES = ["1", "2", "s", "p", "q"]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"movie-ranker v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Movie Ranker CLI."""


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _create_store(db: Path | None, database_url: str | None = None) -> RankingStore:
    if db is not None:
        return DBStore.from_path(db)
    if database_url:
        return DBStore(database_url)
    return MemoryStore()


def _plan_items(plan: RankingPlan) -> list[ComparableItem]:
    return [ComparableItem(id=i.id, rating=i.rating, title=i.title) for i in plan.items]


def _print_leaderboard(title: str, entries: list[LeaderboardEntry]) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Movie")
    table.add_column("Elo", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("W", justify="right")
    table.add_column("L", justify="right")
    for rank, e in enumerate(entries, start=1):
        table.add_row(
            str(rank),
            e.title or str(e.item_id),
            f"{e.rating:.1f}",
            f"{elo_to_rating(e.rating):.1f}",
            str(e.wins),
            str(e.losses),
        )
    console.print(table)


def _export(path: Path | None, session: RankingSession) -> None:
    if path is None:
        return
    entries = session.leaderboard()
    if path.suffix == ".csv":
        write_leaderboard_csv(path, entries)
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        report = generate_leaderboard_report(session.config.name, entries, session.progress())
        path.write_text(report + "\n", encoding="utf-8")
    console.print(f"Leaderboard written to: {path}")


async def _versus_loop(service: VersusService, session: RankingSession) -> None:
    """Ask the user for winners until the session ends or they stop."""
    session_id = session.session_id
    while session.status == "active":
        pair = session.next_pair
        if pair is None:
            console.print("[yellow]No more pairs to compare.[/yellow]")
            break

        left, right = pair
        console.print(f"\n[dim]{format_progress(session.progress())}[/dim]")
        console.print(f"  [bold cyan]1[/bold cyan] {left.label} [dim]({left.rating:.1f})[/dim]")
        console.print(f"  [bold cyan]2[/bold cyan] {right.label} [dim]({right.rating:.1f})[/dim]")
        choice = Prompt.ask(
            "Winner? (1/2, s=skip, p=pause, q=finish)", choices=CHOICES, console=console
        )

        if choice == "p":
            await service.pause(session_id)
            console.print(f"[yellow]Paused.[/yellow] Resume with --resume {session_id}")
            return
        if choice == "q":
            await service.finish(session_id)
            break
        if choice == "s":
            await service.skip_battle(session_id, str(left.id), str(right.id))
            continue

        winner, loser = (left, right) if choice == "1" else (right, left)
        result = await service.record_battle(session_id, str(winner.id), str(loser.id))
        if result.completed:
            console.print("[bold green]Session complete![/bold green]")


@app.command()
def rank(
    plan_path: Annotated[
        Path | None, typer.Argument(help="Path to ranking plan YAML file")
    ] = None,
    db: Annotated[Path | None, typer.Option("--db", help="SQLite file to store the session")] = None,
    resume: Annotated[
        str | None, typer.Option("--resume", help="Continue a stored session by id")
    ] = None,
    export: Annotated[
        Path | None, typer.Option("--export", help="Write the leaderboard (.md or .csv)")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Run an interactive versus ranking session.

    Args:
        plan_path: Ranking plan with the session config and movies.
        db: SQLite file for persistence; in-memory when omitted.
        resume: Id of a stored session to continue (needs --db).
        export: Optional leaderboard export path.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)

    if plan_path is None and resume is None:
        console.print("[red]Error:[/red] Provide a plan file or --resume with --db.")
        raise typer.Exit(1)

    try:
        plan = load_config(plan_path) if plan_path is not None else None
        settings = plan.ranking if plan else RankingSettings()
        store = _create_store(db, plan.database_url if plan else None)
        service = VersusService(store, settings)

        async def _run() -> RankingSession:
            try:
                if resume is not None:
                    session = await service.open_session(resume)
                    if session.status == "paused":
                        session = await service.resume(resume)
                else:
                    session = await service.create_session(plan.session, _plan_items(plan))
                console.print(
                    f"[bold]Session:[/bold] {session.config.name} ({session.session_id})"
                )
                await _versus_loop(service, session)
                return session
            finally:
                await store.close()

        session = asyncio.run(_run())
        _print_leaderboard(session.config.name, session.leaderboard())
        _export(export, session)

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except RankingError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e


@app.command()
def simulate(
    plan_path: Annotated[Path, typer.Argument(help="Path to ranking plan YAML file")],
    seed: Annotated[int | None, typer.Option("--seed", help="Random seed")] = None,
    max_battles: Annotated[
        int, typer.Option("--max-battles", help="Stop after this many battles")
    ] = 100,
    db: Annotated[Path | None, typer.Option("--db", help="SQLite file to store the session")] = None,
    export: Annotated[
        Path | None, typer.Option("--export", help="Write the leaderboard (.md or .csv)")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Run a session with random winners, useful for trying a plan.

    Args:
        plan_path: Ranking plan with the session config and movies.
        seed: Random seed for pairing and winners.
        max_battles: Upper bound on battles, needed for "infinite" plans.
        db: SQLite file for persistence; in-memory when omitted.
        export: Optional leaderboard export path.
        verbose: Enable verbose logging.
    """
    _configure_logging(verbose)

    try:
        plan = load_config(plan_path)
        rng = random.Random(seed if seed is not None else plan.ranking.seed)  # noqa: S311
        store = _create_store(db, plan.database_url)
        service = VersusService(store, plan.ranking, rng=rng)

        async def _run() -> RankingSession:
            try:
                session = await service.create_session(plan.session, _plan_items(plan))
                battles = 0
                while session.status == "active" and battles < max_battles:
                    pair = session.next_pair
                    if pair is None:
                        break
                    winner, loser = pair if rng.random() < 0.5 else (pair[1], pair[0])
                    await service.record_battle(
                        session.session_id, str(winner.id), str(loser.id)
                    )
                    battles += 1
                return session
            finally:
                await store.close()

        session = asyncio.run(_run())
        console.print(f"[bold]Session:[/bold] {session.config.name} ({session.session_id})")
        console.print(f"Progress: {format_progress(session.progress())}")
        console.print(f"Status: {session.status}")
        _print_leaderboard(session.config.name, session.leaderboard())
        _export(export, session)

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except RankingError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e


@app.command()
def validate(
    plan_path: Annotated[Path, typer.Argument(help="Path to ranking plan YAML file")],
) -> None:
    """Validate a ranking plan without running it.

    Args:
        plan_path: Path to YAML plan file.
    """
    try:
        plan = load_config(plan_path)
        progress = RankingSession.start(
            _plan_items(plan), plan.session, settings=plan.ranking
        ).progress()
        console.print("[green]Plan is valid![/green]")
        console.print(f"  Session: {plan.session.name}")
        console.print(f"  Movies: {len(plan.items)}")
        console.print(f"  Battle limit: {plan.session.battle_limit_type}")
        console.print(f"  Target battles: {progress.target_battles or 'none'}")
        console.print(f"  Elo handling: {plan.session.elo_handling}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except RankingError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


def _existing_db(db: Path) -> DBStore:
    """Open a database that must already exist, instead of creating an empty one."""
    if not db.exists():
        console.print(f"[red]Error:[/red] Database file not found: {db}")
        raise typer.Exit(1)
    return DBStore.from_path(db)


@app.command()
def leaderboard(
    session_id: Annotated[str, typer.Argument(help="Stored session id")],
    db: Annotated[Path, typer.Option("--db", help="SQLite file holding the session")],
    export: Annotated[
        Path | None, typer.Option("--export", help="Write the leaderboard (.md or .csv)")
    ] = None,
) -> None:
    """Show the leaderboard of a stored session."""
    store = _existing_db(db)
    service = VersusService(store)

    async def _run() -> RankingSession:
        try:
            return await service.open_session(session_id)
        finally:
            await store.close()

    try:
        session = asyncio.run(_run())
    except RankingError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e

    console.print(f"Progress: {format_progress(session.progress())} ({session.status})")
    _print_leaderboard(session.config.name, session.leaderboard())
    _export(export, session)


@app.command()
def sessions(
    db: Annotated[Path, typer.Option("--db", help="SQLite file holding the sessions")],
) -> None:
    """List stored sessions, most recently updated first."""
    store = _existing_db(db)

    async def _run() -> list:
        try:
            return await store.list_sessions()
        finally:
            await store.close()

    records = asyncio.run(_run())
    if not records:
        console.print("No sessions stored.")
        return

    for r in records:
        limit = r.config.battle_limit_type
        if r.config.battle_limit:
            limit += f" ({r.config.battle_limit})"
        updated = r.updated_at.strftime("%Y-%m-%d %H:%M")
        console.print(
            f"{r.session_id}  {r.config.name}  {r.status}  {limit}  updated {updated}",
            markup=False,
            highlight=False,
        )


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Movie Ranker[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Rank interactively (in memory)")
    console.print("  movie-ranker rank plan.yaml\n")

    console.print("  # Rank and keep the session")
    console.print("  movie-ranker rank plan.yaml --db ranker.db\n")

    console.print("  # Continue a paused session")
    console.print("  movie-ranker rank --db ranker.db --resume <session-id>\n")

    console.print("  # Try a plan with random winners")
    console.print("  movie-ranker simulate plan.yaml --seed 7 --export results.md\n")

    console.print("  # Validate a plan")
    console.print("  movie-ranker validate plan.yaml")


if __name__ == "__main__":
    app()
