"""CLI entry point using Typer."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from morningquest import __version__

app = typer.Typer(
    name="morningquest",
    help="Gamified morning routine timer for kids",
    no_args_is_help=True,
)
console = Console()

PROFILE_OPTION = typer.Option("child1", "--profile", "-p", help="Child profile id")
DATA_DIR_OPTION = typer.Option(None, "--data-dir", help="Directory holding profile data")

if TYPE_CHECKING:
    from morningquest.config.settings import MorningQuestSettings
    from morningquest.routine import RoutineManager


@contextmanager
def _open_profile(profile: str, data_dir: Path | None) -> Iterator[tuple[MorningQuestSettings, RoutineManager]]:
    """Load settings and the profile's manager; always closes the event log."""
    from morningquest.config.settings import load_settings
    from morningquest.logging.events import EventLog
    from morningquest.routine import RoutineManager
    from morningquest.storage import ProfileDir

    try:
        settings = load_settings(data_dir=data_dir)
        profile_dir = ProfileDir(profile, base=settings.data_dir)
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from None

    event_log = EventLog(profile_dir)
    try:
        yield settings, RoutineManager(profile_dir, settings, event_log=event_log)
    finally:
        event_log.close()


def _require(ok: bool, manager: RoutineManager, message: str) -> None:
    from morningquest.routine import AppMode

    if ok:
        return
    if manager.mode == AppMode.REWARD:
        console.print("[magenta]A reward is waiting![/magenta] Claim it first: [bold]morningquest claim[/bold]")
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _show_routine(manager: RoutineManager) -> None:
    from morningquest.ui.console import ConsoleUI

    ui = ConsoleUI(console)
    ui.header(manager.state, manager.profile_id)
    ui.task_table(manager.state, manager.estimated_finish())


@app.command()
def show(profile: str = PROFILE_OPTION, data_dir: Path = DATA_DIR_OPTION) -> None:
    """Show the child's routine, rank and stamp card."""
    from morningquest.ui.console import ConsoleUI

    with _open_profile(profile, data_dir) as (_, manager):
        _show_routine(manager)
        ConsoleUI(console).stamp_card(manager.state.stamp_card, manager.ledger)


@app.command()
def name(
    new_name: str = typer.Argument(..., help="Child's display name"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Rename the child."""
    with _open_profile(profile, data_dir) as (_, manager):
        _require(manager.rename(new_name), manager, "Name cannot be empty")
        console.print(f"[green]Hello, {manager.state.name}![/green]")


@app.command()
def departure(
    time: str = typer.Argument(..., help="Departure time as HH:MM"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Set the departure time."""
    with _open_profile(profile, data_dir) as (_, manager):
        _require(manager.set_departure_time(time), manager, f"Invalid time: {time} (expected HH:MM)")
        console.print(f"[green]Departure set to {manager.state.departure_time}[/green]")


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    minutes: int = typer.Option(5, "--minutes", "-m", help="Planned minutes"),
    icon: str = typer.Option("circle", "--icon", "-i", help="Icon name"),
    color: str = typer.Option("#cbd5e1", "--color", "-c", help="Hex color"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Add a task before the departure step."""
    with _open_profile(profile, data_dir) as (_, manager):
        task = manager.add_task(title, minutes, icon, color)
        _require(task is not None, manager, "Cannot edit tasks right now")
        _show_routine(manager)


@app.command()
def remove(
    task_id: str = typer.Argument(..., help="Task id"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Delete a task."""
    with _open_profile(profile, data_dir) as (_, manager):
        _require(manager.remove_task(task_id), manager, f"No task with id {task_id}")
        _show_routine(manager)


@app.command()
def move(
    task_id: str = typer.Argument(..., help="Task id"),
    direction: str = typer.Argument(..., help="up or down"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Move a task up or down."""
    if direction not in ("up", "down"):
        console.print("[red]Direction must be 'up' or 'down'[/red]")
        raise typer.Exit(1)
    with _open_profile(profile, data_dir) as (_, manager):
        _require(manager.move_task(task_id, direction), manager, f"Cannot move {task_id} {direction}")  # type: ignore[arg-type]
        _show_routine(manager)


@app.command()
def edit(
    task_id: str = typer.Argument(..., help="Task id"),
    title: str = typer.Option(None, "--title", "-t", help="New title"),
    minutes: int = typer.Option(None, "--minutes", "-m", help="New planned minutes"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Change a task's title or duration."""
    with _open_profile(profile, data_dir) as (_, manager):
        _require(manager.edit_task(task_id, title, minutes), manager, f"Nothing to change for {task_id}")
        _show_routine(manager)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Restore the built-in routine."""
    if not yes and not typer.confirm("Reset the routine to the defaults?"):
        raise typer.Exit(0)
    with _open_profile(profile, data_dir) as (_, manager):
        _require(manager.reset_tasks(), manager, "Cannot edit tasks right now")
        _show_routine(manager)


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Describe the morning, e.g. 'school day, leave at 7:45'"),
    profile: str = PROFILE_OPTION,
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Let the assistant propose a routine."""
    from morningquest.generation.schedule import ScheduleGenerationError
    from morningquest.llm import create_provider

    with _open_profile(profile, data_dir) as (settings, manager):
        try:
            provider = create_provider(settings)
        except ValueError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            raise typer.Exit(1) from None

        with console.status("Asking the schedule assistant..."):
            try:
                asyncio.run(manager.generate_tasks(prompt, provider))
            except ScheduleGenerationError as e:
                console.print(f"[red]Could not create a routine:[/red] {e}\n[dim]Your routine is unchanged. Try again.[/dim]")
                raise typer.Exit(1) from None
        _show_routine(manager)


@app.command()
def run(profile: str = PROFILE_OPTION, data_dir: Path = DATA_DIR_OPTION) -> None:
    """Start the morning mission with a live countdown."""
    from morningquest.routine import AppMode

    with _open_profile(profile, data_dir) as (settings, manager):
        if manager.mode == AppMode.REWARD:
            asyncio.run(_claim(manager, settings))
            manager.return_to_setup()
        _require(manager.start_run(), manager, "Cannot start a run right now")
        asyncio.run(_mission_loop(manager, settings))
        _finish(manager, settings)


@app.command()
def claim(profile: str = PROFILE_OPTION, data_dir: Path = DATA_DIR_OPTION) -> None:
    """Claim a pending reward."""
    from morningquest.routine import AppMode

    with _open_profile(profile, data_dir) as (settings, manager):
        if manager.mode != AppMode.REWARD:
            console.print(f"No reward yet: {manager.ledger.stamps_until_reward} more stamps to go!")
            raise typer.Exit(0)
        asyncio.run(_claim(manager, settings))


@app.command()
def stamps(profile: str = PROFILE_OPTION, data_dir: Path = DATA_DIR_OPTION) -> None:
    """Show the stamp card."""
    from morningquest.ui.console import ConsoleUI

    with _open_profile(profile, data_dir) as (_, manager):
        ui = ConsoleUI(console)
        ui.header(manager.state, manager.profile_id)
        ui.stamp_card(manager.state.stamp_card, manager.ledger)


@app.command()
def medals(profile: str = PROFILE_OPTION, data_dir: Path = DATA_DIR_OPTION) -> None:
    """List earned medals."""
    from morningquest.ui.console import ConsoleUI

    with _open_profile(profile, data_dir) as (_, manager):
        ConsoleUI(console).medals(manager.state.stamp_card)


@app.command()
def logs(profile: str = PROFILE_OPTION, data_dir: Path = DATA_DIR_OPTION) -> None:
    """Show mission history."""
    from morningquest.history import summarize_history
    from morningquest.ui.console import ConsoleUI

    with _open_profile(profile, data_dir) as (_, manager):
        ConsoleUI(console).history(summarize_history(manager.state.logs))


@app.command()
def doctor() -> None:
    """Check environment for Morning Quest requirements."""
    console.print(f"[bold]Morning Quest Doctor[/bold] v{__version__}\n")

    checks = []

    v = sys.version_info
    ok = v >= (3, 12)
    checks.append(("Python ≥ 3.12", ok, f"{v.major}.{v.minor}.{v.micro}"))

    import os

    from dotenv import load_dotenv

    load_dotenv()
    has_anthropic = bool(os.environ.get("MORNINGQUEST_ANTHROPIC_API_KEY") or os.environ.get("ANTHROPIC_API_KEY"))
    has_openai = bool(os.environ.get("MORNINGQUEST_OPENAI_API_KEY") or os.environ.get("OPENAI_API_KEY"))
    checks.append(("Anthropic API key (optional)", has_anthropic, "set" if has_anthropic else "not set"))
    checks.append(("OpenAI API key (optional)", has_openai, "set" if has_openai else "not set"))

    from morningquest.config.settings import load_settings

    data_dir = load_settings().data_dir
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        writable = os.access(data_dir, os.W_OK)
    except OSError:
        writable = False
    checks.append(("Data directory writable", writable, str(data_dir)))

    for check_name, ok, detail in checks:
        icon = "[green]✓[/green]" if ok else "[red]✗[/red]"
        detail_str = f" ({detail})" if detail else ""
        console.print(f"  {icon} {check_name}{detail_str}")

    all_ok = all(ok for check_name, ok, _ in checks if "optional" not in check_name)
    console.print()
    if all_ok:
        console.print("[green]All checks passed![/green]")
    else:
        console.print("[yellow]Some checks failed. Fix the issues above.[/yellow]")


async def _mission_loop(manager: RoutineManager, settings: MorningQuestSettings) -> None:
    """Drive an active run from keyboard input while a ticker refreshes the view."""
    from datetime import datetime

    from rich.live import Live
    from rich.markup import escape
    from rich.prompt import Confirm

    from morningquest.routine import AppMode
    from morningquest.ticker import run_ticker
    from morningquest.ui.console import mission_view

    with Live(console=console, auto_refresh=False) as live:

        def refresh(now: datetime) -> None:
            budget = manager.budget(now)
            if manager.run is not None and budget is not None:
                live.update(mission_view(manager.run, budget, now, manager.state.name), refresh=True)

        refresh_failures: list[Exception] = []

        def refresh_failed(e: Exception) -> None:
            if not refresh_failures:
                live.console.print(f"[red]Display refresh failed:[/red] {escape(str(e))}")
            refresh_failures.append(e)
            manager.report_error("ui.tick_failed", "Display refresh failed", e)

        stop = asyncio.Event()
        ticker = asyncio.create_task(
            run_ticker(refresh, clock=manager.now, interval=settings.tick_seconds, stop=stop, on_error=refresh_failed)
        )
        try:
            while manager.mode == AppMode.ACTIVE and manager.run is not None:
                line = await asyncio.to_thread(sys.stdin.readline)
                if not line:
                    # stdin closed: drop the run without recording anything
                    manager.abandon(confirmed=True)
                    break
                command = line.strip().lower()
                if command == "d":
                    if manager.depart() is None:
                        live.console.print("[yellow]Finish every task first![/yellow]")
                elif command == "q":
                    confirmed = await asyncio.to_thread(Confirm.ask, "Really quit this mission?", console=live.console)
                    manager.abandon(confirmed=confirmed)
                elif command.isdigit() and 1 <= int(command) <= len(manager.run.tasks):
                    task = manager.run.tasks[int(command) - 1]
                    if task.id == (manager.run.end_task.id if manager.run.end_task else None):
                        if manager.depart() is None:
                            live.console.print("[yellow]Finish every task first![/yellow]")
                    elif not manager.complete_task(task.id):
                        live.console.print(f"[dim]{escape(task.title)} is already done[/dim]")
                if manager.run is not None:
                    try:
                        refresh(manager.now())
                    except Exception as e:
                        refresh_failed(e)
        finally:
            stop.set()
            await ticker


def _finish(manager: RoutineManager, settings: MorningQuestSettings) -> None:
    from morningquest.routine import AppMode
    from morningquest.ui.console import ConsoleUI

    if manager.last_log is None:
        console.print("[dim]Mission abandoned. Nothing was recorded.[/dim]")
        return

    ui = ConsoleUI(console)
    ui.completion(manager.last_log)
    ui.stamp_card(manager.state.stamp_card, manager.ledger)
    if manager.mode == AppMode.REWARD:
        asyncio.run(_claim(manager, settings))


async def _claim(manager: RoutineManager, settings: MorningQuestSettings) -> None:
    from morningquest import ranks
    from morningquest.llm import try_create_provider
    from morningquest.ui.console import ConsoleUI

    with console.status("Writing your secret message..."):
        comment = await manager.reward_comment(try_create_provider(settings))
    medal = manager.acknowledge_reward(comment)
    if medal is not None:
        ConsoleUI(console).reward_banner(
            medal,
            grade_up=ranks.is_grade_up(medal.rank_at_time),
            max_rank=ranks.is_max_rank(medal.rank_at_time),
        )


def main() -> None:
    app()
