"""Rich console output for Morning Quest."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from morningquest import __version__, ranks
from morningquest.budget import TimeBudget, UrgencyLevel
from morningquest.clock import format_clock, format_mmss
from morningquest.history import HistorySummary
from morningquest.mission import MissionPhase, MissionRun
from morningquest.models import ChildState, Medal, MissionLog, StampCard, TaskType
from morningquest.progression import ProgressionLedger

URGENCY_STYLES: dict[UrgencyLevel, tuple[str, str]] = {
    UrgencyLevel.SAFE: ("green", "👍 On track, plenty of time!"),
    UrgencyLevel.WARNING: ("yellow", "⏰ Hurry up!"),
    UrgencyLevel.DANGER: ("red", "⚠️  You'll be late! Go go go!"),
}

TYPE_MARKERS = {TaskType.START: "☀", TaskType.FLEXIBLE: "•", TaskType.END: "🚪"}


def budget_bar(budget: TimeBudget) -> RenderableType:
    """The time budget meter with remaining-work and time-left labels."""
    color, message = URGENCY_STYLES[budget.level]
    bar = ProgressBar(total=100, completed=budget.fill_ratio * 100, complete_style=color, width=40)
    labels = Text(
        f"Tasks left: {max(0, round(budget.remaining_task_minutes))} min   "
        f"Until departure: {max(0, round(budget.minutes_to_departure))} min",
        style="dim",
    )
    if budget.diff_minutes >= 0:
        slack = Text(f"{budget.diff_minutes} minutes to spare!", style="bold green")
    else:
        slack = Text(f"{abs(budget.diff_minutes)} minutes short!!", style="bold red")
    return Group(Text(message, style=f"bold {color}"), bar, labels, slack)


def mission_view(run: MissionRun, budget: TimeBudget, now: datetime, child_name: str) -> RenderableType:
    """Live view of an active run."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Task")
    table.add_column("Plan", justify="right")
    table.add_column("Status")

    active_id = run.active_task_id
    for index, task in enumerate(run.tasks, start=1):
        marker = TYPE_MARKERS.get(task.type or TaskType.FLEXIBLE, "•")
        if run.is_completed(task.id):
            status = Text(f"✓ done ({format_mmss(run.tracker.elapsed_for(task.id))})", style="green")
        elif task.id == active_id:
            status = Text(f"▶ {format_mmss(run.current_elapsed(now))}", style="bold cyan")
        else:
            status = Text("")
        table.add_row(str(index), f"{marker} {escape(task.title)}", f"{task.duration_minutes}m", status)

    if run.phase == MissionPhase.WAKE_UP:
        hint = "Type the number of the wake-up task when you're up!"
    elif run.phase == MissionPhase.READY_TO_DEPART:
        hint = "All done! Type [bold]d[/bold] to head out."
    else:
        hint = "Type a task number when it's done. [dim](d = depart, q = quit)[/dim]"

    color, _ = URGENCY_STYLES[budget.level]
    return Panel(
        Group(budget_bar(budget), Text(""), table, Text(""), Text.from_markup(hint)),
        title=f"[bold]{escape(child_name)}[/bold] · {run.phase.value.replace('_', ' ').title()}",
        subtitle=f"Now {format_clock(now)}",
        border_style=color,
    )


class ConsoleUI:
    """Rich-powered console output for Morning Quest."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def header(self, state: ChildState, profile_id: str) -> None:
        card = state.stamp_card
        grade = ranks.grade_for(card.rank)
        self.console.print(
            Panel(
                f"[bold white]{escape(state.name)}[/bold white]  [dim]({profile_id})[/dim]\n"
                f"Rank: [{grade.primary_color}]{ranks.rank_title(card.rank)}[/]  "
                f"{'★' * ranks.class_for(card.rank).stars}\n"
                f"Departure: [cyan]{state.departure_time}[/cyan]",
                title=f"[bold blue]Morning Quest[/bold blue] v{__version__}",
                border_style=grade.primary_color,
            )
        )

    def task_table(self, state: ChildState, finish: datetime) -> None:
        table = Table(title="Routine", show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Id", style="dim")
        table.add_column("Task")
        table.add_column("Type")
        table.add_column("Icon", style="dim")
        table.add_column("Minutes", justify="right")

        for index, task in enumerate(state.tasks, start=1):
            table.add_row(
                str(index),
                task.id,
                f"[{task.color}]■[/] {escape(task.title)}",
                (task.type or TaskType.FLEXIBLE).value,
                task.icon.value,
                str(task.duration_minutes),
            )

        self.console.print(table)
        total = sum(t.duration_minutes for t in state.tasks)
        self.console.print(
            f"  Total: [bold]{total}[/bold] min · start now to finish around [bold]{format_clock(finish)}[/bold]"
        )

    def stamp_card(self, card: StampCard, ledger: ProgressionLedger) -> None:
        grade = ranks.grade_for(card.rank)
        slots = [
            f"[{grade.accent_color}]★[/]" if i < card.current_stamps else "[dim]☆[/dim]"
            for i in range(ledger.threshold)
        ]
        if ledger.reward_pending:
            footer = "[bold magenta]🎁 Reward ready![/bold magenta]"
        else:
            footer = f"{ledger.stamps_until_reward} more to your next reward!"
        self.console.print(
            Panel(
                " ".join(slots) + f"\n\n{footer}\nRewards so far: [bold]{card.total_rewards}[/bold]",
                title=f"{grade.emoji} Stamp Card",
                border_style=grade.primary_color,
            )
        )

    def reward_banner(self, medal: Medal, grade_up: bool, max_rank: bool) -> None:
        grade = ranks.grade_for(medal.rank_at_time)
        lines = []
        if grade_up:
            lines.append(f"[bold]🎉 GRADE UP! You became a {grade.name}! 🎉[/bold]")
        if max_rank:
            lines.append("[bold gold1]👑 MAX RANK! You are a legend! 👑[/bold gold1]")
        lines.append(f"Rank up: [bold]{medal.title}[/bold] {'★' * ranks.class_for(medal.rank_at_time).stars}")
        lines.append("")
        lines.append(f"[italic]{escape(medal.comment)}[/italic]")
        self.console.print(Panel("\n".join(lines), title="🏅 New Medal", border_style=grade.primary_color))

    def completion(self, log: MissionLog) -> None:
        if log.is_success:
            body = "[bold green]Mission complete![/bold green]\nHave a great day!"
            if log.is_bonus:
                body += "\n[magenta]Early riser bonus: double stamps![/magenta]"
            border = "green"
        else:
            body = "[bold yellow]Mission complete, but a little late.[/bold yellow]\nTry again tomorrow!"
            border = "yellow"
        if log.actual_duration_seconds is not None:
            body += f"\n[dim]Time taken: {format_mmss(log.actual_duration_seconds)}[/dim]"
        self.console.print(Panel(body, border_style=border))

    def history(self, summary: HistorySummary) -> None:
        self.console.print(
            f"  Cleared: [bold]{summary.success_count}[/bold] / {summary.total_runs} · "
            f"Average plan: [bold]{summary.average_minutes}[/bold] min"
        )
        if summary.chart:
            self.console.print("  " + " ".join(f"{p.date:%m/%d}:{p.minutes}m" for p in summary.chart), style="dim")

        table = Table(title="Recent Missions", show_header=True, header_style="bold")
        table.add_column("Date")
        table.add_column("Departed", justify="center")
        table.add_column("Result", justify="center")
        table.add_column("Planned", justify="right")
        table.add_column("Actual", justify="right")
        for log in summary.recent:
            result = "[green]✓ Cleared![/green]" if log.is_success else "[yellow]✗ So close[/yellow]"
            if log.is_bonus:
                result += " [magenta]+bonus[/magenta]"
            actual = format_mmss(log.actual_duration_seconds) if log.actual_duration_seconds is not None else "-"
            table.add_row(
                log.date.isoformat(),
                format_clock(log.completed_at),
                result,
                f"{log.total_duration_seconds // 60}m",
                actual,
            )
        if not summary.recent:
            table.add_row("[dim]No missions yet[/dim]", "", "", "", "")
        self.console.print(table)

    def medals(self, card: StampCard) -> None:
        table = Table(title="Medals", show_header=True, header_style="bold")
        table.add_column("Date")
        table.add_column("Title")
        table.add_column("Comment")
        for medal in reversed(card.medals):
            table.add_row(medal.date.isoformat(), escape(medal.title), escape(medal.comment))
        if not card.medals:
            table.add_row("[dim]No medals yet[/dim]", "", "")
        self.console.print(table)
