"""Reporter: aggregates execution results into a summary."""

from dataclasses import dataclass, field

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dotstrap.core.models import ActionStatus, ExecutionResult, PlannedAction


@dataclass(frozen=True)
class Summary:
    """Aggregated outcome of a run.

    Attributes:
        applied: Number of actions that changed the machine
        skipped: Number of actions that were already satisfied
        failed: Number of actions that failed
        failures: "description: reason" for every failed action
        credentials: (description, text) for every credential surfaced
    """

    applied: int = 0
    skipped: int = 0
    failed: int = 0
    failures: tuple[str, ...] = field(default_factory=tuple)
    credentials: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return self.applied + self.skipped + self.failed


def report(results: list[ExecutionResult]) -> Summary:
    """Aggregate execution results. Has no side effects.

    Args:
        results: Results in execution order

    Returns:
        Summary of the run
    """
    counts = {status: 0 for status in ActionStatus}
    failures = []
    credentials = []

    for result in results:
        counts[result.status] += 1
        if result.status is ActionStatus.FAILED:
            failures.append(f"{result.action.description}: {result.reason}")
        if result.credential:
            credentials.append((result.action.description, result.credential))

    return Summary(
        applied=counts[ActionStatus.APPLIED],
        skipped=counts[ActionStatus.SKIPPED],
        failed=counts[ActionStatus.FAILED],
        failures=tuple(failures),
        credentials=tuple(credentials),
    )


def render_report(summary: Summary, console: Console) -> None:
    """Print a summary for the operator."""
    console.print(
        f"[bold]Applied {summary.applied}[/bold], "
        f"skipped {summary.skipped}, "
        f"[{'red' if summary.failed else 'green'}]failed {summary.failed}[/]"
    )

    for failure in summary.failures:
        console.print(Text.assemble(("✗ ", "red"), failure))

    # Text() keeps tool output and key material free of markup interpretation
    for description, text in summary.credentials:
        console.print(Panel(Text(text), title=Text(description), expand=False))


def render_plan(preview: list[PlannedAction], console: Console) -> None:
    """Print planned actions and whether each is already satisfied."""
    table = Table(title="Planned actions")
    table.add_column("#", justify="right")
    table.add_column("Action")
    table.add_column("State")

    for index, row in enumerate(preview, start=1):
        if row.error:
            state = Text(f"error: {row.error}", style="red")
        elif row.satisfied:
            state = Text("satisfied", style="dim")
        else:
            state = Text("pending", style="yellow")
        table.add_row(str(index), Text(row.action.description), state)

    console.print(table)
