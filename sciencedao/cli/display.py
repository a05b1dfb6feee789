"""
Console display for the research agent.

Rich renderers for the startup banner, health results, agent state,
iteration metrics and activity statistics. ``console`` is shared with the
logging handler so log lines and panels interleave cleanly.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

THEME = Theme({
    "h2": "bold cyan",
    "muted": "dim",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "info": "cyan",
})

console = Console(theme=THEME)


def print_error(message: str):
    console.print(f"[error]✗ {message}[/error]")


def create_table(title: str, columns: List[str]) -> Table:
    """Two-or-more column table in the house style."""
    table = Table(title=title, show_header=True, header_style="bold magenta", expand=False)
    for i, column in enumerate(columns):
        table.add_column(column, style="cyan" if i == 0 else None, no_wrap=i == 0)
    return table


def _format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{seconds:.1f}s"


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


class ConsoleReporter:
    """Renders operation loop events to a rich console."""

    def __init__(self, output: Optional[Console] = None):
        self.console = output or console

    def banner(self, config):
        """Startup panel with the operation mode."""
        lines = [f"[bold]Mode:[/bold] {config.mode.value}"]
        if config.mode.value == "continuous":
            lines.append(f"[bold]Interval:[/bold] {config.interval_minutes:g} minutes")
        if config.max_iterations:
            lines.append(f"[bold]Max iterations:[/bold] {config.max_iterations}")
        lines.append(
            f"[bold]Health checks:[/bold] {'enabled' if config.enable_health_checks else 'disabled'}"
        )
        self.console.print()
        self.console.print(
            Panel(
                "\n".join(lines),
                title="[bold cyan]ScienceDAO Research Agent[/bold cyan]",
                border_style="cyan",
            )
        )

    def config_summary(self, summary: Dict[str, Any]):
        table = create_table("Configuration", ["Setting", "Value"])
        for key, value in _flatten(summary).items():
            table.add_row(key, str(value))
        self.console.print(table)

    def health_check_started(self):
        self.console.print("[h2]Performing startup health checks...[/h2]")

    def health_status(self, errors: List[str]):
        if not errors:
            self.console.print("[success]✓ All critical services are healthy[/success]")
            return
        for error in errors:
            self.console.print(f"[error]✗ {error}[/error]")

    def agent_state(self, title: str, state: Dict[str, Any]):
        table = create_table(title, ["Field", "Value"])
        for key, value in _flatten(state).items():
            if value is None or isinstance(value, list):
                continue
            table.add_row(key, str(value))
        self.console.print(table)

    def metrics(self, metrics):
        """Iteration metrics table."""
        table = create_table("Agent Metrics", ["Metric", "Value"])
        table.add_row("Runtime", _format_duration(metrics.runtime_seconds()))
        table.add_row("Iterations", str(metrics.iterations))
        table.add_row("Successful", str(metrics.successful_iterations))
        table.add_row("Failed", str(metrics.failed_iterations))
        table.add_row("Success rate", f"{metrics.success_rate:.1f}%")
        table.add_row("Papers fetched", str(metrics.total_papers_fetched))
        table.add_row("Papers analyzed", str(metrics.total_papers_analyzed))
        table.add_row("Hypotheses generated", str(metrics.total_hypotheses_generated))
        table.add_row("Avg iteration time", f"{metrics.average_iteration_time:.2f}s")
        table.add_row("Last iteration time", f"{metrics.last_iteration_time:.2f}s")
        table.add_row("Memory usage", f"{metrics.memory_usage_mb} MB")
        self.console.print(table)

    def activity_stats(self, stats: Dict[str, int], log_path: Optional[Path] = None):
        table = create_table("Activity Statistics", ["Activity", "Count"])
        for activity_type, count in stats.items():
            table.add_row(activity_type, str(count))
        self.console.print(table)
        if log_path is not None:
            self.console.print(f"[muted]Research log saved to: {log_path}[/muted]")

    def shutdown_notice(self):
        self.console.print()
        self.console.print("[warning]Shutdown requested; finishing current step...[/warning]")
        self.console.print("[muted]Press Ctrl+C again to force exit[/muted]")

    def force_shutdown(self):
        self.console.print("[error]Forced shutdown[/error]")
