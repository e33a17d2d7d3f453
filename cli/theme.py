"""Unified Rich theme and reusable UI helper functions for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

from models.flow import FlowOutput

AGENTFLOW_THEME = Theme({
    "app.title": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "stat.label": "dim",
    "stat.value": "bold",
    "node.id": "blue",
    "provider.name": "bold cyan",
})


def get_console() -> Console:
    """Return a Console instance with the agentflow theme applied."""
    return Console(theme=AGENTFLOW_THEME)


def app_header(title: str = "agentflow") -> Rule:
    """Return a Rule element for the application header banner."""
    return Rule(title=f"[bold]{title}[/]", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Return a Panel displaying command parameters.

    Args:
        title: Panel title (e.g. "Run flow").
        fields: Ordered dict of label -> value pairs.
    """
    lines = []
    for label, value in fields.items():
        lines.append(f"  [stat.label]{label}:[/] [stat.value]{value}[/]")
    body = "\n".join(lines)
    return Panel(body, title=f"[bold]{title}[/]", box=box.ROUNDED, border_style="dim", padding=(0, 2))


def success_panel(title: str, body: str) -> Panel:
    """Return a green-bordered Panel for success results."""
    return Panel(body, title=f"[success]{title}[/]", box=box.ROUNDED, border_style="green", padding=(0, 2))


def error_panel(title: str, lines: list[str]) -> Panel:
    """Return a red-bordered Panel listing problems."""
    body = "\n".join(f"  [error]•[/] {line}" for line in lines)
    return Panel(body, title=f"[error]{title}[/]", box=box.ROUNDED, border_style="red", padding=(0, 2))


def outputs_table(outputs: list[FlowOutput], max_chars: int = 120) -> Table:
    """Build a table of execution records in completion order.

    Args:
        outputs: Records from a flow run.
        max_chars: Output text longer than this is shortened.
    """
    table = Table(title="Flow outputs", show_lines=True, border_style="dim")
    table.add_column("Node", style="node.id")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Model", style="muted")
    table.add_column("Time", justify="right")
    table.add_column("Output")

    for o in outputs:
        text = o.output if isinstance(o.output, str) else str(o.output)
        if len(text) > max_chars:
            text = text[:max_chars] + "..."
        type_style = "error" if o.is_error else "success"
        table.add_row(
            o.node_id,
            o.node_name,
            f"[{type_style}]{o.node_type}[/]",
            o.model_id or "-",
            f"{o.execution_time}ms",
            text,
        )
    return table


def models_table(grouped: dict[str, list[str]]) -> Table:
    """Build a table of registered models grouped by provider."""
    table = Table(title="Registered models", show_lines=False, border_style="dim")
    table.add_column("Provider", style="provider.name")
    table.add_column("Models", justify="right")
    table.add_column("Model ids")

    for provider, model_ids in grouped.items():
        table.add_row(provider, str(len(model_ids)), ", ".join(model_ids))
    return table
