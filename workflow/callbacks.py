"""Flow progress callbacks for monitoring and real-time reporting."""

import logging
from typing import Protocol, runtime_checkable

from models.flow import FlowNode, FlowOutput

logger = logging.getLogger(__name__)


@runtime_checkable
class FlowCallback(Protocol):
    """Protocol for flow progress callbacks.

    Implement this protocol to hook into the run lifecycle.
    """

    def on_level_start(self, level: int, nodes: list[FlowNode]) -> None:
        """Called before the nodes of a dependency level are started together."""
        ...

    def on_node_complete(self, output: FlowOutput) -> None:
        """Called when a node has produced its execution record (success or error)."""
        ...

    def on_error(self, node_id: str, error: str) -> None:
        """Called when a node fails or the whole run is aborted."""
        ...

    def on_run_complete(self, status: str, outputs: list[FlowOutput]) -> None:
        """Called once when the run reaches COMPLETED or FAILED."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_level_start(self, level: int, nodes: list[FlowNode]) -> None:
        logger.debug("→ level %d: %s", level, ", ".join(n.id for n in nodes))

    def on_node_complete(self, output: FlowOutput) -> None:
        logger.debug("← node: %s (%dms)", output.node_id, output.execution_time)

    def on_error(self, node_id: str, error: str) -> None:
        logger.error("Flow error in '%s': %s", node_id, error)

    def on_run_complete(self, status: str, outputs: list[FlowOutput]) -> None:
        errors = sum(1 for o in outputs if o.is_error)
        logger.info("Flow %s: %d outputs, %d errors", status, len(outputs), errors)


class RichProgressCallback:
    """Progress callback that renders a Rich live progress display in the terminal."""

    def __init__(self, console=None, total_nodes: int = 0):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
            total_nodes: Number of nodes in the flow (for progress bar max).
        """
        self._console = console
        self._total = total_nodes
        self._progress = None
        self._task_id = None

    def start(self):
        """Start the progress display. Call before running the flow."""
        from rich.console import Console
        from rich.progress import Progress, SpinnerColumn, TextColumn, TaskProgressColumn

        console = self._console or Console()
        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(
            "Waiting to start...",
            total=self._total if self._total > 0 else None,
        )

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_level_start(self, level: int, nodes: list[FlowNode]) -> None:
        if not self._progress:
            return
        labels = ", ".join(n.label for n in nodes)
        self._progress.update(self._task_id, description=f"Level {level}: {labels}")

    def on_node_complete(self, output: FlowOutput) -> None:
        if not self._progress:
            return
        self._progress.advance(self._task_id)

    def on_error(self, node_id: str, error: str) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._task_id,
            description=f"[red]Error ({node_id}): {error[:80]}[/]",
        )

    def on_run_complete(self, status: str, outputs: list[FlowOutput]) -> None:
        if not self._progress:
            return
        style = "bold green" if status == "completed" else "bold red"
        self._progress.update(
            self._task_id,
            description=f"[{style}]Flow {status}: {len(outputs)} outputs[/]",
        )
