"""CLI entry point: run and inspect agent flows.

Usage:
  agentflow run flow.json              Run a flow against real providers
  agentflow run flow.json --mock       Run with every model node on the mock model
  agentflow run flow.json --mode novel --max-tokens chapter=4096
  agentflow simulate flow.json         Walk the flow through the mock adapter only
  agentflow models                     List registered models
  agentflow validate                   Check the model registry and adapters
"""

import asyncio
import json
import logging
import os
import re
import sys
from pathlib import Path

import click

from adapters.registry import get_registry
from cli.theme import (
    app_header,
    command_panel,
    error_panel,
    get_console,
    models_table,
    outputs_table,
    success_panel,
)
from config.exceptions import AgentFlowError
from config.logging_config import setup_logging
from config.settings import RunSettings, get_settings
from models.enums import FlowMode, RunStatus
from models.flow import FlowGraph
from tools.model_client import ModelClient
from workflow.callbacks import RichProgressCallback
from workflow.debug_log import DebugLog
from workflow.orchestrator import FlowOrchestrator, run_simulated_flow
from workflow.validation import validate_model_system

console = get_console()
logger = logging.getLogger(__name__)


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def env_api_key(user_id: str, provider: str, model_id: str) -> str | None:
    """Look up a provider key from the environment, e.g. ``GOOGLE_GEMINI_API_KEY``."""
    slug = re.sub(r"[^A-Z0-9]+", "_", provider.upper()).strip("_")
    return os.environ.get(f"AGENTFLOW_{slug}_API_KEY") or os.environ.get(f"{slug}_API_KEY")


def _load_graph(path: str) -> FlowGraph:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="GRAPH_JSON")
    if isinstance(data, list):
        data = {"nodes": data}
    if not isinstance(data, dict):
        raise click.BadParameter("expected an object with 'nodes' and 'edges'", param_hint="GRAPH_JSON")
    try:
        return FlowGraph.from_dict(data)
    except (KeyError, TypeError) as e:
        raise click.BadParameter(f"malformed node or edge: {e}", param_hint="GRAPH_JSON")


def _parse_max_tokens(values: tuple[str, ...]) -> dict[str, int]:
    """Parse repeated ``kind=N`` options."""
    budgets = {}
    for value in values:
        kind, sep, number = value.partition("=")
        if not sep or not kind.strip():
            raise click.BadParameter(f"expected kind=N, got {value!r}", param_hint="--max-tokens")
        try:
            budgets[kind.strip()] = int(number)
        except ValueError:
            raise click.BadParameter(f"token budget must be an integer: {value!r}", param_hint="--max-tokens")
    return budgets


def _use_mock_models(graph: FlowGraph, mock_model_id: str) -> None:
    for node in graph.nodes:
        if node.model_id and not node.is_prompt_source:
            node.model_id = mock_model_id


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """agentflow: run DAG-shaped LLM agent flows.

    \b
    Examples:
      agentflow run flow.json --mock
      agentflow run story.json --mode novel --max-tokens chapter=4096
      agentflow models
    """
    _init_logging(verbose)


# ---------------------------------------------------------------------------
# run command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("graph_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", "-m", type=click.Choice([m.value for m in FlowMode]), default=None,
              help="Flow mode (default: from settings)")
@click.option("--max-tokens", "-t", multiple=True, metavar="KIND=N",
              help="Per-kind token budget for novel mode (repeatable)")
@click.option("--mock", is_flag=True, help="Run every model node on the mock model")
@click.option("--user", "-u", default=lambda: os.environ.get("AGENTFLOW_USER", "local"),
              show_default="local", help="User id handed to the API key lookup")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write run result and debug records to this JSON file")
@click.option("--debug-log", "debug_log_path", type=click.Path(dir_okay=False), default=None,
              help="Write only the per-node debug records to this JSON file")
def run(graph_json, mode, max_tokens, mock, user, output, debug_log_path):
    """Run a flow graph and show every node's output.

    GRAPH_JSON holds {"nodes": [...], "edges": [...]} as exported by the
    flow editor, or a bare list of nodes.

    Examples:
      agentflow run flow.json --mock
      agentflow run story.json --mode novel -t chapter=4096 -o result.json
      agentflow run flow.json --debug-log debug.json
    """
    settings = get_settings()
    graph = _load_graph(graph_json)
    budgets = _parse_max_tokens(max_tokens)
    if mock:
        _use_mock_models(graph, settings.mock_model_id)

    run_settings = RunSettings(flow_mode=mode or settings.flow_mode, max_tokens=budgets)

    console.print(app_header())
    console.print()
    fields = {
        "Graph": graph_json,
        "Nodes": str(len(graph.nodes)),
        "Mode": run_settings.flow_mode,
    }
    if budgets:
        fields["Budgets"] = ", ".join(f"{k}={v}" for k, v in budgets.items())
    if mock:
        fields["Models"] = settings.mock_model_id
    console.print(command_panel("Run flow", fields))
    console.print()

    debug_log = DebugLog()
    progress = RichProgressCallback(console=console, total_nodes=len(graph.nodes))

    async def _run():
        async with ModelClient(env_api_key, user_id=user, settings=settings) as client:
            orchestrator = FlowOrchestrator(
                registry=get_registry(),
                execute_model=client.execute,
                debug_log=debug_log,
                settings=settings,
                callback=progress,
            )
            return await orchestrator.run(graph, run_settings)

    try:
        progress.start()
        try:
            result = asyncio.run(_run())
        finally:
            progress.stop()
    except KeyboardInterrupt:
        console.print("\n[warning]Interrupted[/]")
        sys.exit(130)
    except AgentFlowError as e:
        console.print(f"[error]{e}[/]")
        logger.exception("Flow run failed")
        sys.exit(1)

    console.print(outputs_table(result.outputs))

    if output:
        payload = {**result.to_dict(), "debug": debug_log.to_list()}
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
        console.print(f"[muted]Results written to {out_path}[/]")
    if debug_log_path:
        written = debug_log.dump(debug_log_path)
        console.print(f"[muted]Debug records written to {written}[/]")

    if result.status == RunStatus.FAILED:
        console.print(error_panel("Flow failed", result.errors))
        sys.exit(1)
    if result.errors:
        console.print(error_panel(f"{len(result.errors)} node(s) failed", result.errors))
    else:
        console.print(success_panel("Flow completed", f"  {len(result.outputs)} nodes executed"))


# ---------------------------------------------------------------------------
# simulate command
# ---------------------------------------------------------------------------

@cli.command()
@click.argument("graph_json", type=click.Path(exists=True, dir_okay=False))
def simulate(graph_json):
    """Walk a flow through the mock adapter without calling any provider."""
    graph = _load_graph(graph_json)
    result = run_simulated_flow(graph.to_flow_nodes())
    console.print(outputs_table(result.outputs))
    if result.status == RunStatus.FAILED:
        console.print(error_panel("Simulation failed", result.errors))
        sys.exit(1)


# ---------------------------------------------------------------------------
# models / validate commands
# ---------------------------------------------------------------------------

@cli.command()
def models():
    """List every registered model grouped by provider."""
    registry = get_registry()
    console.print(models_table(registry.grouped_by_provider()))
    console.print(f"\n[muted]{len(registry)} models from {len(registry.provider_names())} providers[/]")


@cli.command()
def validate():
    """Check registry consistency, adapter contracts and default configs."""
    result = validate_model_system(get_registry())
    if result.warnings:
        for warning in result.warnings:
            console.print(f"[warning]warning:[/] {warning}")
    if not result.is_valid:
        console.print(error_panel("Model system validation failed", result.errors))
        sys.exit(1)
    console.print(success_panel("Model system valid", f"  {len(result.warnings)} warnings"))


if __name__ == "__main__":
    cli()
