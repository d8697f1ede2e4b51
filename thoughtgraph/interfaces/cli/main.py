"""
CLI Main - Typer-based command-line interface.

Usage:
    thoughtgraph run "Does chromosomal instability drive CTCL progression?" -o graph.json
    thoughtgraph score "A meta-analysis of 12 randomized controlled trials"
    thoughtgraph layers graph.json
    thoughtgraph version
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from thoughtgraph.config.errors import ThoughtGraphError

app = typer.Typer(
    name="thoughtgraph",
    help="ThoughtGraph - Staged scientific reasoning graphs",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine logs"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def run(
    question: str = typer.Argument(..., help="Research question"),
    through: int = typer.Option(9, "--through", "-t", min=1, max=9, help="Last stage to run"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output graph JSON path"),
) -> None:
    """Run the reasoning pipeline on a research question."""
    asyncio.run(_run_async(question, through, output))


async def _run_async(question: str, through: int, output: Path | None) -> None:
    """Async pipeline implementation."""
    from thoughtgraph.adapters.llm import InferenceTaskQueue, LLMService
    from thoughtgraph.adapters.search import SonarSearchClient
    from thoughtgraph.config import get_settings
    from thoughtgraph.domains.orchestration import ReasoningEngine

    settings = get_settings()
    search = SonarSearchClient(settings)
    engine = ReasoningEngine(
        inference=InferenceTaskQueue(LLMService(settings), settings.inference_max_concurrent),
        search=search if search.is_configured() else None,
        settings=settings,
    )

    table = Table(title="Stages")
    table.add_column("Stage", style="cyan")
    table.add_column("Name")
    table.add_column("API Calls", justify="right")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("Duration", justify="right", style="dim")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Initializing...", total=None)

        def on_stage(outcome) -> None:
            context = outcome.context
            table.add_row(
                str(outcome.stage_id),
                context.stage_name,
                str(context.api_calls_made),
                str(outcome.graph.metadata.total_nodes),
                str(outcome.graph.metadata.total_edges),
                f"{context.duration_ms / 1000:.1f}s",
            )
            if outcome.stage_id < through:
                progress.update(task, description=f"Stage {outcome.stage_id + 1}...")

        progress.update(task, description="Stage 1...")
        try:
            outcomes = await engine.run(question, through=through, on_stage=on_stage)
        except ThoughtGraphError as e:
            console.print(table)
            console.print(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)

    console.print(table)
    console.print(f"\n[bold]Field:[/bold] {engine.research_context.field}")
    console.print(f"[bold]Overall confidence:[/bold] {engine.overall_confidence():.2f}")

    if outcomes and outcomes[-1].stage_id >= 7:
        console.print(Panel(outcomes[-1].result, title=outcomes[-1].context.stage_name))

    if output:
        engine.store.save_json(output)
        console.print(f"\n[green]Saved to:[/green] {output}")


@app.command()
def score(
    text: str = typer.Argument(..., help="Evidence analysis text"),
) -> None:
    """Show how evidence text is scored."""
    from thoughtgraph.domains.evidence import EvidenceScorer
    from thoughtgraph.domains.knowledge import DIMENSIONS

    result = EvidenceScorer().score(text)

    table = Table(title=f"Evidence Score (rules v{result.ruleset_version})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    for name, value in zip(DIMENSIONS, result.confidence.as_list()):
        table.add_row(name, f"{value:.2f}")
    table.add_row("statistical_power", f"{result.statistical_power:.2f}")
    table.add_row("quality", result.quality.value)
    table.add_row("entropy", f"{result.info_metrics.entropy:.3f}")
    table.add_row("information_gain", f"{result.info_metrics.information_gain:.3f}")

    console.print(table)
    console.print(f"[dim]Rules fired: {', '.join(result.fired_rules) or 'none'}[/dim]")


@app.command()
def layers(
    graph_path: Path = typer.Argument(..., help="Graph JSON exported by `run --output`"),
    threshold: float | None = typer.Option(None, "--threshold", help="Inter-layer similarity threshold"),
) -> None:
    """Analyze the multi-layer structure of an exported graph."""
    from thoughtgraph.config import get_settings
    from thoughtgraph.domains.knowledge import ReasoningGraphStore
    from thoughtgraph.domains.network import MultiLayerBuilder, analyze_cross_layer, analyze_layer

    if not graph_path.exists():
        console.print(f"[red]Error:[/red] File not found: {graph_path}")
        raise typer.Exit(1)

    try:
        store = ReasoningGraphStore.load_json(graph_path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] Invalid graph file: {e}")
        raise typer.Exit(1)

    builder = MultiLayerBuilder(
        threshold if threshold is not None else get_settings().interlayer_similarity_threshold
    )
    network = builder.build(store.export())

    table = Table(title="Layers")
    table.add_column("Layer", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("Status")
    table.add_column("Nodes", justify="right")
    table.add_column("Clustering", justify="right")
    table.add_column("Path Length", justify="right")
    table.add_column("Centralization", justify="right")
    table.add_column("Communities", justify="right")

    for layer in network.layers:
        analysis = analyze_layer(layer)
        metrics = analysis.metrics
        table.add_row(
            layer.name,
            str(layer.level),
            layer.epistemic_status.value,
            str(len(layer.nodes)),
            f"{metrics.clustering_coefficient:.2f}",
            "-" if metrics.path_length is None else f"{metrics.path_length:.2f}",
            f"{metrics.centralization:.2f}",
            str(len(analysis.communities)),
        )
    console.print(table)

    cross = analyze_cross_layer(network)
    flows: dict[tuple[str, str, str], float] = {}
    for flow in cross.information_flow:
        key = (flow.source_layer, flow.target_layer, flow.direction.value)
        flows[key] = flows.get(key, 0.0) + flow.flow_rate

    flow_table = Table(title="Cross-Layer Flow")
    flow_table.add_column("From", style="cyan")
    flow_table.add_column("To", style="cyan")
    flow_table.add_column("Direction")
    flow_table.add_column("Total Flow", justify="right", style="green")
    for (source, target, direction), total in flows.items():
        flow_table.add_row(source, target, direction, f"{total:.2f}")
    console.print(flow_table)

    metrics = network.metrics
    console.print(
        f"[dim]{metrics.total_nodes} nodes, {len(network.connections)} inter-layer connections, "
        f"connectivity {metrics.connectivity:.3f}, emergence {metrics.emergence_score:.2f}[/dim]"
    )


@app.command()
def version() -> None:
    """Show version information."""
    from thoughtgraph import __version__

    console.print(f"ThoughtGraph v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
