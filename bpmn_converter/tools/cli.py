"""
BPMN Converter CLI Interface

Command-line tool for converting between BPMN 2.0 XML files and diagram
graph JSON.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional, Tuple

import click

from bpmn_converter.converter import BPMNConverter, ConverterConfig, ErrorHandlingStrategy
from bpmn_converter.core.exceptions import ConversionError
from bpmn_converter.core.observability import LogLevel, ObservabilityConfig, ObservabilityManager
from bpmn_converter.models import DiagramGraph, ImportResult
from bpmn_converter.models.bpmn_elements import TAG_CLASSIFICATION

# Setup logging
logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--verbose/--quiet",
    default=False,
    help="Verbose logging output",
)
@click.option(
    "--json-logs",
    is_flag=True,
    help="Emit log records as JSON lines",
)
def cli(verbose: bool, json_logs: bool) -> None:
    """BPMN Converter CLI - BPMN 2.0 XML <-> diagram graph."""
    ObservabilityManager.reset()
    ObservabilityManager.initialize(
        ObservabilityConfig(
            service_name="bpmn-converter-cli",
            log_level=LogLevel.DEBUG if verbose else LogLevel.WARNING,
            json_logs=json_logs,
        )
    )


@cli.command(name="import")
@click.argument("bpmn_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output file path for the graph JSON",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fail on the first recoverable diagnostic",
)
def import_command(bpmn_file: str, output: Optional[str], strict: bool) -> None:
    """
    Import a BPMN XML file and print the diagram graph as JSON.

    \b
    Examples:
        bpmn-converter import diagram.bpmn
        bpmn-converter import diagram.bpmn -o graph.json
    """
    converter = BPMNConverter(_config(strict))
    try:
        result = converter.import_document(_read(bpmn_file))
    except ConversionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _write(result.model_dump_json(indent=2), output, "Graph JSON")
    if result.diagnostics:
        click.echo(f"Diagnostics: {len(result.diagnostics)}", err=True)


@cli.command(name="export")
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--process-name",
    "-n",
    type=str,
    default=None,
    help="Name of the process holding uncontained nodes",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    help="Output file path for the BPMN XML",
)
def export_command(graph_file: str, process_name: Optional[str], output: Optional[str]) -> None:
    """
    Export graph JSON (as written by ``import``) to BPMN XML.

    \b
    Examples:
        bpmn-converter export graph.json -n "Order Handling" -o diagram.bpmn
    """
    try:
        data: Dict[str, Any] = json.loads(_read(graph_file))
    except json.JSONDecodeError as e:
        click.echo(f"Error: invalid graph JSON: {e}", err=True)
        sys.exit(1)

    # Accept both a bare graph and the full import result
    if "graph" in data:
        data = data["graph"]

    converter = BPMNConverter(_config(False))
    try:
        graph = DiagramGraph.model_validate(data)
        xml = converter.export_document(graph, process_name)
    except (ConversionError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _write(xml, output, "BPMN XML")


@cli.command()
@click.argument("bpmn_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def roundtrip(bpmn_file: str, format: str) -> None:
    """
    Import, export and re-import a BPMN file and compare the two graphs.

    Exits with status 1 when the graphs differ in node ids, kinds,
    containment or connections.

    \b
    Examples:
        bpmn-converter roundtrip diagram.bpmn
    """
    converter = BPMNConverter(_config(False))
    try:
        first = converter.import_document(_read(bpmn_file))
        second = converter.import_document(converter.export_document(first.graph))
    except ConversionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    stable = _shape(first) == _shape(second)
    summary = {
        "file": bpmn_file,
        "nodes": len(first.graph.nodes),
        "connections": len(first.graph.connections),
        "pools": len(first.graph.pools()),
        "diagnostics": len(first.diagnostics),
        "stable": stable,
    }

    if format == "json":
        click.echo(json.dumps(summary, indent=2))
    else:
        click.echo(f"File: {summary['file']}")
        click.echo(f"Nodes: {summary['nodes']}")
        click.echo(f"Connections: {summary['connections']}")
        click.echo(f"Pools: {summary['pools']}")
        click.echo(f"Diagnostics: {summary['diagnostics']}")
        click.echo(f"Stable: {summary['stable']}")

    if not stable:
        sys.exit(1)


@cli.command()
def info() -> None:
    """Show converter version and supported vocabulary."""
    from bpmn_converter import __version__

    info_dict = {
        "name": "BPMN Converter",
        "version": __version__,
        "description": "Bidirectional BPMN 2.0 XML <-> diagram graph conversion",
        "error_handling": [strategy.value for strategy in ErrorHandlingStrategy],
        "elements": sorted(TAG_CLASSIFICATION),
        "features": {
            "pools_and_lanes": True,
            "message_flows": True,
            "diagram_interchange": True,
        },
    }

    click.echo(json.dumps(info_dict, indent=2))


# ==================
# Helper Functions
# ==================


def _config(strict: bool) -> ConverterConfig:
    config = ConverterConfig.from_env()
    if strict:
        config.error_handling = ErrorHandlingStrategy.STRICT
    return config


def _read(path: str) -> str:
    logger.debug(f"Reading {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (IOError, UnicodeDecodeError) as e:
        click.echo(f"Error reading input file: {e}", err=True)
        sys.exit(1)


def _write(content: str, output_file: Optional[str], what: str) -> None:
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(content)
        click.echo(f"{what} written to: {output_file}", err=True)
    else:
        click.echo(content)


def _shape(result: ImportResult) -> Tuple[Any, ...]:
    """The parts of a graph that must survive a round-trip."""
    graph = result.graph
    nodes = sorted(
        (node.id, node.kind.value, node.sub_kind, node.container_id, node.lane_id)
        for node in graph.nodes
    )
    connections = sorted(
        (c.source_id, c.target_id, c.kind.value) for c in graph.connections
    )
    return tuple(nodes), tuple(connections)


if __name__ == "__main__":
    cli()
