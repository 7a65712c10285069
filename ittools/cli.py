# ittools/cli.py
"""
Command-line interface for the ittools gateway.

Lists the loaded tools, prints manifest views and invokes a tool through the
same secure handler the HTTP API uses. Built with Typer and Rich.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from ittools.app import ToolService
from ittools.exceptions import IttoolsError
from ittools.secure_handler import DEFAULT_IDENTIFIER
from ittools.utils.logger import setup_logger

app = typer.Typer(
    name="ittools",
    help="Discover, describe and safely invoke IT utility tools.",
    add_completion=False,
)
console = Console()
logger = setup_logger(__name__)

ToolsDirOption = Annotated[
    Optional[Path],
    typer.Option("--tools-dir", help="Root of the <category>/<tool>/index.py tree."),
]


def _parse_arguments(pairs: List[str], raw_json: Optional[str]) -> Dict[str, Any]:
    """Turn `key=value` pairs (values parsed as JSON when possible) into a dict."""
    arguments: Dict[str, Any] = {}
    if raw_json:
        try:
            loaded = json.loads(raw_json)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"--json is not valid JSON ({e.msg})") from e
        if not isinstance(loaded, dict):
            raise typer.BadParameter("--json must be a JSON object")
        arguments.update(loaded)
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        try:
            arguments[key] = json.loads(value)
        except json.JSONDecodeError:
            arguments[key] = value
    return arguments


@app.command(name="list-tools")
def list_tools(tools_dir: ToolsDirOption = None) -> None:
    """
    Lists all registered tools.
    """
    service = ToolService(tools_dir)
    tools = asyncio.run(service.list_tools())

    if not tools:
        console.print("[yellow]No tools are registered.[/yellow]")
        return

    table = Table(title="ittools Registered Tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Description", style="white")
    table.add_column("Read-only", style="yellow")
    for name, info in tools.items():
        table.add_row(name, info["category"] or "N/A", info["description"], "yes" if info["read_only"] else "no")
    console.print(table)

    report = service.last_report
    if report and report.failures:
        console.print(f"[yellow]{len(report.failures)} tool(s) skipped:[/yellow]")
        for failure in report.failures:
            console.print(f"  [red]{failure.category}/{failure.tool}[/red]: {failure}")


@app.command(name="manifest")
def manifest(
    view: Annotated[str, typer.Argument(help="info | tools | categories")] = "info",
    tools_dir: ToolsDirOption = None,
) -> None:
    """
    Prints one manifest view as JSON.
    """
    service = ToolService(tools_dir)
    try:
        result = asyncio.run(service.manifest_view(view))
    except IttoolsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=2)
    console.print_json(data=result.to_dict())


@app.command(name="call")
def call(
    tool_id: Annotated[str, typer.Argument(help="Registered tool id.")],
    arg: Annotated[
        Optional[List[str]],
        typer.Option("--arg", "-a", help="Argument as key=value; repeatable."),
    ] = None,
    raw_json: Annotated[
        Optional[str], typer.Option("--json", help="All arguments as one JSON object.")
    ] = None,
    client: Annotated[
        str, typer.Option("--client", help="Caller identifier for rate limiting.")
    ] = DEFAULT_IDENTIFIER,
    tools_dir: ToolsDirOption = None,
) -> None:
    """
    Invokes a tool through the rate limiter and input validator.
    """
    arguments = _parse_arguments(arg or [], raw_json)
    service = ToolService(tools_dir)
    result = asyncio.run(service.call(tool_id, arguments, identifier=client))
    if result.success:
        console.print(result.content or "")
        return
    console.print(f"[bold red]{result.error_kind.value}:[/bold red] {result.message}")
    raise typer.Exit(code=1)


@app.command(name="serve")
def serve(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port.")] = 8000,
) -> None:
    """
    Runs the HTTP API with Uvicorn.
    """
    import uvicorn

    uvicorn.run("ittools.serve:app", host=host, port=port)
