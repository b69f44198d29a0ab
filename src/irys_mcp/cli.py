"""
CLI entry point for irys-mcp.

This module provides the Typer-based command-line interface. Every
command except serve and doctor runs one tool through IrysService, the
same path the MCP server uses.

Commands:
    serve       Serve the tools to an agent host over stdio
    retrieve    Retrieve data by owners, tags and time range
    get         Retrieve one transaction by id
    upload      Upload a value or a file
    mutate      Write to a mutable chain
    tools       List the registered tools
    doctor      Check settings, credential and gateway reachability

Architecture Note:
    The CLI is intentionally thin - it parses arguments and delegates to
    IrysService. Logs go to stderr so stdout stays clean for MCP stdio
    and --json output.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from irys_mcp import __version__
from irys_mcp.engine import IrysService
from irys_mcp.errors import IrysError
from irys_mcp.ledger.signer import get_signer
from irys_mcp.schema import DataKind, Settings, load_settings
from irys_mcp.tools import ToolOutput, default_registry

app = typer.Typer(
    name="irys-mcp",
    help="Store and retrieve agent data on the Irys ledger.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


class CliState:
    """Options shared by every command."""

    config_path: Path | None = None
    verbose: bool = False


state = CliState()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]irys-mcp[/bold] version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to a settings YAML file. Environment variables override it.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging on stderr."),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    irys-mcp - Agent tools for the Irys ledger.
    """
    state.config_path = config
    state.verbose = verbose
    setup_logging(verbose)


def _load_settings() -> Settings:
    try:
        return load_settings(state.config_path)
    except IrysError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def build_service(settings: Settings) -> IrysService:
    """Construct the service a command runs against."""
    return IrysService(settings)


def _run_tool(name: str, args: dict[str, Any]) -> ToolOutput:
    settings = _load_settings()

    async def _call() -> ToolOutput:
        async with build_service(settings) as service:
            return await service.call_tool(name, args)

    return asyncio.run(_call())


def _emit(output: ToolOutput, json_output: bool) -> None:
    """Print a tool output and exit non-zero on failure."""
    if json_output:
        payload = {
            "success": output.success,
            "data": output.data,
            "error": output.error,
            "metadata": output.metadata,
        }
        print(json.dumps(payload, indent=2, default=_json_default))
    elif not output.success:
        console.print(f"[red]✗[/red] {escape(output.to_text())}")
    elif isinstance(output.data, list):
        _display_items(output)
    else:
        console.print(f"[green]✓[/green] {escape(output.to_text())}")

    if not output.success:
        raise typer.Exit(code=1)


def _json_default(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return str(value)


def _display_items(output: ToolOutput) -> None:
    """Display retrieved items as a table."""
    console.print(f"[green]✓[/green] {output.metadata.get('summary', '')}")
    console.print()

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("Transaction", style="cyan")
    table.add_column("Address")
    table.add_column("Data")

    for index, item in enumerate(output.data, start=1):
        if item.error:
            details = item.error
        else:
            details = item.data if isinstance(item.data, str) else json.dumps(item.data, default=str)
        if len(details) > 60:
            details = details[:57] + "..."
        details = f"[red]{escape(details)}[/red]" if item.error else escape(details)
        table.add_row(str(index), item.id, item.address, details)

    console.print(table)


def parse_tag_options(raw_tags: list[str] | None) -> list[dict[str, Any]]:
    """
    Turn repeated --tag name=value options into tag dicts.

    Repeating a name adds another value to that tag.

    Raises:
        typer.BadParameter: If an option has no '='
    """
    merged: dict[str, list[str]] = {}
    for raw in raw_tags or []:
        name, sep, value = raw.partition("=")
        if not sep or not name:
            msg = f"Tag must look like name=value: {raw}"
            raise typer.BadParameter(msg)
        merged.setdefault(name, []).append(value)
    return [{"name": name, "values": values} for name, values in merged.items()]


def parse_data_argument(raw: str) -> Any:
    """Interpret a DATA argument as JSON, or as a plain string when it isn't JSON."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


JsonOption = Annotated[bool, typer.Option("--json", help="Output results in JSON format.")]
TagOption = Annotated[
    Optional[list[str]],
    typer.Option("--tag", "-t", help="Tag as name=value. Repeat for more tags or values."),
]


@app.command()
def serve() -> None:
    """
    Serve the tools to an agent host over stdio (MCP).

    Example:
        $ irys-mcp serve
    """
    from irys_mcp import server

    server.run(_load_settings())


@app.command()
def retrieve(
    owners: Annotated[
        Optional[list[str]],
        typer.Argument(help="Owner wallet addresses. Omit to match every owner."),
    ] = None,
    tags: TagOption = None,
    time_from: Annotated[
        Optional[int],
        typer.Option("--from", help="Earliest timestamp in ms (inclusive)."),
    ] = None,
    time_to: Annotated[
        Optional[int],
        typer.Option("--to", help="Latest timestamp in ms (inclusive)."),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """
    Retrieve every transaction matching owners, tags and time range.

    Example:
        $ irys-mcp retrieve 0xABC --tag App=demo --from 1700000000000
    """
    args: dict[str, Any] = {"walletAddress": owners or [], "tags": parse_tag_options(tags) or None}
    if time_from is not None or time_to is not None:
        args["timestamp"] = {"from": time_from, "to": time_to}
    _emit(_run_tool("retrieveDataFromIrys", args), json_output)


@app.command()
def get(
    transaction_id: Annotated[str, typer.Argument(help="Transaction id (or chain root with --mutable).")],
    mutable: Annotated[
        bool,
        typer.Option("--mutable", "-m", help="Return the latest version of the chain rooted here."),
    ] = False,
    json_output: JsonOption = False,
) -> None:
    """
    Retrieve one transaction.

    Example:
        $ irys-mcp get <transaction_id> --mutable
    """
    args = {"transactionId": transaction_id, "isMutable": mutable}
    _emit(_run_tool("retrieveDataFromATransactionId", args), json_output)


@app.command()
def upload(
    data: Annotated[str, typer.Argument(help="JSON value or string; a file path for FILE/IMAGE.")],
    data_type: Annotated[
        DataKind,
        typer.Option("--type", help="Kind of data being uploaded."),
    ] = DataKind.OTHER,
    tags: TagOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Upload a value or a file.

    Example:
        $ irys-mcp upload '{"note": "hello"}' --tag App=demo
        $ irys-mcp upload ./photo.png --type IMAGE
    """
    value = data if data_type.is_file else parse_data_argument(data)
    args = {"data": value, "dataType": data_type, "tags": parse_tag_options(tags)}
    _emit(_run_tool("uploadDataOnIrys", args), json_output)


@app.command()
def mutate(
    data: Annotated[str, typer.Argument(help="JSON value or string.")],
    root: Annotated[
        str,
        typer.Option("--root", "-r", help="Root transaction id of the chain."),
    ] = "",
    already_uploaded: Annotated[
        bool,
        typer.Option("--already-uploaded", help="Append to the chain instead of starting it."),
    ] = False,
    json_output: JsonOption = False,
) -> None:
    """
    Write the next version of a mutable chain.

    Example:
        $ irys-mcp mutate '{"v": 1}'
        $ irys-mcp mutate '{"v": 2}' --root <root_id> --already-uploaded
    """
    args = {
        "data": parse_data_argument(data),
        "rootTransactionId": root,
        "alreadyUploaded": already_uploaded,
    }
    _emit(_run_tool("mutateDataOnIrys", args), json_output)


@app.command()
def tools(json_output: JsonOption = False) -> None:
    """List the tools exposed to agents."""
    described = default_registry.describe()
    if json_output:
        print(json.dumps(described, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Description")
    for entry in described:
        table.add_row(entry["name"], entry["description"])
    console.print(table)


@app.command()
def doctor(json_output: JsonOption = False) -> None:
    """
    Check settings, credential and gateway reachability.

    Example:
        $ irys-mcp doctor
    """
    checks = []

    py_version = sys.version_info
    py_ok = py_version >= (3, 11)
    checks.append({
        "name": "Python version",
        "ok": py_ok,
        "message": f"{py_version.major}.{py_version.minor}.{py_version.micro}"
        + ("" if py_ok else " (requires 3.11+)"),
    })

    try:
        settings = load_settings(state.config_path)
        checks.append({"name": "Settings", "ok": True, "message": str(state.config_path or "defaults + environment")})
    except IrysError as e:
        settings = None
        checks.append({"name": "Settings", "ok": False, "message": e.message})

    if settings is not None:
        # A missing key only disables uploads
        try:
            signer = get_signer(settings)
            checks.append({"name": "Upload credential", "ok": True, "message": signer.address})
        except IrysError as e:
            checks.append({"name": "Upload credential", "ok": False, "message": e.message})

        try:
            with httpx.Client(timeout=5.0, follow_redirects=True) as client:
                response = client.get(settings.gateway_url)
            gateway_ok = response.status_code < 500
            gateway_message = f"{settings.gateway_url} (HTTP {response.status_code})"
        except httpx.HTTPError as e:
            gateway_ok = False
            gateway_message = f"{settings.gateway_url}: {type(e).__name__}"
        checks.append({"name": "Gateway", "ok": gateway_ok, "message": gateway_message})

    all_ok = all(check["ok"] for check in checks)

    if json_output:
        print(json.dumps({"ok": all_ok, "checks": checks}, indent=2))
    else:
        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            console.print(f"{icon} [bold]{check['name']}[/bold]: {check['message']}")

    if not all_ok:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
