"""Main entry point for the jsonrpc-smd CLI."""

import asyncio
import json
from typing import Any

import typer

from jsonrpc_smd import JsonRpcSmdError, ServiceMap, __version__
from jsonrpc_smd.infrastructure.logging import LoggingConfig, LogLevel, setup_logging

app = typer.Typer(help="Call JSON-RPC methods discovered from an SMD document.")


def parse_argument(raw: str) -> Any:
    """Decode a command-line argument as a JSON literal, else keep it as text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _configure_logging(verbose: bool) -> None:
    setup_logging(LoggingConfig(level=LogLevel.DEBUG if verbose else LogLevel.WARNING))


async def _discover(url: str, smd: str) -> list[str]:
    async with ServiceMap(url) as service_map:
        await service_map.discover(smd)
        return [service_map.services[key].signature() for key in sorted(service_map.services)]


async def _call(url: str, smd: str, method: str, params: list[Any]) -> Any:
    async with ServiceMap(url) as service_map:
        await service_map.discover(smd)
        return await service_map.call(method, *params)


@app.command()  # type: ignore[misc]
def version() -> None:
    """Show the CLI version."""
    typer.echo(f"jsonrpc-smd version {__version__}")


@app.command()  # type: ignore[misc]
def discover(
    url: str = typer.Argument(..., help="Base URL of the JSON-RPC endpoint"),
    smd: str = typer.Option("", "--smd", help="SMD document path relative to the base URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """List the methods declared by the endpoint's SMD document."""
    _configure_logging(verbose)
    try:
        signatures = asyncio.run(_discover(url, smd))
    except JsonRpcSmdError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    for signature in signatures:
        typer.echo(signature)


@app.command()  # type: ignore[misc]
def call(
    url: str = typer.Argument(..., help="Base URL of the JSON-RPC endpoint"),
    method: str = typer.Argument(..., help="Method to invoke"),
    params: list[str] = typer.Argument(None, help="Positional parameters, as JSON literals"),
    smd: str = typer.Option("", "--smd", help="SMD document path relative to the base URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Discover the endpoint, then invoke METHOD and print its JSON result."""
    _configure_logging(verbose)
    arguments = [parse_argument(raw) for raw in params or []]
    try:
        result = asyncio.run(_call(url, smd, method, arguments))
    except JsonRpcSmdError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    app()
