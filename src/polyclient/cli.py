"""
Poly client CLI - Query a node and submit transactions from the shell.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from loguru import logger
from pydantic import BaseModel, ValidationError

from polyclient.client import ClientManager
from polyclient.config import Settings
from polyclient.errors import ClientError

T = TypeVar("T")

app = typer.Typer(
    name="poly-client",
    help="Query a Poly node over RPC, REST or WebSocket",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    # Unknown level names raise ValueError before the current sink is dropped
    logger.level(level.upper())
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _build_manager(settings: Settings) -> ClientManager:
    manager = ClientManager.from_settings(settings)
    if manager.rpc is None and manager.rest is None and manager.ws is None:
        # Nothing configured: talk to a local node over RPC
        manager.new_rpc_client(timeout=settings.request_timeout)
    return manager


def _run(ctx: typer.Context, action: Callable[[ClientManager], Awaitable[T]]) -> T:
    settings: Settings = ctx.obj

    async def _execute() -> T:
        async with _build_manager(settings) as manager:
            return await action(manager)

    try:
        return asyncio.run(_execute())
    except ClientError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)


def _echo(value: Any) -> None:
    if isinstance(value, BaseModel):
        typer.echo(value.model_dump_json(by_alias=True, indent=2))
    elif isinstance(value, list):
        typer.echo("[")
        typer.echo(",\n".join(item.model_dump_json(by_alias=True, indent=2) for item in value))
        typer.echo("]")
    else:
        typer.echo(value)


@app.callback()
def main(
    ctx: typer.Context,
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="JSON-RPC endpoint"),
    rest_url: str | None = typer.Option(None, "--rest-url", help="REST endpoint"),
    ws_url: str | None = typer.Option(None, "--ws-url", help="WebSocket endpoint"),
    request_timeout: float | None = typer.Option(
        None, "--request-timeout", help="Request timeout in seconds"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Unset options fall back to POLY_* environment variables and .env."""
    overrides = {
        "rpc_address": rpc_url,
        "rest_address": rest_url,
        "ws_address": ws_url,
        "request_timeout": request_timeout,
        "log_level": log_level,
    }
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(2)

    try:
        setup_logging(settings.log_level)
    except ValueError as e:
        logger.error(f"Invalid log level: {e}")
        raise typer.Exit(2)

    ctx.obj = settings


@app.command()
def height(ctx: typer.Context) -> None:
    """Print the current block height."""
    _echo(_run(ctx, lambda m: m.get_current_block_height()))


@app.command("hash")
def block_hash(
    ctx: typer.Context,
    at_height: int | None = typer.Option(None, "--height", help="Block height (default: tip)"),
) -> None:
    """Print the hash of the best block, or of the block at --height."""
    if at_height is None:
        _echo(_run(ctx, lambda m: m.get_current_block_hash()))
    else:
        _echo(_run(ctx, lambda m: m.get_block_hash(at_height)))


@app.command()
def block(
    ctx: typer.Context,
    at_height: int | None = typer.Option(None, "--height", help="Block height"),
    by_hash: str | None = typer.Option(None, "--hash", help="Block hash"),
) -> None:
    """Print a block looked up by height or hash."""
    if (at_height is None) == (by_hash is None):
        logger.error("Give exactly one of --height or --hash")
        raise typer.Exit(2)

    if by_hash is not None:
        _echo(_run(ctx, lambda m: m.get_block_by_hash(by_hash)))
    else:
        _echo(_run(ctx, lambda m: m.get_block_by_height(at_height)))


@app.command()
def tx(ctx: typer.Context, tx_hash: str = typer.Argument(..., help="Transaction hash")) -> None:
    """Print a transaction."""
    _echo(_run(ctx, lambda m: m.get_transaction(tx_hash)))


@app.command()
def header(ctx: typer.Context, at_height: int = typer.Argument(..., help="Block height")) -> None:
    """Print a block header."""
    _echo(_run(ctx, lambda m: m.get_header_by_height(at_height)))


@app.command()
def event(ctx: typer.Context, tx_hash: str = typer.Argument(..., help="Transaction hash")) -> None:
    """Print the contract event of a transaction."""
    result = _run(ctx, lambda m: m.get_smart_contract_event(tx_hash))
    if result is None:
        typer.echo("null")
    else:
        _echo(result)


@app.command()
def events(ctx: typer.Context, at_height: int = typer.Argument(..., help="Block height")) -> None:
    """Print the contract events of a block."""
    _echo(_run(ctx, lambda m: m.get_smart_contract_event_by_block(at_height)))


@app.command()
def version(ctx: typer.Context) -> None:
    """Print the node version."""
    _echo(_run(ctx, lambda m: m.get_version()))


@app.command("network-id")
def network_id(ctx: typer.Context) -> None:
    """Print the node's network id."""
    _echo(_run(ctx, lambda m: m.get_network_id()))


@app.command("mempool-count")
def mempool_count(ctx: typer.Context) -> None:
    """Print the verified/verifying transaction pool counts."""
    _echo(_run(ctx, lambda m: m.get_mem_pool_tx_count()))


@app.command()
def send(
    ctx: typer.Context,
    tx_hex: str = typer.Argument(..., help="Serialized transaction (hex)"),
    pre_exec: bool = typer.Option(False, "--pre-exec", help="Simulate without committing"),
) -> None:
    """Submit a transaction and print its hash, or the simulation result."""
    try:
        bytes.fromhex(tx_hex.removeprefix("0x"))
    except ValueError:
        logger.error("Transaction must be hex encoded")
        raise typer.Exit(2)

    if pre_exec:
        _echo(_run(ctx, lambda m: m.pre_exec_transaction(tx_hex)))
    else:
        _echo(_run(ctx, lambda m: m.send_transaction(tx_hex)))


@app.command("wait-block")
def wait_block(
    ctx: typer.Context,
    timeout: int = typer.Option(30, "--timeout", "-t", help="Seconds to wait"),
    count: int = typer.Option(2, "--count", "-n", min=1, help="Blocks to wait for"),
) -> None:
    """Block until the chain grows by --count blocks."""
    _run(ctx, lambda m: m.wait_for_generate_block(timeout, count))
    typer.echo(f"{count} new block(s) generated")


if __name__ == "__main__":
    app()
