"""Typer CLI for managing NIC <-> backend pool associations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import structlog
import typer
from rich.console import Console
from rich.table import Table

from nic_associations.associations.base import AssociationState
from nic_associations.associations.factory import create_association_manager
from nic_associations.config.loader import load_provider_config, load_stack_config
from nic_associations.config.models import (
    AssociationKind,
    LogFormat,
    ProviderConfig,
    StackConfig,
)
from nic_associations.errors import AssociationError
from nic_associations.network.client import AzureNetworkInterfaceClient
from nic_associations.observability.logs import configure_logging
from nic_associations.state import StateStore

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="nicassoc", help="NIC <-> backend address pool associations")


def _load_provider(provider_config: str | None) -> ProviderConfig:
    try:
        provider = load_provider_config(
            Path(provider_config) if provider_config else None
        )
    except (ValueError, TypeError, FileNotFoundError) as exc:
        console.print(f"[red]Provider config error:[/red] {exc}")
        raise typer.Exit(1) from exc
    configure_logging(
        provider.logging.level,
        json_output=provider.logging.format == LogFormat.JSON,
    )
    return provider


def _load_stack(stack_path: str) -> StackConfig:
    path = Path(stack_path)
    if not path.exists():
        console.print(f"[red]Stack file not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return load_stack_config(path)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        raise typer.Exit(1) from exc


def _store(provider: ProviderConfig, state: str | None) -> StateStore:
    store = StateStore(state or provider.state_file)
    try:
        store.load()
    except ValueError as exc:
        console.print(f"[red]State error:[/red] {exc}")
        raise typer.Exit(1) from exc
    return store


def _client(provider: ProviderConfig) -> AzureNetworkInterfaceClient:
    if provider.subscription_id is None:
        console.print(
            "[red]subscription_id is not set[/red] "
            "(use AZURE_SUBSCRIPTION_ID or --provider-config)"
        )
        raise typer.Exit(1)
    return AzureNetworkInterfaceClient(provider)


async def _gather(
    items: list[Any], fn: Callable[[Any], Awaitable[Any]]
) -> list[Any]:
    """Run *fn* over *items* concurrently, returning results or exceptions."""
    return list(await asyncio.gather(*(fn(i) for i in items), return_exceptions=True))


def _report_failure(label: str, exc: BaseException) -> None:
    if not isinstance(exc, AssociationError):
        logger.error("cli.unexpected_error", target=label, error=repr(exc))
    console.print(f"[red]failed[/red]    {label}\n  {exc}")


@app.command()
def validate(
    stack_path: str = typer.Argument(..., help="Path to associations YAML"),
) -> None:
    """Validate an associations file and print the resulting IDs."""
    stack = _load_stack(stack_path)
    console.print(f"[green]Valid[/green] — {len(stack.associations)} association(s)")
    for assoc in stack.associations:
        console.print(f"  {assoc.kind.value}: {assoc.association_id}")


@app.command()
def apply(
    stack_path: str = typer.Argument(..., help="Path to associations YAML"),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
    state: str | None = typer.Option(None, "--state", help="State file path"),
) -> None:
    """Create every association in the file that does not exist yet."""
    stack = _load_stack(stack_path)
    provider = _load_provider(provider_config)
    store = _store(provider, state)

    async def _apply() -> list[Any]:
        async with _client(provider) as client:

            async def _one(assoc: Any) -> tuple[str, AssociationState]:
                manager = create_association_manager(assoc.kind, client)
                if store.get(assoc.association_id) is not None:
                    current = await manager.read(assoc.association_id)
                    if current is not None:
                        return "unchanged", current
                    store.remove(assoc.association_id)
                return "created", await manager.create(assoc)

            return await _gather(stack.associations, _one)

    results = asyncio.run(_apply())

    failed = False
    for assoc, result in zip(stack.associations, results, strict=True):
        if isinstance(result, BaseException):
            failed = True
            _report_failure(assoc.association_id, result)
            continue
        status, confirmed = result
        store.put(confirmed)
        style = "green" if status == "created" else "dim"
        console.print(f"[{style}]{status:<9}[/{style}] {confirmed.id}")

    if failed:
        raise typer.Exit(1)


@app.command()
def refresh(
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
    state: str | None = typer.Option(None, "--state", help="State file path"),
) -> None:
    """Re-read every recorded association and drop the ones that are gone."""
    provider = _load_provider(provider_config)
    store = _store(provider, state)
    records = store.records()
    if not records:
        console.print("[yellow]No associations in state[/yellow]")
        return

    async def _refresh() -> list[Any]:
        async with _client(provider) as client:

            async def _one(record: Any) -> AssociationState | None:
                manager = create_association_manager(record.kind, client)
                return await manager.read(record.id)

            return await _gather(records, _one)

    results = asyncio.run(_refresh())

    failed = False
    for record, result in zip(records, results, strict=True):
        if isinstance(result, BaseException):
            failed = True
            _report_failure(record.id, result)
        elif result is None:
            store.remove(record.id)
            console.print(f"[yellow]removed[/yellow]   {record.id}")
        else:
            store.put(result)
            console.print(f"[dim]ok[/dim]        {result.id}")

    if failed:
        raise typer.Exit(1)


@app.command()
def destroy(
    stack_path: str | None = typer.Argument(
        None, help="Only destroy associations listed in this YAML"
    ),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
    state: str | None = typer.Option(None, "--state", help="State file path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete recorded associations and remove them from state."""
    provider = _load_provider(provider_config)
    store = _store(provider, state)
    records = store.records()
    if stack_path is not None:
        wanted = {a.association_id for a in _load_stack(stack_path).associations}
        records = [r for r in records if r.id in wanted]
    if not records:
        console.print("[yellow]Nothing to destroy[/yellow]")
        return

    if not yes:
        confirm = typer.confirm(f"Destroy {len(records)} association(s)?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    async def _destroy() -> list[Any]:
        async with _client(provider) as client:

            async def _one(record: Any) -> None:
                manager = create_association_manager(record.kind, client)
                await manager.delete(record.id)

            return await _gather(records, _one)

    results = asyncio.run(_destroy())

    failed = False
    for record, result in zip(records, results, strict=True):
        if isinstance(result, BaseException):
            failed = True
            _report_failure(record.id, result)
            continue
        store.remove(record.id)
        console.print(f"[green]destroyed[/green] {record.id}")

    if failed:
        raise typer.Exit(1)


@app.command("import")
def import_association(
    association_id: str = typer.Argument(
        ...,
        help="{networkInterfaceId}/ipConfigurations/{name}|{backendAddressPoolId}",
    ),
    kind: AssociationKind = typer.Option(
        AssociationKind.APPLICATION_GATEWAY, "--kind", help="Backend pool flavour"
    ),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
    state: str | None = typer.Option(None, "--state", help="State file path"),
) -> None:
    """Adopt an existing association into state."""
    provider = _load_provider(provider_config)
    store = _store(provider, state)

    async def _import() -> AssociationState:
        async with _client(provider) as client:
            manager = create_association_manager(kind, client)
            return await manager.import_(association_id)

    try:
        imported = asyncio.run(_import())
    except AssociationError as exc:
        console.print(f"[red]Import failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    store.put(imported)
    console.print(f"[green]Imported[/green] {imported.id}")


@app.command()
def show(
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
    state: str | None = typer.Option(None, "--state", help="State file path"),
) -> None:
    """List the associations recorded in state."""
    provider = _load_provider(provider_config)
    store = _store(provider, state)
    records = store.records()
    if not records:
        console.print("[yellow]No associations in state[/yellow]")
        return

    table = Table(title=f"Associations — {store.path}")
    table.add_column("Kind", style="cyan")
    table.add_column("Network Interface")
    table.add_column("IP Configuration")
    table.add_column("Backend Pool")
    for r in records:
        table.add_row(
            r.kind.value,
            r.network_interface_id,
            r.ip_configuration_name,
            r.backend_address_pool_id,
        )
    console.print(table)
