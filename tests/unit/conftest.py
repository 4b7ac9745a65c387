"""Shared fixtures: an in-memory network interface API."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable, Iterable
from typing import Any

import pytest
from azure.core.exceptions import AzureError, ResourceNotFoundError

SUBSCRIPTION = "00000000-0000-0000-0000-000000000000"
NIC_ID = (
    f"/subscriptions/{SUBSCRIPTION}/resourceGroups/rg1"
    "/providers/Microsoft.Network/networkInterfaces/nic1"
)
AGW_POOL_ID = (
    f"/subscriptions/{SUBSCRIPTION}/resourceGroups/rg1"
    "/providers/Microsoft.Network/applicationGateways/agw1/backendAddressPools/pool1"
)
LB_POOL_ID = (
    f"/subscriptions/{SUBSCRIPTION}/resourceGroups/rg1"
    "/providers/Microsoft.Network/loadBalancers/lb1/backendAddressPools/pool1"
)


def ip_config(
    name: str = "ipconfig1",
    agw_pools: Iterable[str | None] = (),
    lb_pools: Iterable[str | None] = (),
) -> dict[str, Any]:
    return {
        "id": f"{NIC_ID}/ipConfigurations/{name}",
        "name": name,
        "properties": {
            "privateIPAllocationMethod": "Dynamic",
            "applicationGatewayBackendAddressPools": [{"id": p} for p in agw_pools],
            "loadBalancerBackendAddressPools": [{"id": p} for p in lb_pools],
        },
    }


def interface(
    name: str = "nic1",
    configs: list[dict[str, Any]] | None = None,
    nic_id: str | None = None,
) -> dict[str, Any]:
    return {
        "id": nic_id or NIC_ID.replace("/nic1", f"/{name}"),
        "name": name,
        "location": "westeurope",
        "properties": {
            "ipConfigurations": [ip_config()] if configs is None else configs,
        },
    }


class FakeOperation:
    """Commits the submitted interface when awaited, like an LRO poller."""

    def __init__(self, commit: Callable[[], None], error: Exception | None) -> None:
        self._commit = commit
        self._error = error

    async def result(self) -> None:
        await asyncio.sleep(0)
        if self._error is not None:
            raise self._error
        self._commit()


class FakeNetworkInterfaceClient:
    """In-memory stand-in for the network interface API.

    Raises the same ``azure.core`` exceptions as the SDK adapter.
    """

    def __init__(self) -> None:
        self.interfaces: dict[tuple[str, str], dict[str, Any]] = {}
        self.get_calls: list[tuple[str, str]] = []
        self.submissions: list[tuple[str, str, dict[str, Any]]] = []
        self.get_error: AzureError | None = None
        self.submit_error: AzureError | None = None
        self.operation_error: AzureError | None = None
        self.closed = False

    def add(self, resource_group: str, payload: dict[str, Any]) -> None:
        self.interfaces[(resource_group, payload["name"])] = copy.deepcopy(payload)

    def stored(self, resource_group: str, name: str) -> dict[str, Any]:
        return self.interfaces[(resource_group, name)]

    async def get(self, resource_group: str, name: str) -> dict[str, Any]:
        self.get_calls.append((resource_group, name))
        await asyncio.sleep(0)
        if self.get_error is not None:
            raise self.get_error
        try:
            return copy.deepcopy(self.interfaces[(resource_group, name)])
        except KeyError:
            msg = f"Network interface {name} not found"
            raise ResourceNotFoundError(msg) from None

    async def begin_create_or_update(
        self, resource_group: str, name: str, interface: dict[str, Any]
    ) -> FakeOperation:
        if self.submit_error is not None:
            raise self.submit_error
        snapshot = copy.deepcopy(interface)
        self.submissions.append((resource_group, name, snapshot))

        def _commit() -> None:
            self.interfaces[(resource_group, name)] = snapshot

        return FakeOperation(_commit, self.operation_error)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> FakeNetworkInterfaceClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


@pytest.fixture
def fake_client() -> FakeNetworkInterfaceClient:
    client = FakeNetworkInterfaceClient()
    client.add("rg1", interface())
    return client
