"""Network interface client — protocol plus the Azure SDK adapter."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import structlog

from nic_associations.config.models import AzureAuthConfig, ProviderConfig

logger = structlog.get_logger()


@runtime_checkable
class OperationHandle(Protocol):
    """A long-running operation that can be awaited to completion."""

    async def result(self) -> Any:
        """Wait for the operation and return its final resource."""
        ...


@runtime_checkable
class NetworkInterfaceClient(Protocol):
    """Get and replace network interfaces in their REST (ARM) JSON shape.

    Implementations raise ``azure.core.exceptions`` errors; translating them
    is the association manager's job.
    """

    async def get(self, resource_group: str, name: str) -> dict[str, Any]: ...

    async def begin_create_or_update(
        self, resource_group: str, name: str, interface: dict[str, Any]
    ) -> OperationHandle: ...


def build_credential(auth: AzureAuthConfig) -> Any:
    """Service principal credential when a secret is configured, else the default chain."""
    from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential

    if auth.client_secret is not None:
        assert auth.tenant_id is not None
        assert auth.client_id is not None
        return ClientSecretCredential(
            tenant_id=auth.tenant_id,
            client_id=auth.client_id,
            client_secret=auth.client_secret.get_secret_value(),
        )
    return DefaultAzureCredential()


class AzureNetworkInterfaceClient:
    """Thin async wrapper around ``NetworkManagementClient.network_interfaces``."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        credential: Any | None = None,
        sdk_client: Any | None = None,
    ) -> None:
        if config.subscription_id is None and sdk_client is None:
            msg = "subscription_id is required to talk to Azure"
            raise ValueError(msg)
        self._config = config
        self._credential = credential
        if sdk_client is None:
            from azure.mgmt.network.aio import NetworkManagementClient

            if self._credential is None:
                self._credential = build_credential(config.auth)
            sdk_client = NetworkManagementClient(
                self._credential, config.subscription_id
            )
        self._client = sdk_client

    async def close(self) -> None:
        await self._client.close()
        if self._credential is not None:
            await self._credential.close()

    async def __aenter__(self) -> AzureNetworkInterfaceClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def get(self, resource_group: str, name: str) -> dict[str, Any]:
        nic = await self._client.network_interfaces.get(resource_group, name)
        logger.debug(
            "network_interface.fetched",
            resource_group=resource_group,
            network_interface=name,
        )
        return nic.serialize(keep_readonly=True)  # type: ignore[no-any-return]

    async def begin_create_or_update(
        self, resource_group: str, name: str, interface: dict[str, Any]
    ) -> OperationHandle:
        from azure.mgmt.network.models import NetworkInterface

        poller = await self._client.network_interfaces.begin_create_or_update(
            resource_group,
            name,
            NetworkInterface.deserialize(interface),
            polling_interval=self._config.polling_interval_seconds,
        )
        logger.debug(
            "network_interface.update_submitted",
            resource_group=resource_group,
            network_interface=name,
        )
        return poller  # type: ignore[no-any-return]
