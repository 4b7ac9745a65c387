"""Read-modify-write association of NIC IP configurations with backend pools.

Every mutation follows the same protocol: lock the network interface by
name, fetch the whole interface, apply a pure transformation to one IP
configuration's pool-reference list, submit the whole interface back and
wait for the long-running operation. Reads never lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

import structlog
from azure.core.exceptions import AzureError, ResourceNotFoundError

from nic_associations.associations.transform import (
    Payload,
    add_pool_reference,
    find_ip_configuration,
    has_pool_reference,
    remove_pool_reference,
    replace_ip_configuration,
    with_ip_configurations,
)
from nic_associations.config.models import AssociationConfig, AssociationKind
from nic_associations.errors import (
    ConflictError,
    NotFoundError,
    OperationError,
    RequestError,
    StructuralError,
)
from nic_associations.locks import (
    NETWORK_INTERFACE_LOCK_KIND,
    LockManager,
    shared_lock_manager,
)
from nic_associations.network.client import NetworkInterfaceClient
from nic_associations.network.ids import (
    NETWORK_INTERFACES,
    format_association_id,
    parse_association_id,
    parse_resource_id,
)

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class AssociationState:
    """Server-confirmed attributes of an association."""

    id: str
    kind: AssociationKind
    network_interface_id: str
    ip_configuration_name: str
    backend_address_pool_id: str


class BackendPoolAssociationManager:
    """Create, read and delete one flavour of backend pool association.

    Subclasses set ``kind``, ``pool_field`` (the IP configuration property
    holding the pool references) and ``display_name``.
    """

    kind: ClassVar[AssociationKind]
    pool_field: ClassVar[str]
    display_name: ClassVar[str]

    def __init__(
        self,
        client: NetworkInterfaceClient,
        locks: LockManager | None = None,
    ) -> None:
        self._client = client
        self._locks = locks

    @property
    def locks(self) -> LockManager:
        """Injected lock manager, else the process-wide registry."""
        if self._locks is not None:
            return self._locks
        return shared_lock_manager()

    # -- Operations ------------------------------------------------------------

    async def create(self, args: AssociationConfig) -> AssociationState:
        """Add the pool reference and return the state confirmed by a fresh read."""
        logger.info(
            "association.create_started",
            kind=self.kind.value,
            network_interface_id=args.network_interface_id,
            ip_configuration_name=args.ip_configuration_name,
        )
        nic_id = parse_resource_id(args.network_interface_id)
        nic_name = nic_id.require(NETWORK_INTERFACES)
        resource_group = nic_id.resource_group
        config_name = args.ip_configuration_name
        pool_id = args.backend_address_pool_id

        async with self.locks.lock(nic_name, NETWORK_INTERFACE_LOCK_KIND):
            interface = await self._get_interface(resource_group, nic_name)
            configs = self._ip_configurations(interface, resource_group, nic_name)
            config = self._require_ip_configuration(
                configs, config_name, resource_group, nic_name
            )

            if has_pool_reference(config, self.pool_field, pool_id):
                msg = (
                    f"A Network Interface <-> {self.display_name} association "
                    f"exists between {args.network_interface_id!r} and "
                    f"{pool_id!r} - please import it!"
                )
                raise ConflictError(msg)

            updated = add_pool_reference(config, self.pool_field, pool_id)
            interface = with_ip_configurations(
                interface, replace_ip_configuration(configs, updated)
            )
            await self._submit(resource_group, nic_name, interface, action="updating")

        association_id = format_association_id(
            args.network_interface_id, config_name, pool_id
        )
        logger.info("association.created", kind=self.kind.value, id=association_id)

        state = await self.read(association_id)
        if state is None:
            msg = (
                f"{self.display_name} association {association_id!r} was not "
                "found after it was created"
            )
            raise NotFoundError(msg)
        return state

    async def read(self, association_id: str) -> AssociationState | None:
        """Return the association, or None when it no longer exists upstream.

        None means the caller should drop the association from its state.
        """
        parsed = parse_association_id(association_id)
        resource_group = parsed.resource_group
        nic_name = parsed.network_interface_name
        config_name = parsed.ip_configuration_name
        pool_id = parsed.backend_address_pool_id

        try:
            interface = await self._get_interface(resource_group, nic_name)
        except NotFoundError:
            logger.info(
                "association.removed_from_state",
                reason="network_interface_not_found",
                network_interface=nic_name,
                resource_group=resource_group,
            )
            return None

        configs = self._ip_configurations(interface, resource_group, nic_name)
        config = find_ip_configuration(configs, config_name)
        if config is None:
            logger.info(
                "association.removed_from_state",
                reason="ip_configuration_not_found",
                ip_configuration=config_name,
                network_interface=nic_name,
                resource_group=resource_group,
            )
            return None

        if not has_pool_reference(config, self.pool_field, pool_id):
            logger.info(
                "association.removed_from_state",
                reason="association_not_found",
                network_interface=nic_name,
                resource_group=resource_group,
                backend_address_pool_id=pool_id,
            )
            return None

        return AssociationState(
            id=association_id,
            kind=self.kind,
            network_interface_id=interface.get("id") or parsed.network_interface_id,
            ip_configuration_name=config_name,
            backend_address_pool_id=pool_id,
        )

    async def delete(self, association_id: str) -> None:
        """Remove the pool reference.

        Unlike ``read``, a missing IP configuration or association is an
        error here.
        """
        parsed = parse_association_id(association_id)
        resource_group = parsed.resource_group
        nic_name = parsed.network_interface_name
        config_name = parsed.ip_configuration_name
        pool_id = parsed.backend_address_pool_id

        async with self.locks.lock(nic_name, NETWORK_INTERFACE_LOCK_KIND):
            interface = await self._get_interface(resource_group, nic_name)
            configs = self._ip_configurations(interface, resource_group, nic_name)
            config = self._require_ip_configuration(
                configs, config_name, resource_group, nic_name
            )

            if not has_pool_reference(config, self.pool_field, pool_id):
                msg = (
                    f"{self.display_name} association between IP Configuration "
                    f"{config_name!r} of Network Interface {nic_name!r} "
                    f"(Resource Group {resource_group!r}) and {pool_id!r} "
                    "was not found"
                )
                raise NotFoundError(msg)

            updated = remove_pool_reference(config, self.pool_field, pool_id)
            interface = with_ip_configurations(
                interface, replace_ip_configuration(configs, updated)
            )
            await self._submit(resource_group, nic_name, interface, action="removing")

        logger.info("association.deleted", kind=self.kind.value, id=association_id)

    async def import_(self, association_id: str) -> AssociationState:
        """Adopt an existing association; fails if it does not exist."""
        state = await self.read(association_id)
        if state is None:
            msg = (
                f"Cannot import non-existent {self.display_name} association "
                f"{association_id!r}"
            )
            raise NotFoundError(msg)
        logger.info("association.imported", kind=self.kind.value, id=association_id)
        return state

    # -- Helpers ---------------------------------------------------------------

    async def _get_interface(self, resource_group: str, nic_name: str) -> Payload:
        try:
            return await self._client.get(resource_group, nic_name)
        except ResourceNotFoundError as exc:
            msg = (
                f"Network Interface {nic_name!r} "
                f"(Resource Group {resource_group!r}) was not found!"
            )
            raise NotFoundError(msg) from exc
        except AzureError as exc:
            msg = (
                f"Error retrieving Network Interface {nic_name!r} "
                f"(Resource Group {resource_group!r}): {exc}"
            )
            raise RequestError(msg) from exc

    def _ip_configurations(
        self, interface: Payload, resource_group: str, nic_name: str
    ) -> list[Payload]:
        props = interface.get("properties")
        if props is None:
            msg = (
                f"`properties` was nil for Network Interface {nic_name!r} "
                f"(Resource Group {resource_group!r})"
            )
            raise StructuralError(msg)
        configs = props.get("ipConfigurations")
        if configs is None:
            msg = (
                f"`properties.ipConfigurations` was nil for Network Interface "
                f"{nic_name!r} (Resource Group {resource_group!r})"
            )
            raise StructuralError(msg)
        return list(configs)

    def _require_ip_configuration(
        self,
        configs: list[Payload],
        config_name: str,
        resource_group: str,
        nic_name: str,
    ) -> Payload:
        config = find_ip_configuration(configs, config_name)
        if config is None:
            msg = (
                f"IP Configuration {config_name!r} was not found on Network "
                f"Interface {nic_name!r} (Resource Group {resource_group!r})"
            )
            raise NotFoundError(msg)
        if config.get("properties") is None:
            msg = (
                f"`properties` was nil for IP Configuration {config_name!r} of "
                f"Network Interface {nic_name!r} (Resource Group {resource_group!r})"
            )
            raise StructuralError(msg)
        return config

    async def _submit(
        self,
        resource_group: str,
        nic_name: str,
        interface: dict[str, Any],
        *,
        action: str,
    ) -> None:
        try:
            handle = await self._client.begin_create_or_update(
                resource_group, nic_name, interface
            )
        except AzureError as exc:
            msg = (
                f"Error {action} {self.display_name} association for Network "
                f"Interface {nic_name!r} (Resource Group {resource_group!r}): {exc}"
            )
            raise RequestError(msg) from exc

        try:
            await handle.result()
        except AzureError as exc:
            msg = (
                f"Error waiting for completion of {self.display_name} association "
                f"for Network Interface {nic_name!r} "
                f"(Resource Group {resource_group!r}): {exc}"
            )
            raise OperationError(msg) from exc
