"""Factory for association managers by kind."""

from __future__ import annotations

from nic_associations.associations.base import BackendPoolAssociationManager
from nic_associations.config.models import AssociationKind
from nic_associations.locks import LockManager
from nic_associations.network.client import NetworkInterfaceClient


def create_association_manager(
    kind: AssociationKind,
    client: NetworkInterfaceClient,
    locks: LockManager | None = None,
) -> BackendPoolAssociationManager:
    """Create the manager for *kind*.

    Without *locks* the manager uses the process-wide registry, so every kind
    serializes on the network interface it rewrites.
    """
    if kind == AssociationKind.APPLICATION_GATEWAY:
        from nic_associations.associations.application_gateway import (
            ApplicationGatewayPoolAssociation,
        )

        return ApplicationGatewayPoolAssociation(client, locks)

    if kind == AssociationKind.LOAD_BALANCER:
        from nic_associations.associations.load_balancer import (
            LoadBalancerPoolAssociation,
        )

        return LoadBalancerPoolAssociation(client, locks)

    msg = f"Unsupported association kind: {kind}"
    raise ValueError(msg)
