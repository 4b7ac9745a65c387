"""Network interface <-> Application Gateway backend address pool association."""

from __future__ import annotations

from nic_associations.associations.base import BackendPoolAssociationManager
from nic_associations.config.models import AssociationKind


class ApplicationGatewayPoolAssociation(BackendPoolAssociationManager):
    kind = AssociationKind.APPLICATION_GATEWAY
    pool_field = "applicationGatewayBackendAddressPools"
    display_name = "Application Gateway Backend Address Pool"
