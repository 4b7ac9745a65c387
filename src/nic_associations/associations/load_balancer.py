"""Network interface <-> Load Balancer backend address pool association."""

from __future__ import annotations

from nic_associations.associations.base import BackendPoolAssociationManager
from nic_associations.config.models import AssociationKind


class LoadBalancerPoolAssociation(BackendPoolAssociationManager):
    kind = AssociationKind.LOAD_BALANCER
    pool_field = "loadBalancerBackendAddressPools"
    display_name = "Load Balancer Backend Address Pool"
