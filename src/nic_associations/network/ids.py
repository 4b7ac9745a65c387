"""Azure resource IDs and composite association IDs.

Parsing of ARM IDs is delegated to ``azure.mgmt.core.tools``; this module
wraps the result in a typed ``ResourceID`` and adds the composite
``{networkInterfaceId}/ipConfigurations/{name}|{backendPoolId}`` format used
as the persisted identity of an association.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from azure.mgmt.core.tools import is_valid_resource_id
from azure.mgmt.core.tools import parse_resource_id as _parse_arm_id

from nic_associations.errors import FormatError, ParseError

NETWORK_INTERFACES = "networkInterfaces"
IP_CONFIGURATIONS = "ipConfigurations"
ASSOCIATION_ID_SEPARATOR = "|"


@dataclass(frozen=True, slots=True)
class ResourceID:
    """A parsed ARM resource ID.

    ``path`` maps each type segment (``networkInterfaces``,
    ``ipConfigurations``, ...) to its name, in the order they appear.
    """

    raw: str
    subscription_id: str
    resource_group: str
    provider: str
    path: dict[str, str] = field(default_factory=dict)

    def segment(self, key: str) -> str | None:
        """Return the name for the *key* type segment, ignoring case."""
        wanted = key.lower()
        for seg_type, seg_name in self.path.items():
            if seg_type.lower() == wanted:
                return seg_name
        return None

    def require(self, key: str) -> str:
        name = self.segment(key)
        if not name:
            msg = f"ID {self.raw!r} does not contain a {key!r} segment"
            raise ParseError(msg)
        return name

    @property
    def resource_type(self) -> str | None:
        """The innermost type segment, e.g. ``ipConfigurations`` for a child ID."""
        return next(reversed(self.path), None)


def parse_resource_id(value: str) -> ResourceID:
    """Parse *value* into a ``ResourceID`` or raise ``ParseError``."""
    if not value or not is_valid_resource_id(value):
        msg = f"Cannot parse Azure resource ID {value!r}"
        raise ParseError(msg)

    parts = _parse_arm_id(value)
    resource_group = parts.get("resource_group")
    if not resource_group:
        msg = f"No resource group found in ID {value!r}"
        raise ParseError(msg)

    path: dict[str, str] = {}
    if "type" in parts and "name" in parts:
        path[str(parts["type"])] = str(parts["name"])
    for num in range(1, int(parts.get("last_child_num") or 0) + 1):
        child_type = parts.get(f"child_type_{num}")
        child_name = parts.get(f"child_name_{num}")
        if child_type and child_name:
            path[str(child_type)] = str(child_name)

    return ResourceID(
        raw=value,
        subscription_id=str(parts["subscription"]),
        resource_group=str(resource_group),
        provider=str(parts.get("namespace", "")),
        path=path,
    )


@dataclass(frozen=True, slots=True)
class AssociationID:
    """The three parts encoded in a composite association ID."""

    network_interface_id: str
    resource_group: str
    network_interface_name: str
    ip_configuration_name: str
    backend_address_pool_id: str

    def __str__(self) -> str:
        return format_association_id(
            self.network_interface_id,
            self.ip_configuration_name,
            self.backend_address_pool_id,
        )


def format_association_id(
    network_interface_id: str,
    ip_configuration_name: str,
    backend_address_pool_id: str,
) -> str:
    return (
        f"{network_interface_id}/{IP_CONFIGURATIONS}/{ip_configuration_name}"
        f"{ASSOCIATION_ID_SEPARATOR}{backend_address_pool_id}"
    )


def parse_association_id(value: str) -> AssociationID:
    """Split a composite association ID into its parts.

    Raises ``FormatError`` when the separator is missing or repeated and
    ``ParseError`` when the IP configuration half is not a valid ARM ID.
    """
    parts = value.split(ASSOCIATION_ID_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        msg = (
            "Expected ID to be in the format "
            "{networkInterfaceId}/ipConfigurations/{ipConfigurationName}"
            f"|{{backendAddressPoolId}} but got {value!r}"
        )
        raise FormatError(msg)

    config_id, pool_id = parts
    parsed = parse_resource_id(config_id)
    nic_name = parsed.require(NETWORK_INTERFACES)
    config_name = parsed.require(IP_CONFIGURATIONS)

    suffix = f"/{IP_CONFIGURATIONS}/{config_name}"
    if config_id.lower().endswith(suffix.lower()):
        nic_id = config_id[: -len(suffix)]
    else:
        nic_id = config_id

    return AssociationID(
        network_interface_id=nic_id,
        resource_group=parsed.resource_group,
        network_interface_name=nic_name,
        ip_configuration_name=config_name,
        backend_address_pool_id=pool_id,
    )
