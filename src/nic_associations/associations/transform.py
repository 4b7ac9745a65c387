"""Pure transformations over the REST shape of a network interface.

Nothing here performs I/O or mutates its arguments: every function returns
new dicts/lists so the fetched aggregate stays untouched until it is
submitted as a whole.
"""

from __future__ import annotations

from typing import Any

Payload = dict[str, Any]


def find_ip_configuration(configs: list[Payload], name: str) -> Payload | None:
    """Return the first IP configuration named *name*, or None."""
    for config in configs:
        if config.get("name") == name:
            return config
    return None


def pool_reference_ids(config: Payload, pool_field: str) -> list[str]:
    """IDs referenced by *config*'s *pool_field*, skipping entries without one."""
    props = config.get("properties") or {}
    return [ref["id"] for ref in props.get(pool_field) or [] if ref.get("id")]


def has_pool_reference(config: Payload, pool_field: str, pool_id: str) -> bool:
    return pool_id in pool_reference_ids(config, pool_field)


def add_pool_reference(config: Payload, pool_field: str, pool_id: str) -> Payload:
    """Return a copy of *config* with ``{"id": pool_id}`` appended to *pool_field*.

    Existing references without an ID are dropped. The caller is expected to
    have checked for duplicates first.
    """
    props = config.get("properties") or {}
    pools = [dict(ref) for ref in props.get(pool_field) or [] if ref.get("id")]
    pools.append({"id": pool_id})
    return {**config, "properties": {**props, pool_field: pools}}


def remove_pool_reference(config: Payload, pool_field: str, pool_id: str) -> Payload:
    """Return a copy of *config* without any reference to *pool_id*.

    References without an ID are dropped as well.
    """
    props = config.get("properties") or {}
    pools = [
        dict(ref)
        for ref in props.get(pool_field) or []
        if ref.get("id") and ref["id"] != pool_id
    ]
    return {**config, "properties": {**props, pool_field: pools}}


def replace_ip_configuration(configs: list[Payload], updated: Payload) -> list[Payload]:
    """Return a new list with the configuration sharing *updated*'s name replaced."""
    name = updated.get("name")
    return [updated if config.get("name") == name else config for config in configs]


def with_ip_configurations(interface: Payload, configs: list[Payload]) -> Payload:
    """Return a copy of *interface* carrying *configs* as its IP configurations."""
    props = interface.get("properties") or {}
    return {**interface, "properties": {**props, "ipConfigurations": configs}}
