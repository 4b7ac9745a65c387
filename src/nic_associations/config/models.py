"""Pydantic configuration models for provider settings and associations."""

from __future__ import annotations

from enum import StrEnum
from typing import Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)

from nic_associations.errors import ParseError
from nic_associations.network.ids import (
    NETWORK_INTERFACES,
    format_association_id,
    parse_resource_id,
)


class AssociationKind(StrEnum):
    """Backend pool flavours a network interface IP configuration can join."""

    APPLICATION_GATEWAY = "application_gateway"
    LOAD_BALANCER = "load_balancer"


class LogFormat(StrEnum):
    CONSOLE = "console"
    JSON = "json"


class AzureAuthConfig(BaseModel):
    """Service principal credentials; leave empty to use DefaultAzureCredential."""

    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None

    @model_validator(mode="after")
    def check_service_principal(self) -> Self:
        """A client secret is only usable together with tenant and client IDs."""
        if self.client_secret is not None and (
            not self.tenant_id or not self.client_id
        ):
            msg = "tenant_id and client_id are required when client_secret is set"
            raise ValueError(msg)
        return self


class LoggingConfig(BaseModel):
    level: str = "info"
    format: LogFormat = LogFormat.CONSOLE

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        levels = {"debug", "info", "warning", "error", "critical"}
        if v.lower() not in levels:
            msg = f"Log level '{v}' must be one of {sorted(levels)}"
            raise ValueError(msg)
        return v.lower()


class ProviderConfig(BaseModel):
    """Azure connection, polling and local state settings."""

    subscription_id: str | None = None
    auth: AzureAuthConfig = AzureAuthConfig()
    polling_interval_seconds: float = Field(default=30.0, gt=0)
    state_file: str = ".nicassoc-state.json"
    logging: LoggingConfig = LoggingConfig()

    @field_validator("subscription_id")
    @classmethod
    def empty_subscription_is_unset(cls, v: str | None) -> str | None:
        return v or None


class AssociationConfig(BaseModel):
    """Strongly typed arguments of a single association.

    Every field is immutable once created; changing one means destroying the
    association and creating a new one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: AssociationKind = AssociationKind.APPLICATION_GATEWAY
    network_interface_id: str
    ip_configuration_name: str = Field(min_length=1)
    backend_address_pool_id: str

    @field_validator("network_interface_id")
    @classmethod
    def validate_network_interface_id(cls, v: str) -> str:
        try:
            parsed = parse_resource_id(v)
        except ParseError as exc:
            raise ValueError(str(exc)) from exc
        if (parsed.resource_type or "").lower() != NETWORK_INTERFACES.lower():
            msg = f"Expected a {NETWORK_INTERFACES} resource ID, got {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("backend_address_pool_id")
    @classmethod
    def validate_backend_address_pool_id(cls, v: str) -> str:
        try:
            parse_resource_id(v)
        except ParseError as exc:
            raise ValueError(str(exc)) from exc
        return v

    @field_validator("ip_configuration_name")
    @classmethod
    def validate_ip_configuration_name(cls, v: str) -> str:
        if not v.strip():
            msg = "ip_configuration_name must not be blank"
            raise ValueError(msg)
        return v

    @property
    def association_id(self) -> str:
        return format_association_id(
            self.network_interface_id,
            self.ip_configuration_name,
            self.backend_address_pool_id,
        )


class StackConfig(BaseModel, extra="forbid"):
    """A set of associations managed together from one YAML file."""

    associations: list[AssociationConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_associations(self) -> Self:
        seen: set[str] = set()
        for assoc in self.associations:
            key = assoc.association_id.lower()
            if key in seen:
                msg = f"Duplicate association: {assoc.association_id}"
                raise ValueError(msg)
            seen.add(key)
        return self
