from __future__ import annotations

import ipaddress
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from provisioner.domain.enums import (
    AccountKind,
    ConsistencyLevel,
    EnsureOutcome,
    ResourceType,
)


class ProvisioningContext(BaseModel):
    """Authenticated principal plus the subscription every call is scoped to.

    Built once by the auth service and handed to each ensurer explicitly.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tenant_id: str
    subscription_id: str
    principal: str
    # Backend specific credential object (e.g. ClientSecretCredential)
    credential: Any = Field(default=None, repr=False)


class ResourceGroupSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    location: str = Field(min_length=1)


class AccountSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    resource_group: str = Field(min_length=1)
    location: str = Field(min_length=1)
    kind: AccountKind = AccountKind.mongodb
    consistency_level: ConsistencyLevel = ConsistencyLevel.consistent_prefix
    ip_allow_list: list[str] = Field(default_factory=list)
    enable_multiple_write_locations: bool = True
    failover_priority: int = 0

    @field_validator("ip_allow_list")
    @classmethod
    def _validate_ips(cls, value: list[str]) -> list[str]:
        for entry in value:
            # Accepts single addresses and CIDR ranges
            ipaddress.ip_network(entry, strict=False)
        return value

    @property
    def document_endpoint(self) -> str:
        return f"https://{self.name}.documents.azure.com:443/"


class DatabaseSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    throughput: int = Field(gt=0, description="Provisioned throughput in RU/s")

    @classmethod
    def parse(cls, raw: str, default_throughput: int) -> "DatabaseSpec":
        """Parse ``name`` or ``name:throughput``."""
        name, sep, ru = raw.strip().partition(":")
        throughput = int(ru) if sep and ru.strip() else default_throughput
        return cls(name=name.strip(), throughput=throughput)


class EnsureResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource: ResourceType
    name: str
    outcome: EnsureOutcome
    error: str | None = None


class ProvisioningReport(BaseModel):
    results: list[EnsureResult] = Field(default_factory=list)

    @property
    def created_count(self) -> int:
        return sum(1 for r in self.results if r.outcome is EnsureOutcome.created)

    @property
    def existing_count(self) -> int:
        return sum(1 for r in self.results if r.outcome is EnsureOutcome.exists)

    @property
    def failed(self) -> list[EnsureResult]:
        return [
            r
            for r in self.results
            if r.outcome in (EnsureOutcome.failed, EnsureOutcome.unchecked_failure)
        ]


class ProvisioningPlan(BaseModel):
    """Everything one run needs, resolved from settings before any remote call."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    subscription_id: str
    principal: str
    secret: SecretStr
    resource_group: ResourceGroupSpec
    account: AccountSpec
    databases: list[DatabaseSpec] = Field(default_factory=list)
