from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from azure.core.exceptions import ClientAuthenticationError, HttpResponseError

from provisioner.domain.models import AccountSpec, DatabaseSpec, ProvisioningContext


@dataclass
class Call:
    """One recorded management operation, for dry-run summaries and tests."""

    op: str
    args: tuple[Any, ...] = ()


class InMemoryManagementApi:
    """In-process stand-in for the management plane.

    Holds resource groups, accounts and databases in dicts keyed by name.
    ``fail_ops`` names operations (e.g. ``"create_database:mydb2"`` or
    ``"login"``) that raise the same exceptions the Azure SDK would.
    """

    def __init__(
        self,
        resource_groups: dict[str, str] | None = None,
        accounts: dict[tuple[str, str], AccountSpec] | None = None,
        databases: dict[tuple[str, str, str], DatabaseSpec] | None = None,
        fail_ops: set[str] | None = None,
    ) -> None:
        self.resource_groups: dict[str, str] = dict(resource_groups or {})
        self.accounts: dict[tuple[str, str], AccountSpec] = dict(accounts or {})
        self.databases: dict[tuple[str, str, str], DatabaseSpec] = dict(databases or {})
        self.fail_ops: set[str] = set(fail_ops or set())
        self.calls: list[Call] = []

    def _record(self, op: str, *args: Any) -> None:
        self.calls.append(Call(op=op, args=args))

    def _maybe_fail(self, op: str, name: str | None = None) -> None:
        if op in self.fail_ops or (name is not None and f"{op}:{name}" in self.fail_ops):
            if op == "login":
                raise ClientAuthenticationError(message="invalid client secret")
            raise HttpResponseError(message=f"{op} failed")

    def ops(self, prefix: str = "") -> list[str]:
        return [c.op for c in self.calls if c.op.startswith(prefix)]

    async def login(self, tenant_id: str, principal: str, secret: str) -> Any:
        self._record("login", tenant_id, principal)
        self._maybe_fail("login", principal)
        return {"tenant_id": tenant_id, "principal": principal}

    async def select_subscription(self, credential: Any, subscription_id: str) -> None:
        self._record("select_subscription", subscription_id)
        self._maybe_fail("select_subscription", subscription_id)

    async def resource_group_exists(self, ctx: ProvisioningContext, name: str) -> bool:
        self._record("resource_group_exists", name)
        self._maybe_fail("resource_group_exists", name)
        return name in self.resource_groups

    async def create_resource_group(
        self, ctx: ProvisioningContext, name: str, location: str
    ) -> None:
        self._record("create_resource_group", name, location)
        self._maybe_fail("create_resource_group", name)
        self.resource_groups[name] = location

    async def account_exists(
        self, ctx: ProvisioningContext, resource_group: str, name: str
    ) -> bool:
        self._record("account_exists", resource_group, name)
        self._maybe_fail("account_exists", name)
        return (resource_group, name) in self.accounts

    async def create_account(self, ctx: ProvisioningContext, spec: AccountSpec) -> None:
        self._record("create_account", spec)
        self._maybe_fail("create_account", spec.name)
        if spec.resource_group not in self.resource_groups:
            raise HttpResponseError(message=f"Resource group '{spec.resource_group}' not found")
        self.accounts[(spec.resource_group, spec.name)] = spec

    async def database_exists(
        self, ctx: ProvisioningContext, resource_group: str, account: str, name: str
    ) -> bool:
        self._record("database_exists", resource_group, account, name)
        self._maybe_fail("database_exists", name)
        return (resource_group, account, name) in self.databases

    async def create_database(
        self, ctx: ProvisioningContext, resource_group: str, account: str, spec: DatabaseSpec
    ) -> None:
        self._record("create_database", resource_group, account, spec)
        self._maybe_fail("create_database", spec.name)
        if (resource_group, account) not in self.accounts:
            raise HttpResponseError(message=f"Database account '{account}' not found")
        self.databases[(resource_group, account, spec.name)] = spec

    async def close(self) -> None:
        return None
