from __future__ import annotations

from typing import Any, Protocol

from provisioner.domain.models import AccountSpec, DatabaseSpec, ProvisioningContext


class ManagementApi(Protocol):
    """Cloud management operations the provisioning pipeline consumes.

    Existence probes return a bool. Create calls return nothing and raise on
    failure; callers decide whether a failure is fatal.
    """

    # Identity and subscription context
    async def login(self, tenant_id: str, principal: str, secret: str) -> Any: ...
    async def select_subscription(self, credential: Any, subscription_id: str) -> None: ...

    # Resource groups
    async def resource_group_exists(self, ctx: ProvisioningContext, name: str) -> bool: ...
    async def create_resource_group(
        self, ctx: ProvisioningContext, name: str, location: str
    ) -> None: ...

    # Database accounts
    async def account_exists(
        self, ctx: ProvisioningContext, resource_group: str, name: str
    ) -> bool: ...
    async def create_account(self, ctx: ProvisioningContext, spec: AccountSpec) -> None: ...

    # MongoDB databases
    async def database_exists(
        self, ctx: ProvisioningContext, resource_group: str, account: str, name: str
    ) -> bool: ...
    async def create_database(
        self, ctx: ProvisioningContext, resource_group: str, account: str, spec: DatabaseSpec
    ) -> None: ...

    async def close(self) -> None: ...
