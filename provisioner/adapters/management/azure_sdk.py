from __future__ import annotations

import logging
from typing import Any

from azure.core.exceptions import ResourceNotFoundError
from azure.identity.aio import ClientSecretCredential
from azure.mgmt.cosmosdb.aio import CosmosDBManagementClient
from azure.mgmt.cosmosdb.models import (
    ConsistencyPolicy,
    CreateUpdateOptions,
    DatabaseAccountCreateUpdateParameters,
    IpAddressOrRange,
    Location,
    MongoDBDatabaseCreateUpdateParameters,
    MongoDBDatabaseResource,
)
from azure.mgmt.resource.resources.aio import ResourceManagementClient

from provisioner.domain.models import AccountSpec, DatabaseSpec, ProvisioningContext

logger = logging.getLogger("provisioner.adapters.azure")

MANAGEMENT_SCOPE = "https://management.azure.com/.default"
# Resource provider that must be reachable in the selected subscription
COSMOS_PROVIDER_NAMESPACE = "Microsoft.DocumentDB"


def build_account_parameters(spec: AccountSpec) -> DatabaseAccountCreateUpdateParameters:
    """Translate an AccountSpec into the management-plane create payload."""
    return DatabaseAccountCreateUpdateParameters(
        location=spec.location,
        kind=spec.kind.value,
        locations=[
            Location(location_name=spec.location, failover_priority=spec.failover_priority)
        ],
        consistency_policy=ConsistencyPolicy(
            default_consistency_level=spec.consistency_level.value
        ),
        ip_rules=[IpAddressOrRange(ip_address_or_range=ip) for ip in spec.ip_allow_list],
        enable_multiple_write_locations=spec.enable_multiple_write_locations,
    )


def build_database_parameters(spec: DatabaseSpec) -> MongoDBDatabaseCreateUpdateParameters:
    return MongoDBDatabaseCreateUpdateParameters(
        resource=MongoDBDatabaseResource(id=spec.name),
        options=CreateUpdateOptions(throughput=spec.throughput),
    )


class AzureManagementApi:
    """ManagementApi backed by the Azure SDK async management clients.

    Clients are created per subscription from the credential carried by the
    ProvisioningContext and reused for the rest of the run.
    """

    def __init__(self) -> None:
        self._credentials: list[ClientSecretCredential] = []
        self._resource_clients: dict[str, ResourceManagementClient] = {}
        self._cosmos_clients: dict[str, CosmosDBManagementClient] = {}

    def _resource_client(self, credential: Any, subscription_id: str) -> ResourceManagementClient:
        client = self._resource_clients.get(subscription_id)
        if client is None:
            client = ResourceManagementClient(credential, subscription_id)
            self._resource_clients[subscription_id] = client
        return client

    def _cosmos_client(self, ctx: ProvisioningContext) -> CosmosDBManagementClient:
        client = self._cosmos_clients.get(ctx.subscription_id)
        if client is None:
            client = CosmosDBManagementClient(ctx.credential, ctx.subscription_id)
            self._cosmos_clients[ctx.subscription_id] = client
        return client

    async def login(self, tenant_id: str, principal: str, secret: str) -> Any:
        credential = ClientSecretCredential(
            tenant_id=tenant_id, client_id=principal, client_secret=secret
        )
        try:
            # Force a token round trip so bad credentials fail here, not on first use
            await credential.get_token(MANAGEMENT_SCOPE)
        except Exception:
            await credential.close()
            raise
        self._credentials.append(credential)
        return credential

    async def select_subscription(self, credential: Any, subscription_id: str) -> None:
        client = self._resource_client(credential, subscription_id)
        provider = await client.providers.get(COSMOS_PROVIDER_NAMESPACE)
        logger.debug(
            "Provider %s registration state in %s: %s",
            COSMOS_PROVIDER_NAMESPACE,
            subscription_id,
            getattr(provider, "registration_state", None),
        )

    async def resource_group_exists(self, ctx: ProvisioningContext, name: str) -> bool:
        client = self._resource_client(ctx.credential, ctx.subscription_id)
        return bool(await client.resource_groups.check_existence(name))

    async def create_resource_group(
        self, ctx: ProvisioningContext, name: str, location: str
    ) -> None:
        client = self._resource_client(ctx.credential, ctx.subscription_id)
        await client.resource_groups.create_or_update(name, {"location": location})

    async def account_exists(
        self, ctx: ProvisioningContext, resource_group: str, name: str
    ) -> bool:
        try:
            await self._cosmos_client(ctx).database_accounts.get(
                resource_group_name=resource_group, account_name=name
            )
        except ResourceNotFoundError:
            return False
        return True

    async def create_account(self, ctx: ProvisioningContext, spec: AccountSpec) -> None:
        poller = await self._cosmos_client(ctx).database_accounts.begin_create_or_update(
            resource_group_name=spec.resource_group,
            account_name=spec.name,
            create_update_parameters=build_account_parameters(spec),
        )
        await poller.result()

    async def database_exists(
        self, ctx: ProvisioningContext, resource_group: str, account: str, name: str
    ) -> bool:
        try:
            await self._cosmos_client(ctx).mongo_db_resources.get_mongo_db_database(
                resource_group_name=resource_group,
                account_name=account,
                database_name=name,
            )
        except ResourceNotFoundError:
            return False
        return True

    async def create_database(
        self, ctx: ProvisioningContext, resource_group: str, account: str, spec: DatabaseSpec
    ) -> None:
        resources = self._cosmos_client(ctx).mongo_db_resources
        poller = await resources.begin_create_update_mongo_db_database(
            resource_group_name=resource_group,
            account_name=account,
            database_name=spec.name,
            create_update_mongo_db_database_parameters=build_database_parameters(spec),
        )
        await poller.result()

    async def close(self) -> None:
        for client in [*self._cosmos_clients.values(), *self._resource_clients.values()]:
            await client.close()
        for credential in self._credentials:
            await credential.close()
        self._cosmos_clients.clear()
        self._resource_clients.clear()
        self._credentials.clear()
