from __future__ import annotations

import logging

from azure.core.exceptions import AzureError

from provisioner.adapters.management.base import ManagementApi
from provisioner.core.logging import success
from provisioner.domain.enums import AccountKind, EnsureOutcome, ResourceType
from provisioner.domain.models import AccountSpec, EnsureResult, ProvisioningContext

logger = logging.getLogger("provisioner.account")


class AccountService:
    def __init__(self, api: ManagementApi):
        self.api = api

    async def exists(self, ctx: ProvisioningContext, resource_group: str, name: str) -> bool:
        try:
            return await self.api.account_exists(ctx, resource_group, name)
        except AzureError as e:
            logger.warning("Could not look up Cosmos DB account [%s]: %s", name, e)
            return False

    async def ensure(self, ctx: ProvisioningContext, spec: AccountSpec) -> EnsureResult:
        """Create the database account unless it already exists.

        New accounts get the spec's consistency level, IP allow list, multi-region
        writes and a single region at failover priority 0. The account kind is
        taken from the SKU setting as given.
        """
        if await self.exists(ctx, spec.resource_group, spec.name):
            logger.info("Cosmos DB account [%s] already exists.", spec.name)
            return EnsureResult(
                resource=ResourceType.account, name=spec.name, outcome=EnsureOutcome.exists
            )

        logger.info("Cosmos DB account [%s] not found.", spec.name)
        if spec.kind is not AccountKind.mongodb:
            logger.warning(
                "Cosmos DB account [%s] will be created with kind %s; MongoDB databases "
                "cannot be created on it.",
                spec.name,
                spec.kind.value,
            )
        try:
            await self.api.create_account(ctx, spec)
        except AzureError as e:
            logger.error(
                "Failed to create Cosmos DB account [%s] for the Cosmos DB instance.", spec.name
            )
            return EnsureResult(
                resource=ResourceType.account,
                name=spec.name,
                outcome=EnsureOutcome.failed,
                error=str(e),
            )
        success(logger, "Created Cosmos DB account [%s] for the Cosmos DB instance.", spec.name)
        return EnsureResult(
            resource=ResourceType.account, name=spec.name, outcome=EnsureOutcome.created
        )
