from __future__ import annotations

import logging

from azure.core.exceptions import AzureError

from provisioner.adapters.management.base import ManagementApi
from provisioner.core.logging import success
from provisioner.domain.enums import EnsureOutcome, ResourceType
from provisioner.domain.models import EnsureResult, ProvisioningContext, ResourceGroupSpec

logger = logging.getLogger("provisioner.resource_group")


class ResourceGroupService:
    def __init__(self, api: ManagementApi):
        self.api = api

    async def exists(self, ctx: ProvisioningContext, name: str) -> bool:
        try:
            return await self.api.resource_group_exists(ctx, name)
        except AzureError as e:
            # An unreadable group is treated as missing; the create call decides
            logger.warning("Could not look up Resource Group [%s]: %s", name, e)
            return False

    async def ensure(self, ctx: ProvisioningContext, spec: ResourceGroupSpec) -> EnsureResult:
        """Create the resource group unless it already exists."""
        if await self.exists(ctx, spec.name):
            logger.info("Resource Group [%s] already exists.", spec.name)
            return EnsureResult(
                resource=ResourceType.resource_group, name=spec.name, outcome=EnsureOutcome.exists
            )

        logger.info("Resource Group [%s] not found.", spec.name)
        try:
            await self.api.create_resource_group(ctx, spec.name, spec.location)
        except AzureError as e:
            logger.error(
                "Failed to create the Resource Group [%s] for the Cosmos (Mongo) instance.",
                spec.name,
            )
            return EnsureResult(
                resource=ResourceType.resource_group,
                name=spec.name,
                outcome=EnsureOutcome.failed,
                error=str(e),
            )
        success(
            logger,
            "Created the Resource Group [%s] for the Cosmos (Mongo) instance.",
            spec.name,
        )
        return EnsureResult(
            resource=ResourceType.resource_group, name=spec.name, outcome=EnsureOutcome.created
        )
