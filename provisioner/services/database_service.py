from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from azure.core.exceptions import AzureError

from provisioner.adapters.management.base import ManagementApi
from provisioner.domain.enums import EnsureOutcome, ResourceType
from provisioner.domain.models import DatabaseSpec, EnsureResult, ProvisioningContext

logger = logging.getLogger("provisioner.database")


class DatabaseService:
    """Creates MongoDB databases on an existing account.

    With ``strict=False`` (the historical behavior) a failed create is logged
    as complete and reported as ``unchecked_failure``; with ``strict=True`` it
    is logged as a failure and reported as ``failed``.
    """

    def __init__(self, api: ManagementApi, strict: bool = False, max_concurrency: int = 1):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.api = api
        self.strict = strict
        self.max_concurrency = max_concurrency

    async def exists(
        self, ctx: ProvisioningContext, resource_group: str, account: str, name: str
    ) -> bool:
        try:
            return await self.api.database_exists(ctx, resource_group, account, name)
        except AzureError as e:
            logger.debug("Existence probe for Cosmos DB [%s] failed: %s", name, e)
            return False

    async def ensure(
        self, ctx: ProvisioningContext, resource_group: str, account: str, spec: DatabaseSpec
    ) -> EnsureResult:
        if await self.exists(ctx, resource_group, account, spec.name):
            logger.info("Cosmos DB [%s] exists is true.", spec.name)
            return EnsureResult(
                resource=ResourceType.database, name=spec.name, outcome=EnsureOutcome.exists
            )

        logger.info("Cosmos DB [%s] exists is false. Creating DB", spec.name)
        try:
            await self.api.create_database(ctx, resource_group, account, spec)
        except AzureError as e:
            if self.strict:
                logger.error("Failed to create Cosmos DB [%s]", spec.name)
                outcome = EnsureOutcome.failed
            else:
                logger.debug("Create for Cosmos DB [%s] failed: %s", spec.name, e)
                logger.info("%s creation complete.", spec.name)
                outcome = EnsureOutcome.unchecked_failure
            return EnsureResult(
                resource=ResourceType.database, name=spec.name, outcome=outcome, error=str(e)
            )
        logger.info("%s creation complete.", spec.name)
        return EnsureResult(
            resource=ResourceType.database, name=spec.name, outcome=EnsureOutcome.created
        )

    async def ensure_all(
        self,
        ctx: ProvisioningContext,
        resource_group: str,
        account: str,
        specs: Sequence[DatabaseSpec],
    ) -> list[EnsureResult]:
        """Ensure every database; results come back in the order of ``specs``."""
        if self.max_concurrency == 1:
            return [await self.ensure(ctx, resource_group, account, spec) for spec in specs]

        sem = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(spec: DatabaseSpec) -> EnsureResult:
            async with sem:
                return await self.ensure(ctx, resource_group, account, spec)

        # An unexpected error in one task cancels the rest before the clients close
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_bounded(spec)) for spec in specs]
        return [task.result() for task in tasks]
