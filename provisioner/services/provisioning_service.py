from __future__ import annotations

import logging

from provisioner.core.errors import ProvisioningError
from provisioner.domain.enums import EnsureOutcome
from provisioner.domain.models import ProvisioningPlan, ProvisioningReport
from provisioner.services.account_service import AccountService
from provisioner.services.auth_service import AuthService
from provisioner.services.database_service import DatabaseService
from provisioner.services.resource_group_service import ResourceGroupService

logger = logging.getLogger("provisioner.run")


class ProvisioningService:
    """Runs the provisioning pipeline top to bottom.

    Login, subscription selection, resource group and account failures abort
    the run. Nothing created before a failure is rolled back.
    """

    def __init__(
        self,
        auth_service: AuthService,
        resource_group_service: ResourceGroupService,
        account_service: AccountService,
        database_service: DatabaseService,
    ):
        self.auth_service = auth_service
        self.resource_group_service = resource_group_service
        self.account_service = account_service
        self.database_service = database_service

    async def run(self, plan: ProvisioningPlan) -> ProvisioningReport:
        ctx = await self.auth_service.authenticate(
            plan.tenant_id,
            plan.principal,
            plan.secret.get_secret_value(),
            plan.subscription_id,
        )
        report = ProvisioningReport()

        rg_result = await self.resource_group_service.ensure(ctx, plan.resource_group)
        report.results.append(rg_result)
        if rg_result.outcome is EnsureOutcome.failed:
            raise ProvisioningError(
                f"Resource group '{rg_result.name}' could not be created: {rg_result.error}",
                [rg_result],
            )

        account_result = await self.account_service.ensure(ctx, plan.account)
        report.results.append(account_result)
        if account_result.outcome is EnsureOutcome.failed:
            raise ProvisioningError(
                f"Cosmos DB account '{account_result.name}' could not be created: "
                f"{account_result.error}",
                [account_result],
            )

        logger.debug("Cosmos DB endpoint: %s", plan.account.document_endpoint)
        db_results = await self.database_service.ensure_all(
            ctx, plan.account.resource_group, plan.account.name, plan.databases
        )
        report.results.extend(db_results)
        failed = [r for r in db_results if r.outcome is EnsureOutcome.failed]
        if failed:
            names = ", ".join(r.name for r in failed)
            raise ProvisioningError(f"Cosmos DB database(s) could not be created: {names}", failed)

        logger.info(
            "Provisioning complete: %d created, %d already existed",
            report.created_count,
            report.existing_count,
        )
        if report.failed:
            # Only legacy-mode creates reach here; their errors were never surfaced
            logger.debug(
                "Unverified database creates: %s",
                ", ".join(f"{r.name} ({r.error})" for r in report.failed),
            )
        return report
