from __future__ import annotations

import logging

from pydantic import ValidationError

from provisioner.adapters.management.base import ManagementApi
from provisioner.core.config import Settings
from provisioner.core.errors import ConfigurationError
from provisioner.domain.enums import Backend
from provisioner.domain.models import AccountSpec, ProvisioningPlan, ResourceGroupSpec
from provisioner.services.account_service import AccountService
from provisioner.services.auth_service import AuthService
from provisioner.services.database_service import DatabaseService
from provisioner.services.provisioning_service import ProvisioningService
from provisioner.services.resource_group_service import ResourceGroupService


logger = logging.getLogger("provisioner.container")


class Container:
    # Class-level annotations so static checkers understand intended types
    api: ManagementApi
    auth_service: AuthService
    resource_group_service: ResourceGroupService
    account_service: AccountService
    database_service: DatabaseService
    provisioning_service: ProvisioningService

    def __init__(self, settings: Settings, api: ManagementApi | None = None) -> None:
        self.settings = settings
        self.api = api if api is not None else self._build_api()
        self.auth_service = AuthService(self.api)
        self.resource_group_service = ResourceGroupService(self.api)
        self.account_service = AccountService(self.api)
        self.database_service = DatabaseService(
            self.api,
            strict=settings.STRICT_DATABASE_ERRORS,
            max_concurrency=settings.MAX_CONCURRENCY,
        )
        self.provisioning_service = ProvisioningService(
            self.auth_service,
            self.resource_group_service,
            self.account_service,
            self.database_service,
        )

    def _build_api(self) -> ManagementApi:
        if self.settings.BACKEND is Backend.memory:
            from provisioner.adapters.management.memory import InMemoryManagementApi

            logger.info("Using in-memory management backend (dry run)")
            return InMemoryManagementApi()
        try:
            from provisioner.adapters.management.azure_sdk import AzureManagementApi
        except Exception as e:
            raise RuntimeError(
                f"Azure management SDK not available; install azure-mgmt-cosmosdb and "
                f"azure-mgmt-resource. Error: {e}"
            )
        return AzureManagementApi()

    def build_plan(self) -> ProvisioningPlan:
        """Resolve settings into a plan, or raise ConfigurationError."""
        s = self.settings
        missing = s.missing_required()
        if missing:
            raise ConfigurationError(f"Missing required values: {', '.join(missing)}")
        # missing_required() guarantees these are set
        assert s.SUBSCRIPTION_ID and s.TENANT_ID and s.MGMT_SP_USERNAME
        assert s.MGMT_SP_PASSWORD and s.LOCATION and s.RESOURCE_GROUP
        assert s.ACCOUNT_NAME and s.SKU_NAME
        try:
            return ProvisioningPlan(
                tenant_id=s.TENANT_ID,
                subscription_id=s.SUBSCRIPTION_ID,
                principal=s.MGMT_SP_USERNAME,
                secret=s.MGMT_SP_PASSWORD,
                resource_group=ResourceGroupSpec(name=s.RESOURCE_GROUP, location=s.LOCATION),
                account=AccountSpec(
                    name=s.ACCOUNT_NAME,
                    resource_group=s.RESOURCE_GROUP,
                    location=s.LOCATION,
                    kind=s.SKU_NAME,
                    consistency_level=s.CONSISTENCY_LEVEL,
                    ip_allow_list=s.allowed_ip_list(),
                ),
                databases=s.database_specs(),
            )
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    async def close(self) -> None:
        await self.api.close()
