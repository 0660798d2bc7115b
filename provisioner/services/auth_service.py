from __future__ import annotations

import logging
from typing import Any

from azure.core.exceptions import AzureError

from provisioner.adapters.management.base import ManagementApi
from provisioner.core.errors import AuthenticationError, ContextError
from provisioner.core.logging import success
from provisioner.domain.models import ProvisioningContext

logger = logging.getLogger("provisioner.auth")


class AuthService:
    """Logs the management service principal in and pins the subscription."""

    def __init__(self, api: ManagementApi):
        self.api = api

    async def login(self, tenant_id: str, principal: str, secret: str) -> Any:
        try:
            credential = await self.api.login(tenant_id, principal, secret)
        except (AzureError, ValueError) as e:
            logger.error(
                "Failed to login to Azure as the Management Service Principal [%s].", principal
            )
            logger.debug("Login error: %s", e)
            raise AuthenticationError(f"Login failed for principal '{principal}': {e}", principal)
        success(logger, "Logged into Azure as the Management Service Principal [%s].", principal)
        return credential

    async def select_subscription(
        self, credential: Any, tenant_id: str, principal: str, subscription_id: str
    ) -> ProvisioningContext:
        try:
            await self.api.select_subscription(credential, subscription_id)
        except AzureError as e:
            logger.error("Failed to set Azure Subscription [%s].", subscription_id)
            logger.debug("Subscription error: %s", e)
            raise ContextError(
                f"Subscription '{subscription_id}' is not available: {e}", subscription_id
            )
        success(logger, "Azure Subscription set to [%s].", subscription_id)
        return ProvisioningContext(
            tenant_id=tenant_id,
            subscription_id=subscription_id,
            principal=principal,
            credential=credential,
        )

    async def authenticate(
        self, tenant_id: str, principal: str, secret: str, subscription_id: str
    ) -> ProvisioningContext:
        credential = await self.login(tenant_id, principal, secret)
        return await self.select_subscription(credential, tenant_id, principal, subscription_id)
