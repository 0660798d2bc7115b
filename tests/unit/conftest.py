import logging
import os

import pytest

from provisioner.adapters.management.memory import InMemoryManagementApi
from provisioner.core.config import ENV_PREFIX
from provisioner.domain.enums import AccountKind
from provisioner.domain.models import (
    AccountSpec,
    DatabaseSpec,
    ProvisioningContext,
    ProvisioningPlan,
    ResourceGroupSpec,
)


# Async tests use the anyio plugin pinned to asyncio
@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Drop PROV_* variables so the developer's shell cannot leak into tests."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    """Remove handlers installed by setup_logging; they hold a captured stdout."""
    yield
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_provisioner_handler", False):
            root.removeHandler(h)


@pytest.fixture()
def api() -> InMemoryManagementApi:
    return InMemoryManagementApi()


@pytest.fixture()
def ctx() -> ProvisioningContext:
    return ProvisioningContext(
        tenant_id="tenant-1",
        subscription_id="sub-1",
        principal="mysvcprcpl",
        credential=object(),
    )


@pytest.fixture()
def account_spec() -> AccountSpec:
    return AccountSpec(
        name="acctX",
        resource_group="rgX",
        location="eastus",
        kind=AccountKind.mongodb,
        ip_allow_list=["1.2.3.4"],
    )


@pytest.fixture()
def plan(account_spec: AccountSpec) -> ProvisioningPlan:
    return ProvisioningPlan(
        tenant_id="tenant-1",
        subscription_id="sub-1",
        principal="mysvcprcpl",
        secret="myspsecret",
        resource_group=ResourceGroupSpec(name="rgX", location="eastus"),
        account=account_spec,
        databases=[
            DatabaseSpec(name="mydb1", throughput=3000),
            DatabaseSpec(name="mydb2", throughput=3000),
        ],
    )


CLI_ARGS = [
    "-i", "sub-1",
    "-t", "tenant-1",
    "-l", "eastus",
    "-r", "rgX",
    "-u", "mysvcprcpl",
    "-p", "myspsecret",
    "-x", "1.2.3.4",
    "-v", "acctX",
    "-k", "MongoDB",
]  # fmt: skip


@pytest.fixture()
def cli_args() -> list[str]:
    return list(CLI_ARGS)
