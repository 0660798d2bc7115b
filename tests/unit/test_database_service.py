from __future__ import annotations

import asyncio
import logging

import pytest

from provisioner.adapters.management.memory import InMemoryManagementApi
from provisioner.domain.enums import EnsureOutcome
from provisioner.domain.models import AccountSpec, DatabaseSpec, ProvisioningContext
from provisioner.services.database_service import DatabaseService


def _api(**kwargs) -> InMemoryManagementApi:
    return InMemoryManagementApi(
        resource_groups={"rgX": "eastus"},
        accounts={
            ("rgX", "acctX"): AccountSpec(name="acctX", resource_group="rgX", location="eastus")
        },
        **kwargs,
    )


DBS = [DatabaseSpec(name="mydb1", throughput=3000), DatabaseSpec(name="mydb2", throughput=3000)]


@pytest.mark.anyio
async def test_probe_then_create_for_each_database(ctx: ProvisioningContext) -> None:
    api = _api()
    svc = DatabaseService(api)

    results = await svc.ensure_all(ctx, "rgX", "acctX", DBS)

    assert [r.outcome for r in results] == [EnsureOutcome.created, EnsureOutcome.created]
    assert api.ops() == [
        "database_exists",
        "create_database",
        "database_exists",
        "create_database",
    ]
    assert api.databases[("rgX", "acctX", "mydb1")].throughput == 3000


@pytest.mark.anyio
async def test_existing_database_is_not_recreated(ctx: ProvisioningContext) -> None:
    api = _api(databases={("rgX", "acctX", "mydb1"): DBS[0]})
    svc = DatabaseService(api)

    results = await svc.ensure_all(ctx, "rgX", "acctX", DBS)

    assert [r.outcome for r in results] == [EnsureOutcome.exists, EnsureOutcome.created]
    assert api.ops("create_") == ["create_database"]


@pytest.mark.anyio
async def test_legacy_mode_reports_failed_create_as_complete(
    ctx: ProvisioningContext, caplog: pytest.LogCaptureFixture
) -> None:
    # Known-bad behavior kept as the default: the failure is only visible at debug level
    api = _api(fail_ops={"create_database:mydb2"})
    svc = DatabaseService(api, strict=False)

    with caplog.at_level(logging.INFO, logger="provisioner.database"):
        results = await svc.ensure_all(ctx, "rgX", "acctX", DBS)

    assert results[0].outcome is EnsureOutcome.created
    assert results[1].outcome is EnsureOutcome.unchecked_failure
    messages = [r.getMessage() for r in caplog.records if r.levelno >= logging.INFO]
    assert "mydb2 creation complete." in messages
    assert not any(r.levelno >= logging.ERROR for r in caplog.records)


@pytest.mark.anyio
async def test_strict_mode_reports_failed_create(
    ctx: ProvisioningContext, caplog: pytest.LogCaptureFixture
) -> None:
    api = _api(fail_ops={"create_database:mydb2"})
    svc = DatabaseService(api, strict=True)

    with caplog.at_level(logging.INFO, logger="provisioner.database"):
        results = await svc.ensure_all(ctx, "rgX", "acctX", DBS)

    assert results[1].outcome is EnsureOutcome.failed
    messages = [r.getMessage() for r in caplog.records]
    assert "mydb2 creation complete." not in messages
    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert errors == ["Failed to create Cosmos DB [mydb2]"]


@pytest.mark.anyio
async def test_probe_error_is_treated_as_absent(ctx: ProvisioningContext) -> None:
    api = _api(fail_ops={"database_exists:mydb1"})
    svc = DatabaseService(api)

    result = await svc.ensure(ctx, "rgX", "acctX", DBS[0])

    assert result.outcome is EnsureOutcome.created


class _SlowApi(InMemoryManagementApi):
    """Tracks how many creates run at the same time."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.active = 0
        self.peak = 0

    async def create_database(self, ctx, resource_group, account, spec) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            # Later databases finish first to prove results keep input order
            await asyncio.sleep(0.01 * (10 - int(spec.name.removeprefix("db"))))
            await super().create_database(ctx, resource_group, account, spec)
        finally:
            self.active -= 1


@pytest.mark.anyio
async def test_fan_out_is_bounded_and_ordered(ctx: ProvisioningContext) -> None:
    api = _SlowApi(
        resource_groups={"rgX": "eastus"},
        accounts={
            ("rgX", "acctX"): AccountSpec(name="acctX", resource_group="rgX", location="eastus")
        },
    )
    specs = [DatabaseSpec(name=f"db{i}", throughput=400) for i in range(6)]
    svc = DatabaseService(api, max_concurrency=2)

    results = await svc.ensure_all(ctx, "rgX", "acctX", specs)

    assert [r.name for r in results] == [s.name for s in specs]
    assert all(r.outcome is EnsureOutcome.created for r in results)
    assert api.peak == 2


def test_max_concurrency_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DatabaseService(InMemoryManagementApi(), max_concurrency=0)


def test_database_spec_parse() -> None:
    assert DatabaseSpec.parse("orders:4000", 3000) == DatabaseSpec(name="orders", throughput=4000)
    assert DatabaseSpec.parse(" audit ", 3000) == DatabaseSpec(name="audit", throughput=3000)
    with pytest.raises(ValueError):
        DatabaseSpec.parse("orders:lots", 3000)


class _BrokenApi(_SlowApi):
    """Raises a non-Azure error for one database while the others are still running."""

    async def create_database(self, ctx, resource_group, account, spec) -> None:
        if spec.name == "db0":
            raise RuntimeError("unexpected")
        await super().create_database(ctx, resource_group, account, spec)


@pytest.mark.anyio
async def test_unexpected_error_cancels_sibling_creates(ctx: ProvisioningContext) -> None:
    api = _BrokenApi(
        resource_groups={"rgX": "eastus"},
        accounts={
            ("rgX", "acctX"): AccountSpec(name="acctX", resource_group="rgX", location="eastus")
        },
    )
    specs = [DatabaseSpec(name=f"db{i}", throughput=400) for i in range(4)]
    svc = DatabaseService(api, max_concurrency=4)

    with pytest.raises(ExceptionGroup) as exc:
        await svc.ensure_all(ctx, "rgX", "acctX", specs)

    assert exc.group_contains(RuntimeError)
    # The slow siblings were cancelled before they could finish
    assert api.databases == {}
    assert api.active == 0
