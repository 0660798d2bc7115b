"""
Create a Cosmos DB account with the MongoDB API and its databases.

Logs in as a management service principal, pins the subscription, then
creates the resource group, the database account and each database if they
do not exist yet. Every step checks for the resource first, so re-running is
safe.

Usage Examples:

    # Create everything with the default databases (mydb1, mydb2 at 3000 RU/s):
    cosmos-provision -i <subscription-id> -t <tenant-id> -l eastus -r my-cosmos-rg \\
        -u <sp-client-id> -p '<sp-secret>' -k MongoDB -v mymongoacct -x 73.206.30.142

    # Custom databases, fail the run when a database cannot be created:
    cosmos-provision ... --database orders:4000 --database audit --strict-database-errors

    # Dry run against the in-memory backend:
    cosmos-provision ... --backend memory
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, NoReturn, Sequence

from pydantic import ValidationError

from provisioner.adapters.management.base import ManagementApi
from provisioner.container import Container
from provisioner.core.config import load_settings, log_settings
from provisioner.core.errors import ConfigurationError, ProvisionerError
from provisioner.core.logging import setup_logging
from provisioner.domain.enums import Backend
from provisioner.domain.models import ProvisioningPlan, ProvisioningReport

logger = logging.getLogger("provisioner.cli")

PROG = "cosmos-provision"

USAGE_BLOCK = f"""\
-i AZURE_SUBSCRIPTION_ID                    - The Azure Subscription ID.
-t AZURE_SUBSCRIPTION_TENANT_ID             - The Azure Subscription Tenant ID.
-l AZURE_LOCATION                           - The Azure Location where the Cosmos DB account will be deployed.
-r MONGO_RG                                 - Cosmos (Mongo) resource group name.
-u MGMT_SP_USERNAME                         - Management Service Principal Username. This is used for managing all Mongo DBs in an Azure Subscription.
-p MGMT_SP_PASSWORD                         - Management Service Principal Password.
-x ALLOWED_IPS                              - IP addresses allowed to access the account (comma separated).
-v ACCT_NAME                                - Mongo account name.
-k SKU_NAME                                 - The type of Cosmos DB to create (MongoDB, Parse, GlobalDocumentDB).
--database NAME[:RU]                        - Database to create (repeatable, default mydb1:3000 and mydb2:3000).
--throughput RU                             - Throughput for databases given without RU (default 3000).
--strict-database-errors                    - Fail the run when a database cannot be created.
--max-concurrency N                         - Databases created in parallel (default 1).
--backend {{azure,memory}}                    - Management backend (memory performs a dry run).
--log-level LEVEL                           - Logging level (default info).
Script Syntax is shown below:
{PROG} -i {{AZURE_SUBSCRIPTION_ID}} -t {{AZURE_SUBSCRIPTION_TENANT_ID}} -l {{AZURE_LOCATION}} -r {{MONGO_RG}} -u {{MGMT_SP_USERNAME}} -p {{MGMT_SP_PASSWORD}} -k {{SKU_NAME}} -v {{ACCT_NAME}} -x {{ALLOWED_IPS}}
An Example of how to use this script is shown below:
{PROG} -i 0b62f50c-c15a-40e2-b1ab-7ac2596a1c85 -t cf5b57b5-3bce-46f1-82b0-396341247587 -l eastus -r my-cosmos-rg -u mysvcprcpl -p 'myspsecret' -k MongoDB -v mymongoacct -x 73.206.30.142
"""


def print_usage_block(reason: str) -> None:
    print(f"\n{reason}. All Valid Options are listed below:")
    print(USAGE_BLOCK)


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that prints the full usage block to stdout on bad input."""

    def error(self, message: str) -> NoReturn:
        print_usage_block(f"Option error [{message}]")
        raise SystemExit(2)


def build_parser() -> UsageArgumentParser:
    parser = UsageArgumentParser(
        prog=PROG,
        description="Create a Cosmos DB (MongoDB API) account and databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=USAGE_BLOCK,
    )

    context_group = parser.add_argument_group("Subscription and identity")
    context_group.add_argument("-i", "--subscription-id", help="Azure subscription ID")
    context_group.add_argument("-t", "--tenant-id", help="Azure subscription tenant ID")
    context_group.add_argument(
        "-u", "--username", help="Management service principal username (client ID)"
    )
    context_group.add_argument("-p", "--password", help="Management service principal password")

    resource_group = parser.add_argument_group("Resources")
    resource_group.add_argument("-l", "--location", help="Azure location, e.g. eastus")
    resource_group.add_argument("-r", "--resource-group", help="Resource group name")
    resource_group.add_argument("-v", "--account-name", help="Cosmos DB account name")
    resource_group.add_argument(
        "-k", "--sku", help="Account kind: MongoDB, Parse or GlobalDocumentDB"
    )
    resource_group.add_argument(
        "-x", "--allowed-ips", help="Comma separated IP addresses or CIDR ranges"
    )

    db_group = parser.add_argument_group("Databases")
    db_group.add_argument(
        "--database",
        action="append",
        metavar="NAME[:RU]",
        help="Database to ensure (repeatable)",
    )
    db_group.add_argument("--throughput", type=int, help="Default database throughput (RU/s)")
    db_group.add_argument(
        "--strict-database-errors",
        action="store_true",
        default=None,
        help="Fail the run when a database cannot be created",
    )
    db_group.add_argument(
        "--max-concurrency", type=int, help="Number of databases created in parallel"
    )

    parser.add_argument(
        "--backend",
        choices=[b.value for b in Backend],
        help="Management backend (memory performs a dry run)",
    )
    parser.add_argument("--log-level", help="Logging level (debug, info, warning, error)")
    return parser


def settings_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "SUBSCRIPTION_ID": args.subscription_id,
        "TENANT_ID": args.tenant_id,
        "MGMT_SP_USERNAME": args.username,
        "MGMT_SP_PASSWORD": args.password,
        "LOCATION": args.location,
        "RESOURCE_GROUP": args.resource_group,
        "ACCOUNT_NAME": args.account_name,
        "SKU_NAME": args.sku,
        "ALLOWED_IPS": args.allowed_ips,
        "DATABASES": ",".join(args.database) if args.database else None,
        "DEFAULT_THROUGHPUT": args.throughput,
        "STRICT_DATABASE_ERRORS": args.strict_database_errors,
        "MAX_CONCURRENCY": args.max_concurrency,
        "BACKEND": args.backend,
        "LOG_LEVEL": args.log_level,
    }


async def _provision(container: Container, plan: ProvisioningPlan) -> ProvisioningReport:
    try:
        return await container.provisioning_service.run(plan)
    finally:
        await container.close()


def main(argv: Sequence[str] | None = None, api: ManagementApi | None = None) -> int:
    """Run the provisioner and return the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    try:
        settings = load_settings(**settings_overrides(args))
    except ValidationError as e:
        print_usage_block(f"Invalid value [{e.errors()[0].get('loc', ('?',))[0]}]")
        return 2

    setup_logging(settings.LOG_LEVEL)
    log_settings(settings)

    container = Container(settings, api=api)
    try:
        plan = container.build_plan()
    except ConfigurationError as e:
        print_usage_block(str(e))
        return e.exit_code

    try:
        asyncio.run(_provision(container, plan))
    except ProvisionerError as e:
        logger.error("%s", e)
        return e.exit_code
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
