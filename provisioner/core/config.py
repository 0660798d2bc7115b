from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr, field_validator
from pathlib import Path
from typing import Any
import os
import logging

from provisioner.domain.enums import AccountKind, Backend, ConsistencyLevel
from provisioner.domain.models import DatabaseSpec

logger = logging.getLogger("provisioner.config")

# Module-level project root to avoid Pydantic private attr behavior on class underscores
REPO_ROOT = Path(__file__).resolve().parents[2]

ENV_PREFIX = "PROV_"

# Databases the provisioner creates when none are configured
DEFAULT_DATABASES = "mydb1:3000,mydb2:3000"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class Settings(BaseSettings):
    # Environment variables use the PROV_ prefix; CLI flags are passed as init
    # kwargs and take precedence over the environment and dotenv files.
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,
        env_file_encoding="utf-8",
        extra="forbid",  # surface unknown env vars as errors
    )

    BACKEND: Backend = Backend.azure
    LOG_LEVEL: str = "info"  # debug, info, warning, error or critical

    # Identity and subscription context
    SUBSCRIPTION_ID: str | None = None
    TENANT_ID: str | None = None
    MGMT_SP_USERNAME: str | None = None
    MGMT_SP_PASSWORD: SecretStr | None = None

    # Resources
    LOCATION: str | None = None
    RESOURCE_GROUP: str | None = None
    ACCOUNT_NAME: str | None = None
    SKU_NAME: AccountKind | None = None
    ALLOWED_IPS: str | None = None  # CSV of addresses or CIDR ranges
    CONSISTENCY_LEVEL: ConsistencyLevel = ConsistencyLevel.consistent_prefix

    # Databases as CSV of "name" or "name:throughput"
    DATABASES: str = DEFAULT_DATABASES
    DEFAULT_THROUGHPUT: int = Field(default=3000, gt=0)
    # Report database create failures instead of claiming completion
    STRICT_DATABASE_ERRORS: bool = False
    MAX_CONCURRENCY: int = Field(default=1, ge=1, description="Parallel database creates")

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _check_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value not in LOG_LEVELS:
                raise ValueError(f"unknown log level {value!r}")
        return value

    @field_validator("SKU_NAME", mode="before")
    @classmethod
    def _match_sku(cls, value: Any) -> Any:
        # Accept any casing of the kind names (mongodb, MONGODB, ...)
        if isinstance(value, str):
            for kind in AccountKind:
                if kind.value.lower() == value.strip().lower():
                    return kind
        return value

    def missing_required(self) -> list[str]:
        """Names of required values that are still unset."""
        required = [
            "SUBSCRIPTION_ID",
            "TENANT_ID",
            "LOCATION",
            "RESOURCE_GROUP",
            "MGMT_SP_USERNAME",
            "MGMT_SP_PASSWORD",
            "ALLOWED_IPS",
            "ACCOUNT_NAME",
            "SKU_NAME",
        ]
        return [name for name in required if not getattr(self, name)]

    def allowed_ip_list(self) -> list[str]:
        return parse_csv(self.ALLOWED_IPS or "")

    def database_specs(self) -> list[DatabaseSpec]:
        specs = [
            DatabaseSpec.parse(entry, self.DEFAULT_THROUGHPUT)
            for entry in parse_csv(self.DATABASES)
        ]
        names = [spec.name for spec in specs]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate database names: {', '.join(duplicates)}")
        return specs


def parse_csv(value: str) -> list[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def _resolve_env_files_from_override(repo_root: Path) -> str | tuple[str, ...] | None:
    """Resolve optional override for dotenv file(s) using PROV_ENV_FILE.

    Supports absolute or relative paths (relative to repo root) and
    comma-separated list for multiple env files (later items override earlier).
    """
    override = os.getenv("PROV_ENV_FILE")
    if not override:
        return None

    def to_abs(p: str) -> str:
        path = Path(p)
        if not path.is_absolute():
            path = repo_root / p
        return str(path)

    parts = parse_csv(override)
    if not parts:
        return None
    if len(parts) == 1:
        return to_abs(parts[0])
    return tuple(to_abs(p) for p in parts)


def load_settings(**overrides: Any) -> Settings:
    """Build settings from env files, environment and explicit overrides.

    Overrides whose value is None are dropped so unset CLI flags fall back to
    the environment.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    env_file = _resolve_env_files_from_override(REPO_ROOT)
    if env_file is None:
        local_env = REPO_ROOT / "environments" / "local.env"
        env_file = str(local_env) if local_env.exists() else None
    if env_file is None:
        return Settings(**values)
    # pydantic-settings accepts the dotenv location per instance
    return Settings(_env_file=env_file, **values)  # type: ignore[call-arg]


def log_settings(settings: Settings) -> None:
    """Log effective settings. SecretStr fields are automatically masked."""
    logger.debug("Configuration loaded: %s", settings)
