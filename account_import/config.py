"""Configuration management for account-import."""

import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv
from psycopg.conninfo import make_conninfo

from account_import.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "t", "true", "y", "yes", "on"}
_FALSE_VALUES = {"0", "f", "false", "n", "no", "off"}


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "importer"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get libpq connection string."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
        )


@dataclass
class ApiConfig:
    """HTTP API backend configuration."""

    base_url: str = ""
    api_key: str = ""
    rate_limit: int = 60  # requests per second
    progress_every: int = 100
    timeout: float = 30.0
    use_api: bool = False


@dataclass
class ImporterConfig:
    """Main configuration for account-import."""

    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    batch_size: int = 1000
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "ImporterConfig":
        """Create config from environment variables.

        A ``.env`` file (``dotenv_path``, or the nearest one above the
        working directory) is loaded first when present; variables already
        set in the environment win over the file.
        """
        load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=False)

        postgres = PostgresConfig(
            host=os.getenv("DB_HOST", "localhost"),
            port=_env_int("DB_PORT", 5432),
            database=os.getenv("DB_NAME", "importer"),
            user=os.getenv("DB_USER", "postgres"),
            password=os.getenv("DB_PASSWORD", "postgres"),
        )

        api = ApiConfig(
            base_url=os.getenv("API_BASE_URL", "").rstrip("/"),
            api_key=os.getenv("API_KEY", ""),
            rate_limit=_env_int("API_RATE_LIMIT", 60),
            progress_every=_env_int("API_PROGRESS_EVERY", 100),
            timeout=_env_float("API_TIMEOUT", 30.0),
            use_api=_env_bool("USE_API", False),
        )

        return cls(
            postgres=postgres,
            api=api,
            batch_size=_env_int("BATCH_SIZE", 1000),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )

    def validate(self) -> None:
        """Check the settings the selected backend depends on.

        Raises
        ------
        ConfigurationError
            If a setting is out of range or missing.
        """
        if self.batch_size <= 0:
            raise ConfigurationError(f"BATCH_SIZE must be positive, got {self.batch_size}")
        if self.api.rate_limit <= 0:
            raise ConfigurationError(
                f"API_RATE_LIMIT must be positive, got {self.api.rate_limit}"
            )
        if self.api.progress_every <= 0:
            raise ConfigurationError(
                f"API_PROGRESS_EVERY must be positive, got {self.api.progress_every}"
            )
        if self.api.timeout <= 0:
            raise ConfigurationError(f"API_TIMEOUT must be positive, got {self.api.timeout}")
        if self.api.use_api and not self.api.base_url:
            raise ConfigurationError("API_BASE_URL is required when USE_API is enabled")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")
