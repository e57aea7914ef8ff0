"""Import backends and backend selection."""

from account_import.backends.api import ApiBackend
from account_import.backends.base import ImportBackend
from account_import.backends.dry_run import DryRunBackend
from account_import.backends.postgres import PostgresBackend
from account_import.backends.rate_limit import TokenBucketRateLimiter
from account_import.config import ImporterConfig


def create_backend(
    config: ImporterConfig,
    dry_run: bool = False,
    create_tables: bool = False,
) -> ImportBackend:
    """Build the backend selected by ``config``.

    Parameters
    ----------
    config : ImporterConfig
        Validated configuration.
    dry_run : bool
        Use the in-memory backend regardless of ``USE_API``.
    create_tables : bool
        Create missing PostgreSQL tables once connected. Ignored by the
        other backends.

    Returns
    -------
    ImportBackend
        Dry-run, API or PostgreSQL backend.
    """
    if dry_run:
        return DryRunBackend()
    if config.api.use_api:
        return ApiBackend(
            base_url=config.api.base_url,
            api_key=config.api.api_key,
            rate_limit=config.api.rate_limit,
            progress_every=config.api.progress_every,
            timeout=config.api.timeout,
        )
    backend = PostgresBackend(config.postgres.connection_string, batch_size=config.batch_size)
    if create_tables:
        try:
            backend.create_tables()
        except Exception:
            backend.close()
            raise
    return backend


__all__ = [
    "ApiBackend",
    "DryRunBackend",
    "ImportBackend",
    "PostgresBackend",
    "TokenBucketRateLimiter",
    "create_backend",
]
