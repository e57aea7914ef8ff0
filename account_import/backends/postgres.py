"""PostgreSQL backend: batched, transactional upserts."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import psycopg

from account_import.backends.base import ImportBackend, chunked, resolve_link
from account_import.exceptions import BackendConnectionError, ImporterError, RecordWriteError
from account_import.models import (
    Account,
    Customer,
    CustomerAccountLink,
    to_account_request,
    to_customer_request,
    to_link_request,
)

logger = logging.getLogger(__name__)

# DDL for the three tables the upserts below rely on. Executed only on
# request; existing tables are left untouched.
SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS customers (
    id SERIAL PRIMARY KEY,
    client_id VARCHAR(50),
    customer_number VARCHAR(50) NOT NULL UNIQUE,
    customer_name VARCHAR(255) NOT NULL,
    address TEXT,
    name VARCHAR(255),
    email VARCHAR(255),
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS accounts (
    id SERIAL PRIMARY KEY,
    account_number VARCHAR(50) NOT NULL UNIQUE,
    account_name VARCHAR(255) NOT NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS customer_accounts (
    id SERIAL PRIMARY KEY,
    customer_id INTEGER NOT NULL REFERENCES customers (id),
    account_id INTEGER NOT NULL REFERENCES accounts (id),
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (customer_id, account_id)
);
"""

CUSTOMER_UPSERT = """
    INSERT INTO customers (client_id, customer_number, customer_name, address, name, email)
    VALUES (%s, %s, %s, %s, %s, %s)
    ON CONFLICT (customer_number) DO UPDATE SET
        client_id = EXCLUDED.client_id,
        customer_name = EXCLUDED.customer_name,
        address = EXCLUDED.address,
        name = EXCLUDED.name,
        email = EXCLUDED.email,
        updated_at = CURRENT_TIMESTAMP
    RETURNING id
"""

ACCOUNT_UPSERT = """
    INSERT INTO accounts (account_number, account_name)
    VALUES (%s, %s)
    ON CONFLICT (account_number) DO UPDATE SET
        account_name = EXCLUDED.account_name,
        updated_at = CURRENT_TIMESTAMP
    RETURNING id
"""

LINK_INSERT = """
    INSERT INTO customer_accounts (customer_id, account_id)
    VALUES (%s, %s)
    ON CONFLICT (customer_id, account_id) DO NOTHING
"""


class PostgresBackend(ImportBackend):
    """Upsert records into PostgreSQL in transactions of ``batch_size`` rows.

    Every ``batch_size``-th record commits the running transaction and
    starts the next one. A failing write rolls back only the transaction in
    flight and aborts the operation; batches committed before it remain.
    Statements are prepared server-side on first use and re-used by every
    later batch on the same connection.

    Parameters
    ----------
    connection_string : str
        libpq connection string or URL.
    batch_size : int
        Records per transaction (default 1000).
    """

    name = "postgres"

    def __init__(self, connection_string: str, batch_size: int = 1000) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.batch_size = batch_size
        try:
            # autocommit so that each conn.transaction() block is a real
            # BEGIN/COMMIT rather than a savepoint in an implicit transaction
            self.conn = psycopg.connect(connection_string, autocommit=True)
            self.conn.execute("SELECT 1")
        except psycopg.Error as e:
            raise BackendConnectionError(f"failed to connect to database: {e}") from e

    def create_tables(self) -> None:
        """Create the customers, accounts and customer_accounts tables if missing."""
        try:
            with self.conn.transaction():
                self.conn.execute(SCHEMA_DDL)
        except psycopg.Error as e:
            raise BackendConnectionError(f"failed to create tables: {e}") from e
        logger.info("Ensured customers, accounts and customer_accounts tables exist")

    def insert_customers(self, customers: Sequence[Customer]) -> dict[str, int]:
        rows = []
        for customer in customers:
            request = to_customer_request(customer)
            rows.append((request.customer_number, request.to_params()))
        return self._upsert("customer", "customers", CUSTOMER_UPSERT, rows)

    def insert_accounts(self, accounts: Sequence[Account]) -> dict[str, int]:
        rows = []
        for account in accounts:
            request = to_account_request(account)
            rows.append((request.account_number, request.to_params()))
        return self._upsert("account", "accounts", ACCOUNT_UPSERT, rows)

    def insert_customer_accounts(
        self,
        links: Sequence[CustomerAccountLink],
        customer_ids: dict[str, int],
        account_ids: dict[str, int],
    ) -> int:
        written = 0
        processed = 0

        # Batches count input positions, so skipped links still advance
        # the commit cadence.
        for batch in chunked(links, self.batch_size):
            batch_written = 0
            try:
                with self.conn.transaction():
                    with self.conn.cursor() as cur:
                        for link in batch:
                            resolved = resolve_link(link, customer_ids, account_ids)
                            if resolved is None:
                                continue
                            request = to_link_request(*resolved)
                            try:
                                cur.execute(LINK_INSERT, request.to_params(), prepare=True)
                            except psycopg.Error as e:
                                raise RecordWriteError("customer-account link", link.key, e) from e
                            batch_written += 1
            except psycopg.Error as e:
                raise ImporterError(f"failed to commit customer-account links batch: {e}") from e
            written += batch_written

            processed += len(batch)
            if len(batch) == self.batch_size:
                logger.info("Processed %d customer-account links", processed)

        return written

    def close(self) -> None:
        self.conn.close()

    def _upsert(
        self,
        entity: str,
        plural: str,
        sql: str,
        rows: list[tuple[str, tuple[Any, ...]]],
    ) -> dict[str, int]:
        """Run ``sql`` once per row, committing every ``batch_size`` rows."""
        ids: dict[str, int] = {}
        processed = 0

        for batch in chunked(rows, self.batch_size):
            batch_ids: dict[str, int] = {}
            # Leaving the block commits; an exception rolls the batch back.
            try:
                with self.conn.transaction():
                    with self.conn.cursor() as cur:
                        for key, params in batch:
                            try:
                                cur.execute(sql, params, prepare=True)
                                row = cur.fetchone()
                            except psycopg.Error as e:
                                raise RecordWriteError(entity, key, e) from e
                            batch_ids[key] = row[0]
            except psycopg.Error as e:
                raise ImporterError(f"failed to commit {plural} batch: {e}") from e

            ids.update(batch_ids)
            processed += len(batch)
            if len(batch) == self.batch_size:
                logger.info("Processed %d %s", processed, plural)

        return ids
