"""Pytest configuration and fixtures."""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from typing import Any, Iterator
from unittest.mock import patch

import psycopg
import pytest

from account_import.backends import PostgresBackend
from account_import.models import Account, Customer, CustomerAccountLink


class FakeDatabase:
    """Committed state of the customers, accounts and customer_accounts tables.

    Serial sequences are not transactional, so IDs handed out inside a
    rolled-back transaction are never reused, as in PostgreSQL.
    """

    def __init__(self) -> None:
        self.customers: dict[str, dict[str, Any]] = {}
        self.accounts: dict[str, dict[str, Any]] = {}
        self.links: set[tuple[int, int]] = set()
        self.customer_ids = itertools.count(1)
        self.account_ids = itertools.count(1)
        self.fail_on: set[str] = set()
        self.fail_commit = False
        self.fail_ddl = False
        self.committed_batches: list[int] = []
        self.rollbacks = 0
        self.ddl: list[str] = []


class FakeCursor:
    """Cursor that applies the importer's statements to staged table copies."""

    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn
        self.prepared: list[bool] = []
        self._row: tuple[int] | None = None

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def execute(self, sql: str, params: tuple[Any, ...], prepare: bool | None = None) -> None:
        staged = self.conn.staged
        if staged is None:
            raise AssertionError("write outside of a transaction")
        db = self.conn.db
        self.prepared.append(bool(prepare))
        self._row = None

        if "INSERT INTO customers" in sql:
            client_id, number, name, address, contact, email = params
            if number in db.fail_on:
                raise psycopg.errors.StringDataRightTruncation(f"value too long: {number}")
            row = staged["customers"].get(number)
            row_id = row["id"] if row else next(db.customer_ids)
            staged["customers"][number] = {
                "id": row_id,
                "client_id": client_id,
                "customer_name": name,
                "address": address,
                "name": contact,
                "email": email,
            }
            self._row = (row_id,)
        elif "INSERT INTO accounts" in sql:
            number, name = params
            if number in db.fail_on:
                raise psycopg.errors.NotNullViolation(f"null value for {number}")
            row = staged["accounts"].get(number)
            row_id = row["id"] if row else next(db.account_ids)
            staged["accounts"][number] = {"id": row_id, "account_name": name}
            self._row = (row_id,)
        elif "INSERT INTO customer_accounts" in sql:
            if f"{params[0]}-{params[1]}" in db.fail_on:
                raise psycopg.errors.ForeignKeyViolation(f"no such pair {params}")
            staged["links"].add(tuple(params))
        else:
            raise AssertionError(f"unexpected statement: {sql}")
        staged["writes"] += 1

    def fetchone(self) -> tuple[int] | None:
        return self._row


class FakeConnection:
    """Autocommit connection whose ``transaction()`` blocks commit or roll back."""

    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self.closed = False
        self.staged: dict[str, Any] | None = None
        self.executed: list[str] = []
        self.cursors: list[FakeCursor] = []

    def execute(self, sql: str, params: Any = None) -> FakeConnection:
        self.executed.append(sql)
        if "CREATE TABLE" in sql:
            if self.db.fail_ddl:
                raise psycopg.errors.InsufficientPrivilege("permission denied for schema public")
            self.db.ddl.append(sql)
        return self

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self.staged = {
            "customers": dict(self.db.customers),
            "accounts": dict(self.db.accounts),
            "links": set(self.db.links),
            "writes": 0,
        }
        try:
            yield
        except BaseException:
            self.db.rollbacks += 1
            raise
        else:
            if self.db.fail_commit:
                self.db.rollbacks += 1
                raise psycopg.errors.SerializationFailure("could not serialize access")
            self.db.customers = self.staged["customers"]
            self.db.accounts = self.staged["accounts"]
            self.db.links = self.staged["links"]
            self.db.committed_batches.append(self.staged["writes"])
        finally:
            self.staged = None

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def fake_db() -> FakeDatabase:
    """Empty in-memory database."""
    return FakeDatabase()


@pytest.fixture
def fake_conn(fake_db: FakeDatabase) -> FakeConnection:
    """Connection to the in-memory database."""
    return FakeConnection(fake_db)


@pytest.fixture
def make_pg_backend(fake_conn: FakeConnection):
    """Factory for PostgresBackend instances bound to the in-memory database."""

    def _make(batch_size: int = 3) -> PostgresBackend:
        with patch(
            "account_import.backends.postgres.psycopg.connect", return_value=fake_conn
        ):
            return PostgresBackend("host=localhost dbname=importer", batch_size=batch_size)

    return _make


@pytest.fixture
def customers() -> list[Customer]:
    """Seven customers, one more than two batches of three."""
    return [
        Customer(
            customer_number=f"C{i}",
            customer_name=f"Customer {i} Corp",
            client_id=f"CLI{i:06d}",
            address=f"{i} Main Street, Suite {i}",
            name=f"Contact {i}",
            email=f"contact{i}@customer{i}.com",
        )
        for i in range(1, 8)
    ]


@pytest.fixture
def accounts() -> list[Account]:
    """Seven accounts matching the customers."""
    return [Account(account_number=f"A{i}", account_name=f"Account {i}") for i in range(1, 8)]


@pytest.fixture
def links() -> list[CustomerAccountLink]:
    """Principal links plus two shared accounts."""
    pairs = [(f"C{i}", f"A{i}") for i in range(1, 8)]
    pairs += [("C1", "A2"), ("C3", "A7")]
    return [CustomerAccountLink(customer_number=c, account_number=a) for c, a in pairs]
