"""Mock of the customer/account REST API for local runs and tests.

Customers and accounts are keyed by natural key: posting the same number
again returns the ID it already has. Link pairs are stored once.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from flask import Flask, jsonify, request

from account_import.exceptions import RecordValidationError
from account_import.models import (
    AccountRequest,
    CustomerAccountLinkRequest,
    CustomerRequest,
)

logger = logging.getLogger(__name__)


@dataclass
class MockStore:
    """Thread-safe in-memory tables behind the mock API."""

    customers: dict[str, int] = field(default_factory=dict)
    accounts: dict[str, int] = field(default_factory=dict)
    links: set[tuple[int, int]] = field(default_factory=set)
    _ids: Any = field(default_factory=lambda: itertools.count(1))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def upsert_customer(self, customer: CustomerRequest) -> tuple[int, bool]:
        """Return the customer's ID and whether it was newly created."""
        return self._upsert(self.customers, customer.customer_number)

    def upsert_account(self, account: AccountRequest) -> tuple[int, bool]:
        return self._upsert(self.accounts, account.account_number)

    def add_link(self, link: CustomerAccountLinkRequest) -> bool:
        """Store a link; returns False when the pair already existed."""
        pair = (link.customer_id, link.account_id)
        with self._lock:
            if pair in self.links:
                return False
            self.links.add(pair)
            return True

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "customers": len(self.customers),
                "accounts": len(self.accounts),
                "links": len(self.links),
            }

    def _upsert(self, table: dict[str, int], key: str) -> tuple[int, bool]:
        with self._lock:
            if key in table:
                return table[key], False
            table[key] = next(self._ids)
            return table[key], True


def create_app(api_key: str | None = None, store: MockStore | None = None) -> Flask:
    """Build the mock API application.

    Parameters
    ----------
    api_key : str | None
        When set, requests must carry ``Authorization: Bearer <api_key>``.
    store : MockStore | None
        Backing store, created fresh when omitted.
    """
    app = Flask(__name__)
    store = store or MockStore()
    app.extensions["mock_store"] = store

    @app.before_request
    def check_token():
        # unrouted requests fall through to their 404/405
        if not api_key or request.routing_exception is not None or request.endpoint == "stats":
            return None
        if request.headers.get("Authorization") != f"Bearer {api_key}":
            return jsonify({"error": "invalid or missing bearer token"}), 401
        return None

    @app.errorhandler(RecordValidationError)
    def validation_failed(error: RecordValidationError):
        return jsonify({"error": str(error), "field": error.field}), 400

    def json_body() -> dict[str, Any]:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise RecordValidationError("body", "must be a JSON object")
        return data

    @app.post("/customers")
    def create_customer():
        customer = CustomerRequest.from_payload(json_body())
        customer_id, created = store.upsert_customer(customer)
        logger.info("%s customer %s with ID %d", "Created" if created else "Updated",
                    customer.customer_number, customer_id)
        return jsonify({"id": customer_id}), 201 if created else 200

    @app.post("/accounts")
    def create_account():
        account = AccountRequest.from_payload(json_body())
        account_id, created = store.upsert_account(account)
        logger.info("%s account %s with ID %d", "Created" if created else "Updated",
                    account.account_number, account_id)
        return jsonify({"id": account_id}), 201 if created else 200

    @app.post("/customer-accounts")
    def create_link():
        link = CustomerAccountLinkRequest.from_payload(json_body())
        created = store.add_link(link)
        logger.info("Linked customer %d and account %d", link.customer_id, link.account_id)
        return jsonify({"status": "success"}), 201 if created else 200

    @app.get("/stats")
    def stats():
        return jsonify(store.stats())

    return app
