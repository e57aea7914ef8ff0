"""HTTP API backend: one rate-limited request per record."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import requests
from requests.adapters import HTTPAdapter

from account_import.backends.base import ImportBackend, resolve_link
from account_import.backends.rate_limit import TokenBucketRateLimiter
from account_import.exceptions import ApiRequestError
from account_import.models import (
    Account,
    Customer,
    CustomerAccountLink,
    to_account_request,
    to_customer_request,
    to_link_request,
)

logger = logging.getLogger(__name__)

POOL_SIZE = 100


class ApiBackend(ImportBackend):
    """Create records through the REST API, failing fast on any error.

    There is no transaction to roll back: records accepted before a failure
    stay created on the remote side and nothing after it is sent.

    Parameters
    ----------
    base_url : str
        API root, e.g. ``http://localhost:3000``.
    api_key : str
        Bearer token sent with every request.
    rate_limit : int
        Requests per second; the bucket holds the same number of tokens.
    progress_every : int
        Log progress after this many records (default 100).
    timeout : float
        Per-request timeout in seconds (default 30).
    session : requests.Session | None
        Pre-built session, mainly for tests.
    limiter : TokenBucketRateLimiter | None
        Pre-built limiter, mainly for tests.
    """

    name = "api"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        rate_limit: int = 60,
        progress_every: int = 100,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        limiter: TokenBucketRateLimiter | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.progress_every = progress_every
        self.limiter = limiter or TokenBucketRateLimiter(rate=rate_limit, burst=rate_limit)
        self.session = session or self._create_session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    @staticmethod
    def _create_session() -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=POOL_SIZE, pool_maxsize=POOL_SIZE, max_retries=0)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def insert_customers(self, customers: Sequence[Customer]) -> dict[str, int]:
        customer_ids: dict[str, int] = {}
        total = len(customers)

        for i, customer in enumerate(customers, start=1):
            request = to_customer_request(customer)
            body = self._post("/customers", request.to_payload(), "customer", request.customer_number)
            customer_ids[request.customer_number] = self._parse_id(
                body, "customer", request.customer_number
            )
            self._log_progress(i, total, "customers")

        return customer_ids

    def insert_accounts(self, accounts: Sequence[Account]) -> dict[str, int]:
        account_ids: dict[str, int] = {}
        total = len(accounts)

        for i, account in enumerate(accounts, start=1):
            request = to_account_request(account)
            body = self._post("/accounts", request.to_payload(), "account", request.account_number)
            account_ids[request.account_number] = self._parse_id(
                body, "account", request.account_number
            )
            self._log_progress(i, total, "accounts")

        return account_ids

    def insert_customer_accounts(
        self,
        links: Sequence[CustomerAccountLink],
        customer_ids: dict[str, int],
        account_ids: dict[str, int],
    ) -> int:
        written = 0
        total = len(links)

        for i, link in enumerate(links, start=1):
            resolved = resolve_link(link, customer_ids, account_ids)
            if resolved is not None:
                request = to_link_request(*resolved)
                self._post("/customer-accounts", request.to_payload(), "link", link.key)
                written += 1
            self._log_progress(i, total, "links")

        return written

    def close(self) -> None:
        """Drain pooled connections."""
        self.session.close()

    def _post(self, path: str, payload: dict[str, Any], entity: str, key: str) -> str:
        """Send one rate-limited POST and return the response body.

        Raises
        ------
        ApiRequestError
            On transport failure or any non-2xx status.
        """
        self.limiter.acquire()
        logger.debug("Sending %s payload: %s", entity, json.dumps(payload))

        try:
            response = self.session.post(
                f"{self.base_url}{path}",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiRequestError(entity, key, reason=str(e)) from e

        if not 200 <= response.status_code < 300:
            raise ApiRequestError(entity, key, status_code=response.status_code, body=response.text)

        return response.text

    @staticmethod
    def _parse_id(body: str, entity: str, key: str) -> int:
        try:
            return int(json.loads(body)["id"])
        except (ValueError, KeyError, TypeError) as e:
            raise ApiRequestError(
                entity, key, reason=f"error decoding response: {e}, body: {body}"
            ) from e

    def _log_progress(self, done: int, total: int, plural: str) -> None:
        if done % self.progress_every == 0:
            logger.info("Processed %d/%d %s", done, total, plural)
