"""Synthetic customers, accounts and links for test workbooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from account_import.generators.base import BaseGenerator
from account_import.models import Account, Customer, CustomerAccountLink

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10_000


@dataclass
class GeneratorConfig:
    """Shape of a generated data set.

    ``multi_account_chance`` is the probability of a second link per
    customer; ``third_account_chance`` applies only to customers that got
    the second one.
    """

    num_customers: int = 100_000
    multi_account_chance: float = 0.3
    third_account_chance: float = 0.1
    customer_prefix: str = "CUST"
    account_prefix: str = "ACC"

    def __post_init__(self) -> None:
        if self.num_customers < 0:
            raise ValueError(f"num_customers must be >= 0, got {self.num_customers}")
        for name in ("multi_account_chance", "third_account_chance"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")


@dataclass
class GenerationSummary:
    """Counts of generated records."""

    customer_count: int = 0
    account_count: int = 0
    link_count: int = 0


class DataGenerator(BaseGenerator):
    """Generate customers, one principal account each, and their links.

    Customer ``i`` (1-based) is numbered ``{customer_prefix}{i:06d}`` and
    always links to account ``{account_prefix}{i:06d}``. Extra links point
    at uniformly random accounts; a draw that lands on the customer's own
    ordinal is dropped rather than redrawn, so the realised extra-link rate
    sits slightly below the configured chance.
    """

    def __init__(self, config: GeneratorConfig | None = None, seed: int | None = None) -> None:
        super().__init__(seed)
        self.config = config or GeneratorConfig()
        self.summary = GenerationSummary()

    def customer_number(self, ordinal: int) -> str:
        return f"{self.config.customer_prefix}{ordinal:06d}"

    def account_number(self, ordinal: int) -> str:
        return f"{self.config.account_prefix}{ordinal:06d}"

    def generate_customers(self) -> list[Customer]:
        """Generate ``num_customers`` customers.

        Returns
        -------
        list[Customer]
            Customers in ordinal order.
        """
        logger.info("Generating customer data...")
        customers = []
        for i in range(1, self.config.num_customers + 1):
            customers.append(
                Customer(
                    client_id=f"CLI{i:06d}",
                    customer_number=self.customer_number(i),
                    customer_name=f"Customer {i} Corp",
                    address=(
                        f"{self.rng.randint(1, 999)} {self.fake.street_name()}, "
                        f"Suite {self.rng.randint(1, 100)}"
                    ),
                    name=self.fake.name(),
                    email=f"contact{i}@customer{i}.com",
                )
            )
            if i % PROGRESS_EVERY == 0:
                logger.info("Generated %d customers...", i)

        self.summary.customer_count = len(customers)
        return customers

    def generate_accounts(self) -> list[Account]:
        """Generate one principal account per customer ordinal."""
        logger.info("Generating account data...")
        accounts = []
        for i in range(1, self.config.num_customers + 1):
            accounts.append(
                Account(account_number=self.account_number(i), account_name=f"Account {i}")
            )
            if i % PROGRESS_EVERY == 0:
                logger.info("Generated %d accounts...", i)

        self.summary.account_count = len(accounts)
        return accounts

    def generate_links(self) -> list[CustomerAccountLink]:
        """Generate the guaranteed principal links plus random extras."""
        logger.info("Generating customer-account links...")
        n = self.config.num_customers
        links = []

        for i in range(1, n + 1):
            customer_number = self.customer_number(i)
            links.append(CustomerAccountLink(customer_number, self.account_number(i)))

            if self.rng.random() < self.config.multi_account_chance:
                extra = self.rng.randint(1, n)
                if extra != i:
                    links.append(CustomerAccountLink(customer_number, self.account_number(extra)))

                    if self.rng.random() < self.config.third_account_chance:
                        extra = self.rng.randint(1, n)
                        if extra != i:
                            links.append(
                                CustomerAccountLink(customer_number, self.account_number(extra))
                            )

            if i % PROGRESS_EVERY == 0:
                logger.info("Generated links for %d customers...", i)

        logger.info("Generated %d total links", len(links))
        self.summary.link_count = len(links)
        return links
