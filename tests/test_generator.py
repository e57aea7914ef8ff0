"""Tests for the synthetic data generator."""

import random
from collections import Counter

import pytest

from account_import.generators import DataGenerator, GenerationSummary, GeneratorConfig


class TestGeneratorConfig:
    """Tests for GeneratorConfig."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = GeneratorConfig()

        assert config.num_customers == 100_000
        assert config.multi_account_chance == 0.3
        assert config.third_account_chance == 0.1
        assert config.customer_prefix == "CUST"
        assert config.account_prefix == "ACC"

    def test_negative_count(self) -> None:
        """Test negative sizes are rejected."""
        with pytest.raises(ValueError, match="num_customers"):
            GeneratorConfig(num_customers=-1)

    @pytest.mark.parametrize("chance", [-0.1, 1.5])
    def test_chance_out_of_range(self, chance: float) -> None:
        """Test probabilities must lie in [0, 1]."""
        with pytest.raises(ValueError, match="multi_account_chance"):
            GeneratorConfig(multi_account_chance=chance)


class TestDataGenerator:
    """Tests for DataGenerator."""

    def _generate(self, seed: int, **config) -> DataGenerator:
        return DataGenerator(GeneratorConfig(**config), seed=seed)

    def test_customers(self, seed: int) -> None:
        """Test customer numbering and fields."""
        generator = self._generate(seed, num_customers=3)

        customers = generator.generate_customers()

        assert [c.customer_number for c in customers] == ["CUST000001", "CUST000002", "CUST000003"]
        first = customers[0]
        assert first.client_id == "CLI000001"
        assert first.customer_name == "Customer 1 Corp"
        assert first.email == "contact1@customer1.com"
        assert ", Suite " in first.address
        assert first.name
        for customer in customers:
            customer.validate()

    def test_accounts(self, seed: int) -> None:
        """Test one account per customer ordinal."""
        generator = self._generate(seed, num_customers=3)

        accounts = generator.generate_accounts()

        assert [a.account_number for a in accounts] == ["ACC000001", "ACC000002", "ACC000003"]
        assert accounts[2].account_name == "Account 3"

    @pytest.mark.parametrize("seed", [0, 1, 7, 1234])
    def test_principal_links_guaranteed(self, seed: int) -> None:
        """Test every customer links to its own account whatever the seed."""
        generator = self._generate(seed, num_customers=200)

        links = generator.generate_links()

        pairs = {(link.customer_number, link.account_number) for link in links}
        for i in range(1, 201):
            assert (f"CUST{i:06d}", f"ACC{i:06d}") in pairs

    def test_principal_link_comes_first(self, seed: int) -> None:
        """Test each customer's links start with the principal one."""
        links = self._generate(seed, num_customers=50).generate_links()

        seen = set()
        for link in links:
            if link.customer_number not in seen:
                seen.add(link.customer_number)
                assert link.account_number == link.customer_number.replace("CUST", "ACC")

    def test_no_extra_links_when_chance_zero(self, seed: int) -> None:
        """Test only principal links are made with zero chance."""
        links = self._generate(seed, num_customers=100, multi_account_chance=0.0).generate_links()

        assert len(links) == 100

    def test_self_link_draw_discarded(self, seed: int) -> None:
        """Test an extra draw of the customer's own account adds nothing."""
        generator = self._generate(
            seed, num_customers=1, multi_account_chance=1.0, third_account_chance=1.0
        )

        links = generator.generate_links()

        assert len(links) == 1

    def test_at_most_three_links(self, seed: int) -> None:
        """Test no customer gets more than three links."""
        links = self._generate(
            seed, num_customers=300, multi_account_chance=1.0, third_account_chance=1.0
        ).generate_links()

        per_customer = Counter(link.customer_number for link in links)
        assert max(per_customer.values()) <= 3
        assert len(per_customer) == 300

    def test_extra_links_never_repeat_principal(self, seed: int) -> None:
        """Test an extra link never duplicates the principal pair."""
        links = self._generate(seed, num_customers=100, multi_account_chance=1.0).generate_links()

        principal = Counter(
            (link.customer_number, link.account_number)
            for link in links
            if link.account_number == link.customer_number.replace("CUST", "ACC")
        )
        assert set(principal.values()) == {1}

    def test_deterministic(self, seed: int) -> None:
        """Test the same seed gives the same data."""
        first = self._generate(seed, num_customers=30)
        second = self._generate(seed, num_customers=30)

        assert first.generate_customers() == second.generate_customers()
        assert first.generate_links() == second.generate_links()

    def test_global_random_untouched(self, seed: int) -> None:
        """Test generation leaves the module-level random state alone."""
        random.seed(99)
        expected = random.random()

        random.seed(99)
        generator = self._generate(seed, num_customers=20)
        generator.generate_customers()
        generator.generate_links()

        assert random.random() == expected

    def test_summary(self, seed: int) -> None:
        """Test counts are recorded per generated sheet."""
        generator = self._generate(seed, num_customers=10, multi_account_chance=0.0)

        generator.generate_customers()
        generator.generate_accounts()
        generator.generate_links()

        assert generator.summary == GenerationSummary(
            customer_count=10, account_count=10, link_count=10
        )

    def test_empty(self) -> None:
        """Test zero customers yields nothing."""
        generator = DataGenerator(GeneratorConfig(num_customers=0), seed=1)

        assert generator.generate_customers() == []
        assert generator.generate_links() == []
