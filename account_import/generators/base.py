"""Base generator class for test data generators."""

from __future__ import annotations

import random
from abc import ABC

from faker import Faker


class BaseGenerator(ABC):
    """Base class for test data generators.

    Each generator owns its random source and Faker instance, both seeded
    from ``seed``, so two generators with the same seed produce the same
    data and never disturb the module-level ``random`` state.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility. ``None`` seeds from the OS.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.seed = seed
        self.rng = random.Random(seed)
        self.fake = Faker(locale)
        self.fake.seed_instance(seed if seed is not None else self.rng.getrandbits(64))
