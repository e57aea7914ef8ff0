"""Test data generators."""

from account_import.generators.dataset import DataGenerator, GenerationSummary, GeneratorConfig

__all__ = ["DataGenerator", "GenerationSummary", "GeneratorConfig"]
