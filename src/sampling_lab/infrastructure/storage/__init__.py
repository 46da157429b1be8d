"""
Storage package

Provides the experiment store contract and its implementations.
"""

from sampling_lab.infrastructure.storage.base import StorageService
from sampling_lab.infrastructure.storage.csv_store import CsvStorage
from sampling_lab.infrastructure.storage.memory import InMemoryStorage

__all__ = ["CsvStorage", "InMemoryStorage", "StorageService"]
