"""
SQLModel models for quiniela pools, fixtures and entries.
"""
from quiniela.models.pool import Pool
from quiniela.models.fixture import Fixture
from quiniela.models.entry import Entry

__all__ = [
    "Pool",
    "Fixture",
    "Entry",
]
