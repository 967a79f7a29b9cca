"""
Shared fixtures: a file-backed SQLite catalog store.
"""

from datetime import date

import pytest

from clients.seed_store import SeedStoreClient
from tests.helpers.catalog import clean_catalog, default_seeds

DATE_COLUMNS = ("date_received", "expiration_date")

TABLES = {
    "seeds": "seeds",
    "inventory": "inventory",
    "pricing": "costs_and_pricing",
    "images": "seed_images",
}


def _as_dates(row: dict) -> dict:
    return {
        k: date.fromisoformat(v) if k in DATE_COLUMNS and isinstance(v, str) else v
        for k, v in row.items()
    }


@pytest.fixture
def store(tmp_path):
    """Empty store with the full schema."""
    client = SeedStoreClient(f"sqlite:///{tmp_path / 'seeds.db'}")
    client.create_schema()
    return client


@pytest.fixture
def seeded_store(store):
    """Store holding the clean four-seed catalog."""
    catalog = clean_catalog(*default_seeds())
    for name, table in TABLES.items():
        for row in catalog[name]:
            store.insert(table, _as_dates(row))
    return store
