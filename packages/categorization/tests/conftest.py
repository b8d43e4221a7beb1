from datetime import date

import pytest

from packages.categorization.engine import CategorizationEngine
from packages.categorization.transfers import TransferMatchingEngine
from packages.ingestion.registry import build_default_registry
from packages.storage.memory import InMemoryStore
from packages.storage.models import StoredTransaction


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def transfer_engine(store):
    return TransferMatchingEngine(store)


@pytest.fixture
def engine(store, registry, transfer_engine):
    return CategorizationEngine(store, registry, transfer_engine=transfer_engine)


@pytest.fixture
def make_txn():
    """Factory for stored transactions with HDFC defaults."""

    def _make(description, amount, when=date(2024, 3, 15), **extra):
        values = {
            "date": when,
            "description": description,
            "amount": amount,
            "transaction_type": "debit" if amount < 0 else "credit",
            "source": "HDFC-CSV",
            "bank_name": "HDFC Bank",
            "account_id": "acc-1",
        }
        values.update(extra)
        return StoredTransaction(**values)

    return _make
