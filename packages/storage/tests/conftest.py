from datetime import date

import pytest

from packages.storage.memory import InMemoryStore
from packages.storage.models import StoredTransaction


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def make_txn():
    def _make(description="UPI-SWIGGY-x@icici-1-Order", amount=-250.0, when=date(2024, 3, 15), **extra):
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
