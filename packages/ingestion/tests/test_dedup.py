import pytest

from packages.ingestion.dedup import DeduplicationEngine
from packages.storage.models import StoredTransaction


@pytest.fixture
def dedup(store, registry):
    return DeduplicationEngine(store, registry)


@pytest.fixture
def parsed(registry, hdfc_file):
    return registry.parse_with_bank(hdfc_file, "HDFC").transactions


def _store_all(store, registry, transactions, account_id="acc-1"):
    stored = [
        StoredTransaction.from_unified(
            txn, account_id=account_id, fingerprint=registry.fingerprint(txn, account_id)
        )
        for txn in transactions
    ]
    store.insert_transactions(stored)
    return stored


class TestDeduplication:
    def test_new_account_has_no_duplicates(self, dedup, parsed):
        results = dedup.check_for_duplicates(parsed, "acc-1")
        assert [r.confidence for r in results] == ["low", "low", "low"]
        assert all(r.existing_transaction is None for r in results)

    def test_reimport_is_exact(self, dedup, store, registry, parsed):
        stored = _store_all(store, registry, parsed)
        results = dedup.check_for_duplicates(parsed, "acc-1")
        assert all(r.is_exact_duplicate for r in results)
        assert [r.existing_transaction.id for r in results] == [t.id for t in stored]

    def test_fingerprints_are_account_scoped(self, dedup, store, registry, parsed):
        _store_all(store, registry, parsed, account_id="acc-2")
        results = dedup.check_for_duplicates(parsed, "acc-1")
        assert not any(r.is_exact_duplicate for r in results)

    def test_same_day_and_amount_is_possible_duplicate(self, dedup, store, registry, parsed):
        _store_all(store, registry, parsed[:1])
        variant = parsed[0]
        variant.description = "UPI-SWIGGY-swiggy@icici-999999999999-Refund adj"
        result = dedup.check_for_duplicates([variant], "acc-1")[0]
        assert result.confidence == "medium"
        assert result.is_possible_duplicate
        assert not result.is_exact_duplicate
        assert result.existing_transaction is not None

    def test_check_is_read_only(self, dedup, store, parsed):
        dedup.check_for_duplicates(parsed, "acc-1")
        assert store.list_transactions() == []
