from datetime import date

import pytest

from packages.ingestion.adapters import HDFCStatementAdapter
from packages.ingestion.errors import (
    FormatValidationError,
    UnsupportedBankError,
    UnsupportedFileTypeError,
)
from packages.ingestion.models import StatementFile, UnifiedTransaction
from packages.ingestion.registry import ParserRegistry


class TestLookup:
    def test_get_by_id_and_name(self, registry):
        assert registry.get("HDFC").bank_id == "HDFC"
        assert registry.get("hdfc bank").bank_id == "HDFC"
        assert registry.get("State Bank of India").bank_id == "SBI"

    def test_unknown_bank(self, registry):
        assert registry.find("ICICI") is None
        assert registry.find(None) is None
        assert not registry.is_bank_supported("ICICI")
        with pytest.raises(UnsupportedBankError):
            registry.get("ICICI")

    def test_supported_banks(self, registry):
        banks = registry.supported_banks()
        assert [b["id"] for b in banks] == ["HDFC", "SBI"]
        assert banks[1]["supported_formats"] == [".xls", ".xlsx"]

    def test_accepted_file_types(self, registry):
        assert registry.accepted_file_types() == ".csv,.txt,.xls,.xlsx"
        assert registry.accepted_file_types("SBI") == ".xls,.xlsx"
        assert registry.accepted_file_types("ICICI") == "*"
        assert registry.bank_formats("HDFC") == [".csv", ".txt"]

    def test_detect_adapter_in_registration_order(self, registry):
        assert registry.detect_adapter("UPI-SWIGGY-x@icici").bank_id == "HDFC"
        assert registry.detect_adapter("BY TRANSFER-NEFT*X*Y*Z--").bank_id == "SBI"
        assert registry.detect_adapter("KIRANA STORE") is None

    def test_register_replaces_same_bank(self):
        registry = ParserRegistry([HDFCStatementAdapter()])
        replacement = HDFCStatementAdapter()
        registry.register(replacement)
        assert registry.adapters() == [replacement]


class TestParseWithBank:
    def test_hdfc(self, registry, hdfc_file):
        result = registry.parse_with_bank(hdfc_file, "HDFC")
        assert len(result.transactions) == 3

    def test_sbi_by_display_name(self, registry, sbi_file):
        result = registry.parse_with_bank(sbi_file, "State Bank of India")
        assert len(result.transactions) == 3

    def test_wrong_extension(self, registry, hdfc_file):
        with pytest.raises(UnsupportedFileTypeError) as exc:
            registry.parse_with_bank(hdfc_file, "SBI")
        assert str(exc.value) == (
            "Invalid file format for State Bank of India. Expected: .xls, .xlsx. "
            "Please upload a valid State Bank of India statement."
        )

    def test_wrong_bank_content(self, registry):
        file = StatementFile(name="statement.csv", content=b"Txn Date,Description,Debit\n")
        with pytest.raises(FormatValidationError, match="does not appear to be a valid HDFC Bank"):
            registry.parse_with_bank(file, "HDFC")

    def test_unknown_bank(self, registry, hdfc_file):
        with pytest.raises(UnsupportedBankError):
            registry.parse_with_bank(hdfc_file, "ICICI")


def test_generic_fingerprint_for_unknown_bank(registry):
    txn = UnifiedTransaction(
        date=date(2024, 3, 15),
        description="KIRANA  STORE",
        amount=-120.0,
        transaction_type="debit",
        source="MANUAL",
        bank_name="Local Co-op Bank",
    )
    fp = registry.fingerprint(txn, "acc-1")
    assert fp == registry.fingerprint(txn, "acc-1")
    assert fp != registry.fingerprint(txn, "acc-2")
